"""Cross-venue perpetual funding rate normalization and spread screener."""
