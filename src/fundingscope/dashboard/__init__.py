"""FastAPI JSON API over the funding screener."""
