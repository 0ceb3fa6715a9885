"""Durable storage: SQLite database manager and typed key-value stores."""

from fundingscope.data.database import FundingScopeDatabase
from fundingscope.data.store import FavoritesStore, IntervalStore

__all__ = ["FavoritesStore", "FundingScopeDatabase", "IntervalStore"]
