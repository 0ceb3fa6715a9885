"""Typed read/write access to the durable interval cache and favorites.

All SQL is isolated behind IntervalStore and FavoritesStore. Both are
plain key-value stores: the in-process structures that sit on top of them
(TieredIntervalCache, ScreenerState.favorites) are authoritative while
the process runs.
"""

import time

from fundingscope.data.database import FundingScopeDatabase
from fundingscope.logging import get_logger
from fundingscope.models import IntervalRecord

logger = get_logger(__name__)


class IntervalStore:
    """Durable funding intervals, keyed by (platform_id, symbol)."""

    def __init__(self, database: FundingScopeDatabase) -> None:
        self._database = database

    async def load_intervals(self, platform_id: str) -> dict[str, float]:
        """Return every stored interval for a platform as {symbol: hours}."""
        cursor = await self._database.db.execute(
            "SELECT symbol, hours FROM funding_intervals WHERE platform_id = ?",
            (platform_id,),
        )
        rows = await cursor.fetchall()
        return {row[0]: float(row[1]) for row in rows}

    async def save_interval(self, record: IntervalRecord) -> None:
        """Insert or overwrite one interval."""
        now_ms = int(time.time() * 1000)
        await self._database.db.execute(
            "INSERT OR REPLACE INTO funding_intervals "
            "(platform_id, symbol, hours, updated_at) VALUES (?, ?, ?, ?)",
            (record.platform_id, record.symbol, record.hours, now_ms),
        )
        await self._database.db.commit()


class FavoritesStore:
    """Durable favorite asset set."""

    def __init__(self, database: FundingScopeDatabase) -> None:
        self._database = database

    async def load_favorites(self) -> set[str]:
        cursor = await self._database.db.execute("SELECT asset FROM favorites")
        rows = await cursor.fetchall()
        return {row[0] for row in rows}

    async def save_favorites(self, favorites: set[str] | frozenset[str]) -> None:
        """Replace the stored set with `favorites`, keeping existing added_at values."""
        now_ms = int(time.time() * 1000)
        db = self._database.db
        existing = await self.load_favorites()

        removed = existing - favorites
        added = favorites - existing
        if removed:
            await db.executemany(
                "DELETE FROM favorites WHERE asset = ?",
                [(asset,) for asset in removed],
            )
        if added:
            await db.executemany(
                "INSERT OR IGNORE INTO favorites (asset, added_at) VALUES (?, ?)",
                [(asset, now_ms) for asset in added],
            )
        await db.commit()
        logger.debug("saved_favorites", added=len(added), removed=len(removed))
