"""Async SQLite database manager for the screener's durable key-value state.

Uses aiosqlite with WAL mode. Holds two small tables: resolved funding
intervals (so a restart does not refetch them) and favorite assets.
"""

import os
from typing import Self

import aiosqlite

from fundingscope.logging import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS funding_intervals (
    platform_id TEXT NOT NULL,
    symbol TEXT NOT NULL,
    hours REAL NOT NULL,
    updated_at INTEGER NOT NULL,
    PRIMARY KEY (platform_id, symbol)
);

CREATE TABLE IF NOT EXISTS favorites (
    asset TEXT PRIMARY KEY,
    added_at INTEGER NOT NULL
);
"""


class FundingScopeDatabase:
    """Async SQLite connection manager.

    Usage:
        async with FundingScopeDatabase("data/fundingscope.db") as database:
            store = IntervalStore(database)

    ":memory:" is accepted for tests.
    """

    def __init__(self, db_path: str = "data/fundingscope.db") -> None:
        self._db_path = db_path
        self._connection: aiosqlite.Connection | None = None

    @property
    def db(self) -> aiosqlite.Connection:
        """Access the raw aiosqlite connection.

        Raises RuntimeError if not connected.
        """
        if self._connection is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    async def connect(self) -> None:
        """Open the connection, configure pragmas, and create the schema."""
        if self._db_path != ":memory:":
            db_dir = os.path.dirname(self._db_path)
            if db_dir:
                os.makedirs(db_dir, exist_ok=True)

        self._connection = await aiosqlite.connect(self._db_path)

        await self._connection.execute("PRAGMA journal_mode=WAL")
        await self._connection.execute("PRAGMA synchronous=NORMAL")

        await self._connection.executescript(_CREATE_TABLES_SQL)
        await self._connection.commit()
        await self._ensure_schema_version()

        logger.info("database_connected", db_path=self._db_path)

    async def close(self) -> None:
        """Close the database connection if open."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("database_closed", db_path=self._db_path)

    async def _ensure_schema_version(self) -> None:
        assert self._connection is not None
        cursor = await self._connection.execute(
            "SELECT version FROM schema_version LIMIT 1"
        )
        row = await cursor.fetchone()
        if row is None:
            await self._connection.execute(
                "INSERT INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )
            await self._connection.commit()
            logger.info("schema_version_set", version=SCHEMA_VERSION)

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()
