"""
PostgreSQL access for every repository.

A thin asyncpg pool wrapper. Repositories call ``fetch``/``execute`` for
one-off statements, or take a ``conn`` from ``transaction()`` to group
several statements. Read phases of the batch jobs open
``transaction(readonly=True)``; write phases open a plain one.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import asyncpg

from briefing.config.settings import get_settings

logger = logging.getLogger(__name__)


class Database:
    """
    Async PostgreSQL connection pool.

    Usage:
        db = Database()
        await db.connect()
        try:
            async with db.transaction(readonly=True) as conn:
                rows = await conn.fetch("SELECT * FROM content_items WHERE ...")
        finally:
            await db.close()
    """

    def __init__(
        self,
        database_url: str | None = None,
        min_size: int | None = None,
        max_size: int | None = None,
        command_timeout: float | None = None,
    ):
        settings = get_settings()

        self._database_url = database_url or str(settings.database_url)
        self._min_size = min_size or settings.db_pool_min_size
        self._max_size = max_size or settings.db_pool_max_size
        self._command_timeout = command_timeout or settings.db_command_timeout

        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        try:
            self._pool = await asyncpg.create_pool(
                self._database_url,
                min_size=self._min_size,
                max_size=self._max_size,
                command_timeout=self._command_timeout,
            )
        except Exception as e:
            logger.error("Failed to connect to database: %s", e)
            raise
        logger.info("Database connected (pool: %d-%d)", self._min_size, self._max_size)

    async def close(self) -> None:
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Database connection closed")

    @property
    def pool(self) -> asyncpg.Pool:
        """Connection pool, raising if not connected."""
        if self._pool is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._pool

    @asynccontextmanager
    async def transaction(self, readonly: bool = False) -> AsyncIterator[asyncpg.Connection]:
        """
        Open a transaction on a pooled connection.

        Never keep one open across an LLM, source API or notifier call:
        read, leave the block, do the slow work, then open a new block to
        write.

        Args:
            readonly: Start a READ ONLY transaction
        """
        async with self.pool.acquire() as conn:
            async with conn.transaction(readonly=readonly):
                yield conn

    async def execute(self, query: str, *args: Any) -> str:
        """Run a statement; returns the command tag (e.g. ``UPDATE 3``)."""
        async with self.pool.acquire() as conn:
            return await conn.execute(query, *args)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        async with self.pool.acquire() as conn:
            return await conn.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        async with self.pool.acquire() as conn:
            return await conn.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        async with self.pool.acquire() as conn:
            return await conn.fetchval(query, *args)

    async def health_check(self) -> bool:
        """True if the database answers ``SELECT 1``."""
        try:
            return await self.fetchval("SELECT 1") == 1
        except Exception as e:
            logger.warning("Database health check failed: %s", e)
            return False
