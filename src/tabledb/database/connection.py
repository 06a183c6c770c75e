"""
Database connection and pool management
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Sequence

import asyncpg

from tabledb.config.settings import DatabaseSettings
from tabledb.database.responses import CommandStatus, RawResponse, RowSet
from tabledb.utils.error_handling import DRIVER_ERRORS, translate_backend_error

logger = logging.getLogger(__name__)

DEFAULT_ISOLATION = "serializable"


async def run_statement(conn: asyncpg.Connection, sql: str, values: Sequence[Any], fetch: bool = True) -> RawResponse:
    """Run one statement on a connection, fetching its rows or its command tag"""
    if fetch:
        records = await conn.fetch(sql, *values)
        return RowSet(rows=[dict(record) for record in records])

    status = await conn.execute(sql, *values)
    return CommandStatus(status=status)


class ConnectionBackend:
    """Backend bound to a single acquired connection"""

    def __init__(self, conn: asyncpg.Connection):
        self._conn = conn

    async def execute(self, sql: str, values: Sequence[Any], fetch: bool = True) -> RawResponse:
        return await run_statement(self._conn, sql, values, fetch)

    @asynccontextmanager
    async def transaction(self, isolation: str = DEFAULT_ISOLATION) -> AsyncIterator["ConnectionBackend"]:
        # Nested blocks become savepoints; isolation only applies to the outermost one
        if self._conn.is_in_transaction():
            async with self._conn.transaction():
                yield self
        else:
            async with self._conn.transaction(isolation=isolation):
                yield self


class PoolBackend:
    """Backend that acquires a pooled connection per statement"""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def execute(self, sql: str, values: Sequence[Any], fetch: bool = True) -> RawResponse:
        async with self._pool.acquire() as conn:
            return await run_statement(conn, sql, values, fetch)

    @asynccontextmanager
    async def transaction(self, isolation: str = DEFAULT_ISOLATION) -> AsyncIterator[ConnectionBackend]:
        async with self._pool.acquire() as conn:
            async with conn.transaction(isolation=isolation):
                yield ConnectionBackend(conn)


async def init_database(settings: DatabaseSettings) -> asyncpg.Pool:
    """Initialize database connection pool"""
    try:
        pool = await asyncpg.create_pool(**settings.pool_kwargs())
    except DRIVER_ERRORS as e:
        raise translate_backend_error(e) from e

    # Test connection
    try:
        async with pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
    except DRIVER_ERRORS as e:
        await pool.close()
        raise translate_backend_error(e) from e

    logger.info(f"Database initialized successfully ({settings.describe()})")
    return pool


async def close_database(pool: asyncpg.Pool) -> None:
    """Close database connection pool"""
    if pool:
        await pool.close()
    logger.info("Database connections closed")
