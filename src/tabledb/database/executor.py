"""
Executor component - sends SQL to the backend and normalizes what comes back
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncContextManager, AsyncIterator, Optional, Protocol, Sequence, runtime_checkable

from tabledb.database.connection import DEFAULT_ISOLATION
from tabledb.database.responses import QueryResult, RawResponse, normalize_response, returns_rows
from tabledb.utils.error_handling import DRIVER_ERRORS, ErrorHandlingConfig, translate_backend_error

logger = logging.getLogger(__name__)


@runtime_checkable
class Backend(Protocol):
    """
    Opaque executor of ``(sql, values, fetch) -> raw response``

    Implementations wrap a pool or a single connection. ``transaction()``
    yields a backend pinned to one connection for the duration of the block.
    """

    async def execute(self, sql: str, values: Sequence[Any], fetch: bool = True) -> RawResponse:
        ...

    def transaction(self, isolation: str = DEFAULT_ISOLATION) -> AsyncContextManager["Backend"]:
        ...


class QueryExecutor:
    """Runs statements through a backend, one round trip per call"""

    def __init__(self, backend: Backend):
        self._backend = backend

    @property
    def backend(self) -> Backend:
        return self._backend

    async def execute(
        self,
        sql: str,
        values: Sequence[Any] = (),
        fetch: Optional[bool] = None,
        insert_key: Optional[str] = None
    ) -> QueryResult:
        """
        Execute a SQL template with positional values

        Args:
            sql: Statement text using $1..$n placeholders
            values: Bound values in placeholder order
            fetch: Fetch rows (True) or only the command tag (False),
                guessed from the SQL when None
            insert_key: Column holding the id in the RETURNING rows of an INSERT

        Returns:
            QueryResult built from the backend response

        Raises:
            BackendError: If the driver rejects the statement or the connection fails
        """
        values = list(values)
        if fetch is None:
            fetch = returns_rows(sql)

        logger.info(f"Executing query: {sql}")
        logger.debug(f"Parameters: {ErrorHandlingConfig.sanitize_data(values)}")

        try:
            raw = await self._backend.execute(sql, values, fetch)
        except DRIVER_ERRORS as e:
            raise translate_backend_error(e) from e

        return normalize_response(raw, insert_key)

    @asynccontextmanager
    async def transaction(self, isolation: str = DEFAULT_ISOLATION) -> AsyncIterator["QueryExecutor"]:
        """Executor pinned to one connection inside a transaction"""
        try:
            async with self._backend.transaction(isolation=isolation) as backend:
                logger.debug(f"Transaction started ({isolation})")
                yield QueryExecutor(backend)
        except DRIVER_ERRORS as e:
            # Commit failures (e.g. serialization conflicts) surface on exit
            raise translate_backend_error(e) from e
