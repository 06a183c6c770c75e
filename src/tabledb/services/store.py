"""
Table store - generic CRUD operations over any table
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Mapping, Optional, Sequence, Union

import asyncpg

from tabledb.config.settings import DatabaseSettings, load_settings
from tabledb.database.connection import DEFAULT_ISOLATION, PoolBackend, close_database, init_database
from tabledb.database.executor import QueryExecutor
from tabledb.database.responses import QueryResult, Row
from tabledb.query.assembler import QueryAssembler
from tabledb.query.options import QueryOptions
from tabledb.query.predicates import PredicateCompiler
from tabledb.query.statement import Statement
from tabledb.services.table_handle import TableHandle
from tabledb.utils.error_handling import ErrorHandlingConfig, InvalidArgumentError

logger = logging.getLogger(__name__)

Where = Optional[Mapping[str, Any]]
Options = Union[QueryOptions, Mapping[str, Any], None]


class TableStore:
    """
    CRUD operations over a relational table store

    Every operation takes the table name first. Use ``table(name)`` for a
    handle with the name pre-bound.
    """

    def __init__(
        self,
        executor: QueryExecutor,
        compiler: Optional[PredicateCompiler] = None,
        primary_key: Optional[str] = "id",
        upsert_isolation: str = DEFAULT_ISOLATION,
        assembler: Optional[QueryAssembler] = None
    ):
        self.executor = executor
        self.assembler = assembler or QueryAssembler(compiler=compiler, primary_key=primary_key)
        self.upsert_isolation = upsert_isolation

    @classmethod
    def from_pool(cls, pool: asyncpg.Pool, **kwargs: Any) -> "TableStore":
        """Wrap a pool owned by the caller"""
        return cls(QueryExecutor(PoolBackend(pool)), **kwargs)

    @property
    def primary_key(self) -> Optional[str]:
        return self.assembler.primary_key

    # query

    async def query(self, sql: str, values: Sequence[Any] = (), fetch: Optional[bool] = None) -> QueryResult:
        """
        Run raw SQL through the executor

        Reads and statements with a RETURNING clause come back in ``rows``,
        including UPDATE or DELETE ... RETURNING, with ``affected_rows`` left
        at 0. Other statements report ``affected_rows`` from their command tag.
        Pass ``fetch`` to override the guess.
        """
        return await self.executor.execute(sql, values, fetch=fetch)

    async def _run(self, statement: Statement) -> QueryResult:
        return await self.executor.execute(
            statement.sql, statement.values, fetch=statement.fetch, insert_key=statement.insert_key
        )

    # filter

    async def filter(self, table: str, where: Where = None, options: Options = None) -> List[Row]:
        """
        Get rows matching a filter

        Args:
            table: Table name
            where: Filter specification, None or {} matches every row
            options: order, limit and offset

        Returns:
            List of rows
        """
        statement = self.assembler.select(table, where, QueryOptions.coerce(options))
        result = await self._run(statement)
        logger.info(f"Read from {table} successful - {len(result.rows)} rows returned")
        return result.rows

    # find

    async def find(self, table: str, where: Where = None, options: Options = None) -> Optional[Row]:
        """Get the first matching row, or None when nothing matches"""
        options = QueryOptions.coerce(options).model_copy(update={"limit": 1})
        rows = await self.filter(table, where, options)
        return rows[0] if rows else None

    # create

    async def create(self, table: str, data: Union[Mapping[str, Any], Sequence[Mapping[str, Any]]]) -> Any:
        """Insert one row (mapping) or many rows (list or tuple of mappings)"""
        if isinstance(data, Mapping):
            return await self.create_one(table, data)
        if isinstance(data, (list, tuple)):
            return await self.create_many(table, data)
        raise InvalidArgumentError(
            f"create expects a row or a list of rows, got: {type(data).__name__}"
        )

    async def create_many(self, table: str, rows: Sequence[Mapping[str, Any]]) -> Any:
        """Insert rows in one statement, returns the id of the first inserted row"""
        statement = self.assembler.insert_many(table, rows)
        result = await self._run(statement)
        logger.info(f"Created {result.affected_rows} rows in {table}")
        return result.insert_id

    async def create_one(self, table: str, row: Mapping[str, Any]) -> Any:
        """Insert a row, returns its generated id"""
        statement = self.assembler.insert_one(table, row)
        logger.debug(f"Creating row in {table}: {ErrorHandlingConfig.sanitize_data(dict(row))}")
        result = await self._run(statement)
        logger.info(f"Created row in {table} with id {result.insert_id}")
        return result.insert_id

    # update

    async def update(self, table: str, where: Where, data: Mapping[str, Any]) -> int:
        """Update every matching row, returns the affected row count"""
        statement = self.assembler.update(table, where, data)
        result = await self._run(statement)
        logger.info(f"UPDATE on {table} successful - {result.affected_rows} rows updated")
        return result.affected_rows

    async def update_one(self, table: str, where: Where, data: Mapping[str, Any]) -> int:
        """Update at most one matching row, returns 0 or 1"""
        statement = self.assembler.update(table, where, data, single=True)
        result = await self._run(statement)
        logger.info(f"UPDATE on {table} successful - {result.affected_rows} rows updated")
        return result.affected_rows

    # upsert

    async def upsert(self, table: str, where: Where, data: Mapping[str, Any]) -> Any:
        """
        Update the first row matching ``where`` or create one

        The lookup locks the matched row and both statements run in one
        transaction. The update targets the matched row by primary key.

        Returns:
            Id of the updated or created row

        Raises:
            InvalidArgumentError: If no primary key is configured or the
                matched row has no primary key column
            BackendError: If a concurrent transaction conflicts
        """
        pk = self.primary_key
        if not pk:
            raise InvalidArgumentError("upsert requires a primary key column")
        if not isinstance(data, Mapping):
            raise InvalidArgumentError(f"upsert expects a row, got: {type(data).__name__}")

        async with self.executor.transaction(isolation=self.upsert_isolation) as executor:
            store = self._bind(executor)

            statement = self.assembler.select(table, where, QueryOptions(limit=1), lock=True)
            rows = (await store._run(statement)).rows

            if rows:
                item = rows[0]
                if pk not in item:
                    raise InvalidArgumentError(f"Matched row in {table} has no '{pk}' column")
                await store.update(table, {pk: item[pk]}, data)
                logger.info(f"Upsert on {table} updated row {item[pk]}")
                return item[pk]

            insert_id = await store.create_one(table, data)
            logger.info(f"Upsert on {table} created row {insert_id}")
            return insert_id

    # remove

    async def remove(self, table: str, where: Where = None) -> int:
        """Delete every matching row, returns the removed row count"""
        statement = self.assembler.delete(table, where)
        result = await self._run(statement)
        logger.info(f"DELETE on {table} successful - {result.affected_rows} rows removed")
        return result.affected_rows

    # table

    def table(self, name: str) -> TableHandle:
        """Handle exposing every operation pre-bound to ``name``"""
        return TableHandle(self, name)

    def _bind(self, executor: QueryExecutor) -> "TableStore":
        return TableStore(executor, assembler=self.assembler, upsert_isolation=self.upsert_isolation)


@asynccontextmanager
async def connect(
    settings: Optional[DatabaseSettings] = None,
    *,
    compiler: Optional[PredicateCompiler] = None
) -> AsyncIterator[TableStore]:
    """
    Open a pool, yield a TableStore over it, close the pool on exit

    Settings are loaded from the environment when not given.
    """
    settings = settings or load_settings()
    pool = await init_database(settings)
    try:
        yield TableStore.from_pool(pool, compiler=compiler, primary_key=settings.primary_key)
    finally:
        await close_database(pool)
