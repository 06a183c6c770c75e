"""
Query assembly - builds parameterized statements for each CRUD verb
"""

from typing import Any, Mapping, Optional, Sequence

from tabledb.query.options import QueryOptions
from tabledb.query.predicates import FilterCompiler, PredicateCompiler
from tabledb.query.statement import Statement
from tabledb.utils.error_handling import InvalidArgumentError


class QueryAssembler:
    """Builds SQL text and bound values; never talks to the database"""

    def __init__(self, compiler: Optional[PredicateCompiler] = None, primary_key: Optional[str] = "id"):
        self.compiler = compiler or FilterCompiler()
        self.primary_key = primary_key

    def select(
        self,
        table: str,
        where: Optional[Mapping[str, Any]] = None,
        options: Optional[QueryOptions] = None,
        lock: bool = False
    ) -> Statement:
        """
        Build SELECT from filter and options

        Args:
            table: Table name, emitted as a quoted identifier
            where: Filter specification for the predicate compiler
            options: Ordering, limit and offset
            lock: Append FOR UPDATE to lock matched rows

        Returns:
            Statement with SQL text and bound values
        """
        options = QueryOptions.coerce(options)
        statement = Statement()
        statement.append(f"SELECT * FROM {statement.identifier(table)}")

        self._append_where(statement, where)

        # ORDER BY clause
        if options.order:
            column = statement.identifier(options.order.column)
            if options.order.direction is None:
                statement.append(f"ORDER BY {column}")
            else:
                statement.append(f"ORDER BY {column} {options.order.direction.sql}")

        # LIMIT and OFFSET
        if options.effective_limit:
            statement.append(f"LIMIT {statement.bind(options.effective_limit)}")
            if options.effective_offset:
                statement.append(f"OFFSET {statement.bind(options.effective_offset)}")

        if lock:
            statement.append("FOR UPDATE")

        return statement

    def insert_one(self, table: str, row: Mapping[str, Any]) -> Statement:
        """Build single-row INSERT"""
        if not isinstance(row, Mapping):
            raise InvalidArgumentError(f"Row must be a mapping, got: {type(row).__name__}")

        statement = self._insert_statement()
        target = statement.identifier(table)

        if row:
            columns = [statement.identifier(name) for name in row.keys()]
            placeholders = [statement.bind(value) for value in row.values()]
            statement.append(f"INSERT INTO {target} ({', '.join(columns)}) VALUES ({', '.join(placeholders)})")
        else:
            statement.append(f"INSERT INTO {target} DEFAULT VALUES")

        self._append_returning(statement)
        return statement

    def insert_many(self, table: str, rows: Sequence[Mapping[str, Any]]) -> Statement:
        """
        Build multi-row INSERT

        The first row's keys fix the column order for every row.

        Raises:
            InvalidArgumentError: If rows is empty, the first row has no columns,
                or any row's keys differ from the first row's
        """
        if not rows:
            raise InvalidArgumentError("create_many requires at least one row")

        first = rows[0]
        if not isinstance(first, Mapping) or not first:
            raise InvalidArgumentError("create_many requires the first row to have at least one column")

        column_names = list(first.keys())
        expected = set(column_names)

        statement = self._insert_statement()
        target = statement.identifier(table)
        columns = [statement.identifier(name) for name in column_names]

        tuples = []
        for index, row in enumerate(rows):
            if not isinstance(row, Mapping) or set(row.keys()) != expected:
                raise InvalidArgumentError(
                    f"Row {index} does not match the columns of the first row: {column_names}"
                )
            placeholders = [statement.bind(row[name]) for name in column_names]
            tuples.append(f"({', '.join(placeholders)})")

        statement.append(f"INSERT INTO {target} ({', '.join(columns)}) VALUES {', '.join(tuples)}")
        self._append_returning(statement)
        return statement

    def update(
        self,
        table: str,
        where: Optional[Mapping[str, Any]],
        data: Mapping[str, Any],
        single: bool = False
    ) -> Statement:
        """
        Build UPDATE

        With ``single`` the target is narrowed to one physical row through a
        ctid subquery, PostgreSQL has no UPDATE ... LIMIT.
        """
        if not isinstance(data, Mapping) or not data:
            raise InvalidArgumentError("update requires at least one column to set")

        statement = Statement(fetch=False)
        target = statement.identifier(table)

        # SET clause
        set_parts = [
            f"{statement.identifier(name)} = {statement.bind(value)}"
            for name, value in data.items()
        ]
        statement.append(f"UPDATE {target} SET {', '.join(set_parts)}")

        if single:
            subquery = [f"SELECT ctid FROM {target}"]
            fragment = self.compiler.build(where, statement)
            if fragment:
                subquery.append(f"WHERE {fragment}")
            subquery.append("LIMIT 1")
            statement.append(f"WHERE ctid = ({' '.join(subquery)})")
        else:
            self._append_where(statement, where)

        return statement

    def delete(self, table: str, where: Optional[Mapping[str, Any]] = None) -> Statement:
        """Build DELETE"""
        statement = Statement(fetch=False)
        statement.append(f"DELETE FROM {statement.identifier(table)}")
        self._append_where(statement, where)
        return statement

    def _append_where(self, statement: Statement, where: Optional[Mapping[str, Any]]) -> None:
        fragment = self.compiler.build(where, statement)
        if fragment:
            statement.append(f"WHERE {fragment}")

    def _insert_statement(self) -> Statement:
        # Without a key the insert only needs its command tag
        if self.primary_key:
            return Statement(insert_key=self.primary_key)
        return Statement(fetch=False)

    def _append_returning(self, statement: Statement) -> None:
        # Rows lacking the key column report insert_id 0
        if statement.insert_key:
            statement.append("RETURNING *")

