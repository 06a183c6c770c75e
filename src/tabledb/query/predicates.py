"""
Predicate compilation - filter specifications to SQL boolean fragments
"""

from enum import Enum
from typing import Any, List, Mapping, Optional, Protocol, runtime_checkable

from tabledb.query.statement import Statement
from tabledb.utils.error_handling import InvalidArgumentError


class FilterOperator(str, Enum):
    """Allowed filter operators"""
    EQ = "="
    NEQ = "!="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    IN = "IN"
    BETWEEN = "BETWEEN"
    LIKE = "LIKE"
    ILIKE = "ILIKE"

    @classmethod
    def parse(cls, value: Any) -> "FilterOperator":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise InvalidArgumentError(f"Unsupported WHERE operator: {value!r}")


COMPARISON_OPERATORS = (
    FilterOperator.GT, FilterOperator.GTE, FilterOperator.LT, FilterOperator.LTE,
    FilterOperator.LIKE, FilterOperator.ILIKE,
)


@runtime_checkable
class PredicateCompiler(Protocol):
    """
    Turns a filter specification into a SQL boolean fragment

    Values are bound through ``statement.bind`` so placeholders line up with
    the rest of the statement. ``None`` means no restriction.
    """

    def build(self, where: Optional[Mapping[str, Any]], statement: Statement) -> Optional[str]:
        ...


class FilterCompiler:
    """
    Default predicate compiler

    Supported shapes::

        {"status": "OPEN"}                         "status" = $1
        {"closed_at": None}                        "closed_at" IS NULL
        {"id": [1, 2]}                             "id" IN ($1, $2)
        {"age": {"op": ">=", "value": 18}}         "age" >= $1
        {"$or": [{"a": 1}, {"b": 2}]}              ("a" = $1 OR "b" = $2)

    Multiple keys are joined with AND.
    """

    AND_KEY = "$and"
    OR_KEY = "$or"

    def build(self, where: Optional[Mapping[str, Any]], statement: Statement) -> Optional[str]:
        parts = self._build_parts(where, statement)
        if not parts:
            return None
        return " AND ".join(parts)

    def _build_parts(self, where: Optional[Mapping[str, Any]], statement: Statement) -> List[str]:
        if where is None:
            return []
        if not isinstance(where, Mapping):
            raise InvalidArgumentError(f"Filter must be a mapping, got: {type(where).__name__}")

        parts = []
        for key, value in where.items():
            if key == self.AND_KEY:
                parts.append(self._build_group(value, " AND ", statement))
            elif key == self.OR_KEY:
                parts.append(self._build_group(value, " OR ", statement))
            else:
                parts.append(self._build_condition(key, value, statement))
        return parts

    def _build_group(self, filters: Any, joiner: str, statement: Statement) -> str:
        if not isinstance(filters, (list, tuple)) or not filters:
            raise InvalidArgumentError("Logical groups require a non-empty list of filters")

        fragments = []
        for sub_filter in filters:
            parts = self._build_parts(sub_filter, statement)
            if not parts:
                fragments.append("TRUE")
            elif len(parts) == 1:
                fragments.append(parts[0])
            else:
                fragments.append("(" + " AND ".join(parts) + ")")

        return "(" + joiner.join(fragments) + ")"

    def _build_condition(self, field: str, value: Any, statement: Statement) -> str:
        column = statement.identifier(field)

        if isinstance(value, Mapping) and "op" in value:
            operator = FilterOperator.parse(value["op"])
            return self._build_operator(column, operator, value.get("value"), statement)

        if isinstance(value, (list, tuple, set, frozenset)):
            return self._build_operator(column, FilterOperator.IN, list(value), statement)

        return self._build_operator(column, FilterOperator.EQ, value, statement)

    def _build_operator(self, column: str, op: FilterOperator, value: Any, statement: Statement) -> str:
        if op == FilterOperator.EQ:
            if value is None:
                return f"{column} IS NULL"
            return f"{column} = {statement.bind(value)}"

        if op == FilterOperator.NEQ:
            if value is None:
                return f"{column} IS NOT NULL"
            return f"{column} != {statement.bind(value)}"

        if op in COMPARISON_OPERATORS:
            if value is None:
                raise InvalidArgumentError(f"Operator {op.value} requires a value")
            return f"{column} {op.value} {statement.bind(value)}"

        if op == FilterOperator.IN:
            if not isinstance(value, (list, tuple, set, frozenset)):
                return f"{column} = {statement.bind(value)}"
            if not value:
                # IN () is not valid SQL, an empty set matches nothing
                return "FALSE"
            placeholders = [statement.bind(item) for item in value]
            return f"{column} IN ({', '.join(placeholders)})"

        if op == FilterOperator.BETWEEN:
            if not isinstance(value, (list, tuple)) or len(value) != 2:
                raise InvalidArgumentError(f"BETWEEN operator requires array of 2 values, got: {value}")
            return f"{column} BETWEEN {statement.bind(value[0])} AND {statement.bind(value[1])}"

        raise InvalidArgumentError(f"Unsupported WHERE operator: {op}")
