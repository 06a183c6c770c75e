"""
Raw backend responses and their normalized form
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

Row = Dict[str, Any]

ROW_COMMANDS = ("SELECT", "WITH", "VALUES", "TABLE", "SHOW", "EXPLAIN")


@dataclass(frozen=True)
class RowSet:
    """Rows produced by a read or by a RETURNING clause"""
    rows: List[Row] = field(default_factory=list)


@dataclass(frozen=True)
class CommandStatus:
    """Command tag of a statement run without fetching rows"""
    status: str  # "INSERT 0 2", "UPDATE 3", "DELETE 0"


RawResponse = Union[RowSet, CommandStatus]


@dataclass(frozen=True)
class QueryResult:
    """Uniform result of any statement"""
    insert_id: Any = 0
    affected_rows: int = 0
    rows: List[Row] = field(default_factory=list)


def parse_affected_rows(status: str) -> int:
    """Row count from a PostgreSQL command tag, 0 when the tag carries none"""
    parts = (status or "").split()
    if not parts:
        return 0
    try:
        return int(parts[-1])
    except ValueError:
        return 0


def returns_rows(sql: str) -> bool:
    """
    Guess whether raw SQL produces rows

    Reads and statements with a RETURNING clause are fetched, everything
    else is executed for its command tag.
    """
    words = (sql or "").split()
    if not words:
        return False
    if words[0].upper() in ROW_COMMANDS:
        return True
    return "RETURNING" in sql.upper()


def normalize_response(raw: RawResponse, insert_key: Optional[str] = None) -> QueryResult:
    """
    Convert a raw backend response into a QueryResult

    Row sets fill ``rows``. When ``insert_key`` is given the rows are the
    RETURNING output of an INSERT: they also fill ``affected_rows`` and
    ``insert_id`` is the first row's ``insert_key`` column, 0 when the table
    has no such column. Command statuses fill ``affected_rows`` only.
    """
    if isinstance(raw, RowSet):
        rows = list(raw.rows)
        if insert_key is None:
            return QueryResult(rows=rows)
        insert_id = rows[0].get(insert_key, 0) if rows else 0
        return QueryResult(insert_id=insert_id, affected_rows=len(rows), rows=rows)

    if isinstance(raw, CommandStatus):
        return QueryResult(affected_rows=parse_affected_rows(raw.status))

    raise TypeError(f"Unsupported backend response: {type(raw).__name__}")
