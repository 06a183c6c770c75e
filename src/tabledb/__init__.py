"""
tabledb - generic async CRUD over PostgreSQL tables
"""

from tabledb.config.settings import DatabaseSettings, configure_logging, load_settings
from tabledb.database.connection import close_database, init_database
from tabledb.database.responses import QueryResult
from tabledb.query.options import OrderBy, QueryOptions, SortDirection
from tabledb.query.predicates import FilterCompiler, PredicateCompiler
from tabledb.services.store import TableStore, connect
from tabledb.services.table_handle import TableHandle
from tabledb.utils.error_handling import (
    BackendError,
    ConfigurationError,
    ConflictError,
    DataAccessError,
    InvalidArgumentError,
)

__version__ = "1.0.0"

__all__ = [
    "BackendError",
    "ConfigurationError",
    "ConflictError",
    "DataAccessError",
    "DatabaseSettings",
    "FilterCompiler",
    "InvalidArgumentError",
    "OrderBy",
    "PredicateCompiler",
    "QueryOptions",
    "QueryResult",
    "SortDirection",
    "TableHandle",
    "TableStore",
    "close_database",
    "configure_logging",
    "connect",
    "init_database",
    "load_settings",
]
