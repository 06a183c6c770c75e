"""
Error hierarchy and driver error translation for the data-access layer
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Union

import asyncpg

logger = logging.getLogger(__name__)


class DataAccessError(Exception):
    """Base class for every error raised by tabledb"""


class BackendError(DataAccessError):
    """The database rejected a statement or could not be reached"""

    def __init__(self, message: str, sqlstate: Optional[str] = None):
        super().__init__(message)
        self.sqlstate = sqlstate


class ConflictError(BackendError):
    """Unique or foreign key constraint violation"""


class InvalidArgumentError(DataAccessError, ValueError):
    """A caller supplied arguments no statement can be built from"""


class ConfigurationError(DataAccessError):
    """Connection settings are missing or malformed"""


class ErrorHandlingConfig:
    """Controls what bound values look like once they reach the logs"""

    SANITIZE_SENSITIVE_FIELDS = True
    SENSITIVE_FIELD_PATTERNS = [
        'password', 'token', 'key', 'secret', 'authorization',
        'auth', 'bearer', 'credential', 'api_key'
    ]
    MAX_VALUE_LOG_SIZE = 500

    @classmethod
    def is_sensitive_field(cls, field_name: str) -> bool:
        """Check if a column name suggests sensitive data"""
        field_lower = field_name.lower()
        return any(pattern in field_lower for pattern in cls.SENSITIVE_FIELD_PATTERNS)

    @classmethod
    def sanitize_data(cls, data: Union[Dict, list, tuple, str, Any]) -> Any:
        """Recursively redact sensitive keys and truncate long strings"""
        if not cls.SANITIZE_SENSITIVE_FIELDS:
            return data

        if isinstance(data, dict):
            return {
                key: "***REDACTED***" if cls.is_sensitive_field(str(key)) else cls.sanitize_data(value)
                for key, value in data.items()
            }
        elif isinstance(data, (list, tuple)):
            return [cls.sanitize_data(item) for item in data]
        elif isinstance(data, str) and len(data) > cls.MAX_VALUE_LOG_SIZE:
            return data[:cls.MAX_VALUE_LOG_SIZE] + "...[TRUNCATED]"
        else:
            return data


# Driver errors the executor converts into BackendError
DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


def translate_backend_error(exc: BaseException) -> BackendError:
    """
    Map a driver exception onto the tabledb error hierarchy

    Args:
        exc: Exception raised by asyncpg or the socket layer

    Returns:
        ConflictError for constraint conflicts, BackendError otherwise
    """
    sqlstate = getattr(exc, "sqlstate", None)

    if isinstance(exc, (asyncpg.UniqueViolationError, asyncpg.ForeignKeyViolationError)):
        logger.warning(f"Constraint violation: {exc}")
        return ConflictError(f"CONFLICT: {exc}", sqlstate=sqlstate)

    if isinstance(exc, asyncpg.PostgresError):
        logger.error(f"Database error: {exc}")
        return BackendError(f"Database query failed: {exc}", sqlstate=sqlstate)

    if isinstance(exc, asyncio.TimeoutError):
        logger.error("Database query timed out")
        return BackendError("Database query timed out")

    logger.error(f"Database connection error: {exc}")
    return BackendError(f"Database connection failed: {exc}")
