"""
Configuration settings for the tabledb data-access layer
"""

import os
import logging
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError

from tabledb.utils.error_handling import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_LOG_LEVEL = "INFO"


class DatabaseSettings(BaseModel):
    """Connection and pool settings for the PostgreSQL backend"""

    url: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None

    min_size: int = 2
    max_size: int = 10
    command_timeout: float = 60
    statement_cache_size: int = 0  # pgbouncer compatibility

    primary_key: Optional[str] = "id"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DatabaseSettings":
        """
        Build settings from environment variables

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            DatabaseSettings populated from DATABASE_* variables

        Raises:
            ConfigurationError: If no connection target is configured
        """
        env = os.environ if environ is None else environ

        values: Dict[str, Any] = {
            "url": env.get("DATABASE_URL"),
            "host": env.get("DATABASE_HOST"),
            "port": env.get("DATABASE_PORT"),
            "user": env.get("DATABASE_USER"),
            "password": env.get("DATABASE_PASSWORD"),
            "database": env.get("DATABASE"),
            "min_size": env.get("DATABASE_POOL_MIN_SIZE"),
            "max_size": env.get("DATABASE_POOL_MAX_SIZE"),
            "command_timeout": env.get("DATABASE_COMMAND_TIMEOUT"),
            "statement_cache_size": env.get("DATABASE_STATEMENT_CACHE_SIZE"),
            "primary_key": env.get("DATABASE_PRIMARY_KEY"),
        }
        values = {key: value for key, value in values.items() if value not in (None, "")}

        try:
            settings = cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid database settings: {e}") from e

        settings.validate_target()
        return settings

    def validate_target(self) -> None:
        """Ensure either a DSN or a database name is present"""
        if not self.url and not self.database:
            raise ConfigurationError(
                "DATABASE_URL or DATABASE environment variable is required"
            )
        if self.min_size > self.max_size:
            raise ConfigurationError(
                f"Pool min_size ({self.min_size}) exceeds max_size ({self.max_size})"
            )

    def pool_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for asyncpg.create_pool"""
        kwargs: Dict[str, Any] = {
            "min_size": self.min_size,
            "max_size": self.max_size,
            "command_timeout": self.command_timeout,
            "statement_cache_size": self.statement_cache_size,
        }
        if self.url:
            kwargs["dsn"] = self.url
        for name in ("host", "port", "user", "password", "database"):
            value = getattr(self, name)
            if value is not None:
                kwargs[name] = value
        return kwargs

    def describe(self) -> str:
        """Connection target without credentials, for logs"""
        if self.url:
            return self.url.split("@")[-1]
        return f"{self.host or 'localhost'}:{self.port or 5432}/{self.database}"


def load_settings(dotenv_path: Optional[str] = None) -> DatabaseSettings:
    """Load variables from a .env file, then build DatabaseSettings from the environment"""
    load_dotenv(dotenv_path)
    settings = DatabaseSettings.from_env()
    logger.info(f"Database target: {settings.describe()}")
    return settings


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging, level from TABLEDB_LOG_LEVEL when not given"""
    level_name = (level or os.getenv("TABLEDB_LOG_LEVEL", DEFAULT_LOG_LEVEL)).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO))
