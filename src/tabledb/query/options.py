"""
Read options: ordering, limit and offset
"""

from enum import Enum
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tabledb.utils.error_handling import InvalidArgumentError


class SortDirection(str, Enum):
    """Allowed ORDER BY directions"""
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: Any) -> "SortDirection":
        """Case-insensitive lookup, anything else is rejected"""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidArgumentError(f"Unsupported sort direction: {value!r}")

    @property
    def sql(self) -> str:
        return self.value.upper()


class OrderBy(BaseModel):
    """ORDER BY clause; no direction means the backend default"""
    model_config = ConfigDict(frozen=True)

    column: str
    direction: Optional[SortDirection] = None

    @field_validator("direction", mode="before")
    @classmethod
    def _parse_direction(cls, value: Any) -> Optional[SortDirection]:
        if value is None:
            return None
        return SortDirection.parse(value)


class QueryOptions(BaseModel):
    """Options accepted by filter and find"""
    model_config = ConfigDict(frozen=True)

    order: Optional[OrderBy] = None
    limit: Optional[int] = Field(default=None, ge=0)
    offset: Optional[int] = Field(default=None, ge=0)

    @field_validator("order", mode="before")
    @classmethod
    def _coerce_order(cls, value: Any) -> Any:
        if value is None or isinstance(value, (OrderBy, Mapping)):
            return value
        if isinstance(value, str):
            return {"column": value}
        if isinstance(value, (list, tuple)) and len(value) == 2:
            # Only the bare-column form leaves the direction unset
            return {"column": value[0], "direction": SortDirection.parse(value[1])}
        raise ValueError(f"order must be a column name or a [column, direction] pair, got: {value!r}")

    @property
    def effective_limit(self) -> Optional[int]:
        # 0 counts as unset
        return self.limit or None

    @property
    def effective_offset(self) -> Optional[int]:
        """Offset is only honored together with a limit"""
        if not self.effective_limit:
            return None
        return self.offset or None

    @classmethod
    def coerce(cls, options: Union["QueryOptions", Mapping[str, Any], None]) -> "QueryOptions":
        """Accept a QueryOptions, a plain dict or None"""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        try:
            return cls.model_validate(dict(options))
        except (ValidationError, ValueError, TypeError) as e:
            raise InvalidArgumentError(f"Invalid query options: {e}") from e
