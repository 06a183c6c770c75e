"""
SQL statement under construction: text fragments plus positional values
"""

from typing import Any, List, Optional

from tabledb.utils.error_handling import InvalidArgumentError


def quote_identifier(name: str) -> str:
    """
    Escape a table or column name as a PostgreSQL identifier

    Dotted names are quoted per part so ``schema.table`` keeps its meaning.
    Embedded double quotes are doubled.
    """
    if not isinstance(name, str) or not name:
        raise InvalidArgumentError(f"Identifier must be a non-empty string, got: {name!r}")
    if "\x00" in name:
        raise InvalidArgumentError("Identifier must not contain NUL characters")

    parts = name.split(".")
    if any(not part for part in parts):
        raise InvalidArgumentError(f"Malformed identifier: {name!r}")

    return ".".join('"' + part.replace('"', '""') + '"' for part in parts)


class Statement:
    """
    Accumulates SQL fragments and the values bound to them

    Identifiers go through ``identifier()`` and are escaped into the text.
    Values go through ``bind()`` and only ever appear as ``$n`` placeholders.
    ``fetch`` tells the executor whether the statement produces rows and
    ``insert_key`` names the id column in the RETURNING rows of an INSERT.
    """

    def __init__(self, fetch: bool = True, insert_key: Optional[str] = None) -> None:
        self._parts: List[str] = []
        self.values: List[Any] = []
        self.fetch = fetch
        self.insert_key = insert_key

    def append(self, fragment: str) -> "Statement":
        self._parts.append(fragment)
        return self

    def bind(self, value: Any) -> str:
        """Register a value and return its placeholder"""
        self.values.append(value)
        return f"${len(self.values)}"

    @staticmethod
    def identifier(name: str) -> str:
        return quote_identifier(name)

    @property
    def sql(self) -> str:
        return " ".join(self._parts)

    def __repr__(self) -> str:
        return f"Statement(sql={self.sql!r}, values={self.values!r})"
