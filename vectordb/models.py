"""Core value types and database errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


class DatabaseError(Exception):
    """Base class for errors raised by database operations."""

    default_message = "database error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class DatabaseExistsError(DatabaseError):
    """Raised when creating a database whose name is already taken."""

    default_message = "database already exists"


class DatabaseNotFoundError(DatabaseError):
    """Raised when accessing a database that does not exist."""

    default_message = "database not found"


class VectorNotFoundError(DatabaseError):
    """Raised when accessing a vector that does not exist."""

    default_message = "vector not found"


class InvalidDimensionsError(DatabaseError):
    """Raised when a vector's length does not match the database configuration."""

    default_message = "invalid vector dimensions"


def _lookup(data: Mapping[str, Any], key: str) -> Any:
    """Return ``data[key]``, falling back to a case-insensitive match."""
    if key in data:
        return data[key]
    folded = key.casefold()
    for name, value in data.items():
        if isinstance(name, str) and name.casefold() == folded:
            return value
    return None


@dataclass
class Vector:
    """A vector stored in a database, with optional metadata."""

    id: str = ""
    data: list[float] = field(default_factory=list)
    metadata: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready representation of the vector."""
        return {
            "id": self.id,
            "data": list(self.data),
            "metadata": None if self.metadata is None else dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Vector":
        """Build a vector from a decoded JSON object."""
        if not isinstance(data, Mapping):
            raise ValueError("vector must be a JSON object")

        ident = _lookup(data, "id")
        if ident is None:
            ident = ""
        elif not isinstance(ident, str):
            raise ValueError(f"vector id must be a string, got {ident!r}")

        raw = _lookup(data, "data")
        if raw is None:
            values: list[float] = []
        elif isinstance(raw, list):
            if any(isinstance(x, bool) or not isinstance(x, (int, float)) for x in raw):
                raise ValueError("vector data must contain only numbers")
            values = [float(x) for x in raw]
        else:
            raise ValueError(f"vector data must be an array, got {raw!r}")

        metadata = _lookup(data, "metadata")
        if metadata is not None and not isinstance(metadata, Mapping):
            raise ValueError(f"vector metadata must be an object, got {metadata!r}")

        return cls(
            id=ident,
            data=values,
            metadata=None if metadata is None else dict(metadata),
        )