"""
Shared types for almacen.

Column descriptors, storage policies and the value-kind variant used by
the record adapter. Tables are user-defined at runtime, so nothing here
describes a particular table; these types describe what introspection
returns and how values are classified.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

# === Shared Utility Functions ===


def sqlite_now() -> str:
    """Current UTC time in SQLite's ``YYYY-MM-DD HH:MM:SS`` format."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


# === Enums ===


class ColumnPolicy(str, Enum):
    """Storage policy selected from a column's declared type."""

    BLOB = "blob"
    DATETIME = "datetime"
    GENERIC = "generic"


class ColumnKind(str, Enum):
    """Kinds of column a user may add to a table."""

    TEXT = "text"
    IMAGE = "image"
    DATETIME = "datetime"

    @property
    def sql_type(self) -> str:
        return _COLUMN_KIND_SQL_TYPES[self]

    @classmethod
    def parse(cls, value: Any) -> "ColumnKind":
        """Parse ``Text``/``image``/``DateTime`` case-insensitively."""
        if isinstance(value, ColumnKind):
            return value
        if not isinstance(value, str):
            raise ValueError(f"column kind must be a string, got {type(value).__name__}")
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = ", ".join(k.value for k in cls)
            raise ValueError(f"Unknown column kind '{value}' (expected one of: {valid})")


_COLUMN_KIND_SQL_TYPES = {
    ColumnKind.TEXT: "TEXT",
    ColumnKind.IMAGE: "BLOB",
    ColumnKind.DATETIME: "DATETIME",
}


class MissingFieldPolicy(str, Enum):
    """What Create stores in a text-like column the payload left out."""

    NULL = "null"
    EMPTY_STRING = "empty_string"


class IdentifierStrategy(str, Enum):
    """How the surrogate key allocator picks the next identifier."""

    FILL_GAPS = "fill_gaps"  # first gap, else max + 1 (default)
    APPEND = "append"  # max + 1, first gap only on collision


class ValueKind(str, Enum):
    """Tagged kind of a dynamically-typed payload value."""

    NULL = "null"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    TEXT = "text"
    BYTES = "bytes"
    UNSUPPORTED = "unsupported"


def value_kind(value: Any) -> ValueKind:
    """Classify a Python value into its :class:`ValueKind`.

    ``bool`` is checked before ``int`` since it is a subclass. Non-finite
    floats have no SQLite representation and are unsupported.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, int):
        return ValueKind.INT
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return ValueKind.UNSUPPORTED
        return ValueKind.FLOAT
    if isinstance(value, str):
        return ValueKind.TEXT
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ValueKind.BYTES
    return ValueKind.UNSUPPORTED


# === Descriptors ===


@dataclass(frozen=True)
class ColumnInfo:
    """One column as reported by ``PRAGMA table_info``."""

    name: str
    declared_type: str = ""
    notnull: bool = False
    default_value: Optional[str] = None
    primary_key: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.declared_type,
            "notnull": self.notnull,
            "default_value": self.default_value,
            "primary_key": self.primary_key,
        }


@dataclass
class TableInfo:
    """A table in a database, with its associated image if one exists."""

    name: str
    image_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "image_path": self.image_path}


@dataclass
class DatabaseInfo:
    """A database file in the data directory."""

    name: str
    status: str
    size: str
    last_modified: str
    path: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status,
            "size": self.size,
            "last_modified": self.last_modified,
            "path": self.path,
        }


@dataclass
class TableExport:
    """JSON export document for one table.

    ``create_statement`` is the verbatim ``CREATE TABLE`` text from
    ``sqlite_master``. BLOB values are exported as ``None``.
    """

    table_name: str
    create_statement: str
    data: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table_name": self.table_name,
            "create_statement": self.create_statement,
            "data": self.data,
        }
