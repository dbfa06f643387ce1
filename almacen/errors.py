"""
Error taxonomy for almacen.

Every error is terminal to the request that raised it. Messages are meant
to be shown to the user verbatim, so they name the database, table or
column involved.
"""

from typing import Any, Optional


class AlmacenError(Exception):
    """Base for all almacen errors."""

    pass


class DatabaseNotFoundError(AlmacenError):
    """Raised when neither ``<name>.db`` nor ``<name>.sqlite`` exists."""

    def __init__(self, db_name: str):
        super().__init__(f"Database not found: {db_name}")
        self.db_name = db_name


class SchemaError(AlmacenError):
    """Raised when a table or column cannot be introspected."""

    pass


class UnsupportedValueError(AlmacenError):
    """Raised when a value cannot be coerced into a column's storage type."""

    def __init__(self, message: str, column: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.column = column
        self.value = value


class NoUpdatesProvidedError(AlmacenError):
    """Raised when an update carries no columns."""

    def __init__(self):
        super().__init__("No data provided to update.")


class RecordNotFoundError(AlmacenError):
    """Raised when a key predicate matches zero rows."""

    def __init__(self, table: str, key_column: str, key_value: Any):
        super().__init__(f"No row found in '{table}' with {key_column} = {key_value!r}")
        self.table = table
        self.key_column = key_column
        self.key_value = key_value


class ProtectedColumnError(AlmacenError):
    """Raised when a protected column would be added or dropped."""

    def __init__(self, column: str):
        super().__init__(f"Column '{column}' is protected and cannot be modified.")
        self.column = column


class DuplicateColumnError(AlmacenError):
    """Raised when adding a column whose name already exists."""

    def __init__(self, table: str, column: str):
        super().__init__(f"Column '{column}' already exists in table '{table}'")
        self.table = table
        self.column = column


class DuplicateTableError(AlmacenError):
    """Raised when creating or importing a table whose name is taken."""

    def __init__(self, table: str, hint: str = "Use another name."):
        super().__init__(f"Table '{table}' already exists. {hint}".strip())
        self.table = table


class UnsupportedEngineFeatureError(AlmacenError):
    """Raised when the linked SQLite library lacks a required feature."""

    pass


class SqlExecutionError(AlmacenError):
    """Raised when the engine rejects a statement.

    Covers constraint violations, malformed statements, locked files and
    type mismatches alike; the original ``sqlite3.Error`` is chained.
    """

    pass
