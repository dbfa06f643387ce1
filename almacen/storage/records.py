"""Dynamic record adapter: CRUD over tables whose shape is discovered per call.

Every operation runs the same pipeline: open a connection, introspect the
table, validate and coerce the payload, build the statement, execute, map
the result, close. Nothing about a table is remembered between calls.

Identifiers reach SQL text only through ``quote_identifier``; values are
always bound parameters.
"""

import contextlib
import logging
import sqlite3
from typing import Any, Callable, Dict, List, Optional

from almacen.config import AlmacenSettings
from almacen.errors import (
    DuplicateColumnError,
    NoUpdatesProvidedError,
    ProtectedColumnError,
    RecordNotFoundError,
    SchemaError,
    SqlExecutionError,
    UnsupportedEngineFeatureError,
    UnsupportedValueError,
)
from almacen.storage.coercion import (
    classify,
    coerce_value,
    is_text_like,
    to_json_value,
    to_key_param,
)
from almacen.storage.identifiers import quote_identifier, quote_identifiers
from almacen.storage.keys import allocate_identifier
from almacen.storage.schema import find_column, get_columns, is_without_rowid
from almacen.types import ColumnInfo, ColumnKind, ColumnPolicy, MissingFieldPolicy, sqlite_now

logger = logging.getLogger(__name__)

# ALTER TABLE ... DROP COLUMN first shipped in SQLite 3.35.0.
DROP_COLUMN_MIN_VERSION = (3, 35, 0)


def _execute(conn: sqlite3.Connection, sql: str, params=(), action: str = "executing statement"):
    try:
        return conn.execute(sql, params)
    except sqlite3.Error as e:
        raise SqlExecutionError(f"Error {action}: {e}") from e


def _require_column(columns: List[ColumnInfo], table: str, name: str) -> ColumnInfo:
    for col in columns:
        if col.name == name:
            return col
    raise SchemaError(f"Column '{name}' does not exist in table '{table}'")


def _row_to_record(columns: List[ColumnInfo], row, data_uri: bool = False) -> Dict[str, Any]:
    return {
        col.name: to_json_value(value, col.declared_type, data_uri=data_uri)
        for col, value in zip(columns, row)
    }


def add_date_column(conn: sqlite3.Connection, table: str, column: str) -> None:
    """Add a ``DATETIME`` column to ``table``.

    Raises:
        DuplicateColumnError: If a column with that name (any case) exists.
    """
    columns = get_columns(conn, table)
    if find_column(columns, column) is not None:
        raise DuplicateColumnError(table, column)
    try:
        conn.execute(
            f"ALTER TABLE {quote_identifier(table)} ADD COLUMN {quote_identifier(column)} DATETIME"
        )
    except sqlite3.OperationalError as e:
        if "duplicate column name" in str(e).lower():
            raise DuplicateColumnError(table, column) from e
        raise SqlExecutionError(f"Error adding column '{column}': {e}") from e


class RecordAdapter:
    """Generic insert/read/list/update/delete against one database.

    Args:
        connect_fn: Zero-argument callable returning a connection context
            manager for the target database.
        transaction_fn: Wraps a connection in one write-locked transaction.
        settings: Resolved almacen settings (missing-field policy, protected
            columns, ordering column, identifier strategy).
        now_fn: Returns the timestamp stored in omitted DATETIME columns.
    """

    def __init__(
        self,
        connect_fn: Callable,
        transaction_fn: Callable,
        settings: AlmacenSettings,
        now_fn: Callable[[], str] = sqlite_now,
    ):
        self._connect = connect_fn
        self._transaction = transaction_fn
        self._settings = settings
        self._now = now_fn

    # === Introspection ===

    def columns(self, table: str) -> List[ColumnInfo]:
        with self._connect() as conn:
            return get_columns(conn, table)

    def column_exists(self, table: str, column: str) -> bool:
        return any(col.name == column for col in self.columns(table))

    # === Records ===

    def _default_for(self, col: ColumnInfo) -> Any:
        """Value stored in a column the Create payload left out.

        Primary-key columns get NULL so SQLite can assign or accept it;
        an empty string would collide on the second row.
        """
        if col.primary_key or col.name in self._settings.null_default_columns:
            return None
        policy = classify(col.declared_type)
        if policy == ColumnPolicy.DATETIME:
            return self._now()
        if policy == ColumnPolicy.BLOB:
            return None
        if is_text_like(col.declared_type):
            if self._settings.on_missing_field == MissingFieldPolicy.EMPTY_STRING:
                return ""
            return None
        return None

    def _stored_row(
        self, conn: sqlite3.Connection, table: str, names: List[str], rowid: Optional[int]
    ):
        """Re-read an inserted row so the result reflects column affinity."""
        if not rowid or is_without_rowid(conn, table):
            return None
        return conn.execute(
            f"SELECT {quote_identifiers(names)} FROM {quote_identifier(table)} WHERE rowid = ?",
            (rowid,),
        ).fetchone()

    def create(
        self,
        table: str,
        payload: Dict[str, Any],
        identifier_column: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Insert a row touching every real column of ``table``.

        Omitted columns receive their default (see ``_default_for``). When
        ``identifier_column`` is given its value is allocated, overriding
        anything in the payload, and allocation plus insert run in one
        write-locked transaction.

        Returns:
            The row as stored (after column affinity), JSON-safe, including
            the allocated identifier.

        Raises:
            SchemaError: Unknown table or identifier column.
            UnsupportedValueError: A payload value cannot be coerced.
            SqlExecutionError: The engine rejected the insert.
        """
        if not isinstance(payload, dict):
            raise UnsupportedValueError("Record data must be a JSON object")

        with self._connect() as conn:
            columns = get_columns(conn, table)
            names = [col.name for col in columns]

            unknown = [key for key in payload if key not in names]
            if unknown:
                logger.warning(f"Ignoring unknown columns for {table}: {unknown}")

            id_col = None
            if identifier_column:
                id_col = find_column(columns, identifier_column)
                if id_col is None:
                    raise SchemaError(
                        f"Identifier column '{identifier_column}' does not exist in table '{table}'"
                    )

            scope = self._transaction(conn) if id_col is not None else contextlib.nullcontext(conn)
            with scope:
                values = []
                for col in columns:
                    if id_col is not None and col.name == id_col.name:
                        key = allocate_identifier(
                            conn, table, col.name, strategy=self._settings.identifier_strategy
                        )
                        values.append(coerce_value(key, "", column=col.name, as_identifier=True))
                    elif col.name in payload:
                        values.append(
                            coerce_value(payload[col.name], col.declared_type, column=col.name)
                        )
                    else:
                        values.append(self._default_for(col))

                placeholders = ", ".join("?" for _ in names)
                cursor = _execute(
                    conn,
                    f"INSERT INTO {quote_identifier(table)} ({quote_identifiers(names)}) "
                    f"VALUES ({placeholders})",
                    values,
                    action=f"inserting into '{table}'",
                )
                stored = self._stored_row(conn, table, names, cursor.lastrowid)

        record = _row_to_record(columns, stored if stored is not None else values)
        if id_col is not None:
            logger.debug(f"Allocated {id_col.name}={record[id_col.name]} in {table}")
        return record

    def read(self, table: str, key_column: str, key_value: Any) -> Dict[str, Any]:
        """Fetch one row by key. The first row in storage order wins.

        Raises:
            RecordNotFoundError: If no row matches.
        """
        key = to_key_param(key_value, key_column)
        with self._connect() as conn:
            columns = get_columns(conn, table)
            _require_column(columns, table, key_column)
            row = _execute(
                conn,
                f"SELECT {quote_identifiers(c.name for c in columns)} FROM {quote_identifier(table)} "
                f"WHERE {quote_identifier(key_column)} = ? LIMIT 1",
                (key,),
                action=f"reading from '{table}'",
            ).fetchone()

        if row is None:
            raise RecordNotFoundError(table, key_column, key_value)
        return _row_to_record(columns, row)

    def list(self, table: str, data_uri: bool = True) -> Dict[str, Any]:
        """Return ``{table_name, columns, rows}`` for every row of ``table``.

        Rows are ordered numerically by the ordering column when the table
        has one, otherwise by storage order.
        """
        ordering = self._settings.ordering_column
        with self._connect() as conn:
            columns = get_columns(conn, table)
            names = [col.name for col in columns]
            order_clause = ""
            if ordering in names:
                order_clause = f" ORDER BY CAST({quote_identifier(ordering)} AS INTEGER) ASC"
            rows = _execute(
                conn,
                f"SELECT {quote_identifiers(names)} FROM {quote_identifier(table)}{order_clause}",
                action=f"reading from '{table}'",
            ).fetchall()

        return {
            "table_name": table,
            "columns": names,
            "rows": [_row_to_record(columns, row, data_uri=data_uri) for row in rows],
        }

    def update(
        self,
        table: str,
        key_column: str,
        key_value: Any,
        updates: Dict[str, Any],
        column_types: Optional[Dict[str, str]] = None,
    ) -> int:
        """Update exactly the columns in ``updates`` on every matching row.

        Args:
            column_types: Optional per-column type tags overriding the
                declared types for coercion (e.g. ``{"photo": "BLOB"}``).

        Returns:
            Number of rows updated.

        Raises:
            NoUpdatesProvidedError: ``updates`` is empty (no I/O happens).
            SchemaError: An update names a column the table lacks.
            RecordNotFoundError: No row matches the key.
        """
        if not updates:
            raise NoUpdatesProvidedError()
        if not isinstance(updates, dict):
            raise UnsupportedValueError("Updates must be a JSON object")
        key = to_key_param(key_value, key_column)
        column_types = column_types or {}

        with self._connect() as conn:
            columns = get_columns(conn, table)
            by_name = {col.name: col for col in columns}
            _require_column(columns, table, key_column)
            unknown = [name for name in updates if name not in by_name]
            if unknown:
                raise SchemaError(
                    f"Unknown columns for table '{table}': {', '.join(sorted(unknown))}"
                )

            params = []
            for name, value in updates.items():
                declared = column_types.get(name, by_name[name].declared_type)
                params.append(coerce_value(value, declared, column=name))
            params.append(key)

            assignments = ", ".join(f"{quote_identifier(name)} = ?" for name in updates)
            cursor = _execute(
                conn,
                f"UPDATE {quote_identifier(table)} SET {assignments} "
                f"WHERE {quote_identifier(key_column)} = ?",
                params,
                action=f"updating '{table}'",
            )
            count = cursor.rowcount

        if count == 0:
            raise RecordNotFoundError(table, key_column, key_value)
        return count

    def delete(self, table: str, key_column: str, key_value: Any) -> int:
        """Delete every row matching the key.

        Returns:
            Number of rows deleted.

        Raises:
            RecordNotFoundError: No row matches the key.
        """
        key = to_key_param(key_value, key_column)
        with self._connect() as conn:
            columns = get_columns(conn, table)
            _require_column(columns, table, key_column)
            cursor = _execute(
                conn,
                f"DELETE FROM {quote_identifier(table)} WHERE {quote_identifier(key_column)} = ?",
                (key,),
                action=f"deleting from '{table}'",
            )
            count = cursor.rowcount

        if count == 0:
            raise RecordNotFoundError(table, key_column, key_value)
        return count

    # === Columns ===

    def add_column(self, table: str, column: str, kind: Any) -> None:
        """Add a Text, Image or DateTime column.

        Raises:
            ProtectedColumnError: ``column`` is a protected name.
            DuplicateColumnError: The table already has that column.
            ValueError: Unknown kind or empty name.
        """
        kind = ColumnKind.parse(kind)
        if not isinstance(column, str) or not column.strip():
            raise ValueError("column name cannot be empty")
        if self._settings.is_protected(column):
            raise ProtectedColumnError(column)

        with self._connect() as conn:
            if kind == ColumnKind.DATETIME:
                add_date_column(conn, table, column)
                return

            columns = get_columns(conn, table)
            if find_column(columns, column) is not None:
                raise DuplicateColumnError(table, column)

            sql_type = kind.sql_type
            _execute(
                conn,
                f"ALTER TABLE {quote_identifier(table)} ADD COLUMN {quote_identifier(column)} {sql_type}",
                action=f"adding column '{column}'",
            )
        logger.info(f"Added {kind.value} column {column!r} to {table}")

    def drop_column(self, table: str, column: str) -> None:
        """Drop a column.

        Raises:
            ProtectedColumnError: ``column`` is a protected name.
            UnsupportedEngineFeatureError: SQLite predates DROP COLUMN.
            SchemaError: The table has no such column.
        """
        if self._settings.is_protected(column):
            raise ProtectedColumnError(column)
        if tuple(sqlite3.sqlite_version_info) < DROP_COLUMN_MIN_VERSION:
            raise UnsupportedEngineFeatureError(
                f"SQLite {sqlite3.sqlite_version} does not support DROP COLUMN "
                f"(requires 3.35.0 or newer)"
            )

        with self._connect() as conn:
            columns = get_columns(conn, table)
            _require_column(columns, table, column)
            _execute(
                conn,
                f"ALTER TABLE {quote_identifier(table)} DROP COLUMN {quote_identifier(column)}",
                action=f"dropping column '{column}'",
            )
        logger.info(f"Dropped column {column!r} from {table}")
