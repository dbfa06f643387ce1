"""JSON export/import of a single table, and raw SQL execution.

The export document carries the verbatim ``CREATE TABLE`` text and every
row. BLOB values export as ``null``; images do not round-trip.
"""

import json
import logging
import re
import sqlite3
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from jsonschema import Draft7Validator

from almacen.errors import DuplicateTableError, SchemaError, SqlExecutionError
from almacen.storage.coercion import from_import_value, to_export_value
from almacen.storage.identifiers import quote_identifier, quote_identifiers
from almacen.storage.schema import get_columns, get_create_statement, table_exists
from almacen.types import TableExport

logger = logging.getLogger(__name__)

TABLE_EXPORT_SCHEMA = {
    "type": "object",
    "properties": {
        "table_name": {"type": "string", "minLength": 1},
        "create_statement": {"type": "string", "minLength": 1},
        "data": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": {"type": ["null", "boolean", "integer", "number", "string"]},
            },
        },
    },
    "required": ["table_name", "create_statement", "data"],
}

_EXPORT_VALIDATOR = Draft7Validator(TABLE_EXPORT_SCHEMA)

# Table name token following CREATE TABLE: "quoted", [bracketed], `ticked` or bare.
_CREATE_TABLE_RE = re.compile(
    r'^(\s*CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?)'
    r'("(?:[^"]|"")*"|\[[^\]]*\]|`[^`]*`|[^\s(]+)',
    re.IGNORECASE,
)


def parse_export_document(document: Union[str, bytes, Dict[str, Any]]) -> TableExport:
    """Parse and validate a table export document.

    Raises:
        ValueError: If the JSON is malformed or does not match the schema.
    """
    if isinstance(document, (str, bytes)):
        try:
            document = json.loads(document)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {e}")

    errors = sorted(_EXPORT_VALIDATOR.iter_errors(document), key=lambda e: list(e.path))
    if errors:
        first = errors[0]
        where = "/".join(str(p) for p in first.path) or "document"
        raise ValueError(f"Invalid table export at {where}: {first.message}")

    return TableExport(
        table_name=document["table_name"],
        create_statement=document["create_statement"],
        data=document["data"],
    )


def rename_create_statement(create_statement: str, new_name: str) -> str:
    """Rewrite the table name in a ``CREATE TABLE`` statement.

    Raises:
        ValueError: If the text is not a CREATE TABLE statement.
    """
    match = _CREATE_TABLE_RE.match(create_statement)
    if match is None:
        raise ValueError("create_statement is not a CREATE TABLE statement")
    return (
        create_statement[: match.start(2)]
        + quote_identifier(new_name)
        + create_statement[match.end(2):]
    )


def _import_columns(rows: List[Dict[str, Any]]) -> List[str]:
    columns: List[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)
    return columns


class TableTransfer:
    """Moves tables in and out of one database as JSON.

    Args:
        connect_fn: Zero-argument callable returning a connection context
            manager for the database.
        transaction_fn: Wraps a connection in one write-locked transaction.
    """

    def __init__(self, connect_fn: Callable, transaction_fn: Callable):
        self._connect = connect_fn
        self._transaction = transaction_fn

    def export_table(self, table: str) -> TableExport:
        """Export structure and rows of ``table``.

        Raises:
            SchemaError: If the table does not exist.
        """
        with self._connect() as conn:
            create_statement = get_create_statement(conn, table)
            columns = [col.name for col in get_columns(conn, table)]
            rows = conn.execute(
                f"SELECT {quote_identifiers(columns)} FROM {quote_identifier(table)}"
            ).fetchall()

        data = [
            {name: to_export_value(value) for name, value in zip(columns, row)}
            for row in rows
        ]
        logger.debug(f"Exported {len(data)} rows from {table}")
        return TableExport(table_name=table, create_statement=create_statement, data=data)

    def import_table(
        self,
        document: Union[str, bytes, Dict[str, Any]],
        force_replace: bool = False,
        new_table_name: Optional[str] = None,
    ) -> str:
        """Recreate a table from an export document.

        The drop (when forced), create and inserts run in one transaction;
        a failure leaves the database as it was.

        Returns:
            The name of the imported table.

        Raises:
            ValueError: Malformed document.
            DuplicateTableError: The target name exists and
                ``force_replace`` is not set.
        """
        export = parse_export_document(document)
        target = new_table_name or export.table_name
        create_statement = export.create_statement
        if target != export.table_name:
            create_statement = rename_create_statement(create_statement, target)
        elif _CREATE_TABLE_RE.match(create_statement) is None:
            raise ValueError("create_statement is not a CREATE TABLE statement")

        columns = _import_columns(export.data)
        params = [
            [from_import_value(row.get(col), col) for col in columns]
            for row in export.data
        ]

        with self._connect() as conn:
            if table_exists(conn, target) and not force_replace:
                raise DuplicateTableError(
                    target, "Replace it or import under a different name."
                )

            with self._transaction(conn):
                if force_replace:
                    conn.execute(f"DROP TABLE IF EXISTS {quote_identifier(target)}")
                conn.execute(create_statement)
                if columns:
                    placeholders = ", ".join("?" for _ in columns)
                    conn.executemany(
                        f"INSERT INTO {quote_identifier(target)} ({quote_identifiers(columns)}) "
                        f"VALUES ({placeholders})",
                        params,
                    )

        logger.info(f"Imported {len(params)} rows into {target}")
        return target

    def execute_sql(self, sql: str, params: Sequence[str] = ()) -> int:
        """Execute one caller-supplied statement with positional parameters.

        Returns:
            The engine's affected-row count (``-1`` for statements that do
            not modify rows).

        Raises:
            SqlExecutionError: Any engine error.
        """
        with self._connect() as conn:
            try:
                cursor = conn.execute(sql, list(params))
            except sqlite3.Error as e:
                raise SqlExecutionError(f"Error executing SQL: {e}") from e
            return cursor.rowcount
