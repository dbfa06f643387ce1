"""Schema introspection for user databases.

Tables are created by users at runtime, so nothing is cached: every call
asks the engine. Column order from ``pragma_table_info`` is the positional
order used for row mapping.
"""

import logging
import re
import sqlite3
from typing import List, Optional

from almacen.errors import SchemaError
from almacen.types import ColumnInfo

logger = logging.getLogger(__name__)

# Table options follow the closing parenthesis, e.g. ") STRICT, WITHOUT ROWID".
_WITHOUT_ROWID_RE = re.compile(r"\)[^)]*\bWITHOUT\s+ROWID\b[^)]*$", re.IGNORECASE)


def get_columns(conn: sqlite3.Connection, table: str) -> List[ColumnInfo]:
    """Return the ordered column descriptors of ``table``.

    Raises:
        SchemaError: If the table does not exist or the query fails.
    """
    try:
        rows = conn.execute(
            "SELECT name, type, \"notnull\", dflt_value, pk FROM pragma_table_info(?) ORDER BY cid",
            (table,),
        ).fetchall()
    except sqlite3.Error as e:
        raise SchemaError(f"Could not read columns of table '{table}': {e}") from e

    if not rows:
        raise SchemaError(f"Table '{table}' does not exist")

    return [
        ColumnInfo(
            name=row[0],
            declared_type=row[1] or "",
            notnull=bool(row[2]),
            default_value=row[3],
            primary_key=bool(row[4]),
        )
        for row in rows
    ]


def find_column(columns: List[ColumnInfo], name: str) -> Optional[ColumnInfo]:
    """Find a column by exact name, falling back to a case-insensitive match."""
    for col in columns:
        if col.name == name:
            return col
    lowered = name.lower()
    for col in columns:
        if col.name.lower() == lowered:
            return col
    return None


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    row = conn.execute(
        "SELECT COUNT(*) FROM sqlite_master WHERE type = 'table' AND name = ?",
        (table,),
    ).fetchone()
    return bool(row[0])


def list_table_names(conn: sqlite3.Connection) -> List[str]:
    """Return user table names in storage order, excluding ``sqlite_*``."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite\\_%' ESCAPE '\\'"
    ).fetchall()
    return [row[0] for row in rows]


def get_create_statement(conn: sqlite3.Connection, table: str) -> str:
    """Return the verbatim ``CREATE TABLE`` text for ``table``.

    Raises:
        SchemaError: If the table does not exist.
    """
    row = conn.execute(
        "SELECT sql FROM sqlite_master WHERE type = 'table' AND name = ?",
        (table,),
    ).fetchone()
    if row is None or not row[0]:
        raise SchemaError(f"Could not read the structure of table '{table}'")
    return row[0]


def is_without_rowid(conn: sqlite3.Connection, table: str) -> bool:
    """True if ``table`` was declared ``WITHOUT ROWID``."""
    return bool(_WITHOUT_ROWID_RE.search(get_create_statement(conn, table)))
