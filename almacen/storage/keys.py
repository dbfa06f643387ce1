"""Surrogate key allocation for managed identifier columns.

Managed identifiers are integers computed by the application rather than
by SQLite's autoincrement. They are stored as text, so every numeric
comparison casts. Allocation never fails: when no gap can be found it
degrades to ``candidate + 1``.

The read-then-insert sequence is only safe against other writers when the
caller holds the write lock; :class:`~almacen.storage.records.RecordAdapter`
runs allocation and insert inside one ``BEGIN IMMEDIATE`` transaction.
"""

import logging
import sqlite3
from typing import Any, Iterable, Optional, Set

from almacen.storage.identifiers import quote_identifier
from almacen.types import IdentifierStrategy

logger = logging.getLogger(__name__)


def parse_identifier(value: Any) -> Optional[int]:
    """Parse a stored identifier into an int, or None if not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, (bytes, bytearray)):
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return int(number) if number.is_integer() else None


def query_max_identifier(conn: sqlite3.Connection, table: str, column: str) -> Optional[int]:
    """Return the largest existing identifier, or None for an empty column."""
    col = quote_identifier(column)
    row = conn.execute(
        f"SELECT {col} FROM {quote_identifier(table)} "
        f"WHERE {col} IS NOT NULL AND {col} != '' "
        f"ORDER BY CAST({col} AS INTEGER) DESC LIMIT 1"
    ).fetchone()
    if row is None:
        return None
    return parse_identifier(row[0])


def identifier_exists(conn: sqlite3.Connection, table: str, column: str, value: int) -> bool:
    """Check whether ``value`` is already used, stored as text or integer."""
    row = conn.execute(
        f"SELECT 1 FROM {quote_identifier(table)} WHERE {quote_identifier(column)} IN (?, ?) LIMIT 1",
        (str(value), value),
    ).fetchone()
    return row is not None


def existing_identifiers(conn: sqlite3.Connection, table: str, column: str) -> Set[int]:
    """Scan the column and return every numeric identifier in use."""
    col = quote_identifier(column)
    rows = conn.execute(
        f"SELECT {col} FROM {quote_identifier(table)} WHERE {col} IS NOT NULL AND {col} != ''"
    ).fetchall()
    values = set()
    for row in rows:
        parsed = parse_identifier(row[0])
        if parsed is not None:
            values.add(parsed)
    return values


def first_gap(values: Iterable[int]) -> Optional[int]:
    """Return ``v + 1`` for the smallest ``v`` whose successor is unused.

    ``{1, 2, 4}`` → ``3``; ``{1, 2, 3}`` → ``4``; empty → None.
    """
    used = set(values)
    for v in sorted(used):
        if v + 1 not in used:
            return v + 1
    return None


def allocate_identifier(
    conn: sqlite3.Connection,
    table: str,
    column: str,
    *,
    strategy: IdentifierStrategy = IdentifierStrategy.FILL_GAPS,
) -> int:
    """Compute the identifier to assign to a new record.

    FILL_GAPS (default): the first gap above an existing value wins, so
    ``{1, 2, 4}`` gets ``3``; with no gap the result is ``max + 1``.

    APPEND: candidate is ``max + 1`` (or 1); if the candidate is already
    taken the first gap is used, else ``candidate + 1``.
    """
    if strategy == IdentifierStrategy.FILL_GAPS:
        gap = first_gap(existing_identifiers(conn, table, column))
        if gap is not None and not identifier_exists(conn, table, column, gap):
            return gap

    current_max = query_max_identifier(conn, table, column)
    candidate = 1 if current_max is None else current_max + 1

    if not identifier_exists(conn, table, column, candidate):
        return candidate

    logger.warning(
        f"Identifier {candidate} already used in {table}.{column}, searching for a gap"
    )
    gap = first_gap(existing_identifiers(conn, table, column))
    if gap is not None and not identifier_exists(conn, table, column, gap):
        return gap
    return candidate + 1
