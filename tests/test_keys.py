"""Tests for the surrogate key allocator."""

import sqlite3

import pytest

from almacen.storage import keys
from almacen.storage.keys import (
    allocate_identifier,
    first_gap,
    identifier_exists,
    parse_identifier,
    query_max_identifier,
)
from almacen.types import IdentifierStrategy

APPEND = IdentifierStrategy.APPEND


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:")
    connection.execute('CREATE TABLE assets ("No." TEXT, name TEXT)')
    yield connection
    connection.close()


def _insert(conn, *values):
    conn.executemany('INSERT INTO assets ("No.", name) VALUES (?, ?)', [(v, "x") for v in values])


class TestParseIdentifier:
    @pytest.mark.parametrize(
        "value, expected",
        [("1", 1), (" 12 ", 12), (3, 3), (4.0, 4), ("5.0", 5), ("", None), ("abc", None), (None, None), (2.5, None)],
    )
    def test_values(self, value, expected):
        assert parse_identifier(value) == expected


class TestFirstGap:
    def test_gap(self):
        assert first_gap({1, 2, 4}) == 3

    def test_no_gap(self):
        assert first_gap({1, 2, 3}) == 4

    def test_empty(self):
        assert first_gap(set()) is None


class TestQueries:
    def test_max_is_numeric_not_lexicographic(self, conn):
        _insert(conn, "9", "10", "2")
        assert query_max_identifier(conn, "assets", "No.") == 10

    def test_max_ignores_null_and_empty(self, conn):
        _insert(conn, None, "")
        assert query_max_identifier(conn, "assets", "No.") is None

    def test_exists_matches_text_or_integer(self, conn):
        _insert(conn, "3")
        conn.execute('INSERT INTO assets ("No.") VALUES (4)')
        assert identifier_exists(conn, "assets", "No.", 3)
        assert identifier_exists(conn, "assets", "No.", 4)
        assert not identifier_exists(conn, "assets", "No.", 5)


class TestAllocateAppend:
    """Opt-in strategy that never reuses a gap unless the candidate collides."""

    def test_empty_table_starts_at_one(self, conn):
        assert allocate_identifier(conn, "assets", "No.", strategy=APPEND) == 1

    def test_max_plus_one(self, conn):
        _insert(conn, "1", "2", "3")
        assert allocate_identifier(conn, "assets", "No.", strategy=APPEND) == 4

    def test_append_does_not_fill_gaps(self, conn):
        _insert(conn, "1", "2", "4")
        assert allocate_identifier(conn, "assets", "No.", strategy=APPEND) == 5

    def test_collision_uses_first_gap(self, conn, monkeypatch):
        """A value written between the max query and the check is not reused."""
        _insert(conn, "1", "2", "3", "5")
        monkeypatch.setattr(keys, "query_max_identifier", lambda *args: 4)
        # Candidate 5 collides; first gap above an existing value is 4.
        assert allocate_identifier(conn, "assets", "No.", strategy=APPEND) == 4

    def test_collision_without_gap_falls_back(self, conn, monkeypatch):
        _insert(conn, "1", "2", "3", "4", "5")
        monkeypatch.setattr(keys, "query_max_identifier", lambda *args: 4)
        value = allocate_identifier(conn, "assets", "No.", strategy=APPEND)
        assert value != 5
        assert value == 6


class TestAllocateFillGaps:
    def test_default_strategy_fills_gap(self, conn):
        _insert(conn, "1", "2", "4")
        assert allocate_identifier(conn, "assets", "No.") == 3

    def test_fills_gap(self, conn):
        _insert(conn, "1", "2", "4")
        assert allocate_identifier(conn, "assets", "No.", strategy=IdentifierStrategy.FILL_GAPS) == 3

    def test_no_gap_appends(self, conn):
        _insert(conn, "1", "2", "3")
        assert allocate_identifier(conn, "assets", "No.", strategy=IdentifierStrategy.FILL_GAPS) == 4

    def test_empty_table(self, conn):
        assert allocate_identifier(conn, "assets", "No.", strategy=IdentifierStrategy.FILL_GAPS) == 1
