"""Tests for schema introspection."""

import sqlite3

import pytest

from almacen.errors import SchemaError
from almacen.storage.schema import (
    find_column,
    get_columns,
    get_create_statement,
    list_table_names,
    table_exists,
)
from almacen.types import ColumnInfo


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:")
    connection.execute(
        'CREATE TABLE items ("No." TEXT, name TEXT NOT NULL DEFAULT \'x\', photo BLOB, '
        "added DATETIME, id INTEGER PRIMARY KEY, untyped)"
    )
    yield connection
    connection.close()


class TestGetColumns:
    def test_columns_in_declaration_order(self, conn):
        names = [c.name for c in get_columns(conn, "items")]
        assert names == ["No.", "name", "photo", "added", "id", "untyped"]

    def test_declared_types_and_flags(self, conn):
        columns = {c.name: c for c in get_columns(conn, "items")}
        assert columns["photo"].declared_type == "BLOB"
        assert columns["added"].declared_type == "DATETIME"
        assert columns["untyped"].declared_type == ""
        assert columns["name"].notnull is True
        assert columns["name"].default_value == "'x'"
        assert columns["id"].primary_key is True
        assert columns["No."].primary_key is False

    def test_missing_table_raises(self, conn):
        with pytest.raises(SchemaError, match="does not exist"):
            get_columns(conn, "nope")

    def test_table_name_with_quote(self, conn):
        conn.execute('CREATE TABLE "we""ird" (a TEXT)')
        assert [c.name for c in get_columns(conn, 'we"ird')] == ["a"]

    def test_never_cached(self, conn):
        assert len(get_columns(conn, "items")) == 6
        conn.execute("ALTER TABLE items ADD COLUMN extra TEXT")
        assert len(get_columns(conn, "items")) == 7

    def test_to_dict(self, conn):
        col = get_columns(conn, "items")[0]
        assert col.to_dict() == {
            "name": "No.",
            "type": "TEXT",
            "notnull": False,
            "default_value": None,
            "primary_key": False,
        }


class TestFindColumn:
    def test_exact_match_wins(self):
        # SQLite rejects two columns differing only in case, so build the list directly.
        columns = [ColumnInfo(name="Name"), ColumnInfo(name="name")]
        assert find_column(columns, "name").name == "name"
        assert find_column(columns, "Name").name == "Name"

    def test_case_insensitive_fallback(self, conn):
        columns = get_columns(conn, "items")
        assert find_column(columns, "PHOTO").name == "photo"

    def test_missing(self, conn):
        assert find_column(get_columns(conn, "items"), "nope") is None


class TestTables:
    def test_table_exists(self, conn):
        assert table_exists(conn, "items") is True
        assert table_exists(conn, "nope") is False

    def test_list_excludes_internal_tables(self, conn):
        conn.execute("CREATE TABLE auto (id INTEGER PRIMARY KEY AUTOINCREMENT)")
        conn.execute("INSERT INTO auto DEFAULT VALUES")
        names = list_table_names(conn)
        assert "sqlite_sequence" in {r[0] for r in conn.execute("SELECT name FROM sqlite_master")}
        assert names == ["items", "auto"]

    def test_create_statement_is_verbatim(self, conn):
        statement = get_create_statement(conn, "items")
        assert statement.startswith('CREATE TABLE items ("No." TEXT')

    def test_create_statement_missing(self, conn):
        with pytest.raises(SchemaError):
            get_create_statement(conn, "nope")
