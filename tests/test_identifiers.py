"""Tests for identifier quoting and the SQL construction boundary."""

import ast
import sqlite3
from pathlib import Path

import pytest

from almacen.storage.identifiers import quote_identifier, quote_identifiers

PACKAGE_DIR = Path(__file__).resolve().parent.parent / "almacen"

SQL_KEYWORDS = (
    "SELECT ",
    "INSERT INTO",
    "UPDATE ",
    "DELETE FROM",
    "ALTER TABLE",
    "CREATE TABLE",
    "DROP TABLE",
    "PRAGMA ",
    " WHERE ",
    "ORDER BY",
)

# Fragments assembled only from quote_identifier output, placeholders or constants.
SAFE_FRAGMENTS = {"placeholders", "assignments", "order_clause", "sql_type", "BUSY_TIMEOUT_MS"}
QUOTING_FUNCTIONS = {"quote_identifier", "quote_identifiers"}


class TestQuoteIdentifier:
    """quote_identifier always quotes."""

    def test_plain_name(self):
        assert quote_identifier("assets") == '"assets"'

    def test_dot_in_name(self):
        assert quote_identifier("No.") == '"No."'

    def test_embedded_quote_is_doubled(self):
        assert quote_identifier('a"b') == '"a""b"'

    def test_spaces_and_unicode(self):
        assert quote_identifier("Almacén central") == '"Almacén central"'

    def test_empty_name(self):
        assert quote_identifier("") == '""'

    def test_quote_identifiers_joins(self):
        assert quote_identifiers(["No.", "name"]) == '"No.", "name"'

    def test_quoted_dot_column_parses(self):
        """Unquoted No. is a syntax error; the quoted form is usable."""
        conn = sqlite3.connect(":memory:")
        try:
            conn.execute(f"CREATE TABLE t ({quote_identifier('No.')} TEXT)")
            with pytest.raises(sqlite3.OperationalError):
                conn.execute("SELECT No. FROM t")
            conn.execute(f"INSERT INTO t ({quote_identifier('No.')}) VALUES (?)", ("1",))
            row = conn.execute(f"SELECT {quote_identifier('No.')} FROM t").fetchone()
            assert row == ("1",)
        finally:
            conn.close()

    def test_hostile_name_stays_an_identifier(self):
        conn = sqlite3.connect(":memory:")
        try:
            name = 'x"; DROP TABLE keep; --'
            conn.execute("CREATE TABLE keep (a)")
            conn.execute(f"CREATE TABLE {quote_identifier(name)} (a)")
            tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master")}
            assert tables == {"keep", name}
        finally:
            conn.close()


def _names_bound_to_quoting(func: ast.AST) -> set:
    names = set()
    for node in ast.walk(func):
        if isinstance(node, ast.Assign) and isinstance(node.value, ast.Call):
            callee = node.value.func
            if isinstance(callee, ast.Name) and callee.id in QUOTING_FUNCTIONS:
                names.update(t.id for t in node.targets if isinstance(t, ast.Name))
    return names


def _is_safe(value: ast.AST, quoted_names: set) -> bool:
    if isinstance(value, ast.Call) and isinstance(value.func, ast.Name):
        return value.func.id in QUOTING_FUNCTIONS
    if isinstance(value, ast.Name):
        return value.id in quoted_names or value.id in SAFE_FRAGMENTS
    return False


def _unsafe_sql_fstrings():
    problems = []
    for path in sorted(PACKAGE_DIR.rglob("*.py")):
        tree = ast.parse(path.read_text(encoding="utf-8"))
        scopes = [n for n in ast.walk(tree) if isinstance(n, (ast.FunctionDef, ast.AsyncFunctionDef))]
        for scope in scopes:
            quoted_names = _names_bound_to_quoting(scope)
            for node in ast.walk(scope):
                if not isinstance(node, ast.JoinedStr):
                    continue
                text = "".join(
                    v.value for v in node.values if isinstance(v, ast.Constant) and isinstance(v.value, str)
                )
                if not any(keyword in text for keyword in SQL_KEYWORDS):
                    continue
                for part in node.values:
                    if isinstance(part, ast.FormattedValue) and not _is_safe(part.value, quoted_names):
                        problems.append(f"{path.name}:{node.lineno}")
    return problems


class TestSqlConstructionBoundary:
    """Identifiers reach SQL text only through quote_identifier."""

    def test_package_has_sql_fstrings(self):
        """The scan actually sees the statement builders."""
        source = (PACKAGE_DIR / "storage" / "records.py").read_text(encoding="utf-8")
        assert "INSERT INTO {quote_identifier(table)}" in source

    def test_no_unquoted_identifiers_in_sql(self):
        assert _unsafe_sql_fstrings() == []
