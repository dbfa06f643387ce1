"""Tests for table export/import and raw SQL execution."""

import json

import pytest

from almacen.errors import DuplicateTableError, SchemaError, SqlExecutionError
from almacen.storage.databases import transaction
from almacen.storage.transfer import (
    TableTransfer,
    parse_export_document,
    rename_create_statement,
)


@pytest.fixture
def transfer(connect_fn):
    return TableTransfer(connect_fn, transaction)


@pytest.fixture
def filled_items(items_table, run_sql, png_bytes):
    run_sql(
        "INSERT INTO items VALUES (?, ?, ?, ?, ?, ?)",
        ("1", "Silla", png_bytes, "2024-01-01 08:00:00", 3, 9.5),
    )
    run_sql("INSERT INTO items (\"No.\", name) VALUES ('2', 'Mesa')")
    return items_table


class TestExport:
    def test_export(self, transfer, filled_items):
        export = transfer.export_table(filled_items).to_dict()
        assert export["table_name"] == "items"
        assert export["create_statement"].startswith("CREATE TABLE items")
        assert export["data"][0] == {
            "No.": "1",
            "name": "Silla",
            "photo": None,
            "added": "2024-01-01 08:00:00",
            "qty": 3,
            "price": 9.5,
        }
        assert export["data"][1]["qty"] is None
        json.dumps(export)

    def test_missing_table(self, transfer):
        with pytest.raises(SchemaError):
            transfer.export_table("nope")


class TestImport:
    def test_round_trip_under_new_name(self, transfer, filled_items, run_sql):
        export = transfer.export_table(filled_items).to_dict()
        name = transfer.import_table(json.dumps(export), new_table_name="items copy")
        assert name == "items copy"
        rows = run_sql('SELECT "No.", name, photo FROM "items copy" ORDER BY "No."')
        assert rows == [("1", "Silla", None), ("2", "Mesa", None)]

    def test_duplicate_without_replace(self, transfer, filled_items):
        export = transfer.export_table(filled_items)
        with pytest.raises(DuplicateTableError, match="Replace it"):
            transfer.import_table(export.to_dict())

    def test_force_replace(self, transfer, filled_items, run_sql):
        export = transfer.export_table(filled_items).to_dict()
        export["data"] = export["data"][:1]
        transfer.import_table(export, force_replace=True)
        assert run_sql("SELECT COUNT(*) FROM items") == [(1,)]

    def test_failed_import_leaves_table_untouched(self, transfer, filled_items, run_sql):
        export = transfer.export_table(filled_items).to_dict()
        export["data"] = [{"missing_column": "x"}]
        with pytest.raises(SqlExecutionError):
            transfer.import_table(export, force_replace=True)
        assert run_sql("SELECT COUNT(*) FROM items") == [(2,)]

    def test_rows_with_different_keys(self, transfer, run_sql):
        doc = {
            "table_name": "loose",
            "create_statement": "CREATE TABLE loose (a TEXT, b INTEGER)",
            "data": [{"a": "x"}, {"b": 2}, {"a": "y", "b": True}],
        }
        transfer.import_table(doc)
        assert run_sql("SELECT a, b FROM loose") == [("x", None), (None, 2), ("y", 1)]

    def test_empty_data(self, transfer, run_sql):
        doc = {"table_name": "vacia", "create_statement": "CREATE TABLE vacia (a TEXT)", "data": []}
        assert transfer.import_table(doc) == "vacia"
        assert run_sql("SELECT COUNT(*) FROM vacia") == [(0,)]

    def test_rejects_non_create_statement(self, transfer):
        doc = {"table_name": "t", "create_statement": "DROP TABLE t", "data": []}
        with pytest.raises(ValueError, match="CREATE TABLE"):
            transfer.import_table(doc)


class TestParseExportDocument:
    def test_invalid_json(self):
        with pytest.raises(ValueError, match="Invalid JSON"):
            parse_export_document("{not json")

    def test_missing_key(self):
        with pytest.raises(ValueError, match="Invalid table export"):
            parse_export_document({"table_name": "t", "data": []})

    def test_nested_value_rejected(self):
        doc = {"table_name": "t", "create_statement": "CREATE TABLE t (a)", "data": [{"a": [1]}]}
        with pytest.raises(ValueError, match="data/0/a"):
            parse_export_document(doc)


class TestRenameCreateStatement:
    @pytest.mark.parametrize(
        "statement",
        [
            "CREATE TABLE items (a TEXT)",
            'CREATE TABLE "items" (a TEXT)',
            "CREATE TABLE [items] (a TEXT)",
            "CREATE TABLE `items`(a TEXT)",
            "create table if not exists items (a TEXT)",
        ],
    )
    def test_rename(self, statement):
        renamed = rename_create_statement(statement, 'new "one"')
        assert '"new ""one"""' in renamed
        assert "items" not in renamed
        assert renamed.endswith("(a TEXT)")

    def test_not_create(self):
        with pytest.raises(ValueError):
            rename_create_statement("SELECT 1", "x")


class TestExecuteSql:
    def test_affected_rows(self, transfer, filled_items):
        assert transfer.execute_sql("UPDATE items SET qty = ? WHERE name = ?", ["7", "Mesa"]) == 1

    def test_error(self, transfer):
        with pytest.raises(SqlExecutionError, match="Error executing SQL"):
            transfer.execute_sql("SELEC nonsense")
