"""Tests for the dynamic record adapter: create, read, list, update, delete."""

import base64
import functools
import logging
from dataclasses import replace
from unittest.mock import MagicMock

import pytest

from almacen.errors import (
    DatabaseNotFoundError,
    NoUpdatesProvidedError,
    RecordNotFoundError,
    SchemaError,
    SqlExecutionError,
    UnsupportedValueError,
)
from almacen.storage.databases import transaction
from almacen.storage.records import RecordAdapter
from almacen.storage.tables import TableCatalog
from almacen.types import IdentifierStrategy, MissingFieldPolicy

FIXED_NOW = "2024-05-01 12:00:00"


@pytest.fixture
def fixed_adapter(connect_fn, settings):
    return RecordAdapter(connect_fn, transaction, settings, now_fn=lambda: FIXED_NOW)


class TestAssetsScenario:
    """Numbering a text column the way the desktop app does."""

    def test_first_and_second_row(self, adapter, assets_table):
        first = adapter.create(assets_table, {"name": "laptop"}, identifier_column="No.")
        second = adapter.create(assets_table, {"name": "laptop"}, identifier_column="No.")
        assert first == {"No.": "1", "name": "laptop"}
        assert second == {"No.": "2", "name": "laptop"}

    def test_identifier_stored_as_text(self, adapter, assets_table, run_sql):
        adapter.create(assets_table, {"name": "laptop"}, identifier_column="No.")
        assert run_sql('SELECT typeof("No.") FROM assets') == [("text",)]

    def test_allocated_value_overrides_payload(self, adapter, assets_table):
        record = adapter.create(assets_table, {"No.": "99", "name": "x"}, identifier_column="No.")
        assert record["No."] == "1"

    def test_identifier_column_matched_case_insensitively(self, adapter, assets_table):
        record = adapter.create(assets_table, {"name": "x"}, identifier_column="no.")
        assert record["No."] == "1"

    def test_unknown_identifier_column(self, adapter, assets_table):
        with pytest.raises(SchemaError, match="Identifier column"):
            adapter.create(assets_table, {"name": "x"}, identifier_column="Folio")

    def test_identifiers_are_distinct(self, adapter, assets_table):
        values = [
            adapter.create(assets_table, {"name": f"item {i}"}, identifier_column="No.")["No."]
            for i in range(12)
        ]
        assert [int(v) for v in values] == list(range(1, 13))

    def test_external_insert_is_not_reused(self, adapter, assets_table, run_sql):
        adapter.create(assets_table, {"name": "a"}, identifier_column="No.")
        run_sql('INSERT INTO assets ("No.", name) VALUES (?, ?)', ("2", "external"))
        record = adapter.create(assets_table, {"name": "b"}, identifier_column="No.")
        assert record["No."] == "3"

    def test_default_strategy_fills_gap(self, adapter, assets_table, run_sql):
        for value in ("1", "2", "4"):
            run_sql('INSERT INTO assets ("No.", name) VALUES (?, ?)', (value, "x"))
        assert adapter.create(assets_table, {"name": "y"}, identifier_column="No.")["No."] == "3"

    def test_append_strategy_skips_gap(self, connect_fn, settings, assets_table, run_sql):
        for value in ("1", "2", "4"):
            run_sql('INSERT INTO assets ("No.", name) VALUES (?, ?)', (value, "x"))
        adapter = RecordAdapter(
            connect_fn,
            transaction,
            replace(settings, identifier_strategy=IdentifierStrategy.APPEND),
        )
        assert adapter.create(assets_table, {"name": "y"}, identifier_column="No.")["No."] == "5"

    def test_table_created_by_catalog(self, adapter, connect_fn, settings, run_sql):
        """Rows in a table with a text ``id`` primary key leave ``id`` NULL."""
        TableCatalog(connect_fn, settings.images_dir / "inventario").create_table("Sillas")
        adapter.add_column("Sillas", "No.", "text")
        adapter.add_column("Sillas", "name", "text")

        first = adapter.create("Sillas", {"name": "a"}, identifier_column="No.")
        second = adapter.create("Sillas", {"name": "b"}, identifier_column="No.")
        assert (first["No."], second["No."]) == ("1", "2")
        assert first["id"] is None and second["id"] is None
        assert run_sql('SELECT COUNT(*) FROM "Sillas"') == [(2,)]


class TestCreate:
    def test_round_trip(self, fixed_adapter, items_table, png_bytes):
        photo = base64.b64encode(png_bytes).decode()
        payload = {"No.": "7", "name": "Laptop", "qty": 3, "price": 9.5, "photo": photo}
        fixed_adapter.create(items_table, payload)

        record = fixed_adapter.read(items_table, "No.", "7")
        for key, value in payload.items():
            assert record[key] == value
        assert record["added"] == FIXED_NOW

    def test_blob_round_trip_is_byte_identical(self, adapter, items_table, png_bytes, run_sql):
        photo = base64.b64encode(png_bytes).decode()
        adapter.create(items_table, {"No.": "1", "photo": photo})
        assert run_sql("SELECT photo FROM items")[0][0] == png_bytes
        stored = adapter.read(items_table, "No.", "1")["photo"]
        assert base64.b64decode(stored) == png_bytes

    def test_returns_stored_values(self, adapter, run_sql):
        run_sql('CREATE TABLE numbered ("No." INTEGER, name TEXT)')
        record = adapter.create("numbered", {"name": "x"}, identifier_column="No.")
        assert record["No."] == 1
        assert record == adapter.read("numbered", "No.", 1)

    def test_without_rowid_table_returns_written_values(self, adapter, run_sql):
        run_sql("CREATE TABLE keyed (k TEXT PRIMARY KEY, v TEXT) WITHOUT ROWID")
        assert adapter.create("keyed", {"k": "a", "v": "b"}) == {"k": "a", "v": "b"}
        assert adapter.read("keyed", "k", "a") == {"k": "a", "v": "b"}

    def test_missing_fields_default_to_empty_string(self, fixed_adapter, items_table):
        record = fixed_adapter.create(items_table, {"No.": "1"})
        assert record == {
            "No.": "1",
            "name": "",
            "photo": None,
            "added": FIXED_NOW,
            "qty": None,
            "price": None,
        }

    def test_missing_fields_null_policy(self, connect_fn, settings, items_table):
        adapter = RecordAdapter(
            connect_fn, transaction, replace(settings, on_missing_field=MissingFieldPolicy.NULL)
        )
        record = adapter.create(items_table, {"No.": "1"})
        assert record["name"] is None

    def test_null_default_columns(self, connect_fn, settings, items_table):
        adapter = RecordAdapter(
            connect_fn, transaction, replace(settings, null_default_columns=("name", "added"))
        )
        record = adapter.create(items_table, {"No.": "1"})
        assert record["name"] is None
        assert record["added"] is None

    def test_explicit_datetime_kept(self, adapter, items_table):
        record = adapter.create(items_table, {"No.": "1", "added": "2020-01-01 08:00:00"})
        assert record["added"] == "2020-01-01 08:00:00"

    def test_unknown_keys_ignored_with_warning(self, adapter, assets_table, caplog):
        with caplog.at_level(logging.WARNING, logger="almacen.storage.records"):
            record = adapter.create(assets_table, {"name": "x", "colour": "red"})
        assert "colour" not in record
        assert "colour" in caplog.text

    def test_unsupported_value_inserts_nothing(self, adapter, items_table, run_sql):
        with pytest.raises(UnsupportedValueError):
            adapter.create(items_table, {"No.": "1", "photo": 12})
        assert run_sql("SELECT COUNT(*) FROM items") == [(0,)]

    def test_payload_must_be_object(self, adapter, items_table):
        with pytest.raises(UnsupportedValueError):
            adapter.create(items_table, ["not", "a", "dict"])

    def test_missing_table(self, adapter):
        with pytest.raises(SchemaError, match="does not exist"):
            adapter.create("nope", {"a": 1})

    def test_missing_database(self, directory, settings):
        adapter = RecordAdapter(functools.partial(directory.connect, "nope"), transaction, settings)
        with pytest.raises(DatabaseNotFoundError):
            adapter.create("assets", {"name": "x"})

    def test_constraint_violation_rolls_back(self, connect_fn, settings, run_sql):
        run_sql('CREATE TABLE strict_assets ("No." TEXT, name TEXT NOT NULL)')
        adapter = RecordAdapter(
            connect_fn, transaction, replace(settings, on_missing_field=MissingFieldPolicy.NULL)
        )
        with pytest.raises(SqlExecutionError, match="NOT NULL"):
            adapter.create("strict_assets", {}, identifier_column="No.")
        assert run_sql("SELECT COUNT(*) FROM strict_assets") == [(0,)]

        record = adapter.create("strict_assets", {"name": "ok"}, identifier_column="No.")
        assert record["No."] == "1"


class TestRead:
    def test_not_found(self, adapter, assets_table):
        with pytest.raises(RecordNotFoundError):
            adapter.read(assets_table, "No.", "1")

    def test_first_match_in_storage_order(self, adapter, assets_table, run_sql):
        run_sql('INSERT INTO assets ("No.", name) VALUES (?, ?), (?, ?)', ("1", "first", "1", "second"))
        assert adapter.read(assets_table, "No.", "1")["name"] == "first"

    def test_integer_key_matches_text_column(self, adapter, assets_table):
        adapter.create(assets_table, {"name": "x"}, identifier_column="No.")
        assert adapter.read(assets_table, "No.", 1)["name"] == "x"

    def test_unknown_key_column(self, adapter, assets_table):
        with pytest.raises(SchemaError):
            adapter.read(assets_table, "Folio", "1")

    def test_unsupported_key_value(self, adapter, assets_table):
        with pytest.raises(UnsupportedValueError):
            adapter.read(assets_table, "No.", None)


class TestList:
    def test_numeric_ordering_on_number_column(self, adapter, assets_table, run_sql):
        for value in ("10", "9", "2"):
            run_sql('INSERT INTO assets ("No.", name) VALUES (?, ?)', (value, f"n{value}"))
        result = adapter.list(assets_table)
        assert result["table_name"] == "assets"
        assert result["columns"] == ["No.", "name"]
        assert [r["No."] for r in result["rows"]] == ["2", "9", "10"]

    def test_storage_order_without_number_column(self, adapter, run_sql):
        run_sql("CREATE TABLE plain (name TEXT)")
        run_sql("INSERT INTO plain VALUES ('b'), ('a')")
        assert [r["name"] for r in adapter.list("plain")["rows"]] == ["b", "a"]

    def test_blobs_as_data_uris(self, adapter, items_table, png_bytes):
        adapter.create(items_table, {"No.": "1", "photo": base64.b64encode(png_bytes).decode()})
        photo = adapter.list(items_table)["rows"][0]["photo"]
        assert photo.startswith("data:image/png;base64,")

    def test_empty_table(self, adapter, assets_table):
        assert adapter.list(assets_table)["rows"] == []


class TestUpdate:
    def test_empty_updates_do_no_io(self, settings):
        connect_fn = MagicMock()
        adapter = RecordAdapter(connect_fn, transaction, settings)
        with pytest.raises(NoUpdatesProvidedError):
            adapter.update("assets", "No.", "1", {})
        connect_fn.assert_not_called()

    def test_sparse_update(self, adapter, items_table):
        adapter.create(items_table, {"No.": "1", "name": "old", "qty": 1})
        assert adapter.update(items_table, "No.", "1", {"qty": 5}) == 1
        record = adapter.read(items_table, "No.", "1")
        assert record["qty"] == 5
        assert record["name"] == "old"

    def test_not_found(self, adapter, assets_table):
        with pytest.raises(RecordNotFoundError):
            adapter.update(assets_table, "No.", "404", {"name": "x"})

    def test_updates_every_match(self, adapter, assets_table, run_sql):
        run_sql('INSERT INTO assets ("No.", name) VALUES (?, ?), (?, ?)', ("1", "a", "1", "b"))
        assert adapter.update(assets_table, "No.", "1", {"name": "z"}) == 2
        assert run_sql("SELECT name FROM assets") == [("z",), ("z",)]

    def test_unknown_column(self, adapter, assets_table):
        adapter.create(assets_table, {"name": "x"}, identifier_column="No.")
        with pytest.raises(SchemaError, match="colour"):
            adapter.update(assets_table, "No.", "1", {"colour": "red"})

    def test_blob_update(self, adapter, items_table, png_bytes, run_sql):
        adapter.create(items_table, {"No.": "1"})
        adapter.update(items_table, "No.", "1", {"photo": base64.b64encode(png_bytes).decode()})
        assert run_sql("SELECT photo FROM items")[0][0] == png_bytes

    def test_column_types_override(self, adapter, run_sql, png_bytes):
        run_sql('CREATE TABLE loose ("No." TEXT, picture TEXT)')
        run_sql('INSERT INTO loose ("No.") VALUES (?)', ("1",))
        adapter.update(
            "loose",
            "No.",
            "1",
            {"picture": base64.b64encode(png_bytes).decode()},
            column_types={"picture": "BLOB"},
        )
        assert run_sql("SELECT typeof(picture) FROM loose") == [("blob",)]

    def test_rejected_value(self, adapter, items_table):
        adapter.create(items_table, {"No.": "1"})
        with pytest.raises(UnsupportedValueError):
            adapter.update(items_table, "No.", "1", {"added": 5})


class TestDelete:
    def test_delete(self, adapter, assets_table, run_sql):
        adapter.create(assets_table, {"name": "x"}, identifier_column="No.")
        assert adapter.delete(assets_table, "No.", "1") == 1
        assert run_sql("SELECT COUNT(*) FROM assets") == [(0,)]

    def test_not_found(self, adapter, assets_table):
        with pytest.raises(RecordNotFoundError):
            adapter.delete(assets_table, "No.", "1")

    def test_deletes_every_match(self, adapter, assets_table, run_sql):
        run_sql('INSERT INTO assets ("No.", name) VALUES (?, ?), (?, ?)', ("1", "a", "1", "b"))
        assert adapter.delete(assets_table, "No.", "1") == 2

    def test_not_found_symmetry(self, adapter, assets_table):
        """Read, update and delete all report a missing key the same way."""
        for call in (
            lambda: adapter.read(assets_table, "No.", "9"),
            lambda: adapter.update(assets_table, "No.", "9", {"name": "x"}),
            lambda: adapter.delete(assets_table, "No.", "9"),
        ):
            with pytest.raises(RecordNotFoundError):
                call()
