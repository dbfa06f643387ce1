"""
Almacen core - one method per command.

The :class:`Almacen` facade binds settings to the storage layer and is the
only thing the MCP server and the CLI talk to. Each call opens its own
connection through :class:`~almacen.storage.databases.DatabaseDirectory`;
the facade holds no connection between calls.
"""

import functools
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from almacen.config import AlmacenSettings, load_settings
from almacen.logging_config import log_record_event
from almacen.storage import (
    DatabaseDirectory,
    RecordAdapter,
    TableCatalog,
    TableTransfer,
    read_image_as_base64,
    transaction,
)
from almacen.types import ColumnInfo, DatabaseInfo, TableExport, TableInfo
from almacen.utils import validate_name

logger = logging.getLogger(__name__)


class Almacen:
    """Main interface for almacen operations.

    Examples:
        a = Almacen()
        a.create_row("inventario", "assets", {"name": "Laptop"}, identifier_column="No.")
    """

    def __init__(self, settings: Optional[AlmacenSettings] = None, active_db: Optional[str] = None):
        self.settings = settings or load_settings()
        self.directory = DatabaseDirectory(self.settings.data_dir, active_db=active_db)
        logger.debug(f"Almacen initialized with data_dir: {self.settings.data_dir}")

    # === Binding ===

    def _connect_fn(self, db_name: str) -> Callable:
        """Resolve ``db_name`` and mark it active for database listings."""
        path = self.directory.resolve(db_name)
        self.directory.active_db = path.name
        return functools.partial(self.directory.connect, db_name)

    def records(self, db_name: str) -> RecordAdapter:
        return RecordAdapter(self._connect_fn(db_name), transaction, self.settings)

    def tables(self, db_name: str) -> TableCatalog:
        connect_fn = self._connect_fn(db_name)
        return TableCatalog(connect_fn, self.settings.images_dir / db_name)

    def transfer(self, db_name: str) -> TableTransfer:
        return TableTransfer(self._connect_fn(db_name), transaction)

    # === Databases ===

    def list_databases(self) -> List[DatabaseInfo]:
        return self.directory.list_databases()

    def create_database(self, db_name: str) -> Path:
        path = self.directory.create_database(db_name)
        log_record_event("db_create", f"path={path}", db_name)
        return path

    def import_database(self, source: Union[str, Path]) -> Path:
        path = self.directory.import_database(source)
        log_record_event("db_import", f"source={source}", path.stem)
        return path

    def export_database(self, db_name: str, target: Union[str, Path]) -> Path:
        return self.directory.export_database(db_name, target)

    def delete_database(self, db_name: str, confirmed: bool = False) -> Path:
        path = self.directory.delete_database(db_name, confirmed=confirmed)
        if self.directory.active_db == path.name:
            self.directory.active_db = None
        log_record_event("db_delete", f"path={path}", db_name)
        return path

    # === Tables ===

    def list_tables(self, db_name: str) -> List[TableInfo]:
        return self.tables(db_name).list_tables()

    def create_table(self, db_name: str, table: str) -> None:
        self.tables(db_name).create_table(table)
        log_record_event("table_create", f"table={table}", db_name)

    def delete_table(self, db_name: str, table: str) -> None:
        self.tables(db_name).delete_table(table)
        log_record_event("table_delete", f"table={table}", db_name)

    def set_table_image(self, db_name: str, table: str, source: Union[str, Path]) -> Path:
        validate_name(db_name, "db_name")
        path = self.tables(db_name).set_image(table, source)
        log_record_event("table_image_set", f"table={table} image={path.name}", db_name)
        return path

    def delete_table_image(self, db_name: str, table: str) -> None:
        validate_name(db_name, "db_name")
        self.tables(db_name).delete_image(table)
        log_record_event("table_image_delete", f"table={table}", db_name)

    # === Rows ===

    def list_rows(self, db_name: str, table: str) -> Dict[str, Any]:
        return self.records(db_name).list(table)

    def get_row(self, db_name: str, table: str, key_column: str, key_value: Any) -> Dict[str, Any]:
        return self.records(db_name).read(table, key_column, key_value)

    def create_row(
        self,
        db_name: str,
        table: str,
        data: Dict[str, Any],
        identifier_column: Optional[str] = None,
    ) -> Dict[str, Any]:
        record = self.records(db_name).create(table, data, identifier_column=identifier_column)
        details = f"table={table}"
        if identifier_column:
            allocated = next(
                (v for k, v in record.items() if k.lower() == identifier_column.lower()), None
            )
            details += f" {identifier_column}={allocated}"
        log_record_event("row_create", details, db_name)
        return record

    def update_row(
        self,
        db_name: str,
        table: str,
        key_column: str,
        key_value: Any,
        updates: Dict[str, Any],
        column_types: Optional[Dict[str, str]] = None,
    ) -> int:
        count = self.records(db_name).update(
            table, key_column, key_value, updates, column_types=column_types
        )
        log_record_event(
            "row_update",
            f"table={table} {key_column}={key_value} columns={','.join(updates)} rows={count}",
            db_name,
        )
        return count

    def delete_row(self, db_name: str, table: str, key_column: str, key_value: Any) -> int:
        count = self.records(db_name).delete(table, key_column, key_value)
        log_record_event("row_delete", f"table={table} {key_column}={key_value} rows={count}", db_name)
        return count

    # === Columns ===

    def list_columns(self, db_name: str, table: str) -> List[ColumnInfo]:
        return self.records(db_name).columns(table)

    def add_column(self, db_name: str, table: str, column: str, kind: Any) -> None:
        self.records(db_name).add_column(table, column, kind)
        log_record_event("column_add", f"table={table} column={column} kind={kind}", db_name)

    def drop_column(self, db_name: str, table: str, column: str) -> None:
        self.records(db_name).drop_column(table, column)
        log_record_event("column_drop", f"table={table} column={column}", db_name)

    # === Transfer ===

    def export_table(self, db_name: str, table: str) -> TableExport:
        return self.transfer(db_name).export_table(table)

    def import_table(
        self,
        db_name: str,
        document: Union[str, Dict[str, Any]],
        force_replace: bool = False,
        new_table_name: Optional[str] = None,
    ) -> str:
        table = self.transfer(db_name).import_table(
            document, force_replace=force_replace, new_table_name=new_table_name
        )
        log_record_event("table_import", f"table={table} replace={force_replace}", db_name)
        return table

    def execute_sql(self, db_name: str, sql: str, params: Sequence[str] = ()) -> int:
        count = self.transfer(db_name).execute_sql(sql, params)
        log_record_event("sql_execute", f"rows={count}", db_name)
        return count

    # === Images ===

    def encode_image(self, path: Union[str, Path]) -> str:
        return read_image_as_base64(path)
