"""Almacen storage layer.

SQLite access for user databases whose tables are created at runtime:
identifier quoting, schema introspection, value coercion, surrogate key
allocation and the dynamic record adapter built on them.
"""

from .coercion import classify, coerce_value, to_json_value
from .databases import DatabaseDirectory, transaction
from .identifiers import quote_identifier, quote_identifiers
from .keys import allocate_identifier
from .records import RecordAdapter, add_date_column
from .schema import find_column, get_columns, get_create_statement, list_table_names, table_exists
from .tables import TableCatalog, read_image_as_base64
from .transfer import TableTransfer, parse_export_document

__all__ = [
    # Connections
    "DatabaseDirectory",
    "transaction",
    # Identifiers and schema
    "quote_identifier",
    "quote_identifiers",
    "get_columns",
    "find_column",
    "table_exists",
    "list_table_names",
    "get_create_statement",
    # Values and keys
    "classify",
    "coerce_value",
    "to_json_value",
    "allocate_identifier",
    # Operations
    "RecordAdapter",
    "add_date_column",
    "TableCatalog",
    "read_image_as_base64",
    "TableTransfer",
    "parse_export_document",
]
