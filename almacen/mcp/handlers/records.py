"""Handlers for row tools: row_list, row_get, row_create, row_update, row_delete."""

import json
import logging
from typing import Any, Dict

from almacen.core import Almacen
from almacen.mcp.sanitize import (
    sanitize_db_name,
    sanitize_identifier,
    sanitize_key_value,
    sanitize_object,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


def _validate_target(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "db_name": sanitize_db_name(arguments.get("db_name")),
        "table_name": sanitize_identifier(arguments.get("table_name"), "table_name"),
    }


def _validate_keyed(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized = _validate_target(arguments)
    sanitized["key_column"] = sanitize_identifier(arguments.get("key_column"), "key_column")
    sanitized["key_value"] = sanitize_key_value(arguments.get("key_value"))
    return sanitized


def validate_row_list(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return _validate_target(arguments)


def validate_row_get(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return _validate_keyed(arguments)


def validate_row_create(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized = _validate_target(arguments)
    sanitized["data"] = sanitize_object(arguments.get("data"), "data")
    identifier_column = arguments.get("identifier_column")
    sanitized["identifier_column"] = (
        sanitize_identifier(identifier_column, "identifier_column")
        if identifier_column is not None
        else None
    )
    return sanitized


def validate_row_update(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized = _validate_keyed(arguments)
    # An empty object is passed through; the adapter reports it.
    sanitized["updates"] = sanitize_object(arguments.get("updates"), "updates")
    column_types = sanitize_object(arguments.get("column_types"), "column_types", required=False)
    for name, tag in column_types.items():
        if not isinstance(tag, str):
            raise ValueError(f"column_types['{name}'] must be a string")
    sanitized["column_types"] = column_types or None
    return sanitized


def validate_row_delete(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return _validate_keyed(arguments)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def handle_row_list(args: Dict[str, Any], a: Almacen) -> str:
    result = a.list_rows(args["db_name"], args["table_name"])
    return json.dumps(result, indent=2, default=str)


def handle_row_get(args: Dict[str, Any], a: Almacen) -> str:
    record = a.get_row(args["db_name"], args["table_name"], args["key_column"], args["key_value"])
    return json.dumps(record, indent=2, default=str)


def handle_row_create(args: Dict[str, Any], a: Almacen) -> str:
    record = a.create_row(
        args["db_name"],
        args["table_name"],
        args["data"],
        identifier_column=args.get("identifier_column"),
    )
    return f"Row created in '{args['table_name']}':\n{json.dumps(record, indent=2, default=str)}"


def handle_row_update(args: Dict[str, Any], a: Almacen) -> str:
    count = a.update_row(
        args["db_name"],
        args["table_name"],
        args["key_column"],
        args["key_value"],
        args["updates"],
        column_types=args.get("column_types"),
    )
    return f"Updated {count} row(s) in '{args['table_name']}'"


def handle_row_delete(args: Dict[str, Any], a: Almacen) -> str:
    count = a.delete_row(
        args["db_name"], args["table_name"], args["key_column"], args["key_value"]
    )
    return f"Deleted {count} row(s) from '{args['table_name']}'"


# ---------------------------------------------------------------------------
# Registry dicts
# ---------------------------------------------------------------------------

HANDLERS = {
    "row_list": handle_row_list,
    "row_get": handle_row_get,
    "row_create": handle_row_create,
    "row_update": handle_row_update,
    "row_delete": handle_row_delete,
}

VALIDATORS = {
    "row_list": validate_row_list,
    "row_get": validate_row_get,
    "row_create": validate_row_create,
    "row_update": validate_row_update,
    "row_delete": validate_row_delete,
}
