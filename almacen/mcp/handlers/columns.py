"""Handlers for column tools: column_list, column_add, column_drop."""

import json
import logging
from typing import Any, Dict

from almacen.core import Almacen
from almacen.mcp.sanitize import sanitize_db_name, sanitize_identifier, validate_enum
from almacen.mcp.tool_definitions import VALID_COLUMN_KINDS

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


def validate_column_list(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "db_name": sanitize_db_name(arguments.get("db_name")),
        "table_name": sanitize_identifier(arguments.get("table_name"), "table_name"),
    }


def validate_column_add(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized = validate_column_list(arguments)
    sanitized["column_name"] = sanitize_identifier(arguments.get("column_name"), "column_name")
    sanitized["kind"] = validate_enum(arguments.get("kind"), "kind", VALID_COLUMN_KINDS, "text")
    return sanitized


def validate_column_drop(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized = validate_column_list(arguments)
    sanitized["column_name"] = sanitize_identifier(arguments.get("column_name"), "column_name")
    return sanitized


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def handle_column_list(args: Dict[str, Any], a: Almacen) -> str:
    columns = a.list_columns(args["db_name"], args["table_name"])
    return json.dumps([col.to_dict() for col in columns], indent=2)


def handle_column_add(args: Dict[str, Any], a: Almacen) -> str:
    a.add_column(args["db_name"], args["table_name"], args["column_name"], args["kind"])
    return f"Column '{args['column_name']}' ({args['kind']}) added to '{args['table_name']}'"


def handle_column_drop(args: Dict[str, Any], a: Almacen) -> str:
    a.drop_column(args["db_name"], args["table_name"], args["column_name"])
    return f"Column '{args['column_name']}' dropped from '{args['table_name']}'"


# ---------------------------------------------------------------------------
# Registry dicts
# ---------------------------------------------------------------------------

HANDLERS = {
    "column_list": handle_column_list,
    "column_add": handle_column_add,
    "column_drop": handle_column_drop,
}

VALIDATORS = {
    "column_list": validate_column_list,
    "column_add": validate_column_add,
    "column_drop": validate_column_drop,
}
