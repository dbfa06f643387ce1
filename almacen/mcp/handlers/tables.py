"""Handlers for table tools: table_list, table_create, table_delete, table images."""

import json
import logging
from typing import Any, Dict

from almacen.core import Almacen
from almacen.mcp.sanitize import (
    MAX_PATH_LENGTH,
    sanitize_db_name,
    sanitize_identifier,
    sanitize_string,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


def validate_table_list(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {"db_name": sanitize_db_name(arguments.get("db_name"))}


def validate_table_target(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "db_name": sanitize_db_name(arguments.get("db_name")),
        "table_name": sanitize_identifier(arguments.get("table_name"), "table_name"),
    }


def validate_table_image_set(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized = validate_table_target(arguments)
    sanitized["image_path"] = sanitize_string(
        arguments.get("image_path"), "image_path", MAX_PATH_LENGTH
    )
    return sanitized


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def handle_table_list(args: Dict[str, Any], a: Almacen) -> str:
    tables = a.list_tables(args["db_name"])
    if not tables:
        return f"No tables in '{args['db_name']}'"
    return json.dumps([t.to_dict() for t in tables], indent=2)


def handle_table_create(args: Dict[str, Any], a: Almacen) -> str:
    a.create_table(args["db_name"], args["table_name"])
    return f"Table '{args['table_name']}' created"


def handle_table_delete(args: Dict[str, Any], a: Almacen) -> str:
    a.delete_table(args["db_name"], args["table_name"])
    return f"Table '{args['table_name']}' deleted"


def handle_table_image_set(args: Dict[str, Any], a: Almacen) -> str:
    path = a.set_table_image(args["db_name"], args["table_name"], args["image_path"])
    return f"Image for '{args['table_name']}' stored at {path}"


def handle_table_image_delete(args: Dict[str, Any], a: Almacen) -> str:
    a.delete_table_image(args["db_name"], args["table_name"])
    return f"Image for '{args['table_name']}' deleted"


# ---------------------------------------------------------------------------
# Registry dicts
# ---------------------------------------------------------------------------

HANDLERS = {
    "table_list": handle_table_list,
    "table_create": handle_table_create,
    "table_delete": handle_table_delete,
    "table_image_set": handle_table_image_set,
    "table_image_delete": handle_table_image_delete,
}

VALIDATORS = {
    "table_list": validate_table_list,
    "table_create": validate_table_target,
    "table_delete": validate_table_target,
    "table_image_set": validate_table_image_set,
    "table_image_delete": validate_table_target,
}
