"""Handlers for database file tools: db_list, db_create, db_import, db_export, db_delete."""

import json
import logging
from typing import Any, Dict

from almacen.core import Almacen
from almacen.mcp.sanitize import MAX_PATH_LENGTH, sanitize_bool, sanitize_db_name, sanitize_string

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


def validate_db_list(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {}


def validate_db_create(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {"db_name": sanitize_db_name(arguments.get("db_name"))}


def validate_db_import(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "source_path": sanitize_string(arguments.get("source_path"), "source_path", MAX_PATH_LENGTH)
    }


def validate_db_export(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "db_name": sanitize_db_name(arguments.get("db_name")),
        "target_path": sanitize_string(arguments.get("target_path"), "target_path", MAX_PATH_LENGTH),
    }


def validate_db_delete(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "db_name": sanitize_db_name(arguments.get("db_name")),
        "confirmed": sanitize_bool(arguments.get("confirmed"), "confirmed"),
    }


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def handle_db_list(args: Dict[str, Any], a: Almacen) -> str:
    databases = a.list_databases()
    if not databases:
        return f"No databases found in {a.settings.data_dir}"
    return json.dumps([db.to_dict() for db in databases], indent=2)


def handle_db_create(args: Dict[str, Any], a: Almacen) -> str:
    path = a.create_database(args["db_name"])
    return f"Database '{args['db_name']}' created at {path}"


def handle_db_import(args: Dict[str, Any], a: Almacen) -> str:
    path = a.import_database(args["source_path"])
    return f"Database imported as '{path.stem}' ({path})"


def handle_db_export(args: Dict[str, Any], a: Almacen) -> str:
    path = a.export_database(args["db_name"], args["target_path"])
    return f"Database '{args['db_name']}' exported to {path}"


def handle_db_delete(args: Dict[str, Any], a: Almacen) -> str:
    if not args["confirmed"]:
        return f"Deletion of '{args['db_name']}' cancelled: pass confirmed=true to delete."
    path = a.delete_database(args["db_name"], confirmed=True)
    return f"Database '{args['db_name']}' deleted ({path})"


# ---------------------------------------------------------------------------
# Registry dicts
# ---------------------------------------------------------------------------

HANDLERS = {
    "db_list": handle_db_list,
    "db_create": handle_db_create,
    "db_import": handle_db_import,
    "db_export": handle_db_export,
    "db_delete": handle_db_delete,
}

VALIDATORS = {
    "db_list": validate_db_list,
    "db_create": validate_db_create,
    "db_import": validate_db_import,
    "db_export": validate_db_export,
    "db_delete": validate_db_delete,
}
