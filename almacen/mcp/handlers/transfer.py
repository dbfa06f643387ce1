"""Handlers for transfer tools: table_export, table_import, sql_execute, image_encode."""

import json
import logging
from typing import Any, Dict

from almacen.core import Almacen
from almacen.mcp.sanitize import (
    MAX_PATH_LENGTH,
    MAX_SQL_LENGTH,
    sanitize_bool,
    sanitize_db_name,
    sanitize_identifier,
    sanitize_string,
    sanitize_string_list,
)

logger = logging.getLogger(__name__)

MAX_IMPORT_LENGTH = 50 * 1024 * 1024

# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


def validate_table_export(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "db_name": sanitize_db_name(arguments.get("db_name")),
        "table_name": sanitize_identifier(arguments.get("table_name"), "table_name"),
    }


def validate_table_import(arguments: Dict[str, Any]) -> Dict[str, Any]:
    json_content = arguments.get("json_content")
    if not isinstance(json_content, str) or not json_content.strip():
        raise ValueError("json_content must be a non-empty string")
    if len(json_content) > MAX_IMPORT_LENGTH:
        raise ValueError(f"json_content too long (max {MAX_IMPORT_LENGTH} characters)")

    new_table_name = arguments.get("new_table_name")
    return {
        "db_name": sanitize_db_name(arguments.get("db_name")),
        "json_content": json_content,
        "force_replace": sanitize_bool(arguments.get("force_replace"), "force_replace"),
        "new_table_name": (
            sanitize_identifier(new_table_name, "new_table_name") if new_table_name else None
        ),
    }


def validate_sql_execute(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "db_name": sanitize_db_name(arguments.get("db_name")),
        "sql": sanitize_string(arguments.get("sql"), "sql", MAX_SQL_LENGTH),
        "params": sanitize_string_list(arguments.get("params"), "params"),
    }


def validate_image_encode(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {"file_path": sanitize_string(arguments.get("file_path"), "file_path", MAX_PATH_LENGTH)}


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def handle_table_export(args: Dict[str, Any], a: Almacen) -> str:
    export = a.export_table(args["db_name"], args["table_name"])
    return json.dumps(export.to_dict(), indent=2, ensure_ascii=False)


def handle_table_import(args: Dict[str, Any], a: Almacen) -> str:
    table = a.import_table(
        args["db_name"],
        args["json_content"],
        force_replace=args["force_replace"],
        new_table_name=args.get("new_table_name"),
    )
    return f"Table '{table}' imported"


def handle_sql_execute(args: Dict[str, Any], a: Almacen) -> str:
    count = a.execute_sql(args["db_name"], args["sql"], args["params"])
    if count < 0:
        return "Statement executed"
    return f"Statement executed ({count} row(s) affected)"


def handle_image_encode(args: Dict[str, Any], a: Almacen) -> str:
    return a.encode_image(args["file_path"])


# ---------------------------------------------------------------------------
# Registry dicts
# ---------------------------------------------------------------------------

HANDLERS = {
    "table_export": handle_table_export,
    "table_import": handle_table_import,
    "sql_execute": handle_sql_execute,
    "image_encode": handle_image_encode,
}

VALIDATORS = {
    "table_export": validate_table_export,
    "table_import": validate_table_import,
    "sql_execute": validate_sql_execute,
    "image_encode": validate_image_encode,
}
