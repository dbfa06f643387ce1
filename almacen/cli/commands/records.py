"""Row CLI commands for almacen."""

import logging
from typing import TYPE_CHECKING, Any, Dict

from almacen.cli.commands.helpers import (
    parse_assignments,
    parse_json_object,
    print_json,
    validate_input,
)

if TYPE_CHECKING:
    from almacen import Almacen

logger = logging.getLogger(__name__)


def _collect_values(args, a: "Almacen") -> Dict[str, Any]:
    """Merge --data JSON, --set COLUMN=VALUE and --image COLUMN=PATH."""
    values = parse_json_object(getattr(args, "data", None), "data")
    values.update(parse_assignments(getattr(args, "set", None), "set"))
    for column, path in parse_assignments(getattr(args, "image", None), "image").items():
        values[column] = a.encode_image(path)
    return values


def cmd_row(args, a: "Almacen"):
    """Read and write table rows."""
    action = args.row_action
    db = validate_input(args.db, "db", 200)
    table = validate_input(args.table, "table", 200)

    if action == "list":
        result = a.list_rows(db, table)
        if args.json:
            print_json(result)
            return
        rows = result["rows"]
        if not rows:
            print(f"No rows in '{table}'")
            return
        print(" | ".join(result["columns"]))
        for row in rows:
            cells = []
            for column in result["columns"]:
                value = row.get(column)
                text = "" if value is None else str(value)
                if text.startswith("data:"):
                    text = "<image>"
                cells.append(text)
            print(" | ".join(cells))
        return

    if action == "create":
        values = _collect_values(args, a)
        identifier = validate_input(args.identifier, "identifier", 200) if args.identifier else None
        record = a.create_row(db, table, values, identifier_column=identifier)
        print(f"✓ Row created in '{table}'")
        print_json(record)
        return

    key_column = validate_input(args.key, "key", 200)
    key_value = validate_input(args.value, "value", 1000)

    if action == "get":
        print_json(a.get_row(db, table, key_column, key_value))

    elif action == "update":
        updates = _collect_values(args, a)
        column_types = parse_assignments(args.type, "type") or None
        count = a.update_row(db, table, key_column, key_value, updates, column_types=column_types)
        print(f"✓ Updated {count} row(s)")

    elif action == "delete":
        count = a.delete_row(db, table, key_column, key_value)
        print(f"✓ Deleted {count} row(s)")
