"""Column CLI commands for almacen."""

from typing import TYPE_CHECKING

from almacen.cli.commands.helpers import print_json, validate_input

if TYPE_CHECKING:
    from almacen import Almacen


def cmd_column(args, a: "Almacen"):
    """List, add and drop columns."""
    action = args.column_action
    db = validate_input(args.db, "db", 200)
    table = validate_input(args.table, "table", 200)

    if action == "list":
        columns = a.list_columns(db, table)
        if args.json:
            print_json([col.to_dict() for col in columns])
            return
        print(f"Columns of '{table}' ({len(columns)}):")
        for col in columns:
            flags = []
            if col.primary_key:
                flags.append("PK")
            if col.notnull:
                flags.append("NOT NULL")
            if col.default_value is not None:
                flags.append(f"DEFAULT {col.default_value}")
            extra = f"  ({', '.join(flags)})" if flags else ""
            print(f"  {col.name:<24} {col.declared_type or '-'}{extra}")

    elif action == "add":
        name = validate_input(args.name, "name", 200)
        a.add_column(db, table, name, args.kind)
        print(f"✓ Column '{name}' ({args.kind}) added to '{table}'")

    elif action == "drop":
        name = validate_input(args.name, "name", 200)
        a.drop_column(db, table, name)
        print(f"✓ Column '{name}' dropped from '{table}'")
