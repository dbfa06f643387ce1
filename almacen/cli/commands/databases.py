"""Database file CLI commands for almacen."""

import logging
from typing import TYPE_CHECKING

from almacen.cli.commands.helpers import print_json, validate_input

if TYPE_CHECKING:
    from almacen import Almacen

logger = logging.getLogger(__name__)


def cmd_db(args, a: "Almacen"):
    """Manage database files."""
    action = args.db_action

    if action == "list":
        databases = a.list_databases()
        if args.json:
            print_json([db.to_dict() for db in databases])
            return
        if not databases:
            print(f"No databases in {a.settings.data_dir}")
            return
        print(f"Databases ({len(databases)}):")
        for db in databases:
            marker = "*" if db.status == "active" else " "
            print(f" {marker} {db.name:<30} {db.size:>10}  {db.last_modified}")

    elif action == "create":
        path = a.create_database(validate_input(args.name, "name", 200))
        print(f"✓ Created {path}")

    elif action == "import":
        path = a.import_database(validate_input(args.source, "source", 4096))
        print(f"✓ Imported as '{path.stem}' ({path})")

    elif action == "export":
        path = a.export_database(
            validate_input(args.name, "name", 200), validate_input(args.target, "target", 4096)
        )
        print(f"✓ Exported to {path}")

    elif action == "delete":
        name = validate_input(args.name, "name", 200)
        if not args.yes:
            try:
                answer = input(f"Permanently delete database '{name}'? [y/N] ")
            except (EOFError, KeyboardInterrupt):
                answer = ""
            if answer.strip().lower() not in ("y", "yes"):
                print("Cancelled.")
                return
        path = a.delete_database(name, confirmed=True)
        print(f"✓ Deleted {path}")
