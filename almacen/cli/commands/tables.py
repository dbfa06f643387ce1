"""Table CLI commands for almacen: tables, table images, JSON export/import."""

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from almacen.cli.commands.helpers import print_json, validate_input

if TYPE_CHECKING:
    from almacen import Almacen

logger = logging.getLogger(__name__)


def _table_image(args, a: "Almacen", db: str, table: str):
    if args.image_action == "set":
        path = a.set_table_image(db, table, validate_input(args.path, "path", 4096))
        print(f"✓ Image stored at {path}")
    elif args.image_action == "delete":
        a.delete_table_image(db, table)
        print(f"✓ Image for '{table}' deleted")


def cmd_table(args, a: "Almacen"):
    """Manage the tables of a database."""
    action = args.table_action
    db = validate_input(args.db, "db", 200)

    if action == "list":
        tables = a.list_tables(db)
        if args.json:
            print_json([t.to_dict() for t in tables])
            return
        if not tables:
            print(f"No tables in '{db}'")
            return
        print(f"Tables in '{db}' ({len(tables)}):")
        for t in tables:
            suffix = f"  [image: {t.image_path}]" if t.image_path else ""
            print(f"  {t.name}{suffix}")
        return

    if action == "import":
        content = Path(args.file).expanduser().read_text(encoding="utf-8")
        new_name = validate_input(args.rename, "rename", 200) if args.rename else None
        imported = a.import_table(db, content, force_replace=args.replace, new_table_name=new_name)
        print(f"✓ Table '{imported}' imported")
        return

    table = validate_input(args.table, "table", 200)

    if action == "create":
        a.create_table(db, table)
        print(f"✓ Table '{table}' created")

    elif action == "delete":
        a.delete_table(db, table)
        print(f"✓ Table '{table}' deleted")

    elif action == "image":
        _table_image(args, a, db, table)

    elif action == "export":
        export = a.export_table(db, table)
        if args.output:
            Path(args.output).expanduser().write_text(
                json.dumps(export.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8"
            )
            print(f"✓ Exported {len(export.data)} rows to {args.output}")
        else:
            print_json(export.to_dict())

