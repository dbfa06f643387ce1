"""Raw SQL and image encoding CLI commands for almacen."""

from typing import TYPE_CHECKING

from almacen.cli.commands.helpers import validate_input

if TYPE_CHECKING:
    from almacen import Almacen


def cmd_sql(args, a: "Almacen"):
    """Execute one SQL statement against a database."""
    db = validate_input(args.db, "db", 200)
    sql = validate_input(args.statement, "statement", 100_000)
    params = [validate_input(p, "param") for p in (args.param or [])]
    count = a.execute_sql(db, sql, params)
    if count < 0:
        print("✓ Statement executed")
    else:
        print(f"✓ Statement executed ({count} row(s) affected)")


def cmd_image(args, a: "Almacen"):
    """Image helpers."""
    if args.image_action == "encode":
        print(a.encode_image(validate_input(args.path, "path", 4096)))
