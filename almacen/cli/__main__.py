"""
Almacen CLI - Command-line interface for ad-hoc SQLite databases.

Usage:
    almacen db list [--json]
    almacen db create|delete NAME
    almacen db import SOURCE
    almacen db export NAME TARGET
    almacen table list DB [--json]
    almacen table create|delete DB TABLE
    almacen table image set DB TABLE PATH
    almacen table image delete DB TABLE
    almacen table export DB TABLE [--output FILE]
    almacen table import DB FILE [--replace] [--rename NAME]
    almacen row list DB TABLE [--json]
    almacen row get|delete DB TABLE KEY VALUE
    almacen row create DB TABLE [--data JSON] [--set COL=VAL]... [--image COL=PATH]... [--identifier COL]
    almacen row update DB TABLE KEY VALUE [--data JSON] [--set COL=VAL]... [--type COL=TYPE]...
    almacen column list DB TABLE [--json]
    almacen column add DB TABLE NAME [--kind text|image|datetime]
    almacen column drop DB TABLE NAME
    almacen sql DB STATEMENT [--param P]...
    almacen image encode PATH
    almacen mcp
"""

import argparse
import logging
import sys

from almacen import Almacen
from almacen.cli.commands.columns import cmd_column
from almacen.cli.commands.databases import cmd_db
from almacen.cli.commands.records import cmd_row
from almacen.cli.commands.tables import cmd_table
from almacen.cli.commands.transfer import cmd_image, cmd_sql
from almacen.config import load_settings
from almacen.errors import AlmacenError
from almacen.types import ColumnKind

# Set up logging
logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)


def cmd_mcp(args, a: Almacen):
    """Start the MCP server over stdio."""
    from almacen.logging_config import setup_almacen_logging
    from almacen.mcp.server import main as mcp_main

    setup_almacen_logging(a.settings.log_level)
    mcp_main(settings=a.settings)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="almacen",
        description="CRUD over ad-hoc SQLite databases",
    )
    parser.add_argument("--data-dir", "-d", help="Directory holding the databases", default=None)
    parser.add_argument(
        "--on-missing-field",
        choices=["null", "empty_string"],
        default=None,
        help="What row create stores in omitted text columns",
    )
    parser.add_argument(
        "--identifier-strategy",
        choices=["append", "fill_gaps"],
        default=None,
        help="How automatic identifiers are allocated (default: fill_gaps)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # db
    p_db = subparsers.add_parser("db", help="Database files")
    db_sub = p_db.add_subparsers(dest="db_action", required=True)
    db_list = db_sub.add_parser("list", help="List databases")
    db_list.add_argument("--json", "-j", action="store_true")
    db_create = db_sub.add_parser("create", help="Create an empty database")
    db_create.add_argument("name")
    db_import = db_sub.add_parser("import", help="Copy a .db/.sqlite file into the data directory")
    db_import.add_argument("source")
    db_export = db_sub.add_parser("export", help="Copy a database file out")
    db_export.add_argument("name")
    db_export.add_argument("target")
    db_delete = db_sub.add_parser("delete", help="Permanently delete a database")
    db_delete.add_argument("name")
    db_delete.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")

    # table
    p_table = subparsers.add_parser("table", help="Tables")
    table_sub = p_table.add_subparsers(dest="table_action", required=True)
    t_list = table_sub.add_parser("list", help="List tables")
    t_list.add_argument("db")
    t_list.add_argument("--json", "-j", action="store_true")
    for action, help_text in (("create", "Create a table"), ("delete", "Drop a table")):
        t_parser = table_sub.add_parser(action, help=help_text)
        t_parser.add_argument("db")
        t_parser.add_argument("table")
    t_image = table_sub.add_parser("image", help="Table image")
    image_sub = t_image.add_subparsers(dest="image_action", required=True)
    ti_set = image_sub.add_parser("set", help="Set the table image")
    ti_set.add_argument("db")
    ti_set.add_argument("table")
    ti_set.add_argument("path")
    ti_delete = image_sub.add_parser("delete", help="Delete the table image")
    ti_delete.add_argument("db")
    ti_delete.add_argument("table")
    t_export = table_sub.add_parser("export", help="Export a table as JSON")
    t_export.add_argument("db")
    t_export.add_argument("table")
    t_export.add_argument("--output", "-o", help="Write to file instead of stdout")
    t_import = table_sub.add_parser("import", help="Import a table from a JSON export")
    t_import.add_argument("db")
    t_import.add_argument("file")
    t_import.add_argument("--replace", action="store_true", help="Replace an existing table")
    t_import.add_argument("--rename", help="Import under a different table name")

    # row
    p_row = subparsers.add_parser("row", help="Rows")
    row_sub = p_row.add_subparsers(dest="row_action", required=True)
    r_list = row_sub.add_parser("list", help="List rows")
    r_list.add_argument("db")
    r_list.add_argument("table")
    r_list.add_argument("--json", "-j", action="store_true")
    for action, help_text in (("get", "Show one row"), ("delete", "Delete rows by key")):
        r_parser = row_sub.add_parser(action, help=help_text)
        r_parser.add_argument("db")
        r_parser.add_argument("table")
        r_parser.add_argument("key", help="Key column")
        r_parser.add_argument("value", help="Key value")
    r_create = row_sub.add_parser("create", help="Insert a row")
    r_create.add_argument("db")
    r_create.add_argument("table")
    r_create.add_argument("--identifier", "-i", help="Column to number automatically (e.g. 'No.')")
    r_update = row_sub.add_parser("update", help="Update columns of rows by key")
    r_update.add_argument("db")
    r_update.add_argument("table")
    r_update.add_argument("key", help="Key column")
    r_update.add_argument("value", help="Key value")
    r_update.add_argument(
        "--type", "-t", action="append", help="COLUMN=TYPE override for coercion (repeatable)"
    )
    for r_parser in (r_create, r_update):
        r_parser.add_argument("--data", help="JSON object of column values, or @file.json")
        r_parser.add_argument("--set", "-s", action="append", help="COLUMN=VALUE (repeatable)")
        r_parser.add_argument(
            "--image", action="append", help="COLUMN=PATH to store an image file (repeatable)"
        )

    # column
    p_column = subparsers.add_parser("column", help="Columns")
    column_sub = p_column.add_subparsers(dest="column_action", required=True)
    c_list = column_sub.add_parser("list", help="List columns")
    c_list.add_argument("db")
    c_list.add_argument("table")
    c_list.add_argument("--json", "-j", action="store_true")
    c_add = column_sub.add_parser("add", help="Add a column")
    c_add.add_argument("db")
    c_add.add_argument("table")
    c_add.add_argument("name")
    c_add.add_argument(
        "--kind", "-k", choices=[k.value for k in ColumnKind], default=ColumnKind.TEXT.value
    )
    c_drop = column_sub.add_parser("drop", help="Drop a column")
    c_drop.add_argument("db")
    c_drop.add_argument("table")
    c_drop.add_argument("name")

    # sql
    p_sql = subparsers.add_parser("sql", help="Execute one SQL statement")
    p_sql.add_argument("db")
    p_sql.add_argument("statement")
    p_sql.add_argument("--param", "-p", action="append", help="Positional parameter (repeatable)")

    # image
    p_image = subparsers.add_parser("image", help="Image helpers")
    img_sub = p_image.add_subparsers(dest="image_action", required=True)
    img_encode = img_sub.add_parser("encode", help="Print an image file as base64")
    img_encode.add_argument("path")

    # mcp
    subparsers.add_parser("mcp", help="Start the MCP server (stdio)")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Initialize Almacen with error handling
    try:
        overrides = {
            "data_dir": args.data_dir,
            "on_missing_field": args.on_missing_field,
            "identifier_strategy": args.identifier_strategy,
        }
        settings = load_settings(overrides={k: v for k, v in overrides.items() if v})
        a = Almacen(settings)
    except (ValueError, TypeError) as e:
        logger.error(f"Failed to initialize almacen: {e}")
        sys.exit(1)

    # Dispatch with error handling
    try:
        if args.command == "db":
            cmd_db(args, a)
        elif args.command == "table":
            cmd_table(args, a)
        elif args.command == "row":
            cmd_row(args, a)
        elif args.command == "column":
            cmd_column(args, a)
        elif args.command == "sql":
            cmd_sql(args, a)
        elif args.command == "image":
            cmd_image(args, a)
        elif args.command == "mcp":
            cmd_mcp(args, a)
    except AlmacenError as e:
        logger.error(str(e))
        sys.exit(1)
    except (ValueError, TypeError) as e:
        logger.error(f"Input validation error: {e}")
        sys.exit(1)
    except OSError as e:
        logger.error(f"File error: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
