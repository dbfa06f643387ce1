"""MCP tool schema definitions for almacen operations.

Each Tool() defines the name, description, and JSON Schema for one MCP tool.
Validators and handlers live in almacen.mcp.handlers.
"""

from mcp.types import Tool

from almacen.types import ColumnKind

VALID_COLUMN_KINDS = [kind.value for kind in ColumnKind]

_DB_NAME = {
    "type": "string",
    "description": "Database base name (resolved to <name>.db, else <name>.sqlite)",
}
_TABLE_NAME = {"type": "string", "description": "Table name"}
_KEY_COLUMN = {"type": "string", "description": "Column identifying the row (e.g. 'No.' or 'id')"}
_KEY_VALUE = {
    "type": ["string", "integer", "number"],
    "description": "Value of the key column for the target row",
}

TOOLS = [
    # === Databases ===
    Tool(
        name="db_list",
        description="List database files in the data directory with size, last modification date and status.",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="db_create",
        description="Create a new empty database file.",
        inputSchema={
            "type": "object",
            "properties": {"db_name": _DB_NAME},
            "required": ["db_name"],
        },
    ),
    Tool(
        name="db_import",
        description="Copy an external .db or .sqlite file into the data directory.",
        inputSchema={
            "type": "object",
            "properties": {
                "source_path": {"type": "string", "description": "Path of the file to import"},
            },
            "required": ["source_path"],
        },
    ),
    Tool(
        name="db_export",
        description="Copy a database file to a target path or directory.",
        inputSchema={
            "type": "object",
            "properties": {
                "db_name": _DB_NAME,
                "target_path": {"type": "string", "description": "Destination file or directory"},
            },
            "required": ["db_name", "target_path"],
        },
    ),
    Tool(
        name="db_delete",
        description="Permanently delete a database file. Requires confirmed=true.",
        inputSchema={
            "type": "object",
            "properties": {
                "db_name": _DB_NAME,
                "confirmed": {
                    "type": "boolean",
                    "description": "Must be true to delete",
                    "default": False,
                },
            },
            "required": ["db_name"],
        },
    ),
    # === Tables ===
    Tool(
        name="table_list",
        description="List the tables of a database with their associated image paths.",
        inputSchema={
            "type": "object",
            "properties": {"db_name": _DB_NAME},
            "required": ["db_name"],
        },
    ),
    Tool(
        name="table_create",
        description="Create a table with a single 'id TEXT PRIMARY KEY' column. Add columns with column_add.",
        inputSchema={
            "type": "object",
            "properties": {"db_name": _DB_NAME, "table_name": _TABLE_NAME},
            "required": ["db_name", "table_name"],
        },
    ),
    Tool(
        name="table_delete",
        description="Drop a table and remove its image.",
        inputSchema={
            "type": "object",
            "properties": {"db_name": _DB_NAME, "table_name": _TABLE_NAME},
            "required": ["db_name", "table_name"],
        },
    ),
    Tool(
        name="table_image_set",
        description="Copy an image file (jpg, jpeg, png, gif, webp) in as the table's image, replacing any previous one.",
        inputSchema={
            "type": "object",
            "properties": {
                "db_name": _DB_NAME,
                "table_name": _TABLE_NAME,
                "image_path": {"type": "string", "description": "Path of the image file"},
            },
            "required": ["db_name", "table_name", "image_path"],
        },
    ),
    Tool(
        name="table_image_delete",
        description="Remove the image associated with a table.",
        inputSchema={
            "type": "object",
            "properties": {"db_name": _DB_NAME, "table_name": _TABLE_NAME},
            "required": ["db_name", "table_name"],
        },
    ),
    Tool(
        name="table_export",
        description="Export a table's CREATE statement and rows as a JSON document. Image (BLOB) values export as null.",
        inputSchema={
            "type": "object",
            "properties": {"db_name": _DB_NAME, "table_name": _TABLE_NAME},
            "required": ["db_name", "table_name"],
        },
    ),
    Tool(
        name="table_import",
        description="Recreate a table from a JSON export document. Fails if the table exists unless force_replace is set or new_table_name is given.",
        inputSchema={
            "type": "object",
            "properties": {
                "db_name": _DB_NAME,
                "json_content": {
                    "type": "string",
                    "description": "Export document: {table_name, create_statement, data}",
                },
                "force_replace": {
                    "type": "boolean",
                    "description": "Drop an existing table with the same name",
                    "default": False,
                },
                "new_table_name": {
                    "type": "string",
                    "description": "Import under this name instead",
                },
            },
            "required": ["db_name", "json_content"],
        },
    ),
    # === Rows ===
    Tool(
        name="row_list",
        description="List all rows of a table. Image columns are returned as data URIs.",
        inputSchema={
            "type": "object",
            "properties": {"db_name": _DB_NAME, "table_name": _TABLE_NAME},
            "required": ["db_name", "table_name"],
        },
    ),
    Tool(
        name="row_get",
        description="Get one row by key. Image columns are returned as base64.",
        inputSchema={
            "type": "object",
            "properties": {
                "db_name": _DB_NAME,
                "table_name": _TABLE_NAME,
                "key_column": _KEY_COLUMN,
                "key_value": _KEY_VALUE,
            },
            "required": ["db_name", "table_name", "key_column", "key_value"],
        },
    ),
    Tool(
        name="row_create",
        description="Insert a row. Omitted columns get defaults (DATETIME: now). With identifier_column, the next free number is assigned to that column.",
        inputSchema={
            "type": "object",
            "properties": {
                "db_name": _DB_NAME,
                "table_name": _TABLE_NAME,
                "data": {
                    "type": "object",
                    "description": "Column values; images as base64 text",
                },
                "identifier_column": {
                    "type": "string",
                    "description": "Column whose value is allocated automatically (e.g. 'No.')",
                },
            },
            "required": ["db_name", "table_name", "data"],
        },
    ),
    Tool(
        name="row_update",
        description="Update only the given columns of every row matching the key.",
        inputSchema={
            "type": "object",
            "properties": {
                "db_name": _DB_NAME,
                "table_name": _TABLE_NAME,
                "key_column": _KEY_COLUMN,
                "key_value": _KEY_VALUE,
                "updates": {"type": "object", "description": "Column values to set"},
                "column_types": {
                    "type": "object",
                    "additionalProperties": {"type": "string"},
                    "description": "Optional type tags overriding declared types (e.g. {\"photo\": \"BLOB\"})",
                },
            },
            "required": ["db_name", "table_name", "key_column", "key_value", "updates"],
        },
    ),
    Tool(
        name="row_delete",
        description="Delete every row matching the key.",
        inputSchema={
            "type": "object",
            "properties": {
                "db_name": _DB_NAME,
                "table_name": _TABLE_NAME,
                "key_column": _KEY_COLUMN,
                "key_value": _KEY_VALUE,
            },
            "required": ["db_name", "table_name", "key_column", "key_value"],
        },
    ),
    # === Columns ===
    Tool(
        name="column_list",
        description="List the columns of a table with declared type, NOT NULL, default and primary-key flags.",
        inputSchema={
            "type": "object",
            "properties": {"db_name": _DB_NAME, "table_name": _TABLE_NAME},
            "required": ["db_name", "table_name"],
        },
    ),
    Tool(
        name="column_add",
        description="Add a column of kind text, image or datetime. Protected names are refused.",
        inputSchema={
            "type": "object",
            "properties": {
                "db_name": _DB_NAME,
                "table_name": _TABLE_NAME,
                "column_name": {"type": "string", "description": "New column name"},
                "kind": {
                    "type": "string",
                    "enum": VALID_COLUMN_KINDS,
                    "description": "Column kind",
                    "default": "text",
                },
            },
            "required": ["db_name", "table_name", "column_name"],
        },
    ),
    Tool(
        name="column_drop",
        description="Drop a column. Protected names are refused. Requires SQLite 3.35.0 or newer.",
        inputSchema={
            "type": "object",
            "properties": {
                "db_name": _DB_NAME,
                "table_name": _TABLE_NAME,
                "column_name": {"type": "string", "description": "Column to drop"},
            },
            "required": ["db_name", "table_name", "column_name"],
        },
    ),
    # === Raw SQL and images ===
    Tool(
        name="sql_execute",
        description="Execute one SQL statement with positional string parameters. No safety checks are applied.",
        inputSchema={
            "type": "object",
            "properties": {
                "db_name": _DB_NAME,
                "sql": {"type": "string", "description": "SQL statement"},
                "params": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Positional parameters",
                },
            },
            "required": ["db_name", "sql"],
        },
    ),
    Tool(
        name="image_encode",
        description="Read an image file (jpg, jpeg, png, gif, bmp, webp) and return its base64 text for an image column.",
        inputSchema={
            "type": "object",
            "properties": {
                "file_path": {"type": "string", "description": "Path of the image file"},
            },
            "required": ["file_path"],
        },
    ),
]
