"""Handler registry for MCP tools.

Merges HANDLERS and VALIDATORS from all sub-modules into unified dicts.
"""

from typing import Callable, Dict

from almacen.mcp.handlers.columns import HANDLERS as _COLUMNS_H
from almacen.mcp.handlers.columns import VALIDATORS as _COLUMNS_V
from almacen.mcp.handlers.databases import HANDLERS as _DATABASES_H
from almacen.mcp.handlers.databases import VALIDATORS as _DATABASES_V
from almacen.mcp.handlers.records import HANDLERS as _RECORDS_H
from almacen.mcp.handlers.records import VALIDATORS as _RECORDS_V
from almacen.mcp.handlers.tables import HANDLERS as _TABLES_H
from almacen.mcp.handlers.tables import VALIDATORS as _TABLES_V
from almacen.mcp.handlers.transfer import HANDLERS as _TRANSFER_H
from almacen.mcp.handlers.transfer import VALIDATORS as _TRANSFER_V

HANDLERS: Dict[str, Callable] = {
    **_DATABASES_H,
    **_TABLES_H,
    **_RECORDS_H,
    **_COLUMNS_H,
    **_TRANSFER_H,
}

VALIDATORS: Dict[str, Callable] = {
    **_DATABASES_V,
    **_TABLES_V,
    **_RECORDS_V,
    **_COLUMNS_V,
    **_TRANSFER_V,
}
