"""
Almacen MCP Server - record operations for MCP clients.

This exposes almacen's database, table, row and column operations as MCP
tools over stdio.

Error handling:
- Input validation failures return ``Invalid input: ...``
- Almacen errors (missing database, unknown column, protected column, ...)
  return their message verbatim
- Anything else is logged with its traceback and reported generically

Usage:
    almacen mcp  # Start MCP server (stdio transport)
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from jsonschema import Draft7Validator
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import (
    TextContent,
    Tool,
)

from almacen.config import AlmacenSettings
from almacen.core import Almacen
from almacen.errors import AlmacenError
from almacen.mcp.handlers import HANDLERS, VALIDATORS
from almacen.mcp.tool_definitions import TOOLS

logger = logging.getLogger(__name__)

# Initialize MCP server
mcp = Server("almacen")

_TOOL_SCHEMA_VALIDATORS: Dict[str, Draft7Validator] = {
    tool.name: Draft7Validator(tool.inputSchema) for tool in TOOLS
}

# Settings for this MCP session (None: load from config/env on first use)
_mcp_settings: Optional[AlmacenSettings] = None


def set_settings(settings: Optional[AlmacenSettings]) -> None:
    """Set the settings for this MCP session."""
    global _mcp_settings
    _mcp_settings = settings
    # Clear cached instance so next get_almacen uses the new settings
    if hasattr(get_almacen, "_instance"):
        delattr(get_almacen, "_instance")


def get_almacen() -> Almacen:
    """Get or create the Almacen instance."""
    if not hasattr(get_almacen, "_instance"):
        get_almacen._instance = Almacen(_mcp_settings)  # type: ignore[attr-defined]
    return get_almacen._instance  # type: ignore[attr-defined]


# =============================================================================
# INPUT VALIDATION & SANITIZATION
# =============================================================================


def validate_tool_input(name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and sanitize MCP tool inputs."""
    try:
        if not isinstance(name, str):
            raise ValueError(f"tool name must be a string, got {type(name).__name__}")
        if not name:
            raise ValueError("tool name must not be empty")
        if not isinstance(arguments, dict):
            raise ValueError(f"arguments must be an object, got {type(arguments).__name__}")

        validator = VALIDATORS.get(name)
        if validator is None:
            raise ValueError(f"Unknown tool: {name}")

        schema_validator = _TOOL_SCHEMA_VALIDATORS.get(name)
        if schema_validator is not None:
            errors = sorted(schema_validator.iter_errors(arguments), key=lambda err: list(err.path))
            if errors:
                first = errors[0]
                path = ".".join(str(part) for part in first.path) or "(root)"
                raise ValueError(f"Schema validation failed at {path}: {first.message}")

        return validator(arguments)

    except (ValueError, TypeError) as e:
        logger.warning(f"Input validation failed for tool {name}: {e}")
        raise ValueError(f"Invalid input: {str(e)}")


def handle_tool_error(e: Exception, tool_name: str, arguments: Dict[str, Any]) -> List[TextContent]:
    """Handle tool errors securely."""
    if isinstance(e, AlmacenError):
        # Domain errors carry user-facing messages
        logger.info(f"Tool {tool_name} failed: {type(e).__name__}: {e}")
        return [TextContent(type="text", text=str(e))]

    elif isinstance(e, ValueError):
        message = str(e)
        logger.warning(f"Invalid input for tool {tool_name}: {message}")
        if not message.startswith("Invalid input:"):
            message = f"Invalid input: {message}"
        return [TextContent(type="text", text=message)]

    elif isinstance(e, PermissionError):
        logger.warning(f"Permission denied for tool {tool_name}")
        return [TextContent(type="text", text="Access denied")]

    elif isinstance(e, FileNotFoundError):
        logger.warning(f"Resource not found for tool {tool_name}: {e}")
        return [TextContent(type="text", text=f"Not found: {e}")]

    else:
        # Unknown error - log full details but return generic message
        argument_keys = list(arguments.keys()) if isinstance(arguments, dict) else []
        logger.error(
            f"Internal error in tool {tool_name}",
            extra={
                "tool_name": tool_name,
                "arguments_keys": argument_keys,
                "error_type": type(e).__name__,
                "error_message": str(e),
            },
            exc_info=True,
        )
        return [TextContent(type="text", text="Internal server error")]


# =============================================================================
# MCP PROTOCOL HANDLERS
# =============================================================================


@mcp.list_tools()
async def list_tools() -> list[Tool]:
    """List available almacen tools."""
    return list(TOOLS)


@mcp.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls with validation and error handling."""
    try:
        sanitized_args = validate_tool_input(name, arguments)
        a = get_almacen()

        handler = HANDLERS.get(name)
        if handler is not None:
            result = handler(sanitized_args, a)
            return [TextContent(type="text", text=result)]

        # Should not reach here due to validation, but handle gracefully
        logger.error(f"Unexpected tool name after validation: {name}")
        return [TextContent(type="text", text=f"Tool '{name}' is not available")]

    except Exception as e:
        return handle_tool_error(e, name, arguments)


async def run_server():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await mcp.run(
            read_stream,
            write_stream,
            mcp.create_initialization_options(),
        )


def main(settings: Optional[AlmacenSettings] = None):
    """Entry point for the MCP server."""
    set_settings(settings)
    asyncio.run(run_server())


if __name__ == "__main__":
    main()
