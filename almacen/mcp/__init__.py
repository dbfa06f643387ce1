"""MCP stdio tool server for almacen."""
