"""Command-line interface for almacen."""
