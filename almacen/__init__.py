"""
Almacen - CRUD over ad-hoc SQLite databases.

Tables are discovered at request time; records are loosely-typed JSON.
"""

from .core import Almacen

try:
    from importlib.metadata import version

    __version__ = version("almacen")
except Exception:
    __version__ = "0.0.0"

__all__ = ["Almacen"]
