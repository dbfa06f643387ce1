"""
Pytest fixtures and test configuration for almacen tests.
"""

import functools
import sqlite3

import pytest

from almacen.config import load_settings
from almacen.core import Almacen
from almacen.storage.databases import DatabaseDirectory, transaction
from almacen.storage.records import RecordAdapter

DB_NAME = "inventario"

_ENV_VARS = (
    "ALMACEN_DATA_DIR",
    "ALMACEN_ON_MISSING_FIELD",
    "ALMACEN_IDENTIFIER_STRATEGY",
    "ALMACEN_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def almacen_home(tmp_path, monkeypatch):
    """Point almacen at a temporary home so no test touches real data."""
    home = tmp_path / "home"
    monkeypatch.setenv("ALMACEN_HOME", str(home))
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def settings(almacen_home):
    return load_settings()


@pytest.fixture
def directory(settings):
    """Database directory with an empty ``inventario.db``."""
    d = DatabaseDirectory(settings.data_dir)
    d.create_database(DB_NAME)
    return d


@pytest.fixture
def run_sql(directory):
    """Execute setup SQL directly against the test database."""

    def _run(sql, params=()):
        conn = sqlite3.connect(str(directory.resolve(DB_NAME)))
        try:
            rows = conn.execute(sql, params).fetchall()
            conn.commit()
            return rows
        finally:
            conn.close()

    return _run


@pytest.fixture
def connect_fn(directory):
    return functools.partial(directory.connect, DB_NAME)


@pytest.fixture
def adapter(connect_fn, settings):
    return RecordAdapter(connect_fn, transaction, settings)


@pytest.fixture
def assets_table(run_sql):
    """``assets`` table as created by the desktop app: text numbering column."""
    run_sql('CREATE TABLE assets ("No." TEXT, name TEXT)')
    return "assets"


@pytest.fixture
def items_table(run_sql):
    """Table exercising every storage policy."""
    run_sql(
        'CREATE TABLE items ("No." TEXT, name TEXT, photo BLOB, added DATETIME, qty INTEGER, price REAL)'
    )
    return "items"


@pytest.fixture
def almacen(settings, directory):
    return Almacen(settings)


# 1x1 transparent PNG
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000100e221bc330000000049454e44ae426082"
)


@pytest.fixture
def png_bytes():
    return PNG_BYTES


@pytest.fixture
def png_file(tmp_path):
    path = tmp_path / "photo.png"
    path.write_bytes(PNG_BYTES)
    return path
