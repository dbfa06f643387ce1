"""Database files in the application data directory.

A database is addressed by base name and resolved to ``<name>.db``, else
``<name>.sqlite``. Connections are opened per call and always closed; no
connection outlives the command that opened it.
"""

import contextlib
import logging
import shutil
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional, Union

from almacen.errors import DatabaseNotFoundError, SqlExecutionError
from almacen.types import DatabaseInfo
from almacen.utils import format_file_size, validate_name

logger = logging.getLogger(__name__)

DB_EXTENSIONS = (".db", ".sqlite")
BUSY_TIMEOUT_MS = 5000


@contextlib.contextmanager
def transaction(conn: sqlite3.Connection, immediate: bool = True) -> Iterator[sqlite3.Connection]:
    """Run a block in one explicit transaction.

    ``BEGIN IMMEDIATE`` takes the write lock up front, so reads inside the
    block (e.g. identifier allocation) cannot race another writer. Commits
    on success, rolls back on any exception.
    """
    conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
    try:
        yield conn
    except Exception as e:
        logger.debug(f"Transaction failed, rolling back: {e}")
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise
    else:
        conn.execute("COMMIT")


class DatabaseDirectory:
    """Resolves database names to files and owns per-call connections.

    Args:
        data_dir: Directory holding the database files.
        active_db: File name of the database currently in use, reported as
            ``active`` by :meth:`list_databases`.
    """

    def __init__(self, data_dir: Path, active_db: Optional[str] = None):
        self.data_dir = Path(data_dir)
        self.active_db = active_db

    def ensure_dir(self) -> Path:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        return self.data_dir

    def candidates(self, db_name: str) -> List[Path]:
        validate_name(db_name, "db_name")
        return [self.data_dir / f"{db_name}{ext}" for ext in DB_EXTENSIONS]

    def resolve(self, db_name: str) -> Path:
        """Return the file for ``db_name``, ``.db`` before ``.sqlite``.

        Raises:
            DatabaseNotFoundError: If neither file exists.
        """
        for path in self.candidates(db_name):
            if path.is_file():
                return path
        raise DatabaseNotFoundError(db_name)

    def _open(self, path: Path) -> sqlite3.Connection:
        # Autocommit: single statements are atomic on their own, multi-statement
        # sequences use transaction() explicitly.
        conn = sqlite3.connect(str(path), isolation_level=None)
        conn.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
        return conn

    @contextlib.contextmanager
    def connect(self, db_name: str) -> Iterator[sqlite3.Connection]:
        """Open a connection to ``db_name`` and close it on every exit path.

        ``sqlite3.Error`` raised inside the block is re-raised as
        :class:`SqlExecutionError`; almacen errors pass through unchanged.
        """
        path = self.resolve(db_name)
        try:
            conn = self._open(path)
        except sqlite3.Error as e:
            raise SqlExecutionError(f"Could not open database '{db_name}': {e}") from e
        try:
            yield conn
        except sqlite3.Error as e:
            logger.debug(f"Statement failed on {db_name}: {e}")
            raise SqlExecutionError(str(e)) from e
        finally:
            conn.close()

    def create_database(self, db_name: str) -> Path:
        """Create an empty ``<name>.db`` file."""
        for path in self.candidates(db_name):
            if path.exists():
                raise ValueError(f"A database named '{db_name}' already exists")
        self.ensure_dir()
        path = self.data_dir / f"{db_name}.db"
        conn = sqlite3.connect(str(path))
        conn.close()
        logger.info(f"Created database {path}")
        return path

    def list_databases(self) -> List[DatabaseInfo]:
        """List ``.db`` and ``.sqlite`` files in the data directory."""
        self.ensure_dir()
        databases = []
        for path in sorted(self.data_dir.iterdir()):
            if not path.is_file() or path.suffix not in DB_EXTENSIONS:
                continue
            stat = path.stat()
            databases.append(
                DatabaseInfo(
                    name=path.stem,
                    status="active" if path.name == self.active_db else "inactive",
                    size=format_file_size(stat.st_size),
                    last_modified=datetime.fromtimestamp(stat.st_mtime).strftime("%Y-%m-%d"),
                    path=str(path),
                )
            )
        return databases

    def import_database(self, source: Union[str, Path]) -> Path:
        """Copy an external database file into the data directory.

        Raises:
            FileNotFoundError: If the source does not exist.
            ValueError: If it is not a file, has an unrecognized extension,
                or a file with the same name already exists.
        """
        source_path = Path(source).expanduser()
        if not source_path.exists():
            raise FileNotFoundError(f"Source file does not exist: {source}")
        if not source_path.is_file():
            raise ValueError(f"Path is not a file: {source}")
        if source_path.suffix not in DB_EXTENSIONS:
            raise ValueError(f"Unsupported database extension: {source_path.suffix or '(none)'}")

        self.ensure_dir()
        target = self.data_dir / source_path.name
        if target.exists():
            raise ValueError(f"A file named '{source_path.name}' already exists")

        shutil.copy2(source_path, target)
        logger.info(f"Imported database {source_path} -> {target}")
        return target

    def export_database(self, db_name: str, target: Union[str, Path]) -> Path:
        """Copy a database file to ``target``."""
        source_path = self.resolve(db_name)
        target_path = Path(target).expanduser()
        if target_path.is_dir():
            target_path = target_path / source_path.name
        shutil.copy2(source_path, target_path)
        logger.info(f"Exported database {source_path} -> {target_path}")
        return target_path

    def delete_database(self, db_name: str, confirmed: bool = False) -> Path:
        """Permanently delete a database file.

        Raises:
            ValueError: If ``confirmed`` is not set.
        """
        if not confirmed:
            raise ValueError("Deletion cancelled: confirmation required")
        path = self.resolve(db_name)
        path.unlink()
        logger.info(f"Deleted database {path}")
        return path
