"""Tables of one database and their associated images.

A table may have one display image stored beside the databases as
``<images_dir>/<table>.<ext>``; the first existing extension in
``IMAGE_EXTENSIONS`` wins.
"""

import base64
import logging
import shutil
from pathlib import Path
from typing import Callable, List, Optional, Union

from almacen.errors import DuplicateTableError
from almacen.storage.identifiers import quote_identifier
from almacen.storage.schema import list_table_names, table_exists
from almacen.types import TableInfo
from almacen.utils import validate_name

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "webp")
# Files accepted when encoding an image for a BLOB column.
RECORD_IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "bmp", "webp")


def read_image_as_base64(path: Union[str, Path]) -> str:
    """Read an image file and return its contents as base64 text.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the extension is missing or not an image format.
    """
    file_path = Path(path).expanduser()
    extension = file_path.suffix.lstrip(".").lower()
    if not extension:
        raise ValueError("File has no extension")
    if extension not in RECORD_IMAGE_EXTENSIONS:
        raise ValueError(f"Unsupported image format: {extension}")
    if not file_path.is_file():
        raise FileNotFoundError(f"Image file does not exist: {path}")
    return base64.b64encode(file_path.read_bytes()).decode("ascii")


class TableCatalog:
    """List, create and delete tables, and manage their images.

    Args:
        connect_fn: Zero-argument callable returning a connection context
            manager for the database.
        images_dir: Image directory for this database.
    """

    def __init__(self, connect_fn: Callable, images_dir: Path):
        self._connect = connect_fn
        self.images_dir = Path(images_dir)

    def _image_candidates(self, table: str) -> List[Path]:
        validate_name(table, "table_name")
        return [self.images_dir / f"{table}.{ext}" for ext in IMAGE_EXTENSIONS]

    def image_path(self, table: str) -> Optional[Path]:
        for path in self._image_candidates(table):
            if path.exists():
                return path.resolve()
        return None

    def list_tables(self) -> List[TableInfo]:
        with self._connect() as conn:
            names = list_table_names(conn)

        tables = []
        for name in names:
            # Table names that cannot be file names simply have no image.
            try:
                image = self.image_path(name)
            except ValueError:
                image = None
            tables.append(TableInfo(name=name, image_path=str(image) if image else None))
        return tables

    def create_table(self, table: str) -> None:
        """Create ``table`` with a single ``id TEXT PRIMARY KEY`` column.

        Raises:
            DuplicateTableError: If the table already exists.
        """
        if not isinstance(table, str) or not table.strip():
            raise ValueError("table_name cannot be empty")
        with self._connect() as conn:
            if table_exists(conn, table):
                raise DuplicateTableError(table, "Please use another name.")
            conn.execute(f"CREATE TABLE {quote_identifier(table)} (id TEXT PRIMARY KEY)")
        logger.info(f"Created table {table}")

    def delete_table(self, table: str) -> None:
        """Drop ``table`` if it exists and remove its image."""
        with self._connect() as conn:
            conn.execute(f"DROP TABLE IF EXISTS {quote_identifier(table)}")
        logger.info(f"Dropped table {table}")

        try:
            candidates = self._image_candidates(table)
        except ValueError:
            return
        for path in candidates:
            if path.exists():
                try:
                    path.unlink()
                except OSError as e:
                    logger.warning(f"Could not remove image {path}: {e}")

    def set_image(self, table: str, source: Union[str, Path]) -> Path:
        """Copy ``source`` in as the table's image, replacing any previous one.

        Returns:
            Absolute path of the stored image.

        Raises:
            FileNotFoundError: If ``source`` does not exist.
            ValueError: If the source extension is not a supported image.
        """
        source_path = Path(source).expanduser()
        extension = source_path.suffix.lstrip(".").lower()
        if extension not in IMAGE_EXTENSIONS:
            raise ValueError(
                f"Unsupported image format: {extension or '(none)'} "
                f"(expected one of: {', '.join(IMAGE_EXTENSIONS)})"
            )
        if not source_path.is_file():
            raise FileNotFoundError(f"Image file does not exist: {source}")

        candidates = self._image_candidates(table)
        self.images_dir.mkdir(parents=True, exist_ok=True)
        for old in candidates:
            if old.exists():
                old.unlink()

        target = self.images_dir / f"{table}.{extension}"
        shutil.copyfile(source_path, target)
        logger.info(f"Stored image for table {table}: {target}")
        return target.resolve()

    def delete_image(self, table: str) -> None:
        """Remove every stored image for ``table``.

        Raises:
            FileNotFoundError: If the table has no image.
        """
        deleted = False
        for path in self._image_candidates(table):
            if path.exists():
                path.unlink()
                deleted = True
        if not deleted:
            raise FileNotFoundError(f"No image found for table '{table}'")
        logger.info(f"Deleted image for table {table}")
