"""Filesystem helpers for locating almacen's application data."""

import os
import sys
from pathlib import Path

APP_DIR_NAME = "Almacen-Unea"


def get_platform_data_dir() -> Path:
    """Return the per-user data directory for the current platform."""
    if sys.platform.startswith("win"):
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata)
        return Path.home() / "AppData" / "Roaming"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".local" / "share"


def get_almacen_home() -> Path:
    """Return the almacen home directory.

    ``ALMACEN_HOME`` overrides the platform default. The directory is not
    created here.
    """
    override = os.environ.get("ALMACEN_HOME", "").strip()
    if override:
        return Path(override).expanduser()
    return get_platform_data_dir() / APP_DIR_NAME


def validate_name(name: str, field_name: str = "name") -> str:
    """Reject names that could escape their directory when used in a path."""
    if not isinstance(name, str) or not name.strip():
        raise ValueError(f"{field_name} cannot be empty")
    if "/" in name or "\\" in name:
        raise ValueError(f"{field_name} must not contain path separators")
    if name.strip() in (".", ".."):
        raise ValueError(f"{field_name} must not be a relative path component")
    if "\x00" in name:
        raise ValueError(f"{field_name} must not contain null bytes")
    return name


def format_file_size(size_bytes: int) -> str:
    """Format a byte count for display (``512 B``, ``1.50 KB``, ``12.3 MB``)."""
    units = ["B", "KB", "MB", "GB", "TB"]
    size = float(size_bytes)
    unit_index = 0
    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    if unit_index == 0:
        precision = 0
    elif size < 10.0:
        precision = 2
    else:
        precision = 1
    return f"{size:.{precision}f} {units[unit_index]}"
