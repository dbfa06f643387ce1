"""Settings for almacen.

Resolution order (later wins):
1. Built-in defaults
2. ``<home>/config.json``
3. Environment variables (``ALMACEN_DATA_DIR``, ``ALMACEN_ON_MISSING_FIELD``,
   ``ALMACEN_IDENTIFIER_STRATEGY``, ``ALMACEN_LOG_LEVEL``)
"""

import json
import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from almacen.types import IdentifierStrategy, MissingFieldPolicy
from almacen.utils import get_almacen_home

logger = logging.getLogger(__name__)

DEFAULT_PROTECTED_COLUMNS: Tuple[str, ...] = ("ID", "Zona", "Campus")
DEFAULT_ORDERING_COLUMN = "No."
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class AlmacenSettings:
    """Resolved configuration.

    Attributes:
        data_dir: Directory holding the ``.db``/``.sqlite`` files.
        on_missing_field: What Create stores in text-like columns that the
            payload omits.
        protected_columns: Column names that add/drop refuse to touch
            (compared case-insensitively).
        ordering_column: Column used to order listed rows numerically when
            present in a table.
        null_default_columns: Columns that Create always defaults to NULL.
        identifier_strategy: Allocation strategy for managed identifiers.
        log_level: Level for ``setup_almacen_logging``.
    """

    data_dir: Path
    on_missing_field: MissingFieldPolicy = MissingFieldPolicy.EMPTY_STRING
    protected_columns: Tuple[str, ...] = DEFAULT_PROTECTED_COLUMNS
    ordering_column: str = DEFAULT_ORDERING_COLUMN
    null_default_columns: Tuple[str, ...] = field(default_factory=tuple)
    identifier_strategy: IdentifierStrategy = IdentifierStrategy.FILL_GAPS
    log_level: str = "INFO"

    @property
    def images_dir(self) -> Path:
        return self.data_dir / "images"

    def is_protected(self, column: str) -> bool:
        lowered = column.lower()
        return any(p.lower() == lowered for p in self.protected_columns)


def _parse_enum(enum_cls, value: Any, field_name: str):
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string, got {type(value).__name__}")
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        valid = ", ".join(v.value for v in enum_cls)
        raise ValueError(f"{field_name} must be one of: {valid} (got '{value}')")


def _parse_names(value: Any, field_name: str) -> Tuple[str, ...]:
    if isinstance(value, str):
        return tuple(s.strip() for s in value.split(",") if s.strip())
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise ValueError(f"{field_name} must be a list of strings")


def _parse_log_level(value: Any) -> str:
    level = str(value).strip().upper()
    if level not in VALID_LOG_LEVELS:
        raise ValueError(f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}")
    return level


def _read_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ValueError(f"Invalid config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Invalid config file {path}: expected a JSON object")
    return data


def _apply(settings: AlmacenSettings, values: Dict[str, Any]) -> AlmacenSettings:
    changes: Dict[str, Any] = {}
    if values.get("data_dir"):
        changes["data_dir"] = Path(str(values["data_dir"])).expanduser()
    if values.get("on_missing_field") is not None:
        changes["on_missing_field"] = _parse_enum(
            MissingFieldPolicy, values["on_missing_field"], "on_missing_field"
        )
    if values.get("protected_columns") is not None:
        changes["protected_columns"] = _parse_names(
            values["protected_columns"], "protected_columns"
        )
    if values.get("ordering_column"):
        changes["ordering_column"] = str(values["ordering_column"])
    if values.get("null_default_columns") is not None:
        changes["null_default_columns"] = _parse_names(
            values["null_default_columns"], "null_default_columns"
        )
    if values.get("identifier_strategy") is not None:
        changes["identifier_strategy"] = _parse_enum(
            IdentifierStrategy, values["identifier_strategy"], "identifier_strategy"
        )
    if values.get("log_level") is not None:
        changes["log_level"] = _parse_log_level(values["log_level"])
    return replace(settings, **changes) if changes else settings


def load_settings(
    home: Optional[Path] = None, overrides: Optional[Dict[str, Any]] = None
) -> AlmacenSettings:
    """Load settings from defaults, ``config.json`` and the environment.

    Args:
        home: Almacen home directory (default: :func:`get_almacen_home`).
        overrides: Explicit values applied last (e.g. from CLI flags).

    Raises:
        ValueError: If any configured value is invalid.
    """
    home = home or get_almacen_home()
    settings = AlmacenSettings(data_dir=home / "databases")

    settings = _apply(settings, _read_config_file(home / "config.json"))

    env_values = {
        "data_dir": os.environ.get("ALMACEN_DATA_DIR"),
        "on_missing_field": os.environ.get("ALMACEN_ON_MISSING_FIELD"),
        "identifier_strategy": os.environ.get("ALMACEN_IDENTIFIER_STRATEGY"),
        "log_level": os.environ.get("ALMACEN_LOG_LEVEL"),
    }
    settings = _apply(settings, {k: v for k, v in env_values.items() if v})

    if overrides:
        settings = _apply(settings, overrides)

    logger.debug(
        f"Loaded settings: data_dir={settings.data_dir} "
        f"on_missing_field={settings.on_missing_field.value} "
        f"strategy={settings.identifier_strategy.value}"
    )
    return settings
