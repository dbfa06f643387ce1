"""Shared sanitization utilities for the MCP layer.

These functions provide input validation and sanitization
for all MCP tools to ensure consistent security handling.
"""

import math
import re
from typing import Any, Dict, List, Optional

from almacen.utils import validate_name

MAX_NAME_LENGTH = 200
MAX_PATH_LENGTH = 4096
MAX_SQL_LENGTH = 100_000

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def sanitize_string(
    value: Any, field_name: str, max_length: int = 1000, required: bool = True
) -> str:
    """Sanitize and validate string inputs.

    Args:
        value: The value to sanitize.
        field_name: Name of the field for error messages.
        max_length: Maximum allowed string length.
        required: If True, empty strings are rejected.

    Returns:
        Sanitized string.

    Raises:
        ValueError: If validation fails.
    """
    if value is None and not required:
        return ""

    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string, got {type(value).__name__}")

    if required and not value.strip():
        raise ValueError(f"{field_name} cannot be empty")

    if len(value) > max_length:
        raise ValueError(f"{field_name} too long (max {max_length} characters, got {len(value)})")

    # Remove null bytes and control characters except newlines and tabs
    return re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", value)


def sanitize_db_name(value: Any) -> str:
    """A database base name: non-empty, no path components."""
    name = sanitize_string(value, "db_name", MAX_NAME_LENGTH)
    return validate_name(name, "db_name")


def sanitize_identifier(value: Any, field_name: str) -> str:
    """A table or column name. Quoting happens later.

    Control characters are rejected rather than stripped, so the name that
    reaches the database is the name the caller sent.
    """
    if isinstance(value, str) and _CONTROL_CHARS.search(value):
        raise ValueError(f"{field_name} must not contain control characters")
    return sanitize_string(value, field_name, MAX_NAME_LENGTH)


def sanitize_key_value(value: Any, field_name: str = "key_value") -> Any:
    if isinstance(value, bool) or value is None:
        raise ValueError(f"{field_name} must be a string or number")
    if isinstance(value, str):
        return sanitize_string(value, field_name, MAX_NAME_LENGTH, required=False)
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        raise ValueError(f"{field_name} must be a finite number, got {value}")
    if isinstance(value, (int, float)):
        return value
    raise ValueError(f"{field_name} must be a string or number, got {type(value).__name__}")


def sanitize_object(value: Any, field_name: str, required: bool = True) -> Dict[str, Any]:
    """A JSON object whose keys are column names."""
    if value is None and not required:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be an object, got {type(value).__name__}")
    for key in value:
        if not isinstance(key, str) or not key:
            raise ValueError(f"{field_name} keys must be non-empty strings")
    return dict(value)


def sanitize_string_list(value: Any, field_name: str, max_items: int = 1000) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{field_name} must be an array, got {type(value).__name__}")
    if len(value) > max_items:
        raise ValueError(f"{field_name} too many items (max {max_items}, got {len(value)})")
    for i, item in enumerate(value):
        if not isinstance(item, str):
            raise ValueError(f"{field_name}[{i}] must be a string, got {type(item).__name__}")
    return list(value)


def sanitize_bool(value: Any, field_name: str, default: bool = False) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"{field_name} must be a boolean, got {type(value).__name__}")
    return value


def validate_enum(
    value: Any,
    field_name: str,
    valid_values: List[str],
    default: Optional[str] = None,
) -> str:
    """Validate enum values (case-insensitive).

    Raises:
        ValueError: If validation fails
    """
    if value is None:
        if default is not None:
            return default
        raise ValueError(f"{field_name} is required")

    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")

    lowered = value.strip().lower()
    if lowered not in valid_values:
        raise ValueError(f"{field_name} must be one of {valid_values}, got '{value}'")

    return lowered
