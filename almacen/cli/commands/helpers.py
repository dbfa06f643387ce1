"""Shared helper functions for CLI commands."""

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional


def validate_input(value: str, field_name: str, max_length: int = 1000) -> str:
    """Validate and sanitize CLI inputs."""
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")

    if len(value) > max_length:
        raise ValueError(f"{field_name} too long (max {max_length} characters)")

    # Remove null bytes and control characters except newlines
    sanitized = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", value)

    return sanitized


def print_json(data: Any) -> None:
    """Print data as formatted JSON."""
    print(json.dumps(data, indent=2, default=str, ensure_ascii=False))


def parse_json_object(value: Optional[str], field_name: str) -> Dict[str, Any]:
    """Parse a JSON object given inline or as ``@path/to/file.json``."""
    if not value:
        return {}
    text = value
    if value.startswith("@"):
        text = Path(value[1:]).expanduser().read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"{field_name} is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise ValueError(f"{field_name} must be a JSON object")
    return data


def parse_assignments(items: Optional[List[str]], field_name: str) -> Dict[str, str]:
    """Parse repeated ``column=value`` arguments into a dict."""
    result: Dict[str, str] = {}
    for item in items or []:
        column, sep, value = item.partition("=")
        if not sep or not column:
            raise ValueError(f"{field_name} must look like COLUMN=VALUE, got '{item}'")
        result[validate_input(column, field_name, 200)] = validate_input(value, field_name)
    return result
