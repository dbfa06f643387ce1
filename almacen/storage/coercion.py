"""Value coercion between JSON payloads and SQLite storage.

Declared column types are engine-reported text, not a closed set. They are
classified once by :func:`classify` into a :class:`ColumnPolicy`; unknown
tags fall through to ``GENERIC``. Coercion then dispatches on
(policy, value kind).

BLOB columns accept base64 text and store the decoded bytes. Text that is
not valid base64 is stored as-is rather than rejected: a BLOB column reused
for plain strings should still accept writes.
"""

import base64
import binascii
import logging
import re
from typing import Any

from almacen.errors import UnsupportedValueError
from almacen.types import ColumnPolicy, ValueKind, value_kind

logger = logging.getLogger(__name__)

_DATA_URI_RE = re.compile(r"^data:[\w.+-]+/[\w.+-]+;base64,", re.IGNORECASE)
_BASE64_RE = re.compile(r"^[A-Za-z0-9+/]+={0,2}$")

# Magic-byte prefixes used when building data URIs for BLOB columns.
_IMAGE_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
)
DEFAULT_BLOB_MIME = "image/png"


def classify(declared_type: str) -> ColumnPolicy:
    """Map a declared type tag to its storage policy."""
    tag = (declared_type or "").strip().upper()
    if tag == "BLOB":
        return ColumnPolicy.BLOB
    if tag == "DATETIME":
        return ColumnPolicy.DATETIME
    return ColumnPolicy.GENERIC


def affinity(declared_type: str) -> str:
    """Return SQLite's column affinity for a declared type.

    Follows the engine's rules in order: INT → INTEGER; CHAR/CLOB/TEXT →
    TEXT; BLOB or no type → BLOB; REAL/FLOA/DOUB → REAL; else NUMERIC.
    """
    tag = (declared_type or "").upper()
    if "INT" in tag:
        return "INTEGER"
    if "CHAR" in tag or "CLOB" in tag or "TEXT" in tag:
        return "TEXT"
    if "BLOB" in tag or not tag.strip():
        return "BLOB"
    if "REAL" in tag or "FLOA" in tag or "DOUB" in tag:
        return "REAL"
    return "NUMERIC"


def is_text_like(declared_type: str) -> bool:
    """True for TEXT-affinity columns and untyped columns."""
    return affinity(declared_type) == "TEXT" or not (declared_type or "").strip()


def decode_base64(text: str):
    """Decode base64 text (optionally a data URI) to bytes, or None.

    Only strict, padded base64 is accepted so ordinary words are not
    mistaken for encoded data.
    """
    payload = _DATA_URI_RE.sub("", text.strip(), count=1)
    payload = "".join(payload.split())
    if not payload or len(payload) % 4 != 0 or not _BASE64_RE.match(payload):
        return None
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return None


def _reject(column: str, kind: ValueKind, policy: ColumnPolicy, value: Any):
    target = {
        ColumnPolicy.BLOB: "an image (BLOB)",
        ColumnPolicy.DATETIME: "a date (DATETIME)",
        ColumnPolicy.GENERIC: "this",
    }[policy]
    raise UnsupportedValueError(
        f"Cannot store a {kind.value} value in {target} column '{column}'",
        column=column,
        value=value,
    )


def coerce_value(
    value: Any,
    declared_type: str,
    *,
    column: str = "",
    as_identifier: bool = False,
) -> Any:
    """Convert a payload value into its storage representation.

    Args:
        value: The dynamically-typed input value.
        declared_type: The column's declared type tag.
        column: Column name, used in error messages.
        as_identifier: The column is a managed identifier; integers are
            stored as text.

    Returns:
        ``None``, ``int``, ``float``, ``str`` or ``bytes``.

    Raises:
        UnsupportedValueError: If the value cannot be mapped.
    """
    kind = value_kind(value)
    policy = classify(declared_type)

    if kind == ValueKind.NULL:
        return None
    if kind == ValueKind.UNSUPPORTED:
        raise UnsupportedValueError(
            f"Unsupported value for column '{column}': {type(value).__name__}",
            column=column,
            value=value,
        )

    if policy == ColumnPolicy.BLOB:
        if kind == ValueKind.BYTES:
            return bytes(value)
        if kind == ValueKind.TEXT:
            decoded = decode_base64(value)
            if decoded is None:
                logger.debug(f"Column '{column}' is BLOB but value is not base64; storing text")
                return value
            return decoded
        _reject(column, kind, policy, value)

    if policy == ColumnPolicy.DATETIME:
        if kind == ValueKind.TEXT:
            return value
        _reject(column, kind, policy, value)

    if kind == ValueKind.BOOL:
        return 1 if value else 0
    if kind == ValueKind.INT:
        return str(value) if as_identifier else value
    if kind == ValueKind.FLOAT:
        if as_identifier and float(value).is_integer():
            return str(int(value))
        return value
    if kind == ValueKind.BYTES:
        return bytes(value)
    return value


def to_key_param(value: Any, column: str = "") -> Any:
    """Validate a primary-key value used in a WHERE clause."""
    kind = value_kind(value)
    if kind in (ValueKind.TEXT, ValueKind.INT, ValueKind.FLOAT):
        return value
    raise UnsupportedValueError(
        f"Unsupported key value for column '{column}': {type(value).__name__}",
        column=column,
        value=value,
    )


def sniff_mime(data: bytes) -> str:
    for signature, mime in _IMAGE_SIGNATURES:
        if data.startswith(signature):
            return mime
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return DEFAULT_BLOB_MIME


def to_json_value(value: Any, declared_type: str = "", *, data_uri: bool = False) -> Any:
    """Convert a stored value into its JSON-safe representation.

    Bytes become base64 text; for BLOB-typed columns ``data_uri`` adds a
    ``data:<mime>;base64,`` prefix so the value can be displayed directly.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        encoded = base64.b64encode(raw).decode("ascii")
        if data_uri and classify(declared_type) == ColumnPolicy.BLOB:
            return f"data:{sniff_mime(raw)};base64,{encoded}"
        return encoded
    return value


def to_export_value(value: Any) -> Any:
    """Convert a stored value for the JSON export document (BLOBs → None)."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return None
    return value


def from_import_value(value: Any, column: str = "") -> Any:
    """Convert a JSON import value to a bindable parameter."""
    kind = value_kind(value)
    if kind == ValueKind.BOOL:
        return 1 if value else 0
    if kind in (ValueKind.NULL, ValueKind.INT, ValueKind.FLOAT, ValueKind.TEXT):
        return value
    raise UnsupportedValueError(
        f"Unsupported JSON type for import in column '{column}': {type(value).__name__}",
        column=column,
        value=value,
    )
