"""
Identifier casting.

Path identifiers arrive as strings. They are cast to the primary key's type
so that a malformed identifier produces a miss rather than a database error.
"""

import re
import uuid
from typing import Any

from sqlalchemy import Column

# Integer keys fall back to this when the identifier is not numeric.
MISSING_INT_ID = -1

_INT_RE = re.compile(r"^-?\d{1,18}$")
_UUID_RE = re.compile(
    r"^(urn:uuid:)?\{?[0-9a-fA-F]{8}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{12}\}?$"
)


def column_python_type(column: Column) -> type | None:
    try:
        return column.type.python_type
    except NotImplementedError:
        return None


def cast_id(value: Any, column: Column | None = None) -> Any:
    """
    Cast a raw identifier for comparison against a primary key column.

    Args:
        value: Raw identifier (int, UUID or string)
        column: Primary key column; None casts as for an integer key

    Returns:
        The cast identifier. For UUID keys an unparseable identifier becomes
        None, which matches no row.
    """
    python_type = column_python_type(column) if column is not None else int

    if isinstance(value, bool):
        return MISSING_INT_ID if python_type is int else None
    if isinstance(value, uuid.UUID):
        return value if python_type is not int else MISSING_INT_ID
    if isinstance(value, int):
        return value if python_type is not uuid.UUID else None
    if not isinstance(value, str):
        return MISSING_INT_ID if python_type is int else None

    text = value.strip()

    if python_type is int:
        return int(text) if _INT_RE.match(text) else MISSING_INT_ID

    if python_type is uuid.UUID:
        return uuid.UUID(text) if _UUID_RE.match(text) else None

    # Opaque keys (slugs, UUID strings in text columns) stay strings.
    if python_type is str:
        return text
    return int(text) if _INT_RE.match(text) else text
