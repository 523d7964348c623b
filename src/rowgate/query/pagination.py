"""Limit/offset resolution."""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Query

_INT_RE = re.compile(r"^\s*-?\d{1,18}\s*$")


@dataclass(frozen=True)
class Page:
    limit: int
    offset: int


def parse_int(value: Any) -> int | None:
    """Parse an int from an int or a numeric string; None when it is neither."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _INT_RE.match(value):
        return int(value)
    return None


def resolve_page(params: Mapping[str, Any], default_limit: int, max_limit: int) -> Page:
    """
    Resolve limit/offset from request params.

    Limit is clamped to [0, max_limit] and offset to [0, inf). Missing or
    non-numeric values fall back to the defaults.
    """
    limit = parse_int(params.get("limit"))
    if limit is None:
        limit = default_limit
    offset = parse_int(params.get("offset"))
    if offset is None:
        offset = 0

    return Page(limit=min(max(limit, 0), max_limit), offset=max(offset, 0))


def apply_page(query: Query, page: Page) -> Query:
    return query.limit(page.limit).offset(page.offset)
