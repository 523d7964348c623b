"""
Field filters.

Parses untrusted ``field -> "op:value"`` parameters into FilterExpressions
and applies them to a queryable. Entries naming unknown or non-filterable
fields are dropped, never rejected.
"""

import logging
import re
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy.orm import Query

logger = logging.getLogger(__name__)


class FilterOp(str, Enum):
    """Comparison operators a filter can use."""

    EQ = "eq"
    LIKE = "like"
    ILIKE = "ilike"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    NE = "ne"
    IN = "in"
    NOT_IN = "not_in"
    IS_NULL = "is_null"

    def __str__(self) -> str:
        return self.value


# Value prefix -> operator. No prefix means EQ.
OPERATOR_PREFIXES: dict[str, FilterOp] = {
    "like": FilterOp.LIKE,
    "ilike": FilterOp.ILIKE,
    "gt": FilterOp.GT,
    "gte": FilterOp.GTE,
    "lt": FilterOp.LT,
    "lte": FilterOp.LTE,
    "ne": FilterOp.NE,
    "in": FilterOp.IN,
    "not_in": FilterOp.NOT_IN,
    "is_nil": FilterOp.IS_NULL,
}

# Capped at 18 digits: anything longer cannot be a 64-bit column value.
_INT_RE = re.compile(r"^-?\d{1,18}$")
_FLOAT_RE = re.compile(r"^-?\d{1,18}\.\d{1,18}$")

_FALSE_VALUES = frozenset({"false", "0", "no"})


@dataclass(frozen=True)
class FilterExpression:
    """One parsed (field, operator, value) condition."""

    field: str
    op: FilterOp
    value: Any


def cast_value(raw: Any) -> Any:
    """
    Best-effort scalar cast for a filter value.

    Integer-looking strings become int, decimal-looking strings become float,
    everything else is returned unchanged.
    """
    if not isinstance(raw, str):
        return raw
    text = raw.strip()
    if _INT_RE.match(text):
        return int(text)
    if _FLOAT_RE.match(text):
        return float(text)
    return raw


def split_operator(raw: str) -> tuple[FilterOp, str]:
    """Split an optional ``op:`` prefix from a raw value."""
    prefix, sep, rest = raw.partition(":")
    if sep and prefix in OPERATOR_PREFIXES:
        return OPERATOR_PREFIXES[prefix], rest
    return FilterOp.EQ, raw


def parse_value(raw: Any) -> tuple[FilterOp, Any]:
    """Parse one raw value into an operator and a cast value."""
    if not isinstance(raw, str):
        return FilterOp.EQ, raw

    op, rest = split_operator(raw)

    if op in (FilterOp.IN, FilterOp.NOT_IN):
        items = [item.strip() for item in rest.split(",")]
        return op, [cast_value(item) for item in items if item]
    if op == FilterOp.IS_NULL:
        return op, rest.strip().lower() not in _FALSE_VALUES
    if op in (FilterOp.LIKE, FilterOp.ILIKE):
        return op, rest
    return op, cast_value(rest)


def parse_filters(
    raw_filters: Mapping[str, Any],
    allowed_fields: Collection[str],
) -> list[FilterExpression]:
    """
    Parse a filter mapping into expressions.

    Args:
        raw_filters: field name -> raw value, or a list of raw values for
            repeated parameters (``age=gt:18&age=lt:65``)
        allowed_fields: Fields a filter may reference

    Returns:
        Accepted expressions, in input order
    """
    expressions = []
    for field_name, raw in raw_filters.items():
        if field_name not in allowed_fields:
            logger.debug(f"Dropping filter on unknown field {field_name!r}")
            continue

        values = raw if isinstance(raw, (list, tuple)) else [raw]
        for value in values:
            if value is None:
                continue
            op, parsed = parse_value(value)
            expressions.append(FilterExpression(field=field_name, op=op, value=parsed))

    return expressions


def to_clause(column: Any, expression: FilterExpression) -> Any:
    """Build the SQL condition for one expression."""
    op, value = expression.op, expression.value

    if op == FilterOp.EQ:
        return column == value
    if op == FilterOp.NE:
        return column != value
    if op == FilterOp.GT:
        return column > value
    if op == FilterOp.GTE:
        return column >= value
    if op == FilterOp.LT:
        return column < value
    if op == FilterOp.LTE:
        return column <= value
    if op == FilterOp.LIKE:
        return column.like(value)
    if op == FilterOp.ILIKE:
        return column.ilike(value)
    if op == FilterOp.IN:
        return column.in_(value)
    if op == FilterOp.NOT_IN:
        return column.not_in(value)
    if value:
        return column.is_(None)
    return column.is_not(None)


def apply_filters(query: Query, model: type, expressions: list[FilterExpression]) -> Query:
    """AND every expression onto the query."""
    if not expressions:
        return query
    clauses = [to_clause(getattr(model, e.field), e) for e in expressions]
    return query.filter(*clauses)
