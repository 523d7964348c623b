"""Query compilation - filters, ordering, pagination and identifier casting."""

from rowgate.query.compiler import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    CompiledParams,
    QueryCompiler,
    apply_pk_filter,
    filter_params,
)
from rowgate.query.filters import FilterExpression, FilterOp, cast_value, parse_filters
from rowgate.query.identifiers import MISSING_INT_ID, cast_id
from rowgate.query.ordering import Direction, OrderClause, parse_order
from rowgate.query.pagination import Page, resolve_page

__all__ = [
    "DEFAULT_LIMIT",
    "MAX_LIMIT",
    "CompiledParams",
    "QueryCompiler",
    "apply_pk_filter",
    "filter_params",
    "FilterExpression",
    "FilterOp",
    "cast_value",
    "parse_filters",
    "MISSING_INT_ID",
    "cast_id",
    "Direction",
    "OrderClause",
    "parse_order",
    "Page",
    "resolve_page",
]
