"""
Query Compiler - untrusted request params to a bounded query.

Clauses are applied in a fixed order: identifier filter (when an ``id``
param accompanies the call), field filters, ordering, pagination. No clause
ever fails the request; an unusable clause is skipped.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy.orm import Query

from rowgate.query.filters import FilterExpression, apply_filters, parse_filters
from rowgate.query.identifiers import cast_id
from rowgate.query.ordering import OrderClause, apply_order, parse_order
from rowgate.query.pagination import Page, apply_page, resolve_page

if TYPE_CHECKING:
    from rowgate.resources import ResourceSpec

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 200

# Params with a meaning of their own; everything else is a field filter.
RESERVED_PARAMS = frozenset({"id", "order", "limit", "offset", "filter"})


@dataclass(frozen=True)
class CompiledParams:
    """Parsed form of one request's query params."""

    id: Any
    filters: list[FilterExpression]
    order: list[OrderClause]
    page: Page


def filter_params(params: Mapping[str, Any]) -> dict[str, Any]:
    """
    Collect the field-filter part of request params.

    Filters may be given as top-level params or nested under ``filter``;
    nested entries win on conflict.
    """
    raw = {k: v for k, v in params.items() if k not in RESERVED_PARAMS}
    nested = params.get("filter")
    if isinstance(nested, Mapping):
        raw.update(nested)
    return raw


def apply_pk_filter(query: Query, spec: "ResourceSpec", id_value: Any) -> Query:
    """Restrict the query to the row whose primary key equals the (already cast) id."""
    return query.filter(getattr(spec.model, spec.pk) == id_value)


class QueryCompiler:
    """Compiles request params onto a policy-scoped queryable."""

    def __init__(self, default_limit: int = DEFAULT_LIMIT, max_limit: int = MAX_LIMIT):
        self.default_limit = default_limit
        self.max_limit = max_limit

    def parse(self, params: Mapping[str, Any], spec: "ResourceSpec") -> CompiledParams:
        id_value = cast_id(params["id"], spec.pk_column) if params.get("id") is not None else None

        filters = parse_filters(filter_params(params), spec.filterable_fields)

        order = []
        if params.get("order") is not None:
            parsed = parse_order(params["order"], spec.field_names)
            if parsed is None:
                logger.debug(
                    f"Ignoring malformed order for {spec.name}",
                    extra={"resource": spec.name, "order": str(params["order"])},
                )
            else:
                order = parsed

        page = resolve_page(params, self.default_limit, self.max_limit)

        return CompiledParams(id=id_value, filters=filters, order=order, page=page)

    def compile(self, query: Query, params: Mapping[str, Any] | None, spec: "ResourceSpec") -> Query:
        """
        Apply id filter, field filters, ordering and pagination.

        Args:
            query: Policy-scoped queryable
            params: Raw request params (may be None)
            spec: Resource being queried

        Returns:
            Query bounded by the resolved page
        """
        parsed = self.parse(params or {}, spec)

        if parsed.id is not None:
            query = apply_pk_filter(query, spec, parsed.id)
        query = apply_filters(query, spec.model, parsed.filters)
        query = apply_order(query, spec.model, parsed.order)
        return apply_page(query, parsed.page)

    def compile_one(self, query: Query, id_value: Any, params: Mapping[str, Any] | None, spec: "ResourceSpec") -> Query:
        """
        Locate a single row: identifier filter plus any field filters.

        Ordering and pagination do not apply to a single-row lookup.
        """
        query = apply_pk_filter(query, spec, cast_id(id_value, spec.pk_column))
        return apply_filters(query, spec.model, parse_filters(filter_params(params or {}), spec.filterable_fields))
