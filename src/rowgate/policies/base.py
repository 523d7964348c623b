"""
Policy contract.

A policy is a stateless strategy implementing five operations, one per
lifecycle phase. Resources select a policy instance by reference; the engine
depends only on the protocol below.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from sqlalchemy import false
from sqlalchemy.orm import Query

from rowgate.contracts.errors import Forbidden, Result

if TYPE_CHECKING:
    from rowgate.resources import ResourceSpec


@dataclass(frozen=True)
class UpdateScope:
    """What ``for_update`` grants: where to find the row, and what to write."""

    query: Query
    attrs: Mapping[str, Any]


@runtime_checkable
class Policy(Protocol):
    def for_list(self, query: Query, actor: Any, params: Mapping[str, Any], spec: "ResourceSpec") -> Query:
        """Restrict query to the rows actor may see."""
        ...

    def for_get(
        self, query: Query, actor: Any, id: Any, params: Mapping[str, Any], spec: "ResourceSpec"
    ) -> Query:
        """Same as for_list; the engine applies the identifier filter itself."""
        ...

    def for_create(
        self, model: type, actor: Any, attrs: Mapping[str, Any], params: Mapping[str, Any], spec: "ResourceSpec"
    ) -> Result:
        """Return Result(value=attrs') or Result(error=Forbidden)."""
        ...

    def for_update(
        self,
        query: Query,
        actor: Any,
        id: Any,
        attrs: Mapping[str, Any],
        params: Mapping[str, Any],
        spec: "ResourceSpec",
    ) -> Result:
        """Return Result(value=UpdateScope) or Result(error=Forbidden)."""
        ...

    def for_delete(
        self, query: Query, actor: Any, id: Any, params: Mapping[str, Any], spec: "ResourceSpec"
    ) -> Result:
        """Return Result(value=query') or Result(error=Forbidden)."""
        ...


class DenyAllPolicy:
    """
    Deny-by-default policy.

    Reads see no rows; writes are refused before storage is touched.
    """

    def for_list(self, query, actor, params, spec):
        return query.filter(false())

    def for_get(self, query, actor, id, params, spec):
        return query.filter(false())

    def for_create(self, model, actor, attrs, params, spec):
        return Result.failure(Forbidden())

    def for_update(self, query, actor, id, attrs, params, spec):
        return Result.failure(Forbidden())

    def for_delete(self, query, actor, id, params, spec):
        return Result.failure(Forbidden())
