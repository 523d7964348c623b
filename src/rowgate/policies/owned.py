"""
Owner-scoped policy.

Rows belong to the actor whose id is stored in the owner column. Other
actors' rows are filtered out of every query, so a foreign row reads as
missing rather than forbidden.
"""

import logging
from typing import Any

from sqlalchemy import false

from rowgate.contracts.actor import actor_attr
from rowgate.contracts.errors import Forbidden, Result
from rowgate.policies.base import UpdateScope
from rowgate.query.compiler import apply_pk_filter
from rowgate.query.identifiers import cast_id

logger = logging.getLogger(__name__)


class OwnedByActor:
    """
    Scope every query to ``owner_field == actor.<actor_key>``.

    Create stamps the owner field with the actor's id, overriding any value
    the client sent. Actors without an id see nothing and may write nothing.
    """

    def __init__(self, owner_field: str = "user_id", actor_key: str = "id"):
        self.owner_field = owner_field
        self.actor_key = actor_key

    def _owner_id(self, actor: Any) -> Any:
        return actor_attr(actor, self.actor_key)

    def _scope(self, query, actor, spec):
        owner_id = self._owner_id(actor)
        if owner_id is None:
            return query.filter(false())
        return query.filter(getattr(spec.model, self.owner_field) == owner_id)

    def _scope_by_id(self, query, actor, id, spec):
        query = self._scope(query, actor, spec)
        if id is None:
            return query
        return apply_pk_filter(query, spec, cast_id(id, spec.pk_column))

    def for_list(self, query, actor, params, spec):
        return self._scope(query, actor, spec)

    def for_get(self, query, actor, id, params, spec):
        return self._scope(query, actor, spec)

    def for_create(self, model, actor, attrs, params, spec):
        owner_id = self._owner_id(actor)
        if owner_id is None:
            logger.info(f"Refusing anonymous create on {spec.name}", extra={"resource": spec.name})
            return Result.failure(Forbidden())
        return Result.success({**attrs, self.owner_field: owner_id})

    def for_update(self, query, actor, id, attrs, params, spec):
        if self._owner_id(actor) is None:
            return Result.failure(Forbidden())
        # Ownership cannot be transferred through an update.
        attrs = {k: v for k, v in attrs.items() if k != self.owner_field}
        return Result.success(UpdateScope(query=self._scope_by_id(query, actor, id, spec), attrs=attrs))

    def for_delete(self, query, actor, id, params, spec):
        if self._owner_id(actor) is None:
            return Result.failure(Forbidden())
        return Result.success(self._scope_by_id(query, actor, id, spec))
