from rowgate.contracts.errors import Result
from rowgate.policies.base import UpdateScope


class PublicPolicy:
    """No restriction: every actor sees and writes every row."""

    def for_list(self, query, actor, params, spec):
        return query

    def for_get(self, query, actor, id, params, spec):
        return query

    def for_create(self, model, actor, attrs, params, spec):
        return Result.success(dict(attrs))

    def for_update(self, query, actor, id, attrs, params, spec):
        return Result.success(UpdateScope(query=query, attrs=dict(attrs)))

    def for_delete(self, query, actor, id, params, spec):
        return Result.success(query)
