"""
Engine - policy-gated CRUD orchestration.

Every operation runs the same pipeline:

    authorize -> compile (reads) -> execute -> snapshot (mutations) -> dispatch

Expected failures come back as ``Result`` errors. The policy is consulted
before any storage mutation and snapshots are taken before the mutating call.
Triggers and broadcasts are evaluated after a successful write but delivered
only when the store commits; a rollback drops them. A failing trigger or
broadcast is logged and never changes the operation's result.
"""

import builtins
import logging
from collections.abc import Mapping
from typing import Any

from rowgate.broadcast import PendingBroadcast, Publisher, prepare_broadcast
from rowgate.changeset import CREATE, UPDATE, build_changeset, permitted_attrs
from rowgate.contracts.errors import NotFound, Result, ValidationFailed
from rowgate.contracts.events import ChangeEvent
from rowgate.jobs.dispatcher import JobDispatcher, LoggingJobDispatcher
from rowgate.query.compiler import QueryCompiler
from rowgate.resources import ResourceSpec
from rowgate.serialization import to_jsonable
from rowgate.settings import Settings, get_settings
from rowgate.snapshot import snapshot
from rowgate.triggers import Dispatch, Trigger, evaluate, needs_snapshot

logger = logging.getLogger(__name__)


class Engine:
    """
    Executes list/get/create/update/delete for registered resources.

    The engine holds no per-request state and may be shared freely. Storage
    is passed in per call; the job dispatcher and publisher are injected once.
    """

    def __init__(
        self,
        dispatcher: JobDispatcher | None = None,
        publisher: Publisher | None = None,
        settings: Settings | None = None,
        compiler: QueryCompiler | None = None,
    ):
        settings = settings or get_settings()
        self.dispatcher = dispatcher if dispatcher is not None else LoggingJobDispatcher()
        self.publisher = publisher
        self.compiler = compiler or QueryCompiler(
            default_limit=settings.default_limit,
            max_limit=settings.max_limit,
        )

    # Reads

    def list(self, store, spec: ResourceSpec, actor: Any, params: Mapping[str, Any] | None = None) -> Result:
        """Rows visible to actor, filtered, ordered and paginated. Never fails on no rows."""
        params = params or {}
        query = spec.policy.for_list(store.query(spec.model), actor, params, spec)
        query = self.compiler.compile(query, params, spec)
        return Result.success(store.all(query))

    def get(self, store, spec: ResourceSpec, actor: Any, id: Any, params: Mapping[str, Any] | None = None) -> Result:
        params = params or {}
        query = spec.policy.for_get(store.query(spec.model), actor, id, params, spec)
        record = store.one(self.compiler.compile_one(query, id, params, spec))
        if record is None:
            return Result.failure(NotFound())
        return Result.success(record)

    # Mutations

    def create(
        self,
        store,
        spec: ResourceSpec,
        actor: Any,
        attrs: Mapping[str, Any] | None,
        params: Mapping[str, Any] | None = None,
    ) -> Result:
        params = params or {}
        decision = spec.policy.for_create(spec.model, actor, permitted_attrs(attrs or {}, spec), params, spec)
        if not decision.ok:
            return decision

        changeset = build_changeset(spec.model(), decision.value, spec, CREATE)
        if not changeset.valid:
            return Result.failure(ValidationFailed(errors=changeset.errors))

        result = store.insert(changeset.apply())
        if not result.ok:
            return result

        created = result.value
        self._after_mutation(store, ChangeEvent.CREATED, spec, spec.on_create, None, created)
        return Result.success(created)

    def update(
        self,
        store,
        spec: ResourceSpec,
        actor: Any,
        id: Any,
        attrs: Mapping[str, Any] | None,
        params: Mapping[str, Any] | None = None,
    ) -> Result:
        params = params or {}
        # Decided up front so the snapshot can be taken before anything mutates.
        wants_before = needs_snapshot(spec.on_update) or spec.broadcast is not None

        decision = spec.policy.for_update(
            store.query(spec.model), actor, id, permitted_attrs(attrs or {}, spec), params, spec
        )
        if not decision.ok:
            return decision
        scope = decision.value

        record = store.one(self.compiler.compile_one(scope.query, id, None, spec))
        if record is None:
            return Result.failure(NotFound())

        before = snapshot(record) if wants_before else None

        changeset = build_changeset(record, scope.attrs, spec, UPDATE)
        if not changeset.valid:
            return Result.failure(ValidationFailed(errors=changeset.errors))

        result = store.update(record, changeset.changes)
        if not result.ok:
            return result

        updated = result.value
        self._after_mutation(store, ChangeEvent.UPDATED, spec, spec.on_update, before, updated)
        return Result.success(updated)

    def delete(self, store, spec: ResourceSpec, actor: Any, id: Any, params: Mapping[str, Any] | None = None) -> Result:
        """Delete a row. The result carries a detached copy of the deleted record."""
        params = params or {}
        decision = spec.policy.for_delete(store.query(spec.model), actor, id, params, spec)
        if not decision.ok:
            return decision

        record = store.one(self.compiler.compile_one(decision.value, id, None, spec))
        if record is None:
            return Result.failure(NotFound())

        before = snapshot(record)

        result = store.delete(record)
        if not result.ok:
            return result

        self._after_mutation(store, ChangeEvent.DELETED, spec, spec.on_delete, before, None)
        return Result.success(before)

    # Side effects

    def _after_mutation(
        self,
        store,
        event: ChangeEvent,
        spec: ResourceSpec,
        triggers: tuple[Trigger, ...],
        before: Any,
        after: Any,
    ) -> None:
        """
        Evaluate triggers and the broadcast now, deliver them once the store commits.

        Records are still loaded here; after a commit they are expired and the
        session may be gone.
        """
        dispatches = [d for d in (self._prepare_dispatch(spec, t, before, after) for t in triggers) if d is not None]
        broadcast = self._prepare_broadcast(event, spec, before, after) if spec.broadcast is not None else None

        if dispatches or broadcast is not None:
            store.after_commit(lambda: self._deliver(spec, dispatches, broadcast))

    def _prepare_dispatch(self, spec: ResourceSpec, trigger: Trigger, before: Any, after: Any) -> Dispatch | None:
        try:
            dispatch = evaluate(trigger, before, after)
            if dispatch is None:
                logger.debug(
                    f"Skipped trigger {trigger.target_name} for {spec.name}",
                    extra={"resource": spec.name, "target": trigger.target_name},
                )
                return None
            return Dispatch(target=dispatch.target, args=to_jsonable(dispatch.args), options=dispatch.options)
        except Exception as e:
            logger.error(
                f"Trigger {trigger.target_name} failed for {spec.name}: {e}",
                extra={"resource": spec.name, "target": trigger.target_name},
                exc_info=True,
            )
            return None

    def _prepare_broadcast(
        self, event: ChangeEvent, spec: ResourceSpec, before: Any, after: Any
    ) -> PendingBroadcast | None:
        record = after if after is not None else before
        try:
            return prepare_broadcast(
                event,
                spec.name,
                getattr(record, spec.pk, None),
                before,
                after,
                spec.broadcast,
                publisher=self.publisher,
            )
        except Exception as e:
            logger.error(
                f"Broadcast {event} failed for {spec.name}: {e}",
                extra={"resource": spec.name, "event": str(event)},
                exc_info=True,
            )
            return None

    def _deliver(self, spec: ResourceSpec, dispatches: builtins.list[Dispatch], broadcast: PendingBroadcast | None) -> None:
        for dispatch in dispatches:
            try:
                self.dispatcher.enqueue(dispatch.target, dispatch.args, dispatch.options)
                logger.debug(
                    f"Dispatched {dispatch.target} for {spec.name}",
                    extra={"resource": spec.name, "target": dispatch.target},
                )
            except Exception as e:
                logger.error(
                    f"Trigger {dispatch.target} failed for {spec.name}: {e}",
                    extra={"resource": spec.name, "target": dispatch.target},
                    exc_info=True,
                )

        if broadcast is None:
            return
        try:
            broadcast.send()
        except Exception as e:
            logger.error(
                f"Broadcast {broadcast.payload['event']} failed for {spec.name}: {e}",
                extra={"resource": spec.name, "event": broadcast.payload["event"]},
                exc_info=True,
            )
