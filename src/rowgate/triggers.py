"""
Triggers - declarative post-mutation jobs.

A Trigger names a target action and optionally carries an argument producer
(static mapping or ``(before, after) -> mapping | None``) and a predicate
(``(before, after) -> bool``).

Before/after by operation:

- create: before is None, after is the created record
- update: before is a snapshot of the record (None when no declared trigger
  needs one), after is the updated record
- delete: before is the deleted record, after is None

Triggers without a predicate and with static (or no) args never look at
before/after, so an update declaring only those skips the snapshot entirely.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

ArgsProducer = Callable[[Any, Any], Mapping[str, Any] | None]
Predicate = Callable[[Any, Any], bool]


@dataclass(frozen=True)
class Trigger:
    """
    A job to dispatch after a successful mutation.

    Attributes:
        target: Action identifier the job queue dispatches on; a class or
            function is identified by its dotted import path
        args: None (empty args), a static mapping, or an args producer.
            A producer returning None vetoes the dispatch.
        when: Optional predicate; the trigger runs only when it returns True
        options: Dispatch options passed through to the queue untouched
    """

    target: Any
    args: Mapping[str, Any] | ArgsProducer | None = None
    when: Predicate | None = None
    options: Mapping[str, Any] = field(default_factory=dict)

    @property
    def target_name(self) -> str:
        if isinstance(self.target, str):
            return self.target
        module = getattr(self.target, "__module__", None)
        qualname = getattr(self.target, "__qualname__", None)
        if module and qualname:
            return f"{module}.{qualname}"
        return str(self.target)

    @property
    def has_computed_args(self) -> bool:
        return callable(self.args) and not isinstance(self.args, Mapping)

    @property
    def needs_snapshot(self) -> bool:
        return self.when is not None or self.has_computed_args


@dataclass(frozen=True)
class Dispatch:
    """An accepted trigger, ready for the job queue (args not yet normalized)."""

    target: str
    args: Mapping[str, Any]
    options: Mapping[str, Any]


def needs_snapshot(triggers: Iterable[Trigger] | None) -> bool:
    """True if any trigger reads before/after (a predicate or computed args)."""
    if not triggers:
        return False
    return any(trigger.needs_snapshot for trigger in triggers)


def should_run(trigger: Trigger, before: Any, after: Any) -> bool:
    if trigger.when is None:
        return True
    return bool(trigger.when(before, after))


def build_args(trigger: Trigger, before: Any, after: Any) -> Mapping[str, Any] | None:
    """
    Compute the trigger's arguments.

    Returns:
        {} for no producer, the mapping itself for static args, or the
        producer's result (None means do not dispatch)
    """
    if trigger.args is None:
        return {}
    if isinstance(trigger.args, Mapping):
        return trigger.args
    return trigger.args(before, after)


def evaluate(trigger: Trigger, before: Any, after: Any) -> Dispatch | None:
    """Decide run/skip for one trigger and compute its dispatch."""
    if not should_run(trigger, before, after):
        return None

    args = build_args(trigger, before, after)
    if args is None:
        return None

    return Dispatch(target=trigger.target_name, args=args, options=dict(trigger.options))
