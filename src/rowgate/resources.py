"""
Resource declarations.

A ResourceSpec binds a name to a mapped model, a policy, and the triggers and
broadcast to run after mutations. Specs are immutable and shared by every
request for the resource.
"""

from collections.abc import Callable
from dataclasses import dataclass
from functools import cached_property
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel
from sqlalchemy import Column, inspect

from rowgate.triggers import Trigger

if TYPE_CHECKING:
    from rowgate.broadcast import Publisher
    from rowgate.policies.base import Policy


@dataclass(frozen=True)
class BroadcastConfig:
    """
    Pub/sub notification for a resource.

    Attributes:
        topic: record -> topic string. Receives the record after the change,
            or the deleted record for deletes.
        publisher: Publisher to use; falls back to the engine's publisher
    """

    topic: Callable[[Any], str]
    publisher: "Publisher | None" = None


@dataclass(frozen=True)
class ResourceSpec:
    """
    Declaration of one policy-protected resource.

    Attributes:
        model: SQLAlchemy mapped class backing the resource
        policy: Policy instance enforcing access
        name: Resource name (set by the registry when registered by key)
        pk: Primary key attribute name
        filterable: Optional allow-list of fields clients may filter on
        writable: Optional allow-list of fields clients may write
            (default: every column except the primary key)
        schema: Optional pydantic model validating written attributes
        on_create / on_update / on_delete: Triggers per mutation
        broadcast: Optional pub/sub notification
    """

    model: type
    policy: "Policy"
    name: str = ""
    pk: str = "id"
    filterable: frozenset[str] | None = None
    writable: frozenset[str] | None = None
    schema: type[BaseModel] | None = None
    on_create: tuple[Trigger, ...] = ()
    on_update: tuple[Trigger, ...] = ()
    on_delete: tuple[Trigger, ...] = ()
    broadcast: BroadcastConfig | None = None

    def __post_init__(self):
        # Accept lists/sets at declaration time; store immutable forms.
        for name in ("on_create", "on_update", "on_delete"):
            object.__setattr__(self, name, tuple(getattr(self, name) or ()))
        for name in ("filterable", "writable"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, frozenset(value))

    @cached_property
    def field_names(self) -> frozenset[str]:
        """Column attribute names declared by the model."""
        return frozenset(attr.key for attr in inspect(self.model).column_attrs)

    @cached_property
    def filterable_fields(self) -> frozenset[str]:
        if self.filterable is None:
            return self.field_names
        return self.field_names & self.filterable

    @cached_property
    def writable_fields(self) -> frozenset[str]:
        if self.writable is not None:
            return self.field_names & self.writable
        return self.field_names - {self.pk}

    @cached_property
    def pk_column(self) -> Column:
        return inspect(self.model).column_attrs[self.pk].columns[0]

    def validate(self) -> None:
        """Raise ValueError if the declaration is unusable."""
        if not self.name:
            raise ValueError("resource spec is missing a name")
        if self.model is None or inspect(self.model, raiseerr=False) is None:
            raise ValueError(f"resource {self.name!r}: model must be a mapped class")
        if self.policy is None:
            raise ValueError(f"resource {self.name!r}: policy is required")
        if self.pk not in self.field_names:
            raise ValueError(f"resource {self.name!r}: pk {self.pk!r} is not a column of {self.model.__name__}")


def named(spec: ResourceSpec, name: str) -> ResourceSpec:
    """Attach a registration name to a spec."""
    if spec.name and spec.name != name:
        raise ValueError(f"resource registered as {name!r} but declares name {spec.name!r}")
    if spec.name == name:
        return spec
    return ResourceSpec(
        model=spec.model,
        policy=spec.policy,
        name=name,
        pk=spec.pk,
        filterable=spec.filterable,
        writable=spec.writable,
        schema=spec.schema,
        on_create=spec.on_create,
        on_update=spec.on_update,
        on_delete=spec.on_delete,
        broadcast=spec.broadcast,
    )
