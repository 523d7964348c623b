"""Caller identity passed through the pipeline untouched."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Actor:
    """
    Caller identity.

    The engine never reads it; only policies and trigger predicates do.
    Plain mappings with the same keys are accepted everywhere an Actor is.
    """

    role: str = "anonymous"
    id: Any = None
    claims: dict[str, Any] = field(default_factory=dict, compare=False)


def actor_attr(actor: Any, name: str, default: Any = None) -> Any:
    """Read an attribute from an Actor, any object, or a mapping."""
    if actor is None:
        return default
    if isinstance(actor, dict):
        return actor.get(name, default)
    return getattr(actor, name, default)


def system_actor() -> Actor:
    """Actor for backend operations that run outside any request."""
    return Actor(role="system")


def admin_actor(user_id: Any) -> Actor:
    return Actor(role="admin", id=user_id)


def user_actor(user_id: Any) -> Actor:
    return Actor(role="user", id=user_id)
