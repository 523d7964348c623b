"""Contracts - actors, error taxonomy, change events and job envelopes."""

from rowgate.contracts.actor import Actor, actor_attr, admin_actor, system_actor, user_actor
from rowgate.contracts.errors import (
    ErrorKind,
    Forbidden,
    NotFound,
    OperationError,
    Result,
    RowgateError,
    Unauthorized,
    ValidationFailed,
)
from rowgate.contracts.events import ChangeEvent, ChangeNotice, JobEnvelope

__all__ = [
    "Actor",
    "actor_attr",
    "admin_actor",
    "system_actor",
    "user_actor",
    "ErrorKind",
    "Forbidden",
    "NotFound",
    "OperationError",
    "Result",
    "RowgateError",
    "Unauthorized",
    "ValidationFailed",
    "ChangeEvent",
    "ChangeNotice",
    "JobEnvelope",
]
