"""
rowgate - policy-gated CRUD over SQLAlchemy models.

Declare a resource (model + policy + triggers), register it, and run
list/get/create/update/delete through the Engine. Policies scope every
query, untrusted params compile to bounded queries, and triggers and
broadcasts fire once mutations commit.
"""

from rowgate.contracts import (
    Actor,
    ErrorKind,
    Forbidden,
    NotFound,
    Result,
    RowgateError,
    Unauthorized,
    ValidationFailed,
    admin_actor,
    system_actor,
    user_actor,
)
from rowgate.engine import Engine
from rowgate.policies import DenyAllPolicy, OwnedByActor, Policy, PublicPolicy, UpdateScope
from rowgate.registry import ResourceClient, ResourceRegistry
from rowgate.resources import BroadcastConfig, ResourceSpec
from rowgate.triggers import Trigger

__version__ = "0.1.0"

__all__ = [
    "Actor",
    "ErrorKind",
    "Forbidden",
    "NotFound",
    "Result",
    "RowgateError",
    "Unauthorized",
    "ValidationFailed",
    "admin_actor",
    "system_actor",
    "user_actor",
    "Engine",
    "Policy",
    "UpdateScope",
    "DenyAllPolicy",
    "OwnedByActor",
    "PublicPolicy",
    "ResourceClient",
    "ResourceRegistry",
    "BroadcastConfig",
    "ResourceSpec",
    "Trigger",
]
