"""Authorization policies."""

from rowgate.policies.base import DenyAllPolicy, Policy, UpdateScope
from rowgate.policies.owned import OwnedByActor
from rowgate.policies.public import PublicPolicy

__all__ = [
    "Policy",
    "UpdateScope",
    "DenyAllPolicy",
    "PublicPolicy",
    "OwnedByActor",
]
