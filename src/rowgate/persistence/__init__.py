"""
Storage collaborator.

The engine issues every read and write through a store; SqlAlchemyStore is
the Session-backed implementation.
"""

from rowgate.persistence.store import SqlAlchemyStore, parse_constraint_error

__all__ = [
    "SqlAlchemyStore",
    "parse_constraint_error",
]
