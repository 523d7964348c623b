"""
Record snapshots.

A snapshot is a transient, session-free instance of the record's mapped class
holding deep copies of the record's loaded column values. Triggers diff the
snapshot ("before") against the persisted record ("after").
"""

import copy
from typing import Any

from sqlalchemy import inspect
from sqlalchemy.orm.attributes import set_committed_value


def snapshot(record: Any) -> Any:
    """
    Capture an independent copy of a mapped record.

    Relationships are not copied; only column attributes that are loaded on
    the record appear on the snapshot.

    Args:
        record: Mapped instance (persistent, pending or detached)

    Returns:
        Transient instance of the same class, or None if record is None
    """
    if record is None:
        return None

    state = inspect(record)
    if state.expired_attributes and state.session is not None:
        # Expired by a commit; reload so the copy is complete.
        state.session.refresh(record)

    mapper = state.mapper
    loaded = state.dict

    clone = mapper.class_manager.new_instance()
    for attr in mapper.column_attrs:
        if attr.key in loaded:
            set_committed_value(clone, attr.key, copy.deepcopy(loaded[attr.key]))

    return clone
