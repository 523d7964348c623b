"""
Transport normalization.

Turns records and argument sets into JSON-safe values: the form job args are
enqueued in and the form adaptors serialize responses in.
"""

import dataclasses
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import inspect
from sqlalchemy.orm import ColumnProperty, RelationshipProperty
from sqlalchemy.orm.state import InstanceState


def _instance_state(value: Any) -> InstanceState | None:
    state = inspect(value, raiseerr=False)
    return state if isinstance(state, InstanceState) else None


def record_to_dict(record: Any, _seen: frozenset[int] = frozenset()) -> dict[str, Any]:
    """
    Flatten a mapped instance into a plain dict.

    Only loaded attributes are included: unloaded relationships are dropped
    rather than triggering a lazy load. Relationships already being rendered
    higher up the tree are dropped too, so back-references terminate.
    """
    state = inspect(record)
    loaded = state.dict
    seen = _seen | {id(record)}
    out: dict[str, Any] = {}

    for prop in state.mapper.iterate_properties:
        if prop.key not in loaded:
            continue
        value = loaded[prop.key]

        if isinstance(prop, ColumnProperty):
            out[prop.key] = to_jsonable(value, seen)
        elif isinstance(prop, RelationshipProperty):
            if value is None:
                out[prop.key] = None
            elif prop.uselist:
                out[prop.key] = [record_to_dict(v, seen) for v in value if id(v) not in seen]
            elif id(value) not in seen:
                out[prop.key] = record_to_dict(value, seen)

    return out


def to_jsonable(value: Any, _seen: frozenset[int] = frozenset()) -> Any:
    """
    Normalize a value to transport-safe scalars.

    - datetime/date/time -> ISO-8601 string
    - Decimal -> decimal string (precision preserved)
    - UUID -> string, Enum -> its value
    - mapped instances -> dict of loaded columns/relationships
    - dataclasses and mappings -> dict, tuples/lists/sets -> list
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        if isinstance(value, Enum):
            return to_jsonable(value.value, _seen)
        return value

    if isinstance(value, (datetime, date, time)):
        return value.isoformat()

    if isinstance(value, Decimal):
        return str(value)

    if isinstance(value, UUID):
        return str(value)

    if isinstance(value, Enum):
        return to_jsonable(value.value, _seen)

    if _instance_state(value) is not None:
        return record_to_dict(value, _seen)

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name), _seen) for f in dataclasses.fields(value)}

    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v, _seen) for k, v in value.items()}

    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v, _seen) for v in value]

    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")

    return value
