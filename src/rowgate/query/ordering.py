"""
Ordering from an ``order=field.dir,other.dir`` parameter.

A malformed order string is ignored as a whole: the query runs unordered.
"""

from collections.abc import Collection
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy.orm import Query


class Direction(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class OrderClause:
    field: str
    direction: Direction = Direction.ASC


def parse_order(raw: Any, allowed_fields: Collection[str]) -> list[OrderClause] | None:
    """
    Parse an order string.

    Direction defaults to ascending when missing or not literally asc/desc.

    Returns:
        Clauses in priority order, or None when the string is unusable
        (not a string, or names a field the model does not declare)
    """
    if not isinstance(raw, str):
        return None

    clauses = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        field_name, _, direction = part.partition(".")
        field_name = field_name.strip()
        if field_name not in allowed_fields:
            return None
        clauses.append(
            OrderClause(
                field=field_name,
                direction=Direction.DESC if direction.strip() == "desc" else Direction.ASC,
            )
        )

    return clauses


def apply_order(query: Query, model: type, clauses: list[OrderClause]) -> Query:
    for clause in clauses:
        column = getattr(model, clause.field)
        query = query.order_by(column.desc() if clause.direction == Direction.DESC else column.asc())
    return query
