"""
Changesets - attribute casting and validation before a write.

Client attributes are first cut down to the resource's writable columns
(``permitted_attrs``); the policy may then add its own. A changeset
keeps the model's non-key columns, runs them through the resource's pydantic
schema when one is declared, and checks required columns. It is applied to
the record only when valid.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping

from pydantic import ValidationError
from sqlalchemy import inspect

if TYPE_CHECKING:
    from rowgate.resources import ResourceSpec

logger = logging.getLogger(__name__)

CREATE = "create"
UPDATE = "update"

BLANK_MESSAGE = "can't be blank"


@dataclass
class Changeset:
    """Pending changes for one record."""

    record: Any
    action: str
    changes: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors

    def add_error(self, field_name: str, message: str) -> None:
        self.errors.setdefault(field_name, []).append(message)

    def apply(self) -> Any:
        """Write the changes onto the record and return it."""
        if not self.valid:
            raise ValueError("cannot apply an invalid changeset")
        for key, value in self.changes.items():
            setattr(self.record, key, value)
        return self.record


def required_fields(model: type) -> list[str]:
    """Columns that must be given a value on insert."""
    required = []
    for attr in inspect(model).column_attrs:
        column = attr.columns[0]
        if column.primary_key or column.nullable:
            continue
        if column.default is not None or column.server_default is not None:
            continue
        required.append(attr.key)
    return required


def current_values(record: Any) -> dict[str, Any]:
    return {attr.key: getattr(record, attr.key) for attr in inspect(record).mapper.column_attrs}


def permitted_attrs(attrs: Mapping[str, Any], spec: "ResourceSpec") -> dict[str, Any]:
    """Keep only the client attributes the resource lets clients write."""
    allowed = spec.writable_fields
    permitted = {k: v for k, v in attrs.items() if isinstance(k, str) and k in allowed}

    dropped = [k for k in attrs if k not in permitted]
    if dropped:
        logger.debug(
            f"Ignoring non-writable attributes for {spec.name}",
            extra={"resource": spec.name, "fields": [str(k) for k in dropped]},
        )
    return permitted


def build_changeset(
    record: Any,
    attrs: Mapping[str, Any],
    spec: "ResourceSpec",
    action: str,
) -> Changeset:
    """
    Cast and validate attributes for a record.

    Args:
        record: New (create) or loaded (update) instance of spec.model
        attrs: Attributes after the policy rewrote them (see ``permitted_attrs``)
        spec: Resource the record belongs to
        action: CREATE or UPDATE

    Returns:
        Changeset; check ``valid`` before applying
    """
    columns = spec.field_names - {spec.pk}
    changes = {k: v for k, v in attrs.items() if isinstance(k, str) and k in columns}
    changeset = Changeset(record=record, action=action, changes=changes)

    if spec.schema is not None:
        candidate = dict(changes) if action == CREATE else {**current_values(record), **changes}
        try:
            validated = spec.schema.model_validate(candidate)
        except ValidationError as exc:
            for error in exc.errors():
                loc = error.get("loc") or ()
                changeset.add_error(str(loc[0]) if loc else "base", error["msg"])
        else:
            data = validated.model_dump()
            changeset.changes = {k: data.get(k, v) for k, v in changes.items()}

    for field_name in required_fields(spec.model):
        if field_name in changeset.errors:
            continue
        if action == CREATE and changeset.changes.get(field_name) is None:
            changeset.add_error(field_name, BLANK_MESSAGE)
        elif action == UPDATE and field_name in changeset.changes and changeset.changes[field_name] is None:
            changeset.add_error(field_name, BLANK_MESSAGE)

    return changeset
