"""
SQLAlchemy storage collaborator.

Wraps a Session: builds queryables, executes them, and persists records.
Writes are flushed, never committed; the caller owns the transaction.
"""

import logging
import re
from collections.abc import Callable, Mapping
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from rowgate.contracts.errors import Result, ValidationFailed

logger = logging.getLogger(__name__)

_SQLITE_CONSTRAINT = re.compile(r"(UNIQUE|NOT NULL|CHECK) constraint failed: ([\w.]+)")
_PG_KEY_DETAIL = re.compile(r"Key \((\w+)\)")
_PG_NOT_NULL = re.compile(r'null value in column "(\w+)"')


def parse_constraint_error(exc: Exception) -> dict[str, list[str]]:
    """
    Turn a driver integrity error into field-level messages.

    Recognizes SQLite and PostgreSQL wording; anything else is reported under
    the "base" key.
    """
    orig = getattr(exc, "orig", None) or exc
    err = getattr(orig, "pgerror", None) or str(orig)
    detail = getattr(getattr(orig, "diag", None), "message_detail", None) or ""
    text = f"{err} {detail}".strip()

    match = _SQLITE_CONSTRAINT.search(text)
    if match:
        kind, target = match.groups()
        field_name = target.split(".")[-1]
        if kind == "UNIQUE":
            return {field_name: ["has already been taken"]}
        if kind == "NOT NULL":
            return {field_name: ["can't be blank"]}
        return {"base": [f"violates check constraint {target}"]}

    if "FOREIGN KEY constraint failed" in text:
        return {"base": ["does not exist"]}

    if "duplicate key" in text and "unique constraint" in text:
        key = _PG_KEY_DETAIL.search(text)
        return {key.group(1) if key else "base": ["has already been taken"]}

    if "foreign key constraint" in text:
        key = _PG_KEY_DETAIL.search(text)
        return {key.group(1) if key else "base": ["does not exist"]}

    not_null = _PG_NOT_NULL.search(text)
    if not_null:
        return {not_null.group(1): ["can't be blank"]}

    return {"base": ["violates a database constraint"]}


class SqlAlchemyStore:
    """
    Storage collaborator over a SQLAlchemy Session.

    Each write runs inside a savepoint, so a constraint violation undoes only
    that write and leaves the rest of the caller's transaction intact.
    Callbacks registered with ``after_commit`` run once the caller commits
    through ``commit()`` and are discarded by ``rollback()``.
    """

    def __init__(self, db: Session):
        self.db = db
        self._on_commit: list[Callable[[], Any]] = []

    def query(self, model: type) -> Query:
        """Start a queryable over every row of model."""
        return self.db.query(model)

    def all(self, query: Query) -> list[Any]:
        return query.all()

    def one(self, query: Query) -> Any | None:
        """First matching row, or None."""
        return query.first()

    def insert(self, record: Any) -> Result:
        return self._write(record, lambda: self.db.add(record))

    def update(self, record: Any, changes: Mapping[str, Any] | None = None) -> Result:
        """Apply changes to a loaded record and flush them."""

        def apply():
            for key, value in (changes or {}).items():
                setattr(record, key, value)

        return self._write(record, apply)

    def delete(self, record: Any) -> Result:
        return self._write(record, lambda: self.db.delete(record))

    def after_commit(self, callback: Callable[[], Any]) -> None:
        self._on_commit.append(callback)

    def commit(self) -> None:
        self.db.commit()
        callbacks, self._on_commit = self._on_commit, []
        for callback in callbacks:
            callback()

    def rollback(self) -> None:
        self._on_commit = []
        self.db.rollback()

    def _write(self, record: Any, stage: Callable[[], Any]) -> Result:
        """
        Stage a change and flush it inside a savepoint.

        A constraint violation rolls back to the savepoint and comes back as
        ValidationFailed; any other database error propagates.
        """
        try:
            with self.db.begin_nested():
                stage()
                self.db.flush()
        except IntegrityError as e:
            errors = parse_constraint_error(e)
            logger.info(
                f"Constraint violation on {type(record).__name__}",
                extra={"model": type(record).__name__, "errors": errors},
            )
            return Result.failure(ValidationFailed(errors=errors))
        return Result.success(record)
