"""
Tests for changesets and the SQLAlchemy store.
"""

from unittest.mock import MagicMock

import pytest
from pydantic import BaseModel, Field

from rowgate.changeset import BLANK_MESSAGE, CREATE, UPDATE, build_changeset, permitted_attrs, required_fields
from rowgate.contracts.errors import ErrorKind
from rowgate.persistence.store import parse_constraint_error
from rowgate.policies import PublicPolicy
from rowgate.resources import ResourceSpec
from sample_models import Person, Post


class PersonSchema(BaseModel):
    name: str = Field(min_length=2)
    age: int | None = Field(default=None, ge=0)


@pytest.fixture
def post_spec():
    return ResourceSpec(model=Post, policy=PublicPolicy(), name="posts")


@pytest.fixture
def person_spec():
    return ResourceSpec(model=Person, policy=PublicPolicy(), name="people", schema=PersonSchema)


class TestBuildChangeset:
    def test_required_fields(self):
        assert sorted(required_fields(Post)) == ["title", "user_id"]

    def test_missing_required_fields_on_create(self, post_spec):
        changeset = build_changeset(Post(), {"title": "hi"}, post_spec, CREATE)
        assert changeset.valid is False
        assert changeset.errors == {"user_id": [BLANK_MESSAGE]}

    def test_non_column_attributes_are_dropped(self, post_spec):
        changeset = build_changeset(Post(), {"id": 99, "title": "hi", "user_id": 1, "admin": True}, post_spec, CREATE)
        assert changeset.valid
        assert changeset.changes == {"title": "hi", "user_id": 1}

    def test_permitted_attrs_apply_writable_allow_list(self):
        spec = ResourceSpec(model=Post, policy=PublicPolicy(), name="posts", writable={"title"})
        assert permitted_attrs({"title": "y", "status": "published", "user_id": 3}, spec) == {"title": "y"}

    def test_permitted_attrs_default_excludes_primary_key(self, post_spec):
        assert permitted_attrs({"id": 99, "title": "hi", 1: "x"}, post_spec) == {"title": "hi"}

    def test_changeset_keeps_columns_outside_writable(self):
        """Keys a policy adds (an owner stamp) survive even when clients may not send them."""
        spec = ResourceSpec(model=Post, policy=PublicPolicy(), name="posts", writable={"title"})
        changeset = build_changeset(Post(), {"title": "y", "user_id": 7}, spec, CREATE)
        assert changeset.valid
        assert changeset.changes == {"title": "y", "user_id": 7}

    def test_update_only_checks_given_fields(self, post_spec):
        record = Post(user_id=1, title="hi")
        assert build_changeset(record, {"status": "published"}, post_spec, UPDATE).valid
        assert build_changeset(record, {"title": None}, post_spec, UPDATE).errors == {"title": [BLANK_MESSAGE]}

    def test_schema_errors_are_keyed_by_field(self, person_spec):
        changeset = build_changeset(Person(), {"name": "A", "age": -1}, person_spec, CREATE)
        assert set(changeset.errors) == {"name", "age"}

    def test_schema_casts_values(self, person_spec):
        changeset = build_changeset(Person(), {"name": "Ana", "age": "30"}, person_spec, CREATE)
        assert changeset.valid
        assert changeset.changes == {"name": "Ana", "age": 30}

    def test_apply(self, post_spec):
        record = Post()
        changeset = build_changeset(record, {"title": "hi", "user_id": 3}, post_spec, CREATE)
        assert changeset.apply() is record
        assert (record.title, record.user_id) == ("hi", 3)

    def test_apply_invalid_raises(self, post_spec):
        with pytest.raises(ValueError):
            build_changeset(Post(), {}, post_spec, CREATE).apply()


class TestParseConstraintError:
    def test_sqlite_unique(self):
        exc = MagicMock(orig=Exception("UNIQUE constraint failed: people.email"))
        assert parse_constraint_error(exc) == {"email": ["has already been taken"]}

    def test_sqlite_not_null(self):
        exc = MagicMock(orig=Exception("NOT NULL constraint failed: posts.title"))
        assert parse_constraint_error(exc) == {"title": ["can't be blank"]}

    def test_postgres_unique(self):
        exc = MagicMock(
            orig=Exception(
                'duplicate key value violates unique constraint "people_email_key"\n'
                "DETAIL:  Key (email)=(ana@example.com) already exists."
            )
        )
        assert parse_constraint_error(exc) == {"email": ["has already been taken"]}

    def test_unrecognized(self):
        assert parse_constraint_error(Exception("something odd")) == {"base": ["violates a database constraint"]}


class TestSqlAlchemyStore:
    def test_insert_flushes_without_commit(self, store, db):
        result = store.insert(Post(user_id=1, title="hi"))
        assert result.ok
        assert result.value.id is not None
        db.rollback()
        assert db.query(Post).count() == 0

    def test_unique_violation_becomes_validation_failed(self, store, people):
        result = store.insert(Person(name="Clone", email="ana@example.com"))
        assert not result.ok
        assert result.error.kind == ErrorKind.VALIDATION_FAILED
        assert result.error.errors == {"email": ["has already been taken"]}

    def test_one_returns_none_on_miss(self, store):
        assert store.one(store.query(Post).filter(Post.id == 1)) is None

    def test_delete(self, store, db, people):
        assert store.delete(people[0]).ok
        assert db.query(Person).count() == 4

    def test_constraint_violation_keeps_earlier_writes(self, store, db):
        assert store.insert(Person(name="Ana", email="dup@example.com")).ok
        result = store.insert(Person(name="Clone", email="dup@example.com"))
        assert result.error.kind == ErrorKind.VALIDATION_FAILED

        store.commit()
        assert [p.name for p in db.query(Person).all()] == ["Ana"]

    def test_failed_update_is_undone(self, store, people):
        result = store.update(people[1], {"email": "ana@example.com"})

        assert result.error.errors == {"email": ["has already been taken"]}
        assert people[1].email == "bruno@example.com"

    def test_update_applies_changes(self, store, db, people):
        assert store.update(people[1], {"age": 18}).ok
        store.commit()
        assert db.get(Person, people[1].id).age == 18


class TestAfterCommit:
    def test_runs_only_on_commit(self, store):
        calls = []
        store.after_commit(lambda: calls.append("first"))
        assert calls == []

        store.commit()
        assert calls == ["first"]

        store.commit()
        assert calls == ["first"]

    def test_rollback_discards_callbacks(self, store):
        calls = []
        store.after_commit(lambda: calls.append("dropped"))

        store.rollback()
        store.commit()
        assert calls == []
