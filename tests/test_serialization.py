"""
Tests for transport normalization and snapshots.
"""

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from rowgate.contracts.events import ChangeEvent
from rowgate.serialization import to_jsonable
from rowgate.snapshot import snapshot
from sample_models import Comment, Person, Post


@dataclass
class Point:
    x: int
    y: int


class TestToJsonable:
    def test_scalars(self):
        doc_id = uuid.UUID("12345678-1234-5678-1234-567812345678")
        value = {
            "when": datetime(2024, 1, 2, 3, 4, 5),
            "day": date(2024, 1, 2),
            "amount": Decimal("10.50"),
            "id": doc_id,
            "event": ChangeEvent.CREATED,
            "tags": ("a", "b"),
            "point": Point(1, 2),
        }
        assert to_jsonable(value) == {
            "when": "2024-01-02T03:04:05",
            "day": "2024-01-02",
            "amount": "10.50",
            "id": "12345678-1234-5678-1234-567812345678",
            "event": "created",
            "tags": ["a", "b"],
            "point": {"x": 1, "y": 2},
        }

    def test_record_is_flattened(self, db):
        person = Person(name="Ana", age=30, balance=Decimal("1.25"))
        db.add(person)
        db.commit()
        db.refresh(person)

        data = to_jsonable({"person": person})["person"]
        assert data["name"] == "Ana"
        assert data["balance"] == "1.25"
        assert "_sa_instance_state" not in data

    def test_unloaded_relationship_is_dropped(self, db):
        post = Post(user_id=1, title="hi")
        db.add(post)
        db.commit()
        post_id = post.id
        db.expunge_all()

        loaded = db.get(Post, post_id)
        data = to_jsonable(loaded)
        assert data["title"] == "hi"
        assert "comments" not in data

    def test_loaded_relationship_terminates_on_back_reference(self, db):
        post = Post(user_id=1, title="hi")
        post.comments.append(Comment(body="first"))
        db.add(post)
        db.commit()
        db.refresh(post)
        assert len(post.comments) == 1

        data = to_jsonable(post)
        assert data["comments"][0]["body"] == "first"
        assert "post" not in data["comments"][0] or data["comments"][0].get("post") is None


class TestSnapshot:
    def test_none(self):
        assert snapshot(None) is None

    def test_copy_is_independent(self, db):
        post = Post(user_id=1, title="before", status="draft")
        db.add(post)
        db.commit()

        copy = snapshot(post)
        post.title = "after"

        assert copy.title == "before"
        assert copy.id == post.id
        assert isinstance(copy, Post)
        assert copy not in db

    def test_mutating_copy_leaves_record_alone(self, db):
        post = Post(user_id=1, title="before")
        db.add(post)
        db.commit()

        copy = snapshot(post)
        copy.title = "changed"

        assert post.title == "before"
        assert post not in db.dirty
