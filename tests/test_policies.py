"""
Tests for the reference policies.
"""

import pytest

from rowgate.contracts.actor import Actor
from rowgate.contracts.errors import ErrorKind
from rowgate.policies import DenyAllPolicy, OwnedByActor, Policy, PublicPolicy, UpdateScope
from rowgate.resources import ResourceSpec
from sample_models import Post


@pytest.fixture
def posts(db):
    rows = [
        Post(user_id=7, title="mine"),
        Post(user_id=7, title="also mine"),
        Post(user_id=9, title="theirs"),
    ]
    db.add_all(rows)
    db.commit()
    return rows


def spec_for(policy):
    return ResourceSpec(model=Post, policy=policy, name="posts")


class TestContract:
    @pytest.mark.parametrize("policy", [DenyAllPolicy(), PublicPolicy(), OwnedByActor()])
    def test_reference_policies_implement_protocol(self, policy):
        assert isinstance(policy, Policy)


class TestDenyAllPolicy:
    def test_reads_see_nothing(self, db, posts):
        policy = DenyAllPolicy()
        spec = spec_for(policy)
        assert policy.for_list(db.query(Post), Actor(), {}, spec).all() == []
        assert policy.for_get(db.query(Post), Actor(), posts[0].id, {}, spec).all() == []

    def test_writes_are_forbidden(self, db):
        policy = DenyAllPolicy()
        spec = spec_for(policy)
        assert policy.for_create(Post, Actor(), {}, {}, spec).error.kind == ErrorKind.FORBIDDEN
        assert policy.for_update(db.query(Post), Actor(), 1, {}, {}, spec).error.kind == ErrorKind.FORBIDDEN
        assert policy.for_delete(db.query(Post), Actor(), 1, {}, spec).error.kind == ErrorKind.FORBIDDEN


class TestPublicPolicy:
    def test_identity(self, db, posts):
        policy = PublicPolicy()
        spec = spec_for(policy)
        assert len(policy.for_list(db.query(Post), None, {}, spec).all()) == 3
        assert policy.for_create(Post, None, {"title": "x"}, {}, spec).value == {"title": "x"}

        scope = policy.for_update(db.query(Post), None, 1, {"title": "y"}, {}, spec).value
        assert isinstance(scope, UpdateScope)
        assert scope.attrs == {"title": "y"}


class TestOwnedByActor:
    def test_list_is_scoped_to_owner(self, db, posts):
        policy = OwnedByActor()
        rows = policy.for_list(db.query(Post), Actor(id=7), {}, spec_for(policy)).all()
        assert sorted(row.title for row in rows) == ["also mine", "mine"]

    def test_mapping_actor(self, db, posts):
        policy = OwnedByActor()
        rows = policy.for_list(db.query(Post), {"id": 9}, {}, spec_for(policy)).all()
        assert [row.title for row in rows] == ["theirs"]

    def test_actor_without_id_sees_nothing(self, db, posts):
        policy = OwnedByActor()
        assert policy.for_list(db.query(Post), Actor(), {}, spec_for(policy)).all() == []

    def test_create_stamps_owner(self):
        policy = OwnedByActor()
        result = policy.for_create(Post, Actor(id=7), {"title": "hi", "user_id": 1}, {}, spec_for(policy))
        assert result.value == {"title": "hi", "user_id": 7}

    def test_anonymous_create_is_forbidden(self):
        policy = OwnedByActor()
        result = policy.for_create(Post, Actor(), {"title": "hi"}, {}, spec_for(policy))
        assert result.error.kind == ErrorKind.FORBIDDEN

    def test_update_scopes_by_owner_and_id(self, db, posts):
        policy = OwnedByActor()
        spec = spec_for(policy)

        own = policy.for_update(db.query(Post), Actor(id=7), str(posts[0].id), {"title": "x"}, {}, spec).value
        assert [row.title for row in own.query.all()] == ["mine"]

        foreign = policy.for_update(db.query(Post), Actor(id=7), str(posts[2].id), {}, {}, spec).value
        assert foreign.query.all() == []

    def test_update_cannot_transfer_ownership(self, db):
        policy = OwnedByActor()
        scope = policy.for_update(db.query(Post), Actor(id=7), 1, {"user_id": 9, "title": "x"}, {}, spec_for(policy))
        assert scope.value.attrs == {"title": "x"}

    def test_custom_owner_field_and_actor_key(self, db, posts):
        policy = OwnedByActor(owner_field="user_id", actor_key="account_id")
        rows = policy.for_list(db.query(Post), {"account_id": 9}, {}, spec_for(policy)).all()
        assert [row.title for row in rows] == ["theirs"]

    def test_delete_scoped(self, db, posts):
        policy = OwnedByActor()
        query = policy.for_delete(db.query(Post), Actor(id=9), posts[0].id, {}, spec_for(policy)).value
        assert query.all() == []
