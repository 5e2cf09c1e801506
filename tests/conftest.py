import os

# must be set before the application reads its settings
os.environ["APP_ENV"] = "test"

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, UTC

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from mythboard.core.config import Settings, get_settings
from mythboard.core.errors import StoreConflictError, StoreError
from mythboard.db.database import Base, SQLITE_TEST_DB, create_tables, get_session
from mythboard.main import app
from mythboard.models.reaction import SINGLE_SLOT

# test database
test_engine = create_engine(SQLITE_TEST_DB, connect_args={"check_same_thread": False})
TestSessionLocal = sessionmaker(bind=test_engine)


@pytest.fixture(autouse=True)
def clean_db():
    """Rebuild the test database around every test"""
    Base.metadata.drop_all(bind=test_engine)
    create_tables(test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def settings():
    """Settings the app sees, override in a test module or class to switch variants"""
    return Settings(APP_ENV="test")


@pytest.fixture
def db_session():
    session = TestSessionLocal()
    yield session
    session.close()


@pytest.fixture
def client(settings):
    """Test client bound to the test database"""
    def override_get_session():
        session = TestSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_settings] = lambda: settings

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()


def identity_headers(value):
    return {"X-User-Identifier": value}


@pytest.fixture
def alice():
    return identity_headers("user_alice")


@pytest.fixture
def bob():
    return identity_headers("user_bob")


@pytest.fixture
def post_data():
    return {
        "title": "The Weeping Doll of Karanganyar",
        "content": "Villagers say the doll cries every full moon.",
        "excerpt": "A doll that cries",
        "author": "Anonymous witness",
        "category": "cursed-object",
        "images": [
            "https://cdn.example.com/posts/doll/1.jpg",
            "https://cdn.example.com/posts/doll/2.jpg"
        ]
    }


@pytest.fixture
def post(client, alice, post_data):
    response = client.post("/api/posts", json=post_data, headers=alice)
    assert response.status_code == 201
    return response.json()


# in-memory repositories for engine tests

@dataclass
class FakeRow:
    type: str
    user_identifier: str
    target_key: str
    slot: str = SINGLE_SLOT
    post_id: str = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class InMemoryReactionRepository:
    """ReactionRepository keeping rows in a list

    `fail_on` names operations that raise StoreError, `delay` widens the gap
    between a lookup and the following write.
    """

    def __init__(self):
        self.rows = []
        self.fail_on = set()
        self.delay = 0.0
        self.calls = []

    def _maybe_fail(self, operation):
        self.calls.append(operation)
        if operation in self.fail_on:
            raise StoreError(f"{operation} failed")

    def count_by_target(self, target):
        if "count_by_target" in self.fail_on:
            return {}
        counts = {}
        for row in self.rows:
            if row.target_key == target.key:
                counts[row.type] = counts.get(row.type, 0) + 1
        return counts

    def list_for_target(self, target):
        return [row for row in self.rows if row.target_key == target.key]

    def list_own(self, identity, target):
        return [row for row in self.list_for_target(target) if row.user_identifier == identity.value]

    def find_own(self, identity, target, reaction_type=None):
        self._maybe_fail("find_own")
        found = [
            row for row in self.list_own(identity, target)
            if reaction_type is None or row.type == reaction_type
        ]
        if self.delay:
            time.sleep(self.delay)
        return found[0] if found else None

    def insert(self, identity, target, reaction_type, slot=SINGLE_SLOT):
        self._maybe_fail("insert")
        for row in self.rows:
            if (row.user_identifier, row.target_key, row.slot) == (identity.value, target.key, slot):
                raise StoreConflictError("You already reacted to this")
        row = FakeRow(
            type=reaction_type,
            user_identifier=identity.value,
            target_key=target.key,
            slot=slot,
            post_id=target.post_id
        )
        self.rows.append(row)
        return row

    def remove_or_update(self, reaction_id, new_type):
        self._maybe_fail("remove_or_update")
        for row in self.rows:
            if row.id == reaction_id:
                if new_type is None:
                    self.rows.remove(row)
                else:
                    row.type = new_type
                return
        raise StoreConflictError("Reaction was changed by another request")


@dataclass
class FakeFavorite:
    post_id: str
    user_identifier: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


class InMemoryFavoriteRepository:
    def __init__(self):
        self.rows = []
        self.fail_on = set()
        self.delay = 0.0

    def _maybe_fail(self, operation):
        if operation in self.fail_on:
            raise StoreError(f"{operation} failed")

    def find(self, identity, post_id):
        self._maybe_fail("find")
        found = next(
            (row for row in self.rows if row.post_id == post_id and row.user_identifier == identity.value),
            None
        )
        if self.delay:
            time.sleep(self.delay)
        return found

    def get(self, favorite_id):
        return next((row for row in self.rows if row.id == favorite_id), None)

    def insert(self, identity, post_id):
        self._maybe_fail("insert")
        if self.find(identity, post_id) is not None:
            raise StoreConflictError("Post is already in your favorites")
        row = FakeFavorite(post_id=post_id, user_identifier=identity.value)
        self.rows.append(row)
        return row

    def delete(self, favorite_id):
        self._maybe_fail("delete")
        row = self.get(favorite_id)
        if row is None:
            raise StoreConflictError("Favorite was changed by another request")
        self.rows.remove(row)

    def count_for_post(self, post_id):
        return sum(1 for row in self.rows if row.post_id == post_id)


@pytest.fixture
def reaction_repo():
    return InMemoryReactionRepository()


@pytest.fixture
def favorite_repo():
    return InMemoryFavoriteRepository()

