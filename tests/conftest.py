"""
Shared fixtures: an in-memory SQLite database per test, profile builders
and fake Redis / Firebase collaborators.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

import swipeology.models  # noqa: F401  register tables
from swipeology.core.data_service import EventHub
from swipeology.core.normalization import profile_from_record
from swipeology.db.repository import SqlDataService
from swipeology.db.session import Base, build_session_maker


class FakeRedis:
    """Dict-backed stand-in for the Upstash client calls RedisService makes."""

    def __init__(self):
        self.store = {}
        self.expiry = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, seconds, value):
        self.store[key] = str(value)
        self.expiry[key] = seconds

    def ttl(self, key):
        return self.expiry.get(key, -2)

    def incr(self, key):
        self.store[key] = str(int(self.store.get(key, "0")) + 1)
        return int(self.store[key])

    def delete(self, key):
        self.store.pop(key, None)
        self.expiry.pop(key, None)

    def ping(self):
        return True


class FakeChatMirror:
    """Records Firebase mirror calls."""

    enabled = True

    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if self.fail:
            raise RuntimeError("firebase down")

    def create_chat_room(self, *args):
        self._record("create_chat_room", *args)

    def delete_chat_room(self, *args):
        self._record("delete_chat_room", *args)

    def push_message(self, *args):
        self._record("push_message", *args)


def make_profile(id, **fields):
    """Build a Profile through the normalization boundary."""
    record = {"id": id, "first_name": id.upper()}
    record.update(fields)
    return profile_from_record(record)


@pytest.fixture
async def session_maker():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield build_session_maker(engine)
    await engine.dispose()


@pytest.fixture
def event_hub():
    return EventHub()


@pytest.fixture
def data_service(session_maker, event_hub):
    return SqlDataService(session_maker, event_hub)


@pytest.fixture
def seed(data_service):
    """Async helper that stores a profile row and returns its Profile."""

    async def _seed(id, **fields):
        values = {"first_name": id.upper(), "phone_verified": True}
        values.update(fields)
        return await data_service.save_profile(id, values)

    return _seed


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def chat_mirror():
    return FakeChatMirror()
