import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_ENABLED"] = "false"
os.environ["POLL_INTERVAL_SECONDS"] = "3600"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel

from core.config import get_settings
from dependencies import get_aggregation_service, get_engine
from models import Interaction, InteractionType, PlayEvent, Post, TargetType

ALICE = "0x" + "a" * 40
BOB = "0x" + "b" * 40
CAROL = "0x" + "c" * 40
DAVE = "0x" + "d" * 40


@pytest.fixture(scope="session")
def settings():
    return get_settings()


@pytest.fixture
def test_db_engine():
    engine = get_engine()
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def service(test_db_engine):
    get_aggregation_service.cache_clear()
    yield get_aggregation_service()
    get_aggregation_service.cache_clear()


@pytest.fixture
def client(service):
    from main import app
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_interaction():
    counter = iter(range(1, 10_000))

    def factory(type_, target_id=1, from_user=ALICE, timestamp=None, **kwargs):
        record_id = kwargs.pop("id", None) or next(counter)
        return Interaction(
            id=record_id,
            timestamp=record_id * 1000 if timestamp is None else timestamp,
            type=type_,
            target_id=target_id,
            from_user=from_user,
            **kwargs,
        )
    return factory


@pytest.fixture
def make_post():
    def factory(post_id, timestamp=None, author=ALICE, **kwargs):
        return Post(
            id=post_id,
            timestamp=post_id if timestamp is None else timestamp,
            content=kwargs.pop("content", f"post {post_id}"),
            author=author,
            **kwargs,
        )
    return factory


@pytest.fixture
def make_play():
    counter = iter(range(1, 100_000))

    def factory(token_id, listener=ALICE, timestamp=0, duration=120):
        return PlayEvent(
            id=next(counter),
            timestamp=timestamp,
            token_id=token_id,
            listener=listener,
            duration=duration,
            source="test",
        )
    return factory

