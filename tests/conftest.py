# tests/conftest.py

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app
from app.store import TaskStore

from .fakes import FakeRedis


@pytest.fixture()
def redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def store(redis: FakeRedis) -> TaskStore:
    return TaskStore(redis, page_size=10)


@pytest.fixture()
def client(store: TaskStore):
    app = create_app(Settings(page_size=10, max_page_size=50), store=store)
    with TestClient(app) as c:
        yield c
