"""
Shared fixtures: an in-memory SQLite store and an app wired to it.
"""
from datetime import datetime, timedelta
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from backend.main import create_app
from app.core.database import Database
from app.models.request import ItemRequest, RequestStatus

BASE_TIME = datetime(2024, 1, 1, 9, 0, 0)


def memory_database() -> Database:
    # StaticPool keeps one connection so every session sees the same :memory: db
    return Database(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def database():
    db = memory_database()
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    s = database.session()
    yield s
    s.close()


@pytest.fixture
def client(database):
    return TestClient(create_app(database))


@pytest.fixture
def make_request(session):
    """Insert a row directly, with a controllable creation time."""
    counter = {"n": 0}

    def _make(
        name: str = "Jane Doe",
        item: str = "Flashlights",
        status: RequestStatus = RequestStatus.PENDING,
        created: Optional[datetime] = None,
    ) -> ItemRequest:
        counter["n"] += 1
        created = created or BASE_TIME + timedelta(minutes=counter["n"])
        row = ItemRequest(
            requestor_name=name,
            item_requested=item,
            request_created_date=created,
            last_edited_date=created,
            status=status.value,
        )
        session.add(row)
        session.commit()
        session.refresh(row)
        return row

    return _make
