"""Test configuration and fixtures.

Points the app at an isolated file-based SQLite database and a scratch
upload directory. The env vars must be set before application modules are
imported because settings and the engine are built at import time.
"""

import os
from typing import Generator

os.environ.setdefault("DEBUG", "1")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_scene_sync.db")
os.environ.setdefault("UPLOAD_DIR", "./test_uploads")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from database import Base, engine, SessionLocal
from main import app
from realtime import RoomRegistry, BroadcastFanout
from services.scene_store import SceneStore
from services.sync import SessionSynchronizer
from services.projects import create_project


@pytest.fixture(autouse=True)
def clean_db() -> Generator[None, None, None]:
    """Fresh schema for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def db_session() -> Generator:  # type: ignore
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def project_id(db_session) -> int:
    return create_project(db_session, "Test Project").id


@pytest.fixture()
def store() -> SceneStore:
    return SceneStore(SessionLocal, timeout=5.0)


@pytest.fixture()
def rooms() -> RoomRegistry:
    return RoomRegistry()


@pytest.fixture()
def synchronizer(store, rooms) -> SessionSynchronizer:
    return SessionSynchronizer(store, rooms, BroadcastFanout(rooms))


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c
