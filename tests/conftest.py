"""Shared fixtures: in-memory database, fake metafield store, fixed clock."""
import itertools
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.config import settings
from app.database import Base, get_db
from app.dependencies import get_metafield_store, get_now
from app.main import app
from app.services.editor_service import editor_registry
from app.services.shopify_service import SaveConflict, SaveFailed, LoadFailed, StoredSettings

FIXED_NOW = datetime(2024, 1, 15, tzinfo=timezone.utc)
SHOP = "demo-store.myshopify.com"


class FakeMetafieldStore:
    """In-memory stand-in for ShopifyMetafieldStore."""

    def __init__(self, value=None, digest="digest-0"):
        self.value = value
        self.digest = digest
        self.saves = []
        self.load_error = None
        self.save_error = None
        self._version = 0

    def load(self):
        if self.load_error:
            raise LoadFailed(self.load_error)
        return StoredSettings(value=self.value, digest=self.digest)

    def save(self, value, compare_digest=None):
        if self.save_error:
            raise SaveFailed(self.save_error)
        if compare_digest and compare_digest != self.digest:
            raise SaveConflict("Metafield has been modified")
        self._version += 1
        self.value = value
        self.digest = f"digest-{self._version}"
        self.saves.append({"value": value, "compare_digest": compare_digest})
        return StoredSettings(value=value, digest=self.digest)


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"bar-{next(counter)}"


@pytest.fixture
def db_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(db_session_factory):
    session = db_session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store():
    return FakeMetafieldStore()


@pytest.fixture
def client(db_session_factory, store, monkeypatch):
    monkeypatch.setattr(settings, "shopify_api_secret", "")

    def override_get_db():
        session = db_session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_metafield_store] = lambda: store
    app.dependency_overrides[get_now] = lambda: FIXED_NOW
    editor_registry._sessions.clear()

    yield TestClient(app)

    app.dependency_overrides.clear()
    editor_registry._sessions.clear()
