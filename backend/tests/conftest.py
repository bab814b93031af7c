from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import burnlink.main as main_module
import burnlink.models  # noqa: F401 - registers tables on Base.metadata
from burnlink.config import settings
from burnlink.database import Base, get_db
from burnlink.main import app
from burnlink.routers.secrets import get_cache
from burnlink.services.audit_service import AuditLog
from burnlink.services.cache_service import MemoryCacheBackend, SecretCache
from burnlink.services.secret_service import SecretLifecycleManager
from burnlink.services.secret_store import SecretStore
from tests.test_utils import utcnow


class FakeClock:
    """Controllable replacement for the lifecycle manager's clock."""

    def __init__(self, start=None):
        self.now = start or utcnow()

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def db_session():
    """Create a fresh in-memory database for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def cache():
    return SecretCache(MemoryCacheBackend())


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def manager(db_session, cache, clock):
    return SecretLifecycleManager(
        store=SecretStore(db_session),
        cache=cache,
        audit=AuditLog(db_session),
        clock=clock,
    )


@pytest.fixture
def client(db_session, cache, monkeypatch):
    """Create a test client with the test database, an in-memory cache and no scheduler."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache

    monkeypatch.setattr(settings, "cleanup_enabled", False)

    # Override the engine used by check_database_tables() so it checks the test database
    monkeypatch.setattr(main_module, "engine", db_session.get_bind())

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
