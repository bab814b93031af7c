"""Single delivery under concurrent readers.

Each reader gets its own session and connection to a file-backed SQLite
database, like independent worker processes sharing one durable store. Only
the store's conditional update decides the winner.
"""

import secrets
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from burnlink.database import Base
from burnlink.models.secret import Secret
from burnlink.services.audit_service import AuditLog
from burnlink.services.cache_service import MemoryCacheBackend, NullCacheBackend, SecretCache
from burnlink.services.errors import GoneError
from burnlink.services.secret_service import Payload, SecretLifecycleManager
from burnlink.services.secret_store import SecretStore

READERS = 8


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'concurrency.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        engine.dispose()


def race(session_factory, cache, secret_id, password=None, readers=READERS):
    barrier = threading.Barrier(readers)

    def reader():
        db = session_factory()
        try:
            manager = SecretLifecycleManager(
                store=SecretStore(db), cache=cache, audit=AuditLog(db)
            )
            barrier.wait()
            try:
                return manager.fetch(secret_id, password=password)
            except GoneError as e:
                return e
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=readers) as pool:
        futures = [pool.submit(reader) for _ in range(readers)]
        return [future.result() for future in futures]


def create_secret(session_factory, cache, ciphertext, iv, password=None):
    db = session_factory()
    try:
        manager = SecretLifecycleManager(store=SecretStore(db), cache=cache, audit=AuditLog(db))
        return manager.create(ciphertext, iv, ttl_seconds=60, password=password).id
    finally:
        db.close()


@pytest.mark.parametrize(
    "backend_factory", [MemoryCacheBackend, NullCacheBackend], ids=["memory-cache", "no-cache"]
)
def test_exactly_one_reader_wins(session_factory, backend_factory):
    cache = SecretCache(backend_factory())
    ciphertext, iv = secrets.token_bytes(64), secrets.token_bytes(12)
    secret_id = create_secret(session_factory, cache, ciphertext, iv)

    results = race(session_factory, cache, secret_id)

    winners = [r for r in results if isinstance(r, Payload)]
    losers = [r for r in results if isinstance(r, GoneError)]
    assert len(winners) == 1
    assert len(losers) == READERS - 1
    assert winners[0] == Payload(ciphertext=ciphertext, iv=iv)

    db = session_factory()
    try:
        secret = db.get(Secret, secret_id)
        assert secret.access_count == 1
        assert secret.accessed_at is not None
    finally:
        db.close()


def test_exactly_one_reader_wins_with_password(session_factory):
    cache = SecretCache(MemoryCacheBackend())
    ciphertext, iv = secrets.token_bytes(64), secrets.token_bytes(12)
    secret_id = create_secret(session_factory, cache, ciphertext, iv, password="p1")

    # Each reader runs a full Argon2 verification, so keep the crowd small
    results = race(session_factory, cache, secret_id, password="p1", readers=4)

    assert sum(isinstance(r, Payload) for r in results) == 1
    assert sum(isinstance(r, GoneError) for r in results) == 3
