"""
Secret lifecycle: create, fetch (burn on read), password probe and sweep.

Single delivery is enforced by the durable store's conditional update
(``SecretStore.burn``), never by an in-process lock: several worker processes
may serve the same secret concurrently. The cache only accelerates payload
reads for the caller that already won the burn.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import structlog

from burnlink.config import settings
from burnlink.models.secret import Secret
from burnlink.services.audit_service import AuditLog, Requester
from burnlink.services.cache_service import CacheEntry, SecretCache
from burnlink.services.crypto_utils import hash_password, verify_password_hash
from burnlink.services.errors import (
    AuthError,
    GoneError,
    IdentifierCollision,
    NotFoundError,
    StorageError,
    ValidationError,
)
from burnlink.services.id_service import generate_secret_id
from burnlink.services.secret_store import SecretStore

logger = structlog.get_logger()


def utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def secret_ref(secret_id: str) -> str:
    """Short, non-usable reference to a secret for log lines."""
    return secret_id[:4]


@dataclass(frozen=True, slots=True)
class SecretHandle:
    id: str
    created_at: datetime
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class Payload:
    ciphertext: bytes
    iv: bytes


@dataclass(frozen=True, slots=True)
class PasswordRequired:
    """Fetch outcome for a password-gated secret requested without a password."""


class SecretLifecycleManager:
    def __init__(
        self,
        store: SecretStore,
        cache: SecretCache,
        audit: AuditLog,
        id_generator: Callable[[], str] = generate_secret_id,
        clock: Callable[[], datetime] = utcnow,
        max_id_attempts: int | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.audit = audit
        self.id_generator = id_generator
        self.clock = clock
        self.max_id_attempts = max_id_attempts or settings.secret_id_max_attempts

    def create(
        self,
        ciphertext: bytes,
        iv: bytes,
        ttl_seconds: int,
        password: str | None = None,
        requester: Requester | None = None,
    ) -> SecretHandle:
        """
        Store a new secret and return its handle.

        The database write is the commit point; the cache entry and the audit
        event are written best-effort afterwards.
        """
        if not ciphertext:
            raise ValidationError("ciphertext is required")
        if not iv:
            raise ValidationError("iv is required")
        if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int) or ttl_seconds < 1:
            raise ValidationError("ttl_seconds must be a positive integer")

        password_hash = hash_password(password) if password else None

        for attempt in range(1, self.max_id_attempts + 1):
            secret_id = self.id_generator()
            created_at = self.clock()
            expires_at = created_at + timedelta(seconds=ttl_seconds)
            try:
                self.store.insert(
                    Secret(
                        id=secret_id,
                        ciphertext=bytes(ciphertext),
                        iv=bytes(iv),
                        password_hash=password_hash,
                        created_at=created_at,
                        expires_at=expires_at,
                        accessed_at=None,
                        access_count=0,
                    )
                )
                break
            except IdentifierCollision:
                logger.warning("secret_id_collision", attempt=attempt)
        else:
            raise StorageError(f"No free secret identifier after {self.max_id_attempts} attempts")

        self.cache.put(
            secret_id,
            CacheEntry(bytes(ciphertext), bytes(iv), password_required=password_hash is not None),
            ttl_seconds,
        )
        self.audit.record(secret_id, "created", requester)

        logger.info(
            "secret_created",
            secret_ref=secret_ref(secret_id),
            ttl_seconds=ttl_seconds,
            password_protected=password_hash is not None,
            ciphertext_size=len(ciphertext),
        )
        return SecretHandle(id=secret_id, created_at=created_at, expires_at=expires_at)

    def fetch(
        self,
        secret_id: str,
        password: str | None = None,
        requester: Requester | None = None,
    ) -> Payload | PasswordRequired:
        """
        Deliver a secret's payload exactly once.

        Raises NotFoundError, GoneError or AuthError. Returns PasswordRequired,
        without touching any state, when the secret is gated and no password
        was given.
        """
        secret = self._get_available(secret_id, self.clock())

        if secret.password_hash:
            if not password:
                return PasswordRequired()
            if not verify_password_hash(password, secret.password_hash):
                logger.info("secret_password_rejected", secret_ref=secret_ref(secret_id))
                raise AuthError()

        if not self.store.burn(secret_id, self.clock()):
            # Another reader committed its burn between our lookup and update
            logger.info("secret_burn_lost", secret_ref=secret_ref(secret_id))
            raise GoneError()

        # Delivered from here on, even if the caller goes away
        payload = self.load_payload(secret_id)
        self.cache.evict(secret_id)
        self.audit.record(secret_id, "accessed", requester)

        logger.info("secret_delivered", secret_ref=secret_ref(secret_id))
        return payload

    def verify_password(self, secret_id: str, password: str | None) -> bool:
        """
        Check a password without delivering anything.

        Availability is checked first so probing a burned or expired secret
        reveals nothing about the password.
        """
        secret = self._get_available(secret_id, self.clock())
        if not secret.password_hash:
            return True
        if not password:
            return False
        return verify_password_hash(password, secret.password_hash)

    def load_payload(self, secret_id: str) -> Payload:
        """Read payload bytes: cache first, then the durable store."""
        entry = self.cache.get(secret_id)
        if entry is not None:
            return Payload(ciphertext=entry.ciphertext, iv=entry.iv)

        stored = self.store.get_payload(secret_id)
        if stored is None:
            raise GoneError()
        ciphertext, iv = stored
        return Payload(ciphertext=ciphertext, iv=iv)

    def purge_unavailable_secrets(self, grace: timedelta | None = None) -> int:
        """Drop payload bytes of secrets that can no longer be delivered."""
        if grace is None:
            grace = timedelta(minutes=settings.cleanup_grace_minutes)
        return self.store.purge_unavailable(self.clock(), grace)

    def _get_available(self, secret_id: str, now: datetime) -> Secret:
        secret = self.store.get_state(secret_id)
        if secret is None:
            raise NotFoundError()
        if not secret.is_available(now):
            self.cache.evict(secret_id)
            raise GoneError()
        return secret
