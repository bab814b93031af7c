"""Durable store adapter for secrets.

The database row is the single point of truth for whether a secret has been
delivered. ``burn`` is one conditional UPDATE, so exactly one concurrent
caller can ever flip ``accessed_at``, no matter how many processes run.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, defer

from burnlink.models.secret import Secret
from burnlink.services.errors import IdentifierCollision, StorageError


class SecretStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as e:
            self.db.rollback()
            raise IdentifierCollision(f"{operation}: identifier already exists") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"{operation} failed") from e

    def insert(self, secret: Secret) -> None:
        """Persist a new secret. Never overwrites an existing identifier."""
        with self._guard("insert"):
            self.db.add(secret)
            self.db.commit()

    def get_state(self, secret_id: str) -> Secret | None:
        """Load lifecycle metadata only; payload columns stay unloaded."""
        with self._guard("get_state"):
            return self.db.execute(
                select(Secret)
                .options(defer(Secret.ciphertext), defer(Secret.iv))
                .where(Secret.id == secret_id)
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()

    def get_payload(self, secret_id: str) -> tuple[bytes, bytes] | None:
        with self._guard("get_payload"):
            row = self.db.execute(
                select(Secret.ciphertext, Secret.iv).where(Secret.id == secret_id)
            ).one_or_none()
        if row is None or row.ciphertext is None or row.iv is None:
            return None
        return row.ciphertext, row.iv

    def burn(self, secret_id: str, now: datetime) -> bool:
        """
        Mark a secret as delivered.

        Compare-and-set on ``accessed_at IS NULL``; returns True only for the
        caller whose update changed the row.
        """
        with self._guard("burn"):
            result = self.db.execute(
                update(Secret)
                .where(
                    Secret.id == secret_id,
                    Secret.accessed_at.is_(None),
                    Secret.expires_at > now,
                )
                .values(accessed_at=now, access_count=Secret.access_count + 1)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        return result.rowcount == 1

    def purge_unavailable(self, now: datetime, grace: timedelta) -> int:
        """
        Null the payload of secrets that can never be delivered again.

        Covers secrets that expired undelivered and secrets delivered more than
        ``grace`` ago. Metadata rows are kept so lookups still answer "gone".
        """
        with self._guard("purge_unavailable"):
            result = self.db.execute(
                update(Secret)
                .where(
                    Secret.cleared_at.is_(None),
                    or_(
                        Secret.accessed_at < now - grace,
                        and_(Secret.accessed_at.is_(None), Secret.expires_at <= now),
                    ),
                )
                .values(ciphertext=None, iv=None, cleared_at=now)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        return result.rowcount
