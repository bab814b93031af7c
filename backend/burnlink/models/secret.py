from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, LargeBinary, String
from sqlalchemy.orm import Mapped, mapped_column

from burnlink.database import Base


class Secret(Base):
    """
    One-time secret.

    The payload is opaque to the server: ``ciphertext`` and ``iv`` are stored
    exactly as the client produced them. A secret is available while
    ``accessed_at`` is NULL and ``expires_at`` lies in the future.
    """

    __tablename__ = "secrets"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Encrypted payload (nulled by the housekeeping sweep once unavailable)
    ciphertext: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    iv: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)

    # Optional Argon2id hash gating retrieval
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True, default=None)

    # Timing
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(UTC).replace(tzinfo=None), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    accessed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, default=None)
    cleared_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, default=None)

    # Must never exceed 1; a counter so double delivery shows up as a defect
    access_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def is_available(self, now: datetime) -> bool:
        return self.accessed_at is None and now < self.expires_at
