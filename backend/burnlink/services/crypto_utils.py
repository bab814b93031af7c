from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from burnlink.config import settings

# Argon2id; the cost is a deliberate brake on password guessing
ph = PasswordHasher(
    time_cost=settings.argon2_time_cost,
    memory_cost=settings.argon2_memory_cost,
    parallelism=settings.argon2_parallelism,
    hash_len=32,
    salt_len=16,
)


def hash_password(password: str) -> str:
    """Hash a secret's password using Argon2id."""
    return ph.hash(password)


def verify_password_hash(password: str, password_hash: str) -> bool:
    """Verify a password against its Argon2id hash."""
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False
