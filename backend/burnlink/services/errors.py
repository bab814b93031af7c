"""Error taxonomy for the secret lifecycle.

``NotFoundError`` and ``GoneError`` deliberately carry no detail beyond their
type: callers must not be able to tell an expired secret from one that was
already delivered.
"""


class SecretServiceError(Exception):
    """Base class for lifecycle errors."""


class ValidationError(SecretServiceError):
    """Bad input, rejected before any store interaction."""


class NotFoundError(SecretServiceError):
    """Unknown identifier."""

    def __init__(self) -> None:
        super().__init__("Secret not found")


class GoneError(SecretServiceError):
    """Secret reached a terminal state (expired or already delivered)."""

    def __init__(self) -> None:
        super().__init__("Secret has expired or was already viewed")


class AuthError(SecretServiceError):
    """Password did not match."""

    def __init__(self) -> None:
        super().__init__("Invalid password")


class StorageError(SecretServiceError):
    """Durable store unavailable. Always fatal to the calling operation."""


class IdentifierCollision(StorageError):
    """Insert hit an identifier that already exists."""


class CacheWarning(SecretServiceError):
    """Cache unavailable or holding a corrupt entry. Never surfaced to callers."""
