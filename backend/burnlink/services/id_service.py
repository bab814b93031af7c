import secrets

from burnlink.config import settings


def generate_secret_id(nbytes: int | None = None) -> str:
    """Generate an unguessable, url-safe secret identifier."""
    return secrets.token_urlsafe(nbytes or settings.secret_id_bytes)
