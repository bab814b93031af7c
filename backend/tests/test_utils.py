"""Shared test utilities."""

import base64
import secrets
from datetime import UTC, datetime


def utcnow():
    """Get current UTC time as naive datetime."""
    return datetime.now(UTC).replace(tzinfo=None)


def generate_test_data(size: int = 100):
    """Generate an opaque payload the way the frontend would."""
    ciphertext = secrets.token_bytes(size)
    iv = secrets.token_bytes(12)
    return {
        "ciphertext": base64.b64encode(ciphertext).decode(),
        "iv": base64.b64encode(iv).decode(),
        "ciphertext_bytes": ciphertext,
        "iv_bytes": iv,
    }
