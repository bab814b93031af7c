import base64
import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from burnlink.config import settings


def strict_base64_decode(value: str, field_name: str) -> bytes:
    """
    Strictly validate and decode base64 string.

    Rejects strings with invalid characters, incorrect padding, or whitespace.
    """
    # Check for valid base64 characters only (no whitespace allowed)
    if not re.match(r"^[A-Za-z0-9+/]*={0,2}$", value):
        raise ValueError(f"{field_name}: Invalid base64 characters")
    # Check length is multiple of 4
    if len(value) % 4 != 0:
        raise ValueError(f"{field_name}: Invalid base64 length (must be multiple of 4)")
    try:
        return base64.b64decode(value, validate=True)
    except Exception:
        raise ValueError(f"{field_name}: Invalid base64 encoding")


class SecretCreate(BaseModel):
    ciphertext: str = Field(..., description="Base64 encoded ciphertext")
    iv: str = Field(..., description="Base64 encoded initialization vector")
    ttl_seconds: int = Field(
        default=settings.default_ttl_seconds,
        ge=settings.min_ttl_seconds,
        le=settings.max_ttl_seconds,
        description="Lifetime of the secret in seconds",
    )
    password: str | None = Field(
        default=None,
        max_length=settings.max_password_length,
        description="Optional password gating retrieval",
    )

    @field_validator("ciphertext")
    @classmethod
    def validate_ciphertext_base64(cls, v: str) -> str:
        decoded = strict_base64_decode(v, "ciphertext")
        if len(decoded) > settings.max_ciphertext_size:
            raise ValueError(f"Ciphertext exceeds {settings.max_ciphertext_size} bytes")
        if len(decoded) < 1:
            raise ValueError("Ciphertext cannot be empty")
        return v

    @field_validator("iv")
    @classmethod
    def validate_iv(cls, v: str) -> str:
        decoded = strict_base64_decode(v, "iv")
        if len(decoded) < 1:
            raise ValueError("IV cannot be empty")
        if len(decoded) > settings.max_iv_size:
            raise ValueError(f"IV exceeds {settings.max_iv_size} bytes")
        return v


class SecretCreateResponse(BaseModel):
    secret_id: str
    secret_url: str
    created_at: datetime
    expires_at: datetime


class SecretPasswordRequest(BaseModel):
    password: str = Field(..., min_length=1, max_length=settings.max_password_length)


class SecretPayloadResponse(BaseModel):
    ciphertext: str
    iv: str


class SecretPasswordRequiredResponse(BaseModel):
    password_required: bool = True


class SecretVerifyResponse(BaseModel):
    valid: bool
