from burnlink.schemas.secret import (
    SecretCreate,
    SecretCreateResponse,
    SecretPasswordRequest,
    SecretPasswordRequiredResponse,
    SecretPayloadResponse,
    SecretVerifyResponse,
)

__all__ = [
    "SecretCreate",
    "SecretCreateResponse",
    "SecretPasswordRequest",
    "SecretPasswordRequiredResponse",
    "SecretPayloadResponse",
    "SecretVerifyResponse",
]
