import base64

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from burnlink.config import settings
from burnlink.database import get_db
from burnlink.middleware.client_ip import get_requester
from burnlink.schemas.secret import (
    SecretCreate,
    SecretCreateResponse,
    SecretPasswordRequest,
    SecretPasswordRequiredResponse,
    SecretPayloadResponse,
    SecretVerifyResponse,
)
from burnlink.services.audit_service import AuditLog
from burnlink.services.cache_service import SecretCache
from burnlink.services.errors import AuthError
from burnlink.services.secret_service import (
    PasswordRequired,
    Payload,
    SecretLifecycleManager,
)
from burnlink.services.secret_store import SecretStore

router = APIRouter()


def get_cache(request: Request) -> SecretCache:
    """Dependency returning the process-wide cache built at startup."""
    return request.app.state.secret_cache


def get_secret_manager(
    db: Session = Depends(get_db),
    cache: SecretCache = Depends(get_cache),
) -> SecretLifecycleManager:
    return SecretLifecycleManager(store=SecretStore(db), cache=cache, audit=AuditLog(db))


def build_secret_url(secret_id: str) -> str:
    return f"{settings.frontend_url.rstrip('/')}/secret/{secret_id}"


def payload_response(payload: Payload) -> SecretPayloadResponse:
    return SecretPayloadResponse(
        ciphertext=base64.b64encode(payload.ciphertext).decode(),
        iv=base64.b64encode(payload.iv).decode(),
    )


@router.post("/secrets", response_model=SecretCreateResponse, status_code=201)
def create_new_secret(
    request: Request,
    secret_data: SecretCreate,
    manager: SecretLifecycleManager = Depends(get_secret_manager),
):
    """
    Create a new one-time secret.

    The payload is stored exactly as the client encrypted it.
    """
    handle = manager.create(
        ciphertext=base64.b64decode(secret_data.ciphertext),
        iv=base64.b64decode(secret_data.iv),
        ttl_seconds=secret_data.ttl_seconds,
        password=secret_data.password,
        requester=get_requester(request),
    )

    return SecretCreateResponse(
        secret_id=handle.id,
        secret_url=build_secret_url(handle.id),
        created_at=handle.created_at,
        expires_at=handle.expires_at,
    )


@router.get(
    "/secrets/{secret_id}",
    response_model=SecretPayloadResponse | SecretPasswordRequiredResponse,
)
def retrieve_secret(
    request: Request,
    secret_id: str,
    manager: SecretLifecycleManager = Depends(get_secret_manager),
):
    """
    Retrieve a secret's encrypted content.

    This is a ONE-TIME operation. Password-protected secrets answer with
    ``password_required`` instead and are left untouched.
    """
    result = manager.fetch(secret_id, requester=get_requester(request))
    if isinstance(result, PasswordRequired):
        return SecretPasswordRequiredResponse()
    return payload_response(result)


@router.post("/secrets/{secret_id}/retrieve", response_model=SecretPayloadResponse)
def retrieve_protected_secret(
    request: Request,
    secret_id: str,
    body: SecretPasswordRequest,
    manager: SecretLifecycleManager = Depends(get_secret_manager),
):
    """Retrieve a password-protected secret. ONE-TIME, like the GET variant."""
    result = manager.fetch(secret_id, password=body.password, requester=get_requester(request))
    if isinstance(result, PasswordRequired):
        raise AuthError()
    return payload_response(result)


@router.post("/secrets/{secret_id}/verify", response_model=SecretVerifyResponse)
def verify_secret_password(
    secret_id: str,
    body: SecretPasswordRequest,
    manager: SecretLifecycleManager = Depends(get_secret_manager),
):
    """Check a password without consuming the secret."""
    return SecretVerifyResponse(valid=manager.verify_password(secret_id, body.password))
