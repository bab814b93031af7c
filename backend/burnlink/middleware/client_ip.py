import ipaddress

from starlette.requests import Request

from burnlink.services.audit_service import Requester


def get_real_client_ip(request: Request) -> str:
    """Extract real client IP, trusting X-Forwarded-For from our proxy.

    When behind a reverse proxy (like Caddy), the client's real IP is in
    the X-Forwarded-For header. We take the first IP (original client).
    Falls back to request.client.host for direct connections.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Take the first IP (original client)
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def normalize_ip(value: str | None) -> str | None:
    """Canonical form of an IPv4/IPv6 address, or None if it is not one."""
    if not value:
        return None
    try:
        return str(ipaddress.ip_address(value))
    except ValueError:
        return None


def get_requester(request: Request) -> Requester:
    """Requester metadata for the audit log."""
    return Requester(
        ip_address=normalize_ip(get_real_client_ip(request)),
        user_agent=request.headers.get("User-Agent"),
    )
