"""
Request logging middleware with correlation ID support.

Generates a unique correlation ID for each request, binds it to the structlog
context, and logs request start/completion with timing information. Secret
identifiers travel in the path, so only the route template is logged.

Privacy: Never logs IPs, secret identifiers, request bodies or passwords.
"""

import secrets
import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response


def generate_correlation_id() -> str:
    """Generate an 8-character correlation ID."""
    return secrets.token_hex(4)


def route_path(request: Request) -> str:
    """Matched route template (``/api/v1/secrets/{secret_id}``), else the raw path."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that logs requests and adds correlation IDs.

    Logs:
    - request_started: method, correlation_id
    - request_completed: method, path template, status_code, duration_ms
    - request_failed: unhandled exceptions, answered with a bare 500

    Never logs:
    - IP addresses
    - Authorization headers
    - Secret identifiers or query parameters
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = generate_correlation_id()
        start_time = time.perf_counter()

        # Bind correlation ID to structlog context for this request
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)

        logger = structlog.get_logger()

        logger.info("request_started", method=request.method)

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "request_failed",
                method=request.method,
                path=route_path(request),
                error=str(e),
                duration_ms=round(duration_ms, 2),
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal Server Error"},
                headers={"X-Correlation-ID": correlation_id},
            )

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "request_completed",
            method=request.method,
            path=route_path(request),
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )

        # Add correlation ID to response header for debugging
        response.headers["X-Correlation-ID"] = correlation_id

        return response
