from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import inspect

from burnlink.config import settings
from burnlink.database import engine
from burnlink.logging_config import setup_logging
from burnlink.middleware.logging import LoggingMiddleware
from burnlink.routers import secrets
from burnlink.scheduler import shutdown_scheduler, start_scheduler
from burnlink.services.cache_service import build_cache
from burnlink.services.errors import (
    AuthError,
    GoneError,
    NotFoundError,
    SecretServiceError,
    StorageError,
    ValidationError,
)

# Database tables are managed by Alembic migrations
# Run: poetry run alembic upgrade head

REQUIRED_TABLES = {"secrets", "audit_events"}

ERROR_STATUS_CODES = {
    ValidationError: 422,
    NotFoundError: 404,
    GoneError: 410,
    AuthError: 401,
    StorageError: 503,
}


def check_database_tables() -> None:
    """Fail fast when migrations have not been applied."""
    existing = set(inspect(engine).get_table_names())
    missing = REQUIRED_TABLES - existing
    if missing:
        raise RuntimeError(
            f"Database tables missing: {', '.join(sorted(missing))}. "
            "Run `make migrate` (poetry run alembic upgrade head) first."
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - check schema, build cache, start/stop scheduler."""
    setup_logging()
    check_database_tables()
    app.state.secret_cache = build_cache(settings)
    if settings.cleanup_enabled:
        start_scheduler()
    yield
    shutdown_scheduler()


app = FastAPI(
    title="burnlink",
    description="Zero-knowledge one-time secret sharing service",
    version="0.1.0",
    lifespan=lifespan,
)


async def secret_error_handler(request: Request, exc: SecretServiceError) -> JSONResponse:
    """Map lifecycle errors to HTTP; not-found and gone share one body shape."""
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            break
    else:
        status_code = 500

    detail = "Storage unavailable" if isinstance(exc, StorageError) else str(exc)
    return JSONResponse(status_code=status_code, content={"detail": detail})


app.add_exception_handler(SecretServiceError, secret_error_handler)

# Logging / correlation IDs
app.add_middleware(LoggingMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(secrets.router, prefix="/api/v1", tags=["secrets"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
