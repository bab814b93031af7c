"""Background scheduler for periodic cleanup tasks."""

import structlog
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from burnlink.config import settings
from burnlink.database import SessionLocal
from burnlink.services.audit_service import AuditLog
from burnlink.services.cache_service import NullCacheBackend, SecretCache
from burnlink.services.secret_service import SecretLifecycleManager
from burnlink.services.secret_store import SecretStore

logger = structlog.get_logger()

scheduler = BackgroundScheduler()


def cleanup_job() -> None:
    """Drop payloads of expired and long-delivered secrets."""
    db = SessionLocal()
    try:
        manager = SecretLifecycleManager(
            store=SecretStore(db),
            cache=SecretCache(NullCacheBackend()),
            audit=AuditLog(db),
        )
        cleared = manager.purge_unavailable_secrets()
        if cleared:
            logger.info("cleanup_completed", cleared=cleared)
    except Exception as e:
        logger.error("cleanup_failed", error=str(e), error_type=type(e).__name__)
    finally:
        db.close()


def start_scheduler() -> None:
    """Start the background scheduler."""
    scheduler.add_job(
        cleanup_job,
        trigger=IntervalTrigger(minutes=settings.cleanup_interval_minutes),
        id="purge_unavailable_secrets",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("scheduler_started", interval_minutes=settings.cleanup_interval_minutes)


def shutdown_scheduler() -> None:
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("scheduler_stopped")
