from dataclasses import dataclass

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from burnlink.models.audit_event import AuditEvent

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class Requester:
    ip_address: str | None = None
    user_agent: str | None = None


class AuditLog:
    """
    Best-effort audit trail.

    Failures are logged and swallowed: an audit write must never abort or roll
    back the lifecycle operation it documents. Callers record events only
    after their own changes are committed.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def record(self, secret_id: str, event_type: str, requester: Requester | None = None) -> bool:
        requester = requester or Requester()
        try:
            self.db.add(
                AuditEvent(
                    secret_id=secret_id,
                    event_type=event_type,
                    ip_address=requester.ip_address,
                    user_agent=requester.user_agent[:512] if requester.user_agent else None,
                )
            )
            self.db.commit()
            return True
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                "audit_write_failed",
                secret_ref=secret_id[:4],
                event_type=event_type,
                error=str(e),
            )
            return False
