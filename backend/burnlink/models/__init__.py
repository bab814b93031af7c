from burnlink.models.audit_event import AuditEvent
from burnlink.models.secret import Secret

__all__ = ["AuditEvent", "Secret"]
