import logging
from typing import Optional
from datetime import datetime

from onboarding.database.models.audit_log_model import AuditLog

logger = logging.getLogger(__name__)


class AuditService:
    """Writes audit logs to MongoDB using Beanie."""

    async def create_audit(self, *, action: str, actor: Optional[str] = None, acted: Optional[str] = None, status: str = "successful", timestamp: Optional[datetime] = None) -> AuditLog:
        audit = AuditLog(
            action=action,
            actor=actor,
            acted=acted,
            status=status,
            timestamp=timestamp or datetime.utcnow(),
        )
        await audit.insert()
        return audit

    # Audit writes never fail the operation that triggered them
    async def record(self, action: str, actor: Optional[str] = None, acted: Optional[str] = None, status: str = "successful") -> None:
        try:
            await self.create_audit(action=action, actor=actor, acted=acted, status=status)
        except Exception:
            logger.exception("Failed to write audit log for action=%s acted=%s", action, acted)


audit_service = AuditService()
