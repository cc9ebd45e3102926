"""
Audit service - ingestion attempt logging.

Audit writes are best-effort: a failure is logged to the operational log
and never changes the outcome of the request being audited.
"""
import logging
from typing import Optional, List, Dict, Any

from sqlmodel.ext.asyncio.session import AsyncSession

from rap_dashboard.core.exceptions import RapDashboardException
from rap_dashboard.models.audit import AuditLogEntry, AuditStatus
from rap_dashboard.repositories.audit_repo import AuditLogRepository

logger = logging.getLogger(__name__)


class AuditService:
    """Service for audit logging."""

    def __init__(self, session: AsyncSession, timeout: Optional[float] = None):
        self.session = session
        self.audit_repo = AuditLogRepository(session, timeout)

    async def record(
        self,
        source: str,
        event_type: str,
        data: Optional[Dict[str, Any]] = None,
        error: Optional[Exception] = None
    ) -> Optional[AuditLogEntry]:
        """
        Write one audit entry for an ingestion attempt.

        Returns:
            The stored entry, or None if the write failed.
        """
        status = AuditStatus.ERROR if error is not None else AuditStatus.SUCCESS
        error_message = None
        if error is not None:
            error_message = error.message if isinstance(error, RapDashboardException) else str(error)

        try:
            return await self.audit_repo.log(
                source=source,
                event_type=event_type or "unknown",
                status=status,
                data=data if isinstance(data, dict) else {"payload": data},
                error_message=error_message,
            )
        except Exception:
            logger.exception("Failed to write audit entry for %s/%s", source, event_type)
            await self.session.rollback()
            return None

    async def get_recent(self, source: Optional[str] = None, limit: int = 10) -> List[AuditLogEntry]:
        """Get recent entries for the imports feed."""
        return await self.audit_repo.get_recent(source, limit)
