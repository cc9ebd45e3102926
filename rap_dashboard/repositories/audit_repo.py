"""
Audit log repository.
"""
from typing import Optional, List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from rap_dashboard.models.audit import AuditLogEntry
from rap_dashboard.repositories.base import BaseRepository


class AuditLogRepository(BaseRepository[AuditLogEntry]):
    """Repository for AuditLogEntry operations."""

    def __init__(self, session: AsyncSession, timeout: Optional[float] = None):
        super().__init__(AuditLogEntry, session, timeout)

    async def log(
        self,
        source: str,
        event_type: str,
        status: str,
        data: Optional[dict] = None,
        error_message: Optional[str] = None
    ) -> AuditLogEntry:
        """Create an audit log entry."""
        return await self.create({
            "source": source,
            "event_type": event_type,
            "status": status,
            "data": data or {},
            "error_message": error_message,
        })

    async def get_recent(self, source: Optional[str] = None, limit: int = 10) -> List[AuditLogEntry]:
        """Get recent entries, optionally for one source."""
        async def _recent():
            query = select(AuditLogEntry)
            if source:
                query = query.where(AuditLogEntry.source == source)
            query = query.order_by(AuditLogEntry.processed_at.desc()).limit(limit)
            result = await self.session.exec(query)
            return result.all()

        return await self._run(f"Read from {self.table}", _recent())
