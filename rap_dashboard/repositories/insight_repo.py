"""
Insight repository. Insights are append-only.
"""
from typing import Optional, List

from sqlmodel.ext.asyncio.session import AsyncSession

from rap_dashboard.models.insight import Insight
from rap_dashboard.repositories.base import BaseRepository


class InsightRepository(BaseRepository[Insight]):
    """Repository for Insight operations."""

    def __init__(self, session: AsyncSession, timeout: Optional[float] = None):
        super().__init__(Insight, session, timeout)

    async def get_recent(self, limit: int = 5, type: Optional[str] = None) -> List[Insight]:
        """Newest insights first."""
        return await self.list(filters={"type": type}, limit=limit)
