"""
Store writer - persists canonical records per channel.

The only component that writes contact rows. LinkedIn contacts are upserted
on their profile URL when a conflict key is given; every other channel is
append-only. Store failures surface as StoreError / StoreTimeoutError and
are never retried here.
"""
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Type

from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from rap_dashboard.core.exceptions import UnsupportedTypeError
from rap_dashboard.repositories.base import BaseRepository
from rap_dashboard.repositories.contact_repo import (
    LinkedInContactRepository, EmailContactRepository, WebinarAttendeeRepository
)
from rap_dashboard.repositories.dataset_repo import DatasetRepository
from rap_dashboard.services.normalizer import CHANNELS

logger = logging.getLogger(__name__)


class StoreWriter:
    """Upsert-or-insert per canonical channel."""

    def __init__(self, session: AsyncSession, timeout: Optional[float] = None):
        self.session = session
        self.timeout = timeout
        self.linkedin_repo = LinkedInContactRepository(session, timeout)
        self.repos = {
            "linkedin": self.linkedin_repo,
            "email": EmailContactRepository(session, timeout),
            "webinar": WebinarAttendeeRepository(session, timeout),
        }
        self.dataset_repo = DatasetRepository(session, timeout)

    def _repo(self, channel: str) -> BaseRepository:
        repo = self.repos.get(channel)
        if repo is None:
            raise UnsupportedTypeError("campaign type", channel, CHANNELS)
        return repo

    async def upsert(
        self,
        channel: str,
        record: Dict[str, Any],
        conflict_key: Optional[str] = None
    ):
        """
        Insert one record, or insert-or-update on the conflict key.
        Only LinkedIn contacts have a conflict key (linkedin_url).
        """
        if conflict_key:
            if channel != "linkedin" or conflict_key != "linkedin_url":
                raise UnsupportedTypeError("conflict key", f"{channel}.{conflict_key}")
            return await self.linkedin_repo.upsert(record)
        return await self._repo(channel).create(record)

    async def bulk_insert(
        self,
        channel: str,
        records: List[Dict[str, Any]],
        conflict_key: Optional[str] = None
    ) -> List[uuid.UUID]:
        """
        Insert a batch as one unit; either every row commits or none does.

        Returns:
            Ids of the stored rows.
        """
        if conflict_key:
            if channel != "linkedin" or conflict_key != "linkedin_url":
                raise UnsupportedTypeError("conflict key", f"{channel}.{conflict_key}")
            ids = await self.linkedin_repo.bulk_upsert(records, conflict_key)
        else:
            rows = await self._repo(channel).bulk_create(records)
            ids = [row.id for row in rows]

        logger.info("Stored %d %s records", len(ids), channel, extra={"channel": channel, "rows": len(ids)})
        return ids

    async def transition(
        self,
        linkedin_url: str,
        status: str,
        at: datetime,
        stub: Dict[str, Any]
    ) -> str:
        """Apply a pending -> accepted/declined transition. Returns a TransitionOutcome."""
        return await self.linkedin_repo.transition(linkedin_url, status, at, stub)

    async def append(self, model: Type[SQLModel], record: Dict[str, Any]) -> SQLModel:
        """Append a row to an auxiliary log table (messages, profile views, tasks)."""
        return await BaseRepository(model, self.session, self.timeout).create(record)

    async def append_many(self, model: Type[SQLModel], records: List[Dict[str, Any]]) -> List[uuid.UUID]:
        rows = await BaseRepository(model, self.session, self.timeout).bulk_create(records)
        return [row.id for row in rows]

    async def delete_by_key(self, dataset_id: uuid.UUID) -> Optional[Dict[str, int]]:
        """Delete a dataset together with the rows it owns."""
        deleted = await self.dataset_repo.delete_cascade(dataset_id)
        if deleted is not None:
            logger.info("Deleted dataset %s and child rows %s", dataset_id, deleted)
        return deleted
