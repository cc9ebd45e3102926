"""
Dataset repository.
"""
import uuid
from typing import Optional, Dict

from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import delete

from rap_dashboard.models.dataset import Dataset
from rap_dashboard.models.contact import LinkedInContact, EmailContact, WebinarAttendee
from rap_dashboard.repositories.base import BaseRepository

CHILD_MODELS = (LinkedInContact, EmailContact, WebinarAttendee)


class DatasetRepository(BaseRepository[Dataset]):
    """Repository for Dataset operations."""

    def __init__(self, session: AsyncSession, timeout: Optional[float] = None):
        super().__init__(Dataset, session, timeout)

    async def update_status(self, dataset_id: uuid.UUID, status: str) -> Optional[Dataset]:
        """Set the processing status of a dataset."""
        async def _update():
            dataset = await self.session.get(Dataset, dataset_id)
            if not dataset:
                return None
            dataset.status = status
            self.session.add(dataset)
            await self.session.commit()
            await self.session.refresh(dataset)
            return dataset

        return await self._run(f"Update {self.table}", _update())

    async def delete_cascade(self, dataset_id: uuid.UUID) -> Optional[Dict[str, int]]:
        """
        Delete a dataset and every child row that references it, in one transaction.

        Returns:
            Deleted row counts per child table, or None if the dataset does not exist.
        """
        async def _delete():
            dataset = await self.session.get(Dataset, dataset_id)
            if not dataset:
                return None

            deleted = {}
            for model in CHILD_MODELS:
                stmt = delete(model).where(model.dataset_id == str(dataset_id))
                result = await self.session.execute(stmt)
                deleted[model.__tablename__] = result.rowcount or 0

            await self.session.delete(dataset)
            await self.session.commit()
            return deleted

        return await self._run(f"Delete from {self.table}", _delete())
