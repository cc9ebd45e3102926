"""
Dataset service - dataset bookkeeping and tag generation.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from rap_dashboard.core.exceptions import NotFoundError
from rap_dashboard.models.dataset import Dataset, DatasetStatus
from rap_dashboard.repositories.dataset_repo import DatasetRepository
from rap_dashboard.services.normalizer import resolve_field, FIELD_SPECS
from rap_dashboard.services.store_writer import StoreWriter

logger = logging.getLogger(__name__)

CHANNEL_TAGS = {
    "linkedin": "LinkedIn",
    "email": "Email",
    "webinar": "Webinar",
}

INDUSTRY_KEYWORDS = {
    "SaaS": ("saas", "software", "tech", "app", "platform"),
    "FinTech": ("fintech", "finance", "bank", "payment", "crypto"),
    "Healthcare": ("health", "medical", "pharma", "bio", "clinic"),
    "E-commerce": ("ecommerce", "e-commerce", "retail", "shop", "marketplace", "commerce"),
    "Education": ("education", "school", "university", "learning", "academy"),
}

TAG_SAMPLE_SIZE = 20


def generate_tags(rows: List[Dict[str, Any]], campaign_type: str) -> List[str]:
    """
    Derive heuristic dataset labels.

    Channel label, a size bucket, then industry tags matched on the
    company names of the first rows.
    """
    tags = [CHANNEL_TAGS.get(campaign_type, campaign_type)]

    if len(rows) > 1000:
        tags.append("Large Dataset")
    elif len(rows) > 100:
        tags.append("Medium Dataset")
    else:
        tags.append("Small Dataset")

    company_aliases = FIELD_SPECS["linkedin"]["company"].aliases
    companies = []
    for row in rows[:TAG_SAMPLE_SIZE]:
        if isinstance(row, dict):
            company = resolve_field(row, company_aliases)
            if company is not None:
                companies.append(str(company).lower())

    for industry, keywords in INDUSTRY_KEYWORDS.items():
        if any(keyword in company for company in companies for keyword in keywords):
            tags.append(industry)

    return tags


class DatasetService:
    """Service for dataset operations."""

    def __init__(self, session: AsyncSession, timeout: Optional[float] = None):
        self.session = session
        self.dataset_repo = DatasetRepository(session, timeout)
        self.writer = StoreWriter(session, timeout)

    async def create(
        self,
        name: str,
        campaign_type: str,
        rows: List[Dict[str, Any]],
        user_id: str = "system"
    ) -> Dataset:
        """Create a dataset in processing state."""
        return await self.dataset_repo.create({
            "name": name,
            "type": campaign_type,
            "row_count": len(rows),
            "tags": generate_tags(rows, campaign_type),
            "file_path": f"processed/{name}",
            "user_id": user_id,
            "status": DatasetStatus.PROCESSING,
        })

    async def mark(self, dataset_id: uuid.UUID, status: str) -> Optional[Dataset]:
        return await self.dataset_repo.update_status(dataset_id, status)

    async def list(self) -> List[Dataset]:
        """All datasets, newest first."""
        return await self.dataset_repo.list(order_by="created_at", order_desc=True)

    async def delete(self, dataset_id: uuid.UUID) -> Dict[str, int]:
        """
        Delete a dataset and its rows.

        Raises:
            NotFoundError: if the dataset does not exist
        """
        deleted = await self.writer.delete_by_key(dataset_id)
        if deleted is None:
            raise NotFoundError("Dataset", str(dataset_id))
        return deleted
