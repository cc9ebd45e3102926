"""
File import service - ingests an uploaded batch of already-parsed rows.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from rap_dashboard.config import settings
from rap_dashboard.core.exceptions import (
    RapDashboardException, ValidationError, UnsupportedTypeError, wrap_exception
)
from rap_dashboard.models.audit import AuditSources
from rap_dashboard.models.dataset import DatasetStatus
from rap_dashboard.services.audit_service import AuditService
from rap_dashboard.services.dataset_service import DatasetService
from rap_dashboard.services.normalizer import CHANNELS, normalize_many
from rap_dashboard.services.store_writer import StoreWriter

logger = logging.getLogger(__name__)


class FileImportService:
    """Normalize a file batch, register its dataset and store its rows."""

    def __init__(
        self,
        session: AsyncSession,
        enum_policy: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        self.session = session
        self.enum_policy = enum_policy or settings.ENUM_VALIDATION
        self.writer = StoreWriter(session, timeout)
        self.datasets = DatasetService(session, timeout)
        self.audit = AuditService(session, timeout)

    async def process(
        self,
        file_data: Any,
        campaign_type: Optional[str],
        file_name: Optional[str] = None,
        today: Optional[date] = None
    ) -> Dict[str, Any]:
        """
        Process one upload.

        Every row is normalized before anything is written, so a bad row
        leaves no dataset behind. If the row insert fails the dataset stays,
        marked failed, and the error propagates.

        Returns:
            {success, message, processedRows, datasetId}
        """
        payload = {
            "campaignType": campaign_type,
            "fileName": file_name,
            "rowCount": len(file_data) if isinstance(file_data, list) else None,
        }
        try:
            result = await self._process(file_data, campaign_type, file_name, today)
        except Exception as e:
            error = wrap_exception(e)
            if isinstance(e, RapDashboardException):
                logger.warning("File import rejected: %s", error.message)
            else:
                logger.exception("File import failed")
            await self.session.rollback()
            await self.audit.record(AuditSources.FILE_UPLOAD, campaign_type, payload, error=error)
            if error is e:
                raise
            raise error from e

        await self.audit.record(AuditSources.FILE_UPLOAD, campaign_type, {**payload, "datasetId": result["datasetId"]})
        return result

    async def _process(self, file_data, campaign_type, file_name, today) -> Dict[str, Any]:
        if file_data is None or not campaign_type:
            raise ValidationError("Missing required fields: fileData, campaignType")
        if not isinstance(file_data, list):
            raise ValidationError("fileData must be an array of rows", field="fileData")
        if campaign_type not in CHANNELS:
            raise UnsupportedTypeError("campaign type", campaign_type, CHANNELS)

        rows = normalize_many(
            campaign_type, file_data, enum_policy=self.enum_policy, today=today
        )

        name = file_name or f"{campaign_type}-upload"
        dataset = await self.datasets.create(name, campaign_type, file_data)
        dataset_id = dataset.id

        for row in rows:
            row["dataset_id"] = str(dataset_id)

        try:
            if campaign_type == "linkedin":
                # Re-uploading a profile updates it instead of violating the URL key
                await self.writer.bulk_insert(campaign_type, rows, conflict_key="linkedin_url")
            else:
                await self.writer.bulk_insert(campaign_type, rows)
        except RapDashboardException:
            logger.error("Row insert failed for dataset %s, marking failed", dataset_id)
            await self.datasets.mark(dataset_id, DatasetStatus.FAILED)
            raise

        await self.datasets.mark(dataset_id, DatasetStatus.COMPLETED)
        logger.info(
            "Processed %d %s rows into dataset %s", len(rows), campaign_type, dataset_id,
            extra={"dataset_id": str(dataset_id), "rows": len(rows)}
        )

        return {
            "success": True,
            "message": f"Successfully processed {len(rows)} {campaign_type} records",
            "processedRows": len(rows),
            "datasetId": str(dataset_id),
        }
