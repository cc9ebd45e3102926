"""
Automation service - ingests data pushed by n8n workflows.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from rap_dashboard.config import settings
from rap_dashboard.core.exceptions import (
    RapDashboardException, ValidationError, UnsupportedTypeError, StoreError, wrap_exception
)
from rap_dashboard.models.audit import AuditSources
from rap_dashboard.models.contact import AUTOMATION_CAMPAIGN
from rap_dashboard.models.metrics import CampaignMetric, RawDataImport
from rap_dashboard.services.audit_service import AuditService
from rap_dashboard.services.normalizer import normalize_many, resolve_field
from rap_dashboard.services.store_writer import StoreWriter

logger = logging.getLogger(__name__)

AUTOMATION_DATASET = "n8n-import"

# dataType -> canonical channel; None means stored generically
DATA_TYPES = {
    "linkedin_contacts": "linkedin",
    "email_contacts": "email",
    "webinar_attendees": "webinar",
    "campaign_metrics": None,
    "raw_data": None,
}


def canonical_data_type(data_type: str) -> Optional[str]:
    """Accept hyphenated spellings: 'linkedin-contacts' -> 'linkedin_contacts'."""
    key = data_type.strip().lower().replace("-", "_")
    return key if key in DATA_TYPES else None


def metadata_defaults(channel: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
    """Normalizer default overrides drawn from the callback metadata."""
    if channel == "linkedin":
        return {"campaign_id": metadata.get("campaignId") or AUTOMATION_CAMPAIGN}
    if channel == "email":
        return {"campaign_name": metadata.get("campaignName") or "n8n Campaign"}
    if channel == "webinar":
        return {"webinar_id": metadata.get("webinarId") or "n8n-webinar"}
    return {}


class AutomationService:
    """Dispatches automation callbacks by dataType."""

    def __init__(
        self,
        session: AsyncSession,
        enum_policy: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        self.session = session
        self.enum_policy = enum_policy or settings.ENUM_VALIDATION
        self.writer = StoreWriter(session, timeout)
        self.audit = AuditService(session, timeout)

    async def process(
        self,
        data_type: Optional[str],
        data: Any,
        campaign_type: Optional[str] = None,
        source: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        today: Optional[date] = None
    ) -> Dict[str, Any]:
        """
        Handle one callback.

        Returns:
            {success, message, dataType, processedRecords, insertedIds}
        """
        source = source or AuditSources.AUTOMATION
        # Producer label, kept in the payload only. Entries are filed under AUTOMATION.
        metadata = metadata if isinstance(metadata, dict) else {}
        payload = {
            "dataType": data_type,
            "campaignType": campaign_type,
            "data": data,
            "source": source,
            "metadata": metadata,
        }
        try:
            count, ids = await self._process(data_type, data, metadata, today)
        except Exception as e:
            error = wrap_exception(e)
            if isinstance(e, RapDashboardException):
                logger.warning("Automation callback %s rejected: %s", data_type, error.message)
            else:
                logger.exception("Automation callback %s failed", data_type)
            await self.session.rollback()
            await self.audit.record(
                AuditSources.AUTOMATION, data_type if isinstance(data_type, str) else None,
                payload, error=error
            )
            if error is e:
                raise
            raise error from e

        await self.audit.record(AuditSources.AUTOMATION, data_type, payload)
        return {
            "success": True,
            "message": "Data processed successfully",
            "dataType": data_type,
            "processedRecords": count,
            "insertedIds": [str(i) for i in ids],
        }

    async def _process(self, data_type, data, metadata, today):
        if not data_type or data is None or data == "":
            raise ValidationError("Missing required fields: dataType and data are required")
        if not isinstance(data_type, str):
            raise ValidationError("must be a string", field="dataType")

        key = canonical_data_type(data_type)
        if key is None:
            raise UnsupportedTypeError("dataType", data_type, list(DATA_TYPES))

        records = data if isinstance(data, list) else [data]
        channel = DATA_TYPES[key]

        if channel is not None:
            return await self._store_contacts(channel, records, metadata, today)
        if key == "campaign_metrics":
            return await self._store_generic(CampaignMetric, self._metric_rows(records, metadata, today))
        return await self._store_generic(RawDataImport, self._raw_rows(records, metadata))

    async def _store_contacts(self, channel, records, metadata, today):
        rows = normalize_many(
            channel, records,
            defaults=metadata_defaults(channel, metadata),
            enum_policy=self.enum_policy,
            today=today,
        )
        dataset_id = str(metadata.get("datasetId") or AUTOMATION_DATASET)
        for row in rows:
            row["dataset_id"] = dataset_id

        if channel == "linkedin":
            # Rows without a profile URL never conflict and are plain inserts
            ids = await self.writer.bulk_insert(channel, rows, conflict_key="linkedin_url")
        else:
            ids = await self.writer.bulk_insert(channel, rows)

        logger.info("Automation stored %d %s records", len(rows), channel)
        return len(rows), ids

    async def _store_generic(self, model, rows: List[Dict[str, Any]]):
        try:
            ids = await self.writer.append_many(model, rows)
        except StoreError as e:
            # Table missing or unwritable: keep the data in the operational log
            logger.warning(
                "Could not store %d %s rows (%s); received: %s",
                len(rows), model.__tablename__, e.message, rows
            )
            return len(rows), []
        return len(rows), ids

    def _metric_rows(self, records, metadata, today):
        today = today or date.today()
        rows = []
        for metric in records:
            if not isinstance(metric, dict):
                raise ValidationError("metric must be an object")
            value = resolve_field(metric, ("value", "metric_value"))
            try:
                value = float(value) if value is not None else None
            except (TypeError, ValueError):
                raise ValidationError(f"'{value}' is not a number", field="metricValue")
            metric_date = resolve_field(metric, ("date", "metric_date"))
            rows.append({
                "campaign_id": resolve_field(metric, ("campaign_id",)) or metadata.get("campaignId"),
                "campaign_name": resolve_field(metric, ("campaign_name",)) or metadata.get("campaignName"),
                "metric_type": resolve_field(metric, ("metric_type",)) or "general",
                "metric_value": value,
                "metric_date": str(metric_date) if metric_date is not None else today.isoformat(),
                "source": AuditSources.AUTOMATION,
                "raw_data": metric,
            })
        return rows

    def _raw_rows(self, records, metadata):
        return [
            {
                "data_type": metadata.get("dataType") or "unknown",
                "source": AuditSources.AUTOMATION,
                "raw_data": record if isinstance(record, dict) else {"value": record},
                "meta_data": metadata,
            }
            for record in records
        ]
