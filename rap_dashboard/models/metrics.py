"""
Generic catch-all models for automation payloads that have no
canonical schema (campaign metrics, raw data).
"""
import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from sqlmodel import SQLModel, Field
from sqlalchemy import Column

from rap_dashboard.models.types import JSONType, utcnow


class CampaignMetric(SQLModel, table=True):
    __tablename__ = "campaign_metrics"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    campaign_id: Optional[str] = Field(default=None, index=True)
    campaign_name: Optional[str] = None
    metric_type: str = Field(default="general", index=True)
    metric_value: Optional[float] = None
    metric_date: Optional[str] = None

    source: str = Field(default="n8n")
    raw_data: Dict[str, Any] = Field(default={}, sa_column=Column(JSONType))

    created_at: datetime = Field(default_factory=utcnow)


class RawDataImport(SQLModel, table=True):
    __tablename__ = "raw_data_imports"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    data_type: str = Field(default="unknown", index=True)
    source: str = Field(default="n8n")
    raw_data: Dict[str, Any] = Field(default={}, sa_column=Column(JSONType))
    # "metadata" is reserved on declarative classes
    meta_data: Dict[str, Any] = Field(default={}, sa_column=Column("metadata", JSONType))

    created_at: datetime = Field(default_factory=utcnow)
