"""
Audit log model - one row per ingestion attempt.
Append-only; used for debugging producers and the recent-imports feed.
"""
import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from sqlmodel import SQLModel, Field
from sqlalchemy import Column

from rap_dashboard.models.types import JSONType, utcnow


class AuditLogEntry(SQLModel, table=True):
    """
    Ingestion attempt record, written for successes and failures alike.
    """
    __tablename__ = "audit_log"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    source: str = Field(index=True)  # linkedin, n8n, file-upload
    event_type: str = Field(index=True)  # webhook eventType, dataType or campaignType

    # Raw inbound payload
    data: Dict[str, Any] = Field(default={}, sa_column=Column(JSONType))

    status: str = Field(index=True)  # success, error
    error_message: Optional[str] = None

    processed_at: datetime = Field(default_factory=utcnow, index=True)


# Source constants for consistency
class AuditSources:
    LINKEDIN_WEBHOOK = "linkedin"
    AUTOMATION = "n8n"
    FILE_UPLOAD = "file-upload"


class AuditStatus:
    SUCCESS = "success"
    ERROR = "error"
