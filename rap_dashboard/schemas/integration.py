"""
Automation (n8n) integration schemas.
"""
import uuid
from typing import Optional, List, Any, Dict
from datetime import datetime

from pydantic import BaseModel

from rap_dashboard.schemas.common import CamelModel


class AutomationRequest(CamelModel):
    """Data pushed by an automation workflow."""
    data_type: Optional[str] = None
    campaign_type: Optional[str] = None
    data: Optional[Any] = None
    source: Optional[str] = "n8n"
    metadata: Optional[Dict[str, Any]] = {}

    class Config:
        json_schema_extra = {
            "example": {
                "dataType": "email_contacts",
                "data": [
                    {"fullName": "Jane Doe", "emailAddress": "jane@acme.io", "wasOpened": "true"}
                ],
                "metadata": {"campaignName": "Spring Launch", "datasetId": "n8n-spring"}
            }
        }


class AutomationResponse(CamelModel):
    success: bool
    message: str
    data_type: str
    processed_records: int
    inserted_ids: List[str] = []


class AuditLogResponse(BaseModel):
    """Audit log entry."""
    id: uuid.UUID
    source: str
    event_type: str
    data: Dict[str, Any]
    status: str
    error_message: Optional[str]
    processed_at: datetime

    class Config:
        from_attributes = True


class RecentImportsResponse(BaseModel):
    imports: List[AuditLogResponse]
    count: int


class IntegrationHealthResponse(BaseModel):
    status: str = "healthy"
    service: str = "n8n-integration"
    timestamp: str
    endpoints: Dict[str, str]
