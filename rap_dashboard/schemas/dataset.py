"""
Dataset and file-batch schemas.
"""
import uuid
from typing import Optional, List, Any, Dict
from datetime import datetime

from pydantic import BaseModel

from rap_dashboard.schemas.common import CamelModel


class DataProcessRequest(CamelModel):
    """
    Parsed upload. Fields are loosely typed so missing or malformed values
    are reported as 400 by the import service.
    """
    file_data: Optional[Any] = None
    campaign_type: Optional[str] = None
    file_name: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "fileData": [
                    {"Name": "Jane Doe", "Company": "Acme SaaS", "LinkedIn URL": "https://linkedin.com/in/janedoe"}
                ],
                "campaignType": "linkedin",
                "fileName": "april-outreach.csv"
            }
        }


class DataProcessResponse(CamelModel):
    success: bool
    message: str
    processed_rows: int
    dataset_id: str


class DatasetResponse(BaseModel):
    """Dataset response."""
    id: uuid.UUID
    name: str
    type: str
    row_count: int
    tags: List[str]
    file_path: str
    user_id: str
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class DatasetDeleteResponse(CamelModel):
    success: bool
    message: str
    deleted_rows: Dict[str, int]
