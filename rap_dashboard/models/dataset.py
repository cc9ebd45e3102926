"""
Dataset model - one uploaded or imported batch of campaign rows.
"""
import uuid
from datetime import datetime
from typing import List

from sqlmodel import SQLModel, Field
from sqlalchemy import Column

from rap_dashboard.models.types import JSONType, utcnow


class Dataset(SQLModel, table=True):
    """
    Dataset entity - owns the contact/attendee rows inserted under its id.
    Rows reference it through their `dataset_id` column, not a relationship.
    """
    __tablename__ = "datasets"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    name: str = Field(index=True)
    type: str = Field(index=True)  # linkedin, email, webinar
    row_count: int = Field(default=0)

    # Heuristic labels derived from the uploaded content
    tags: List[str] = Field(default=[], sa_column=Column(JSONType))

    file_path: str
    user_id: str = Field(default="system")

    # processing -> completed | failed
    status: str = Field(default="processing", index=True)

    created_at: datetime = Field(default_factory=utcnow, index=True)


class DatasetStatus:
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
