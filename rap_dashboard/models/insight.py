"""
Insight model - rule-derived performance summary.
Created only by the insight engine, never updated.
"""
import uuid
from datetime import datetime
from typing import List

from sqlmodel import SQLModel, Field
from sqlalchemy import Column

from rap_dashboard.models.types import JSONType, utcnow


class Insight(SQLModel, table=True):
    __tablename__ = "ai_insights"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    type: str = Field(index=True)  # daily, weekly, monthly, campaign
    title: str
    summary: str
    recommendations: List[str] = Field(default=[], sa_column=Column(JSONType))

    created_at: datetime = Field(default_factory=utcnow, index=True)


INSIGHT_TYPES = ("daily", "weekly", "monthly", "campaign")
