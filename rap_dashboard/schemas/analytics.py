"""
Analytics and insight schemas.
"""
import uuid
from typing import List
from datetime import datetime

from pydantic import BaseModel

from rap_dashboard.schemas.common import CamelModel


class LinkedInStats(CamelModel):
    total_sent: int
    accepted: int
    pending: int
    declined: int
    acceptance_rate: float


class EmailStats(CamelModel):
    total_sent: int
    opened: int
    replied: int
    open_rate: float
    reply_rate: float


class WebinarStats(CamelModel):
    total_invited: int
    confirmed: int
    pending: int
    declined: int
    rsvp_rate: float


class InsightResponse(BaseModel):
    """Insight response."""
    id: uuid.UUID
    type: str
    title: str
    summary: str
    recommendations: List[str]
    created_at: datetime

    class Config:
        from_attributes = True


class DashboardResponse(CamelModel):
    linkedin: LinkedInStats
    email: EmailStats
    webinar: WebinarStats
    insights: List[InsightResponse]
    last_updated: str


class TrendPoint(CamelModel):
    date: str
    sent: int
    accepted: int
    acceptance_rate: float


class CampaignPerformance(CamelModel):
    name: str
    sent: int
    opened: int
    replied: int
    open_rate: float
    reply_rate: float


class InsightGenerateRequest(BaseModel):
    type: str = "weekly"

    class Config:
        json_schema_extra = {"example": {"type": "weekly"}}
