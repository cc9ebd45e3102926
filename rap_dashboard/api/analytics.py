"""
Analytics API routes.
"""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from rap_dashboard.database import get_session
from rap_dashboard.services.analytics_service import AnalyticsService
from rap_dashboard.services.insight_service import InsightService
from rap_dashboard.schemas.common import error_responses
from rap_dashboard.schemas.analytics import (
    DashboardResponse, TrendPoint, CampaignPerformance, InsightResponse, InsightGenerateRequest
)

router = APIRouter(
    prefix="/api/analytics",
    tags=["analytics"],
    responses=error_responses(400, 500, 504)
)


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(session: AsyncSession = Depends(get_session)):
    """Channel statistics and the latest insights."""
    return await AnalyticsService(session).get_dashboard()


@router.get("/linkedin/trends", response_model=List[TrendPoint])
async def get_linkedin_trends(
    timeframe: str = Query("30d"),
    session: AsyncSession = Depends(get_session)
):
    """Daily sent/accepted series for the last 7, 30 or 90 days."""
    return await AnalyticsService(session).get_linkedin_trends(timeframe)


@router.get("/email/performance", response_model=List[CampaignPerformance])
async def get_email_performance(session: AsyncSession = Depends(get_session)):
    """Email open and reply rates per campaign."""
    return await AnalyticsService(session).get_email_performance()


@router.post("/insights/generate", response_model=InsightResponse)
async def generate_insight(
    data: InsightGenerateRequest,
    session: AsyncSession = Depends(get_session)
):
    """Generate and store a new insight."""
    return await InsightService(session).generate(data.type)


@router.get("/insights", response_model=List[InsightResponse])
async def list_insights(
    limit: int = Query(10, ge=1, le=50),
    session: AsyncSession = Depends(get_session)
):
    return await InsightService(session).get_recent(limit=limit)
