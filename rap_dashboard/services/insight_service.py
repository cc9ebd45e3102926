"""
Insight service - rule-based performance insights.

Recommendations come from a fixed threshold table; every matching rule
contributes, and the fallback applies only when none match. Insights are
append-only: generating twice stores two records.
"""
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from rap_dashboard.core.exceptions import UnsupportedTypeError
from rap_dashboard.models.insight import Insight, INSIGHT_TYPES
from rap_dashboard.models.types import utcnow
from rap_dashboard.repositories.insight_repo import InsightRepository
from rap_dashboard.services.analytics_service import AnalyticsService

logger = logging.getLogger(__name__)

# On-demand generation reads a week of records whatever the type; the daily
# job passes DAILY_LOOKBACK
LOOKBACK = timedelta(days=7)
DAILY_LOOKBACK = timedelta(hours=24)

# (stats group, metric, comparison, threshold, recommendation)
RECOMMENDATION_RULES = (
    ("linkedin", "acceptanceRate", "<", 20,
     "LinkedIn acceptance rate is below industry average. Make sure to personalize connection messages."),
    ("linkedin", "acceptanceRate", ">", 30,
     "Excellent LinkedIn performance! Now is a good time to scale up outreach."),
    ("email", "openRate", "<", 25,
     "Email open rates could be improved. Set up campaigns to A/B test subject lines."),
    ("email", "openRate", ">", 35,
     "Great email engagement! You can safely increase send frequency."),
    ("email", "replyRate", ">", 10,
     "High email reply rate indicates strong message relevance. Plan to reuse messaging strategy in future campaigns."),
)

FALLBACK_RECOMMENDATION = "Performance is stable, continue current strategy."


def generate_recommendations(linkedin_stats: Dict[str, Any], email_stats: Dict[str, Any]) -> List[str]:
    stats = {"linkedin": linkedin_stats, "email": email_stats}
    recommendations = []
    for group, metric, op, threshold, text in RECOMMENDATION_RULES:
        value = stats[group].get(metric, 0)
        if (op == "<" and value < threshold) or (op == ">" and value > threshold):
            recommendations.append(text)
    return recommendations or [FALLBACK_RECOMMENDATION]


def build_insight(
    type: str,
    linkedin_stats: Dict[str, Any],
    email_stats: Dict[str, Any],
    title: Optional[str] = None
) -> Dict[str, Any]:
    """Title, summary and recommendations for an insight record."""
    label = type.capitalize()
    summary = (
        f"{label} performance summary: {linkedin_stats['totalSent']} LinkedIn requests sent "
        f"with {linkedin_stats['acceptanceRate']:.1f}% acceptance rate. "
        f"{email_stats['totalSent']} emails sent with {email_stats['openRate']:.1f}% open rate "
        f"and {email_stats['replyRate']:.1f}% reply rate."
    )
    return {
        "type": type,
        "title": title or f"{label} Performance Analysis",
        "summary": summary,
        "recommendations": generate_recommendations(linkedin_stats, email_stats),
    }


class InsightService:
    """Service for insight generation and retrieval."""

    def __init__(self, session: AsyncSession, timeout: Optional[float] = None):
        self.session = session
        self.insight_repo = InsightRepository(session, timeout)
        self.analytics = AnalyticsService(session, timeout)

    async def generate(
        self,
        type: str = "weekly",
        title: Optional[str] = None,
        lookback: timedelta = LOOKBACK
    ) -> Insight:
        """
        Compute stats over the lookback window and persist a new insight.

        Raises:
            UnsupportedTypeError: unknown insight type
        """
        if type not in INSIGHT_TYPES:
            raise UnsupportedTypeError("insight type", type, INSIGHT_TYPES)

        since = utcnow() - lookback
        linkedin_stats = await self.analytics.linkedin_stats(since=since)
        email_stats = await self.analytics.email_stats(since=since)

        insight = await self.insight_repo.create(
            build_insight(type, linkedin_stats, email_stats, title=title)
        )
        logger.info("Generated %s insight %s", type, insight.id)
        return insight

    async def get_recent(self, limit: int = 10, type: Optional[str] = None) -> List[Insight]:
        return await self.insight_repo.get_recent(limit=limit, type=type)
