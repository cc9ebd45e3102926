"""
Analytics service - read-only rollups over campaign records.

The calculate_* functions are pure and work on any objects exposing the
model attributes (status, opened, replied, rsvp_status, ...), so they can
be tested without a database.
"""
from datetime import datetime, date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from rap_dashboard.core.exceptions import ValidationError
from rap_dashboard.models.contact import ContactStatus, RsvpStatus
from rap_dashboard.models.types import utcnow
from rap_dashboard.repositories.contact_repo import (
    LinkedInContactRepository, EmailContactRepository, WebinarAttendeeRepository
)
from rap_dashboard.repositories.insight_repo import InsightRepository

TIMEFRAMES = {"7d": 7, "30d": 30, "90d": 90}

DEFAULT_CAMPAIGN = "Default Campaign"


def safe_rate(part: int, total: int) -> float:
    """Percentage of part in total; 0.0 when total is 0."""
    return (part / total) * 100 if total > 0 else 0.0


def calculate_linkedin_stats(contacts: List[Any]) -> Dict[str, Any]:
    total = len(contacts)
    accepted = sum(1 for c in contacts if c.status == ContactStatus.ACCEPTED)
    pending = sum(1 for c in contacts if c.status == ContactStatus.PENDING)
    declined = sum(1 for c in contacts if c.status == ContactStatus.DECLINED)

    return {
        "totalSent": total,
        "accepted": accepted,
        "pending": pending,
        "declined": declined,
        "acceptanceRate": safe_rate(accepted, total),
    }


def calculate_email_stats(contacts: List[Any]) -> Dict[str, Any]:
    total = len(contacts)
    opened = sum(1 for c in contacts if c.opened)
    replied = sum(1 for c in contacts if c.replied)

    return {
        "totalSent": total,
        "opened": opened,
        "replied": replied,
        "openRate": safe_rate(opened, total),
        "replyRate": safe_rate(replied, total),
    }


def calculate_webinar_stats(attendees: List[Any]) -> Dict[str, Any]:
    total = len(attendees)
    confirmed = sum(1 for a in attendees if a.rsvp_status == RsvpStatus.CONFIRMED)
    pending = sum(1 for a in attendees if a.rsvp_status == RsvpStatus.PENDING)
    declined = sum(1 for a in attendees if a.rsvp_status == RsvpStatus.DECLINED)

    return {
        "totalInvited": total,
        "confirmed": confirmed,
        "pending": pending,
        "declined": declined,
        "rsvpRate": safe_rate(confirmed, total),
    }


def _bucket_day(contact: Any) -> Optional[date]:
    """Send date if known, otherwise the creation date."""
    if contact.date_sent is not None:
        return contact.date_sent
    if contact.created_at is not None:
        return contact.created_at.date()
    return None


def calculate_trends(contacts: Iterable[Any], days: int, today: Optional[date] = None) -> List[Dict[str, Any]]:
    """
    Per-day sent/accepted counts for the trailing `days` days, oldest first.

    Always returns exactly `days` buckets; a day without records has
    sent 0 and rate 0.
    """
    today = today or date.today()
    start = today - timedelta(days=days - 1)

    buckets = {start + timedelta(days=i): [0, 0] for i in range(days)}
    for contact in contacts:
        bucket = buckets.get(_bucket_day(contact))
        if bucket is None:
            continue
        bucket[0] += 1
        if contact.status == ContactStatus.ACCEPTED:
            bucket[1] += 1

    return [
        {
            "date": day.isoformat(),
            "sent": sent,
            "accepted": accepted,
            "acceptanceRate": safe_rate(accepted, sent),
        }
        for day, (sent, accepted) in buckets.items()
    ]


def calculate_email_performance(contacts: Iterable[Any]) -> List[Dict[str, Any]]:
    """Sent/opened/replied counts and rates grouped by campaign name."""
    campaigns: Dict[str, Dict[str, Any]] = {}

    for contact in contacts:
        name = contact.campaign_name or DEFAULT_CAMPAIGN
        campaign = campaigns.setdefault(name, {"name": name, "sent": 0, "opened": 0, "replied": 0})
        campaign["sent"] += 1
        if contact.opened:
            campaign["opened"] += 1
        if contact.replied:
            campaign["replied"] += 1

    return [
        {
            **campaign,
            "openRate": safe_rate(campaign["opened"], campaign["sent"]),
            "replyRate": safe_rate(campaign["replied"], campaign["sent"]),
        }
        for campaign in campaigns.values()
    ]


class AnalyticsService:
    """Reads records and hands them to the calculators."""

    def __init__(self, session: AsyncSession, timeout: Optional[float] = None):
        self.session = session
        self.linkedin_repo = LinkedInContactRepository(session, timeout)
        self.email_repo = EmailContactRepository(session, timeout)
        self.webinar_repo = WebinarAttendeeRepository(session, timeout)
        self.insight_repo = InsightRepository(session, timeout)

    async def linkedin_stats(self, since: Optional[datetime] = None) -> Dict[str, Any]:
        return calculate_linkedin_stats(await self.linkedin_repo.list(since=since))

    async def email_stats(self, since: Optional[datetime] = None) -> Dict[str, Any]:
        return calculate_email_stats(await self.email_repo.list(since=since))

    async def webinar_stats(self, since: Optional[datetime] = None) -> Dict[str, Any]:
        return calculate_webinar_stats(await self.webinar_repo.list(since=since))

    async def get_dashboard(self) -> Dict[str, Any]:
        """Channel rollups plus the five latest insights."""
        insights = await self.insight_repo.get_recent(limit=5)
        return {
            "linkedin": await self.linkedin_stats(),
            "email": await self.email_stats(),
            "webinar": await self.webinar_stats(),
            "insights": [insight.model_dump(mode="json") for insight in insights],
            "lastUpdated": utcnow().isoformat() + "Z",
        }

    async def get_linkedin_trends(self, timeframe: str = "30d", today: Optional[date] = None) -> List[Dict[str, Any]]:
        """
        Raises:
            ValidationError: timeframe is not 7d, 30d or 90d
        """
        days = TIMEFRAMES.get(timeframe)
        if days is None:
            raise ValidationError(
                f"'{timeframe}' is not one of {', '.join(TIMEFRAMES)}", field="timeframe"
            )
        today = today or date.today()
        start = datetime.combine(today - timedelta(days=days - 1), datetime.min.time())
        contacts = await self.linkedin_repo.list_for_trends(start)
        return calculate_trends(contacts, days, today)

    async def get_email_performance(self) -> List[Dict[str, Any]]:
        return calculate_email_performance(await self.email_repo.list())
