from datetime import date, datetime
from types import SimpleNamespace

import pytest

from rap_dashboard.core.exceptions import ValidationError
from rap_dashboard.services.analytics_service import (
    AnalyticsService, safe_rate, calculate_linkedin_stats, calculate_email_stats,
    calculate_webinar_stats, calculate_trends, calculate_email_performance,
)
from rap_dashboard.services.store_writer import StoreWriter

TODAY = date(2024, 5, 10)


def li(status, date_sent=None, created_at=None):
    return SimpleNamespace(status=status, date_sent=date_sent, created_at=created_at)


def em(opened=False, replied=False, campaign_name=None):
    return SimpleNamespace(opened=opened, replied=replied, campaign_name=campaign_name)


class TestZeroTotals:
    def test_safe_rate(self):
        assert safe_rate(0, 0) == 0
        assert safe_rate(1, 4) == 25.0

    def test_empty_inputs_have_zero_rates(self):
        assert calculate_linkedin_stats([])["acceptanceRate"] == 0
        assert calculate_email_stats([])["openRate"] == 0
        assert calculate_email_stats([])["replyRate"] == 0
        assert calculate_webinar_stats([])["rsvpRate"] == 0


def test_linkedin_stats():
    stats = calculate_linkedin_stats([li("accepted"), li("pending"), li("declined"), li("accepted")])
    assert stats == {
        "totalSent": 4, "accepted": 2, "pending": 1, "declined": 1, "acceptanceRate": 50.0,
    }


def test_email_stats():
    stats = calculate_email_stats([em(True, True), em(True), em(), em()])
    assert stats["openRate"] == 50.0
    assert stats["replyRate"] == 25.0


def test_webinar_stats():
    attendees = [SimpleNamespace(rsvp_status=s) for s in ("confirmed", "pending", "declined", "confirmed", "maybe")]
    stats = calculate_webinar_stats(attendees)
    assert stats["totalInvited"] == 5
    assert stats["confirmed"] == 2
    assert stats["rsvpRate"] == 40.0


class TestTrends:
    @pytest.mark.parametrize("days", [7, 30, 90])
    def test_exactly_n_buckets_without_records(self, days):
        trends = calculate_trends([], days, TODAY)
        assert len(trends) == days
        assert trends[-1]["date"] == "2024-05-10"
        assert all(t["sent"] == 0 and t["acceptanceRate"] == 0 for t in trends)

    def test_oldest_first_and_bucketed(self):
        contacts = [
            li("accepted", date(2024, 5, 10)),
            li("pending", date(2024, 5, 10)),
            li("accepted", date(2024, 5, 4)),
            li("accepted", None, datetime(2024, 5, 9, 23, 0)),
            li("accepted", date(2024, 4, 1)),  # outside the window
        ]
        trends = calculate_trends(contacts, 7, TODAY)

        assert [t["date"] for t in trends][:2] == ["2024-05-04", "2024-05-05"]
        by_day = {t["date"]: t for t in trends}
        assert by_day["2024-05-10"]["sent"] == 2
        assert by_day["2024-05-10"]["acceptanceRate"] == 50.0
        assert by_day["2024-05-09"]["sent"] == 1
        assert by_day["2024-05-04"]["accepted"] == 1
        assert sum(t["sent"] for t in trends) == 4

    def test_send_date_wins_over_creation(self):
        contacts = [li("pending", date(2024, 5, 5), datetime(2024, 5, 10, 12, 0))]
        by_day = {t["date"]: t for t in calculate_trends(contacts, 7, TODAY)}
        assert by_day["2024-05-05"]["sent"] == 1
        assert by_day["2024-05-10"]["sent"] == 0


def test_email_performance_groups_by_campaign():
    performance = calculate_email_performance([
        em(True, False, "Spring"), em(False, False, "Spring"), em(True, True, None),
    ])
    by_name = {p["name"]: p for p in performance}
    assert by_name["Spring"]["sent"] == 2
    assert by_name["Spring"]["openRate"] == 50.0
    assert by_name["Default Campaign"]["replyRate"] == 100.0


@pytest.mark.asyncio
async def test_trends_reads_store(session):
    await StoreWriter(session).bulk_insert("linkedin", [
        {"name": "A", "status": "accepted", "date_sent": TODAY, "dataset_id": "d"},
        {"name": "B", "status": "pending", "date_sent": date(2024, 5, 9), "dataset_id": "d"},
    ])

    trends = await AnalyticsService(session).get_linkedin_trends("7d", today=TODAY)

    assert len(trends) == 7
    assert trends[-1] == {"date": "2024-05-10", "sent": 1, "accepted": 1, "acceptanceRate": 100.0}


@pytest.mark.asyncio
async def test_unknown_timeframe(session):
    with pytest.raises(ValidationError):
        await AnalyticsService(session).get_linkedin_trends("1y")
