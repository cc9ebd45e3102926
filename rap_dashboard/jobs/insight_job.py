"""
Daily insight job - generates the daily performance insight.

Started from the app lifespan when INSIGHT_SCHEDULER_ENABLED is set:

    asyncio.create_task(start_insight_scheduler())
"""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from rap_dashboard.config import settings
from rap_dashboard.database import async_session
from rap_dashboard.models.types import utcnow
from rap_dashboard.services.insight_service import InsightService, DAILY_LOOKBACK

logger = logging.getLogger(__name__)

DAILY_TITLE = "Daily Performance Summary"
RETRY_SECONDS = 3600


class DailyInsightJob:
    """
    Generates one daily insight per run.
    Overlapping runs are skipped, not queued.
    """

    def __init__(self, session_factory: Callable = async_session):
        self.session_factory = session_factory
        self.is_running = False

    async def run(self) -> dict:
        if self.is_running:
            logger.warning("Insight job already running, skipping")
            return {"success": False, "skipped": True, "error": "Already running"}

        self.is_running = True
        start_time = utcnow()
        logger.info("Starting daily insight job")

        try:
            async with self.session_factory() as session:
                insight = await InsightService(session).generate(
                    "daily", title=DAILY_TITLE, lookback=DAILY_LOOKBACK
                )
            result = {"success": True, "skipped": False, "insightId": str(insight.id)}
        except Exception as e:
            logger.exception("Daily insight job failed")
            result = {"success": False, "skipped": False, "error": str(e)}
        finally:
            self.is_running = False

        duration = (utcnow() - start_time).total_seconds()
        logger.info("Daily insight job completed in %.2fs: %s", duration, result)
        return result


def seconds_until(hour: int, now: Optional[datetime] = None) -> float:
    """Seconds until the next occurrence of hour:00 UTC."""
    now = now or utcnow()
    next_run = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if now >= next_run:
        next_run += timedelta(days=1)
    return (next_run - now).total_seconds()


async def start_insight_scheduler(job: Optional[DailyInsightJob] = None):
    """Run the daily insight job at DAILY_INSIGHT_HOUR (UTC) until cancelled."""
    job = job or daily_insight_job
    hour = settings.DAILY_INSIGHT_HOUR
    logger.info("Insight scheduler started, daily at %02d:00 UTC", hour)

    while True:
        try:
            sleep_seconds = seconds_until(hour)
            logger.info("Next daily insight in %.0fs", sleep_seconds)
            await asyncio.sleep(sleep_seconds)
            await job.run()
        except asyncio.CancelledError:
            logger.info("Insight scheduler cancelled")
            break
        except Exception:
            logger.exception("Error in insight scheduler, retrying in %ds", RETRY_SECONDS)
            await asyncio.sleep(RETRY_SECONDS)


# Singleton for the scheduler and manual triggers
daily_insight_job = DailyInsightJob()
