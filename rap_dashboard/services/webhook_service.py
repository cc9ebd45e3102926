"""
LinkedIn webhook service - applies signed automation events to contacts.

Signature verification happens at the API layer; this service receives
only accepted deliveries and writes exactly one audit entry per call.
"""
import json
import logging
from datetime import datetime, date, timedelta, timezone
from typing import Any, Dict, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from rap_dashboard.config import settings
from rap_dashboard.core.exceptions import RapDashboardException, ValidationError, wrap_exception
from rap_dashboard.models.audit import AuditSources
from rap_dashboard.models.contact import ContactStatus, UNKNOWN, WEBHOOK_CAMPAIGN
from rap_dashboard.models.linkedin import LinkedInMessage, LinkedInProfileView, FollowUpTask
from rap_dashboard.models.types import utcnow
from rap_dashboard.repositories.contact_repo import TransitionOutcome
from rap_dashboard.services.audit_service import AuditService
from rap_dashboard.services.store_writer import StoreWriter

logger = logging.getLogger(__name__)

WEBHOOK_DATASET = "webhook-data"


def _profile(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    profile = data.get(key)
    if profile is None:
        return {}
    if not isinstance(profile, dict):
        raise ValidationError("must be an object", field=f"data.{key}")
    return profile


def _profile_url(profile: Dict[str, Any], key: str) -> str:
    url = profile.get("profileUrl")
    if not isinstance(url, str) or not url.strip():
        raise ValidationError("profile URL is required", field=f"data.{key}.profileUrl")
    return url.strip()


def _decode(raw_body: bytes) -> Any:
    try:
        return json.loads(raw_body or b"null")
    except ValueError:
        raise ValidationError("request body is not valid JSON")


def _timestamp(value: Any, field: str) -> datetime:
    """Parse an ISO timestamp into naive UTC; missing means now."""
    if value is None or value == "":
        return utcnow()
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"invalid timestamp '{value}'", field=field)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class LinkedInWebhookService:
    """Dispatches LinkedIn automation events by eventType."""

    def __init__(
        self,
        session: AsyncSession,
        follow_up_delay_hours: Optional[int] = None,
        timeout: Optional[float] = None
    ):
        self.session = session
        self.writer = StoreWriter(session, timeout)
        self.audit = AuditService(session, timeout)
        self.follow_up_delay = timedelta(
            hours=follow_up_delay_hours if follow_up_delay_hours is not None else settings.FOLLOW_UP_DELAY_HOURS
        )
        self.handlers = {
            "connection_request_sent": self.handle_connection_request_sent,
            "connection_request_accepted": self.handle_connection_request_accepted,
            "connection_request_declined": self.handle_connection_request_declined,
            "message_sent": self.handle_message_sent,
            "profile_view": self.handle_profile_view,
        }

    async def process(self, raw_body: bytes) -> Dict[str, Any]:
        """
        Handle one webhook delivery, given the raw request body.

        Returns:
            {success, message, eventType}
        """
        body: Any = {"rawBody": raw_body.decode("utf-8", errors="replace")}
        event_type = None
        try:
            body = _decode(raw_body)
            event_type = body.get("eventType") if isinstance(body, dict) else None
            await self._dispatch(body)
        except Exception as e:
            error = wrap_exception(e)
            if isinstance(e, RapDashboardException):
                logger.warning("LinkedIn webhook %s rejected: %s", event_type, error.message)
            else:
                logger.exception("LinkedIn webhook %s failed", event_type)
            await self.session.rollback()
            await self.audit.record(
                AuditSources.LINKEDIN_WEBHOOK, event_type if isinstance(event_type, str) else None,
                body, error=error
            )
            if error is e:
                raise
            raise error from e

        await self.audit.record(AuditSources.LINKEDIN_WEBHOOK, event_type, body.get("data") or {})
        return {
            "success": True,
            "message": "Webhook processed successfully",
            "eventType": event_type,
        }

    async def _dispatch(self, body: Any) -> None:
        if not isinstance(body, dict):
            raise ValidationError("webhook body must be a JSON object")
        event_type = body.get("eventType")
        if not isinstance(event_type, str) or not event_type:
            raise ValidationError("eventType is required", field="eventType")
        data = body.get("data") or {}
        if not isinstance(data, dict):
            raise ValidationError("must be an object", field="data")

        handler = self.handlers.get(event_type)
        if handler is None:
            logger.info("Ignoring unknown LinkedIn event type: %s", event_type)
            return
        await handler(data)

    async def handle_connection_request_sent(self, data: Dict[str, Any]) -> None:
        profile = _profile(data, "recipientProfile")
        url = _profile_url(profile, "recipientProfile")

        await self.writer.upsert("linkedin", {
            "name": profile.get("name") or UNKNOWN,
            "company": profile.get("company") or UNKNOWN,
            "title": profile.get("title") or UNKNOWN,
            "linkedin_url": url,
            "date_sent": date.today(),
            "status": ContactStatus.PENDING,
            "campaign_id": data.get("campaignId") or WEBHOOK_CAMPAIGN,
            "message_text": data.get("messageText"),
            "dataset_id": WEBHOOK_DATASET,
        }, conflict_key="linkedin_url")
        logger.info("Connection request sent recorded: %s", url)

    async def handle_connection_request_accepted(self, data: Dict[str, Any]) -> None:
        profile = _profile(data, "senderProfile")
        url = _profile_url(profile, "senderProfile")
        at = _timestamp(data.get("acceptedAt"), "data.acceptedAt")

        outcome = await self._transition(url, profile, ContactStatus.ACCEPTED, at)
        if outcome in (TransitionOutcome.APPLIED, TransitionOutcome.CREATED):
            await self._schedule_follow_up(url, profile.get("name"))

    async def handle_connection_request_declined(self, data: Dict[str, Any]) -> None:
        profile = _profile(data, "senderProfile")
        url = _profile_url(profile, "senderProfile")
        at = _timestamp(data.get("declinedAt"), "data.declinedAt")

        await self._transition(url, profile, ContactStatus.DECLINED, at)

    async def _transition(self, url: str, profile: Dict[str, Any], status: str, at: datetime) -> str:
        stub = {
            "name": profile.get("name") or UNKNOWN,
            "company": profile.get("company") or UNKNOWN,
            "title": profile.get("title") or UNKNOWN,
            "date_sent": at.date(),
            "campaign_id": WEBHOOK_CAMPAIGN,
            "dataset_id": WEBHOOK_DATASET,
        }
        outcome = await self.writer.transition(url, status, at, stub)

        if outcome == TransitionOutcome.CONFLICT:
            logger.warning("Ignoring %s for %s: contact already in the other final state", status, url)
        elif outcome == TransitionOutcome.CREATED:
            logger.warning("No pending contact for %s, created it as %s", url, status)
        elif outcome == TransitionOutcome.UNCHANGED:
            logger.info("Contact %s already %s", url, status)
        else:
            logger.info("Connection request %s: %s", status, url)
        return outcome

    async def _schedule_follow_up(self, url: str, name: Optional[str]) -> None:
        """Best-effort thank-you task; failure never fails the delivery."""
        try:
            await self.writer.append(FollowUpTask, {
                "contact_name": name,
                "contact_url": url,
                "task_type": "send_thank_you_message",
                "scheduled_for": utcnow() + self.follow_up_delay,
                "status": "pending",
            })
        except RapDashboardException as e:
            logger.error("Failed to create follow-up task for %s: %s", url, e.message)

    async def handle_message_sent(self, data: Dict[str, Any]) -> None:
        profile = _profile(data, "recipientProfile")
        await self.writer.append(LinkedInMessage, {
            "recipient_name": profile.get("name"),
            "recipient_url": profile.get("profileUrl"),
            "message_text": data.get("messageText"),
            "conversation_id": data.get("conversationId"),
            "sent_at": utcnow(),
        })
        logger.info("Message sent recorded: %s", profile.get("profileUrl"))

    async def handle_profile_view(self, data: Dict[str, Any]) -> None:
        profile = _profile(data, "viewedProfile")
        await self.writer.append(LinkedInProfileView, {
            "viewed_profile_name": profile.get("name"),
            "viewed_profile_url": profile.get("profileUrl"),
            "viewed_at": _timestamp(data.get("viewedAt"), "data.viewedAt"),
        })
        logger.info("Profile view recorded: %s", profile.get("profileUrl"))
