"""
LinkedIn webhook routes.
"""

from fastapi import APIRouter, Depends, Request
from sqlmodel.ext.asyncio.session import AsyncSession

from rap_dashboard.database import get_session
from rap_dashboard.models.types import utcnow
from rap_dashboard.config import Settings
from rap_dashboard.api.deps import get_settings, verify_linkedin_signature
from rap_dashboard.services.webhook_service import LinkedInWebhookService
from rap_dashboard.schemas.common import error_responses
from rap_dashboard.schemas.webhook import LinkedInWebhookResponse, WebhookTestResponse

router = APIRouter(
    prefix="/api/webhook",
    tags=["webhook"],
    responses=error_responses(400, 401, 500, 504)
)


@router.post(
    "/linkedin",
    response_model=LinkedInWebhookResponse,
    dependencies=[Depends(verify_linkedin_signature)]
)
async def linkedin_webhook(
    request: Request,
    app_settings: Settings = Depends(get_settings),
    session: AsyncSession = Depends(get_session)
):
    """
    Receive a LinkedIn automation event.

    The signature is checked over the raw body first; a mismatch is
    rejected with 401 and nothing is processed or audited.
    """
    service = LinkedInWebhookService(session, follow_up_delay_hours=app_settings.FOLLOW_UP_DELAY_HOURS)
    return await service.process(await request.body())


@router.get("/linkedin/test", response_model=WebhookTestResponse)
async def linkedin_webhook_test(request: Request):
    """Liveness check for the webhook endpoint."""
    return {
        "message": "LinkedIn webhook endpoint is working",
        "timestamp": utcnow().isoformat() + "Z",
        "webhookUrl": str(request.url_for("linkedin_webhook")),
    }
