"""
LinkedIn webhook schemas.
"""
from typing import Optional

from rap_dashboard.schemas.common import CamelModel


class LinkedInWebhookResponse(CamelModel):
    success: bool
    message: str
    event_type: Optional[str] = None


class WebhookTestResponse(CamelModel):
    message: str
    timestamp: str
    webhook_url: str
