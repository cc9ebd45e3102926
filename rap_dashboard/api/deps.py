"""
API dependencies - shared across all routes.
"""
from typing import Optional

from fastapi import Depends, Header, Request

from rap_dashboard.config import Settings, settings
from rap_dashboard.core.security import verify_webhook_signature


def get_settings() -> Settings:
    """Settings dependency, overridable in tests."""
    return settings


async def verify_linkedin_signature(
    request: Request,
    x_linkedin_signature: Optional[str] = Header(None),
    app_settings: Settings = Depends(get_settings)
) -> bool:
    """
    Check X-LinkedIn-Signature over the raw body before any processing.
    Returns whether the request was authenticated.
    """
    body = await request.body()
    return verify_webhook_signature(
        body,
        x_linkedin_signature,
        app_settings.LINKEDIN_WEBHOOK_SECRET,
        app_settings.WEBHOOK_SIGNATURE_POLICY,
    )
