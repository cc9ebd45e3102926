"""
Automation (n8n) integration routes.
"""

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from rap_dashboard.database import get_session
from rap_dashboard.models.types import utcnow
from rap_dashboard.config import Settings
from rap_dashboard.api.deps import get_settings
from rap_dashboard.models.audit import AuditSources
from rap_dashboard.services.automation_service import AutomationService
from rap_dashboard.services.audit_service import AuditService
from rap_dashboard.schemas.common import error_responses
from rap_dashboard.schemas.integration import (
    AutomationRequest, AutomationResponse, RecentImportsResponse, IntegrationHealthResponse
)

router = APIRouter(
    prefix="/api/integrations",
    tags=["integrations"],
    responses=error_responses(400, 500, 504)
)


@router.post("/from-n8n", response_model=AutomationResponse)
async def receive_from_n8n(
    payload: AutomationRequest,
    app_settings: Settings = Depends(get_settings),
    session: AsyncSession = Depends(get_session)
):
    """Receive contacts, metrics or raw data from an n8n workflow."""
    service = AutomationService(session, enum_policy=app_settings.ENUM_VALIDATION)
    return await service.process(
        data_type=payload.data_type,
        data=payload.data,
        campaign_type=payload.campaign_type,
        source=payload.source,
        metadata=payload.metadata,
    )


@router.get("/health", response_model=IntegrationHealthResponse)
async def integration_health():
    return {
        "status": "healthy",
        "service": "n8n-integration",
        "timestamp": utcnow().isoformat() + "Z",
        "endpoints": {
            "POST /api/integrations/from-n8n": "Receive data from n8n workflows",
            "GET /api/integrations/recent-imports": "Recent n8n imports",
        },
    }


@router.get("/recent-imports", response_model=RecentImportsResponse)
async def recent_imports(
    limit: int = Query(10, ge=1, le=100),
    session: AsyncSession = Depends(get_session)
):
    """Audit entries for automation imports, newest first."""
    imports = await AuditService(session).get_recent(AuditSources.AUTOMATION, limit)
    return {"imports": imports, "count": len(imports)}
