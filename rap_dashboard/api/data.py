"""
Data processing routes - file batches and datasets.
"""
import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from rap_dashboard.database import get_session
from rap_dashboard.config import Settings
from rap_dashboard.api.deps import get_settings
from rap_dashboard.services.file_import_service import FileImportService
from rap_dashboard.services.dataset_service import DatasetService
from rap_dashboard.schemas.common import error_responses
from rap_dashboard.schemas.dataset import (
    DataProcessRequest, DataProcessResponse, DatasetResponse, DatasetDeleteResponse
)

router = APIRouter(
    prefix="/api/data",
    tags=["data"],
    responses=error_responses(400, 404, 500, 504)
)


@router.post("/process", response_model=DataProcessResponse)
async def process_file_data(
    data: DataProcessRequest,
    app_settings: Settings = Depends(get_settings),
    session: AsyncSession = Depends(get_session)
):
    """Normalize and store an uploaded, already-parsed file."""
    service = FileImportService(session, enum_policy=app_settings.ENUM_VALIDATION)
    return await service.process(data.file_data, data.campaign_type, data.file_name)


@router.get("/datasets", response_model=List[DatasetResponse])
async def list_datasets(session: AsyncSession = Depends(get_session)):
    """List datasets, newest first."""
    return await DatasetService(session).list()


@router.delete("/datasets/{dataset_id}", response_model=DatasetDeleteResponse)
async def delete_dataset(
    dataset_id: uuid.UUID,
    session: AsyncSession = Depends(get_session)
):
    """Delete a dataset together with the rows imported under it."""
    deleted = await DatasetService(session).delete(dataset_id)
    return {
        "success": True,
        "message": "Dataset deleted successfully",
        "deletedRows": deleted,
    }
