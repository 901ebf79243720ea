"""Form submission ingestion endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from formsheets.api.deps import get_ingestion_service, get_sync_logger
from formsheets.models.submissions import (
    ErrorResponse,
    SubmissionRequest,
    SubmissionResponse,
    SyncLogResponse,
)
from formsheets.services.ingestion import SubmissionIngestionService
from formsheets.services.sync_log import SyncLogger

router = APIRouter(tags=["Submissions"])

ERROR_RESPONSES = {500: {"model": ErrorResponse, "description": "Configuration, token or Sheets API failure"}}


@router.post(
    "/submit-to-sheets",
    response_model=SubmissionResponse,
    responses=ERROR_RESPONSES,
    summary="Append a form submission to its sheet",
)
async def submit_to_sheets(
    request: SubmissionRequest,
    service: SubmissionIngestionService = Depends(get_ingestion_service),
):
    """
    Write one submission as a row of the sheet mapped to ``tableName``.

    Unknown table names are accepted and stored as ``[timestamp, json]``
    in a tab named after the table.
    """
    result = await service.ingest(request.table_name, request.data)
    return result.to_response()


@router.post(
    "/google-sheets-integration",
    response_model=SubmissionResponse,
    responses=ERROR_RESPONSES,
    include_in_schema=False,
)
async def google_sheets_integration(
    request: SubmissionRequest,
    service: SubmissionIngestionService = Depends(get_ingestion_service),
):
    result = await service.ingest(request.table_name, request.data)
    return result.to_response()


@router.get("/sync-log", response_model=SyncLogResponse, summary="Recent sheet writes")
async def sync_log(
    limit: int = Query(50, ge=1, le=500),
    status: Optional[str] = Query(None, pattern="^(success|error)$"),
    sync_logger: SyncLogger = Depends(get_sync_logger),
):
    entries = sync_logger.recent(limit=limit, status=status)
    return {"entries": entries, "count": len(entries)}
