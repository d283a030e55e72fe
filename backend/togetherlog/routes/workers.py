"""
TogetherLog Backend - Worker Route Handlers
============================================

What:  POST /workers/compute-smart-page, /workers/reverse-geocode,
       /workers/compute-colors and /workers/process-photo.
Who:   Invoked by the job dispatcher after an entry or photo changes,
       never by end users directly.

All of them return 400 for a bad body, 404 when the target row is missing and
500 for provider or database failures, with the `{"error", "request_id"}` body.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from togetherlog.database import get_db_session
from togetherlog.schemas.common import ErrorResponse
from togetherlog.schemas.workers import (
    ComputeColorsRequest,
    ComputeColorsResponse,
    ProcessPhotoRequest,
    ProcessPhotoResponse,
    ReverseGeocodeRequest,
    ReverseGeocodeResponse,
    SmartPageRequest,
    SmartPageResponse,
)
from togetherlog.services.worker_service import worker_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workers", tags=["Workers"])

ERROR_RESPONSES = {
    400: {"description": "Missing or invalid fields", "model": ErrorResponse},
    404: {"description": "Entry or photo not found", "model": ErrorResponse},
    500: {"description": "Provider or database failure", "model": ErrorResponse},
}


@router.post(
    "/compute-smart-page",
    response_model=SmartPageResponse,
    responses=ERROR_RESPONSES,
    summary="Compute layout, color theme and sprinkles for an entry",
)
async def compute_smart_page(
    body: SmartPageRequest,
    db: AsyncSession = Depends(get_db_session),
) -> SmartPageResponse:
    return await worker_service.compute_smart_page(db, body.entry_id)


@router.post(
    "/reverse-geocode",
    response_model=ReverseGeocodeResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    summary="Resolve an entry's coordinates to a place name",
    description=(
        "Skipped without any provider call when the entry's location was set "
        "by the user. Outbound calls are spaced at least 1.1s apart per process."
    ),
)
async def reverse_geocode(
    body: ReverseGeocodeRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ReverseGeocodeResponse:
    return await worker_service.reverse_geocode(db, body.entry_id, body.lat, body.lng)


@router.post(
    "/compute-colors",
    response_model=ComputeColorsResponse,
    responses=ERROR_RESPONSES,
    summary="Store the dominant-color palette of a photo",
)
async def compute_colors(
    body: ComputeColorsRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ComputeColorsResponse:
    return await worker_service.compute_colors(db, body.photo_id)


@router.post(
    "/process-photo",
    response_model=ProcessPhotoResponse,
    responses=ERROR_RESPONSES,
    summary="Store the public URL, thumbnail URL and metadata of a photo",
)
async def process_photo(
    body: ProcessPhotoRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ProcessPhotoResponse:
    return await worker_service.process_photo(db, body.photo_id, body.storage_path)
