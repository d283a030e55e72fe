"""
TogetherLog Backend - Logs Route Handlers
==========================================

What:  CRUD over the caller's logs under /api/logs.
How:   Identity from get_current_user_id, path ids parsed with parse_uuid
       ("Invalid log ID format" → 400), everything else in LogService.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from togetherlog.auth import get_current_user_id
from togetherlog.database import get_db_session
from togetherlog.schemas.common import ErrorResponse, MessageResponse, parse_uuid
from togetherlog.schemas.logs import LogCreate, LogEnvelope, LogListResponse, LogUpdate
from togetherlog.services.log_service import log_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/logs", tags=["Logs"])

NOT_FOUND = {404: {"description": "Log not found", "model": ErrorResponse}}


@router.get("", response_model=LogListResponse, summary="List the caller's logs")
async def list_logs(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> LogListResponse:
    return LogListResponse(logs=await log_service.list_logs(db, user_id))


@router.post("", status_code=201, response_model=LogEnvelope, summary="Create a log")
async def create_log(
    body: LogCreate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> LogEnvelope:
    return LogEnvelope(log=await log_service.create_log(db, user_id, body))


@router.get("/{log_id}", response_model=LogEnvelope, responses=NOT_FOUND, summary="Get a log")
async def get_log(
    log_id: str,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> LogEnvelope:
    log = await log_service.get_log(db, user_id, parse_uuid(log_id, "log"))
    return LogEnvelope(log=log)


@router.patch("/{log_id}", response_model=LogEnvelope, responses=NOT_FOUND, summary="Update a log")
async def update_log(
    log_id: str,
    body: LogUpdate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> LogEnvelope:
    log = await log_service.update_log(db, user_id, parse_uuid(log_id, "log"), body)
    return LogEnvelope(log=log)


@router.delete("/{log_id}", response_model=MessageResponse, responses=NOT_FOUND, summary="Delete a log")
async def delete_log(
    log_id: str,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await log_service.delete_log(db, user_id, parse_uuid(log_id, "log"))
    return MessageResponse(message="Log deleted successfully")
