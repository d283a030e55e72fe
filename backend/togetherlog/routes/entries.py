"""
TogetherLog Backend - Entries and Tags Route Handlers
======================================================

What:  Entry CRUD and the tag vocabulary.

    GET    /api/logs/{log_id}/entries   entries of a log, oldest event first
    POST   /api/logs/{log_id}/entries   create an entry (201)
    GET    /api/entries/{entry_id}
    PATCH  /api/entries/{entry_id}      partial update; tag_ids replaces tags
    DELETE /api/entries/{entry_id}
    GET    /api/tags                    all tags, flat and grouped by category

Ownership is checked through the parent log; an entry in another user's log
answers 404 exactly like a missing one.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from togetherlog.auth import get_current_user_id
from togetherlog.database import get_db_session
from togetherlog.schemas.common import ErrorResponse, MessageResponse, parse_uuid
from togetherlog.schemas.entries import (
    EntryCreate,
    EntryEnvelope,
    EntryListResponse,
    EntryUpdate,
    TagListResponse,
)
from togetherlog.services.entry_service import entry_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Entries"])

NOT_FOUND = {404: {"description": "Log or entry not found", "model": ErrorResponse}}


@router.get(
    "/logs/{log_id}/entries",
    response_model=EntryListResponse,
    responses=NOT_FOUND,
    summary="List the entries of a log",
)
async def list_entries(
    log_id: str,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> EntryListResponse:
    entries = await entry_service.list_entries(db, user_id, parse_uuid(log_id, "log"))
    return EntryListResponse(entries=entries)


@router.post(
    "/logs/{log_id}/entries",
    status_code=201,
    response_model=EntryEnvelope,
    responses=NOT_FOUND,
    summary="Create an entry",
)
async def create_entry(
    log_id: str,
    body: EntryCreate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> EntryEnvelope:
    entry = await entry_service.create_entry(db, user_id, parse_uuid(log_id, "log"), body)
    return EntryEnvelope(entry=entry)


@router.get(
    "/entries/{entry_id}",
    response_model=EntryEnvelope,
    responses=NOT_FOUND,
    summary="Get an entry with its photos and tags",
)
async def get_entry(
    entry_id: str,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> EntryEnvelope:
    entry = await entry_service.get_entry(db, user_id, parse_uuid(entry_id, "entry"))
    return EntryEnvelope(entry=entry)


@router.patch(
    "/entries/{entry_id}",
    response_model=EntryEnvelope,
    responses=NOT_FOUND,
    summary="Update an entry",
)
async def update_entry(
    entry_id: str,
    body: EntryUpdate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> EntryEnvelope:
    entry = await entry_service.update_entry(db, user_id, parse_uuid(entry_id, "entry"), body)
    return EntryEnvelope(entry=entry)


@router.delete(
    "/entries/{entry_id}",
    response_model=MessageResponse,
    responses=NOT_FOUND,
    summary="Delete an entry",
)
async def delete_entry(
    entry_id: str,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await entry_service.delete_entry(db, user_id, parse_uuid(entry_id, "entry"))
    return MessageResponse(message="Entry deleted successfully")


@router.get("/tags", response_model=TagListResponse, summary="List all tags")
async def list_tags(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> TagListResponse:
    return await entry_service.list_tags(db)
