"""
TogetherLog Backend - Entry Service (Persistence Boundary)
===========================================================

What:  CRUD for entries and tags, plus the read/write operations the workers
       use to load an entry and store computed fields.
How:   SQLAlchemy 2.0 async queries on the request's AsyncSession. The
       session is committed or rolled back by get_db_session, never here.
Who:   Called by the entries/tags routes and by WorkerService.

Ownership:
    Entries have no user_id of their own. Every user-facing query joins the
    parent log and filters on logs.user_id, so an entry in someone else's
    log is reported as "Entry not found" exactly like a missing one.

Write-back atomicity:
    write_smart_page() and write_location() are single UPDATE statements.
    write_location() carries `location_is_user_overridden IS false` in its
    WHERE clause, so an override committed between the worker's check and
    its write is never overwritten.

Non-fatal linking:
    On create/update, tag and photo linking run inside SAVEPOINTs. A bad tag
    or photo id rolls back only its savepoint and is logged; the entry itself
    is still created.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from togetherlog.exceptions import NotFoundError, PersistenceError
from togetherlog.models import Entry, Log, Photo, Tag, entry_tags
from togetherlog.schemas.entries import (
    EntryCreate,
    EntryResponse,
    EntryUpdate,
    TagListResponse,
    TagResponse,
    TagSummary,
)
from togetherlog.services.log_service import log_service
from togetherlog.services.smart_page import SmartPage

logger = logging.getLogger(__name__)


def _with_relations(stmt):
    # Async sessions cannot lazy-load; photos and tags are always fetched up front
    return stmt.options(selectinload(Entry.photos), selectinload(Entry.tags))


class EntryService:
    """
    Business logic layer for entries, tags and the worker write-backs.

    Error Handling Strategy:
        NotFoundError propagates as-is (→ 404). SQLAlchemy errors are logged
        with their details and re-raised as PersistenceError (→ 500) with a
        generic message.
    """

    # ══════════════════════════════════════════════════════════════════════
    # Lookups
    # ══════════════════════════════════════════════════════════════════════

    async def _fetch_entry(
        self,
        db: AsyncSession,
        entry_id: UUID,
        user_id: Optional[UUID] = None,
    ) -> Optional[Entry]:
        stmt = _with_relations(select(Entry).where(Entry.id == entry_id))
        if user_id is not None:
            stmt = stmt.join(Log, Entry.log_id == Log.id).where(Log.user_id == user_id)
        # Refresh rows already in the identity map (after create/update)
        stmt = stmt.execution_options(populate_existing=True)

        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Database error fetching entry %s: %s", entry_id, str(e))
            raise PersistenceError(context={"entry_id": str(entry_id)})
        return result.scalar_one_or_none()

    async def _get_owned_entry(self, db: AsyncSession, user_id: UUID, entry_id: UUID) -> Entry:
        entry = await self._fetch_entry(db, entry_id, user_id=user_id)
        if entry is None:
            raise NotFoundError(resource="Entry", resource_id=str(entry_id))
        return entry

    # ══════════════════════════════════════════════════════════════════════
    # Entries API
    # ══════════════════════════════════════════════════════════════════════

    async def list_entries(
        self, db: AsyncSession, user_id: UUID, log_id: UUID
    ) -> List[EntryResponse]:
        """Entries of one of the caller's logs, oldest event first."""
        await log_service.get_owned_log(db, user_id, log_id)

        try:
            result = await db.execute(
                _with_relations(
                    select(Entry)
                    .where(Entry.log_id == log_id)
                    .order_by(Entry.event_date.asc(), Entry.created_at.asc())
                )
            )
            entries = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing entries of log %s: %s", log_id, str(e))
            raise PersistenceError(context={"log_id": str(log_id)})

        return [EntryResponse.model_validate(entry) for entry in entries]

    async def get_entry(self, db: AsyncSession, user_id: UUID, entry_id: UUID) -> EntryResponse:
        entry = await self._get_owned_entry(db, user_id, entry_id)
        return EntryResponse.model_validate(entry)

    async def create_entry(
        self,
        db: AsyncSession,
        user_id: UUID,
        log_id: UUID,
        data: EntryCreate,
    ) -> EntryResponse:
        """
        Create an entry in one of the caller's logs.

        Workflow Steps:
            1. Verify the log belongs to the caller (404 otherwise)
            2. Insert the entry with Smart Page defaults
            3. Link tags (non-fatal)
            4. Link photos in the order given (non-fatal, per photo)
            5. Re-read the entry with photos and tags for the response
        """
        await log_service.get_owned_log(db, user_id, log_id)

        entry = Entry(
            log_id=log_id,
            event_date=data.event_date,
            highlight_text=data.highlight_text,
            location_lat=data.location_lat,
            location_lng=data.location_lng,
            location_display_name=data.location_display_name,
            location_is_user_overridden=data.location_is_user_overridden,
            page_layout_type="single_full",
            color_theme="neutral",
            sprinkles=[],
            is_processed=False,
        )

        try:
            db.add(entry)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating entry in log %s: %s", log_id, str(e))
            raise PersistenceError(context={"log_id": str(log_id)})
        logger.info("Entry %s created in log %s", entry.id, log_id)

        await self._link_tags(db, entry.id, data.tag_ids)
        await self._link_photos(db, entry.id, data.photo_ids)

        created = await self._fetch_entry(db, entry.id)
        return EntryResponse.model_validate(created or entry)

    async def update_entry(
        self,
        db: AsyncSession,
        user_id: UUID,
        entry_id: UUID,
        data: EntryUpdate,
    ) -> EntryResponse:
        entry = await self._get_owned_entry(db, user_id, entry_id)

        updates = data.column_updates()
        try:
            for name, value in updates.items():
                setattr(entry, name, value)
            if data.tag_ids is not None:
                await db.execute(delete(entry_tags).where(entry_tags.c.entry_id == entry.id))
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating entry %s: %s", entry_id, str(e))
            raise PersistenceError(context={"entry_id": str(entry_id)})

        if data.tag_ids is not None:
            await self._link_tags(db, entry.id, data.tag_ids)

        logger.info(
            "Entry %s updated (fields=%s, tags_replaced=%s)",
            entry_id, sorted(updates), data.tag_ids is not None,
        )
        updated = await self._fetch_entry(db, entry.id)
        return EntryResponse.model_validate(updated or entry)

    async def delete_entry(self, db: AsyncSession, user_id: UUID, entry_id: UUID) -> None:
        """Delete an entry; photos and tag links go with it (ON DELETE CASCADE)."""
        entry = await self._get_owned_entry(db, user_id, entry_id)
        try:
            await db.execute(delete(Entry).where(Entry.id == entry.id))
        except SQLAlchemyError as e:
            logger.error("Database error deleting entry %s: %s", entry_id, str(e))
            raise PersistenceError(context={"entry_id": str(entry_id)})
        logger.info("Entry %s deleted", entry_id)

    # ── Linking helpers ───────────────────────────────────────────────────

    async def _link_tags(self, db: AsyncSession, entry_id: UUID, tag_ids: Iterable[UUID]) -> None:
        rows = [{"entry_id": entry_id, "tag_id": tag_id} for tag_id in dict.fromkeys(tag_ids)]
        if not rows:
            return
        try:
            async with db.begin_nested():
                await db.execute(insert(entry_tags), rows)
        except SQLAlchemyError as e:
            logger.warning("Could not assign %d tag(s) to entry %s: %s", len(rows), entry_id, str(e))

    async def _link_photos(self, db: AsyncSession, entry_id: UUID, photo_ids: Iterable[UUID]) -> None:
        for index, photo_id in enumerate(photo_ids):
            try:
                async with db.begin_nested():
                    await db.execute(
                        update(Photo)
                        .where(Photo.id == photo_id)
                        .values(entry_id=entry_id, display_order=index)
                        .execution_options(synchronize_session=False)
                    )
            except SQLAlchemyError as e:
                logger.warning("Could not link photo %s to entry %s: %s", photo_id, entry_id, str(e))

    # ══════════════════════════════════════════════════════════════════════
    # Tags API
    # ══════════════════════════════════════════════════════════════════════

    async def list_tags(self, db: AsyncSession) -> TagListResponse:
        try:
            result = await db.execute(select(Tag).order_by(Tag.category.asc(), Tag.name.asc()))
            tags = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing tags: %s", str(e))
            raise PersistenceError()

        by_category: Dict[str, List[TagSummary]] = {}
        for tag in tags:
            by_category.setdefault(tag.category, []).append(
                TagSummary(id=tag.id, name=tag.name, icon=tag.icon)
            )

        return TagListResponse(
            tags=[TagResponse.model_validate(tag) for tag in tags],
            tags_by_category=by_category,
        )

    # ══════════════════════════════════════════════════════════════════════
    # Worker operations (no caller scoping)
    # ══════════════════════════════════════════════════════════════════════

    async def load_entry(self, db: AsyncSession, entry_id: UUID) -> Entry:
        """Entry with photos (display order) and tags, or NotFoundError("Entry")."""
        entry = await self._fetch_entry(db, entry_id)
        if entry is None:
            raise NotFoundError(resource="Entry", resource_id=str(entry_id))
        return entry

    async def end_read(self, db: AsyncSession) -> None:
        """Close the session's transaction so its pooled connection is released."""
        try:
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error ending read transaction: %s", str(e))
            raise PersistenceError()

    async def write_smart_page(self, db: AsyncSession, entry_id: UUID, page: SmartPage) -> None:
        """Store all three computed fields and mark the entry processed, in one UPDATE."""
        stmt = (
            update(Entry)
            .where(Entry.id == entry_id)
            .values(
                page_layout_type=page.layout_type.value,
                color_theme=page.color_theme.value,
                sprinkles=page.sprinkle_values(),
                is_processed=True,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Database error writing Smart Page for entry %s: %s", entry_id, str(e))
            raise PersistenceError(context={"entry_id": str(entry_id)})

        if result.rowcount == 0:
            raise NotFoundError(resource="Entry", resource_id=str(entry_id))

    async def write_location(
        self,
        db: AsyncSession,
        entry_id: UUID,
        lat: float,
        lng: float,
        display_name: str,
    ) -> bool:
        """
        Store a geocoded location unless the user has overridden it.

        Returns:
            True if the row was written; False if it was (or became) overridden
            or no longer exists.
        """
        stmt = (
            update(Entry)
            .where(
                Entry.id == entry_id,
                Entry.location_is_user_overridden.is_(False),
            )
            .values(
                location_lat=lat,
                location_lng=lng,
                location_display_name=display_name,
                location_is_user_overridden=False,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Database error writing location for entry %s: %s", entry_id, str(e))
            raise PersistenceError(context={"entry_id": str(entry_id)})
        return result.rowcount > 0

    async def write_photo_colors(
        self,
        db: AsyncSession,
        photo_id: UUID,
        dominant_colors: List[Dict[str, Any]],
    ) -> None:
        stmt = (
            update(Photo)
            .where(Photo.id == photo_id)
            .values(dominant_colors=dominant_colors, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Database error writing colors for photo %s: %s", photo_id, str(e))
            raise PersistenceError(context={"photo_id": str(photo_id)})

        if result.rowcount == 0:
            raise NotFoundError(resource="Photo", resource_id=str(photo_id))

    async def write_photo_processing(
        self,
        db: AsyncSession,
        photo_id: UUID,
        url: str,
        thumbnail_url: str,
        exif_data: Dict[str, Any],
    ) -> None:
        stmt = (
            update(Photo)
            .where(Photo.id == photo_id)
            .values(
                url=url,
                thumbnail_url=thumbnail_url,
                exif_data=exif_data,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Database error writing processing results for photo %s: %s", photo_id, str(e))
            raise PersistenceError(context={"photo_id": str(photo_id)})

        if result.rowcount == 0:
            raise NotFoundError(resource="Photo", resource_id=str(photo_id))


# ── Singleton Instance ────────────────────────────────────────────────────
entry_service = EntryService()
