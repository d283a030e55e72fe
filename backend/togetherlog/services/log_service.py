"""
TogetherLog Backend - Log Service
==================================

What:  CRUD for logs (journals), always scoped to the calling user.
Who:   Called by the /api/logs route handlers.

Query plan (list):
    SELECT logs.*, count(entries.id) FROM logs
    LEFT OUTER JOIN entries ON entries.log_id = logs.id
    WHERE logs.user_id = :uid GROUP BY logs.id ORDER BY logs.created_at DESC
    → idx_logs_user_created_at serves the filter and the sort
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from togetherlog.exceptions import NotFoundError, PersistenceError
from togetherlog.models import Entry, Log
from togetherlog.schemas.logs import LogCreate, LogResponse, LogUpdate

logger = logging.getLogger(__name__)


def _to_response(log: Log, entry_count: int = 0) -> LogResponse:
    return LogResponse(
        id=log.id,
        name=log.name,
        type=log.type,
        created_at=log.created_at,
        updated_at=log.updated_at,
        entry_count=entry_count or 0,
    )


class LogService:

    def _counted_query(self, user_id: UUID):
        return (
            select(Log, func.count(Entry.id))
            .outerjoin(Entry, Entry.log_id == Log.id)
            .where(Log.user_id == user_id)
            .group_by(Log.id)
        )

    async def list_logs(self, db: AsyncSession, user_id: UUID) -> List[LogResponse]:
        """All logs of the caller, newest first, each with its entry_count."""
        try:
            result = await db.execute(
                self._counted_query(user_id).order_by(Log.created_at.desc())
            )
            rows = result.all()
        except SQLAlchemyError as e:
            logger.error("Database error listing logs for user %s: %s", user_id, str(e))
            raise PersistenceError(context={"user_id": str(user_id)})

        return [_to_response(log, count) for log, count in rows]

    async def get_log(self, db: AsyncSession, user_id: UUID, log_id: UUID) -> LogResponse:
        try:
            result = await db.execute(self._counted_query(user_id).where(Log.id == log_id))
            row = result.first()
        except SQLAlchemyError as e:
            logger.error("Database error fetching log %s: %s", log_id, str(e))
            raise PersistenceError(context={"log_id": str(log_id)})

        if row is None:
            raise NotFoundError(resource="Log", resource_id=str(log_id))
        log, count = row
        return _to_response(log, count)

    async def create_log(self, db: AsyncSession, user_id: UUID, data: LogCreate) -> LogResponse:
        log = Log(user_id=user_id, name=data.name, type=data.type)
        try:
            db.add(log)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating log for user %s: %s", user_id, str(e))
            raise PersistenceError(context={"user_id": str(user_id)})

        logger.info("Log %s created (type=%s)", log.id, log.type)
        return _to_response(log, 0)

    async def update_log(
        self,
        db: AsyncSession,
        user_id: UUID,
        log_id: UUID,
        data: LogUpdate,
    ) -> LogResponse:
        """Rename and/or retype a log. LogUpdate guarantees at least one field."""
        log = await self.get_owned_log(db, user_id, log_id)

        try:
            for name, value in data.model_dump(exclude_none=True).items():
                setattr(log, name, value)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating log %s: %s", log_id, str(e))
            raise PersistenceError(context={"log_id": str(log_id)})

        logger.info("Log %s updated", log_id)
        return await self.get_log(db, user_id, log_id)

    async def delete_log(self, db: AsyncSession, user_id: UUID, log_id: UUID) -> None:
        """Delete a log; its entries, photos and tag links cascade in the database."""
        try:
            result = await db.execute(
                delete(Log).where(Log.id == log_id, Log.user_id == user_id)
            )
        except SQLAlchemyError as e:
            logger.error("Database error deleting log %s: %s", log_id, str(e))
            raise PersistenceError(context={"log_id": str(log_id)})

        if result.rowcount == 0:
            raise NotFoundError(resource="Log", resource_id=str(log_id))
        logger.info("Log %s deleted", log_id)

    async def get_owned_log(self, db: AsyncSession, user_id: UUID, log_id: UUID) -> Log:
        log: Optional[Log]
        try:
            result = await db.execute(
                select(Log).where(Log.id == log_id, Log.user_id == user_id)
            )
            log = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching log %s: %s", log_id, str(e))
            raise PersistenceError(context={"log_id": str(log_id)})

        if log is None:
            raise NotFoundError(resource="Log", resource_id=str(log_id))
        return log


# ── Singleton Instance ────────────────────────────────────────────────────
log_service = LogService()
