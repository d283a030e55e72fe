"""
TogetherLog Backend - Log SQLAlchemy Model
===========================================

What:  ORM model representing the `logs` table (a named memory book).
Who:   Used by LogService for CRUD and by EntryService for ownership checks.

Table Design:
    - user_id: Owner; every query is scoped by it (row-level ownership)
    - type: One of LOG_TYPES, validated by the request schema
    - Deleting a log cascades to its entries (and from there to photos/tags)
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlalchemy import Index, String, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from togetherlog.database import Base

if TYPE_CHECKING:
    from togetherlog.models.entry import Entry


LOG_TYPES = ("Couple", "Friends", "Family", "Solo", "Other")


class Log(Base):
    """A user's journal; the parent of entries."""

    __tablename__ = "logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
        comment="Owner of the log (authenticated user id)",
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="Couple",
        server_default=text("'Couple'"),
        comment="Couple, Friends, Family, Solo, Other",
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    entries: Mapped[List["Entry"]] = relationship(
        back_populates="log",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_logs_user_created_at", "user_id", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Log(id={self.id}, name='{self.name}', type='{self.type}')>"
