"""
TogetherLog Backend - Entry SQLAlchemy Model
=============================================

What:  ORM model representing the `entries` table (a single dated memory).
Who:   Used by EntryService for CRUD and by WorkerService for Smart Page and
       geocoding write-backs.

Lifecycle:
    1. Created with Smart Page defaults: single_full / neutral / [] / not processed
    2. Smart Page worker writes page_layout_type, color_theme, sprinkles and
       is_processed=true in ONE update statement
    3. Geocoding worker writes the location columns unless
       location_is_user_overridden is set
    4. Deleted explicitly or via its log (CASCADE to photos and entry_tags)
"""

import uuid
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, Date, Float, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from togetherlog.database import Base
from togetherlog.models.tag import Tag, entry_tags

if TYPE_CHECKING:
    from togetherlog.models.log import Log
    from togetherlog.models.photo import Photo


class Entry(Base):
    __tablename__ = "entries"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )

    log_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("logs.id", ondelete="CASCADE"),
        nullable=False,
    )

    event_date: Mapped[date] = mapped_column(Date, nullable=False)

    highlight_text: Mapped[str] = mapped_column(
        Text, nullable=False, default="", server_default=text("''")
    )

    # ── Location ──────────────────────────────────────────────────────────
    location_lat: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    location_lng: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    location_display_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # When true, the reverse-geocoding worker never writes location columns
    location_is_user_overridden: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    # ── Smart Page (computed) ─────────────────────────────────────────────
    page_layout_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="single_full",
        server_default=text("'single_full'"),
    )
    color_theme: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="neutral",
        server_default=text("'neutral'"),
    )
    sprinkles: Mapped[List[str]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        server_default=text("'[]'::jsonb"),
        comment="Ordered sprinkle icon names, no duplicates",
    )
    is_processed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    # ── Timestamps ────────────────────────────────────────────────────────
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

    # ── Relationships ─────────────────────────────────────────────────────
    log: Mapped["Log"] = relationship(back_populates="entries")

    photos: Mapped[List["Photo"]] = relationship(
        back_populates="entry",
        order_by="Photo.display_order",
        passive_deletes=True,
    )

    tags: Mapped[List[Tag]] = relationship(
        secondary=entry_tags,
        order_by=Tag.name,
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_entries_log_event_date", "log_id", "event_date"),
    )

    @property
    def has_location(self) -> bool:
        return self.location_lat is not None and self.location_lng is not None

    def __repr__(self) -> str:
        return (
            f"<Entry(id={self.id}, log_id={self.log_id}, "
            f"event_date='{self.event_date}', processed={self.is_processed})>"
        )
