"""
TogetherLog Backend - Photo SQLAlchemy Model
=============================================

What:  ORM model representing the `photos` table.
How:   Photos are uploaded separately and linked to an entry afterwards
       (entry_id + display_order set by EntryService.create_entry).

url / thumbnail_url / exif_data are filled by the process-photo worker.

dominant_colors format (JSONB, ordered by descending percentage):
    [{"hex": "#8B7355", "rgb": [139, 115, 85], "percentage": 35}, ...]
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from togetherlog.database import Base

if TYPE_CHECKING:
    from togetherlog.models.entry import Entry


class Photo(Base):
    __tablename__ = "photos"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )

    # Nullable until the photo is attached to an entry
    entry_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("entries.id", ondelete="CASCADE"),
        nullable=True,
    )

    display_order: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    storage_path: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    dominant_colors: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(
        JSONB,
        nullable=True,
        comment="Dominant colors ordered by descending area percentage",
    )

    exif_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSONB,
        nullable=True,
        comment="Photo metadata written by the process-photo worker",
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

    entry: Mapped[Optional["Entry"]] = relationship(back_populates="photos")

    __table_args__ = (
        Index("idx_photos_entry_order", "entry_id", "display_order"),
    )

    def __repr__(self) -> str:
        return f"<Photo(id={self.id}, entry_id={self.entry_id}, order={self.display_order})>"
