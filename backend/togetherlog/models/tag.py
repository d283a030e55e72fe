"""
TogetherLog Backend - Tag SQLAlchemy Model
===========================================

What:  ORM model for the fixed tag vocabulary and the `entry_tags` join table.
How:   Tags are seeded by migration; entries reference them many-to-many.

The Smart Page engine matches tags by exact, case-sensitive `name`.
"""

import uuid
from typing import Optional

from sqlalchemy import Column, ForeignKey, String, Table, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from togetherlog.database import Base


entry_tags = Table(
    "entry_tags",
    Base.metadata,
    Column(
        "entry_id",
        UUID(as_uuid=True),
        ForeignKey("entries.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        UUID(as_uuid=True),
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    def __repr__(self) -> str:
        return f"<Tag(name='{self.name}', category='{self.category}')>"
