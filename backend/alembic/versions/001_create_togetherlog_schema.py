"""Create logs, entries, photos, tags and entry_tags

Revision ID: 001
Revises: None
Create Date: 2025-11-02 00:00:00.000000+00:00

What:  Initial TogetherLog schema plus the fixed tag vocabulary.
How:   PostgreSQL UUID primary keys (gen_random_uuid), TIMESTAMPTZ, JSONB for
       sprinkles and photo palettes, ON DELETE CASCADE from logs down to
       entries, photos and entry_tags.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union
import uuid

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# (name, category, icon). Names are matched case-sensitively by the Smart Page engine.
TAG_VOCABULARY = (
    ("Romantic Moments", "Emotions", "heart"),
    ("In Love", "Emotions", "heart"),
    ("Happy", "Emotions", "star"),
    ("Anniversary", "Occasions", "heart"),
    ("Birthday", "Occasions", "balloon"),
    ("Surprise / Gift", "Occasions", "gift"),
    ("Nature & Hiking", "Activities", "mountain"),
    ("Adventure / Sports", "Activities", "mountain"),
    ("Food & Restaurant", "Activities", "utensils"),
    ("Nightlife", "Activities", "star"),
    ("Home & Everyday Life", "Activities", "camera"),
    ("Lake / Beach", "Places", "beach"),
    ("City & Sightseeing", "Places", "camera"),
    ("Travel", "Travel", "airplane"),
    ("Roadtrip", "Travel", "airplane"),
)


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    # ── logs ──────────────────────────────────────────────────────────────
    op.create_table(
        "logs",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False,
                  comment="Owner of the log (authenticated user id)"),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default=sa.text("'Couple'"),
                  comment="Couple, Friends, Family, Solo, Other"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("char_length(name) BETWEEN 1 AND 100", name="ck_logs_name_length"),
        sa.CheckConstraint(
            "type IN ('Couple', 'Friends', 'Family', 'Solo', 'Other')", name="ck_logs_type"
        ),
    )
    op.create_index(
        "idx_logs_user_created_at", "logs", ["user_id", sa.text("created_at DESC")]
    )

    # ── entries ───────────────────────────────────────────────────────────
    op.create_table(
        "entries",
        _uuid_pk(),
        sa.Column("log_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("highlight_text", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("location_lat", sa.Float(), nullable=True),
        sa.Column("location_lng", sa.Float(), nullable=True),
        sa.Column("location_display_name", sa.Text(), nullable=True),
        sa.Column("location_is_user_overridden", sa.Boolean(), nullable=False,
                  server_default=sa.text("false")),
        sa.Column("page_layout_type", sa.String(20), nullable=False,
                  server_default=sa.text("'single_full'")),
        sa.Column("color_theme", sa.String(20), nullable=False,
                  server_default=sa.text("'neutral'")),
        sa.Column("sprinkles", postgresql.JSONB(), nullable=False,
                  server_default=sa.text("'[]'::jsonb"),
                  comment="Ordered sprinkle icon names, no duplicates"),
        sa.Column("is_processed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["log_id"], ["logs.id"], ondelete="CASCADE"),
        sa.CheckConstraint("char_length(highlight_text) <= 500", name="ck_entries_highlight_length"),
        sa.CheckConstraint(
            "(location_lat IS NULL) = (location_lng IS NULL)", name="ck_entries_location_pair"
        ),
        sa.CheckConstraint(
            "location_lat IS NULL OR location_lat BETWEEN -90 AND 90", name="ck_entries_lat_range"
        ),
        sa.CheckConstraint(
            "location_lng IS NULL OR location_lng BETWEEN -180 AND 180", name="ck_entries_lng_range"
        ),
        sa.CheckConstraint(
            "page_layout_type IN ('single_full', 'grid_2x2', 'grid_2x3', 'grid_3x2', 'collage_4')",
            name="ck_entries_layout_type",
        ),
        sa.CheckConstraint(
            "color_theme IN ('warm_red', 'soft_rose', 'earth_green', 'ocean_blue', "
            "'deep_purple', 'neutral', 'warm_earth')",
            name="ck_entries_color_theme",
        ),
    )
    op.create_index("idx_entries_log_event_date", "entries", ["log_id", "event_date"])

    # ── photos ────────────────────────────────────────────────────────────
    op.create_table(
        "photos",
        _uuid_pk(),
        sa.Column("entry_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("storage_path", sa.String(255), nullable=False),
        sa.Column("url", sa.Text(), nullable=True),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column("dominant_colors", postgresql.JSONB(), nullable=True,
                  comment="Dominant colors ordered by descending area percentage"),
        sa.Column("exif_data", postgresql.JSONB(), nullable=True,
                  comment="Photo metadata written by the process-photo worker"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["entry_id"], ["entries.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_photos_entry_order", "photos", ["entry_id", "display_order"])

    # ── tags ──────────────────────────────────────────────────────────────
    tags = op.create_table(
        "tags",
        _uuid_pk(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("icon", sa.String(50), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_tags_name"),
    )

    op.create_table(
        "entry_tags",
        sa.Column("entry_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tag_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.PrimaryKeyConstraint("entry_id", "tag_id"),
        sa.ForeignKeyConstraint(["entry_id"], ["entries.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tag_id"], ["tags.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_entry_tags_tag_id", "entry_tags", ["tag_id"])

    op.bulk_insert(
        tags,
        [
            {"id": uuid.uuid4(), "name": name, "category": category, "icon": icon}
            for name, category, icon in TAG_VOCABULARY
        ],
    )


def downgrade() -> None:
    op.drop_index("idx_entry_tags_tag_id", table_name="entry_tags")
    op.drop_table("entry_tags")
    op.drop_table("tags")
    op.drop_index("idx_photos_entry_order", table_name="photos")
    op.drop_table("photos")
    op.drop_index("idx_entries_log_event_date", table_name="entries")
    op.drop_table("entries")
    op.drop_index("idx_logs_user_created_at", table_name="logs")
    op.drop_table("logs")
