"""
TogetherLog Backend - Entry, Photo and Tag Schemas
===================================================

What:  Request/response models for the entries and tags endpoints.
How:   EntryCreate / EntryUpdate validate highlight length and the location
       pair before the service runs. Response models read straight from the
       ORM objects (from_attributes), so the entry's photos and tags must be
       eagerly loaded by the service.

Location rules (create and update):
    - location_lat and location_lng are sent together or not at all
    - latitude in [-90, 90], longitude in [-180, 180]
"""

import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

HIGHLIGHT_MAX_LENGTH = 500

NULLABLE_COLUMNS = frozenset({"location_lat", "location_lng", "location_display_name"})


def _check_location_pair(lat: Optional[float], lng: Optional[float]) -> None:
    if (lat is None) != (lng is None):
        raise ValueError("Both location_lat and location_lng must be provided together")
    if lat is not None and not -90 <= lat <= 90:
        raise ValueError("location_lat must be between -90 and 90")
    if lng is not None and not -180 <= lng <= 180:
        raise ValueError("location_lng must be between -180 and 180")


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class EntryCreate(BaseModel):
    """
    What:  Body of POST /api/logs/{log_id}/entries.

    Photos are uploaded separately; photo_ids links them to the new entry in
    the order given (display_order = index). Unknown tag or photo ids do not
    fail the request.
    """
    event_date: date
    highlight_text: str = Field(default="", max_length=HIGHLIGHT_MAX_LENGTH)
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    location_display_name: Optional[str] = None
    location_is_user_overridden: bool = False
    tag_ids: List[uuid.UUID] = Field(default_factory=list)
    photo_ids: List[uuid.UUID] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_location(self) -> "EntryCreate":
        _check_location_pair(self.location_lat, self.location_lng)
        return self


class EntryUpdate(BaseModel):
    """
    What:  Body of PATCH /api/entries/{entry_id}.

    Only fields present in the body are written (model_fields_set).
    tag_ids, when present, replaces the entry's whole tag set.
    """
    event_date: Optional[date] = None
    highlight_text: Optional[str] = Field(default=None, max_length=HIGHLIGHT_MAX_LENGTH)
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    location_display_name: Optional[str] = None
    location_is_user_overridden: Optional[bool] = None
    tag_ids: Optional[List[uuid.UUID]] = None

    @model_validator(mode="after")
    def check_location(self) -> "EntryUpdate":
        _check_location_pair(self.location_lat, self.location_lng)
        return self

    def column_updates(self) -> Dict[str, Any]:
        """Entry column values explicitly sent by the client."""
        updates = {}
        for name in self.model_fields_set - {"tag_ids"}:
            value = getattr(self, name)
            # Explicit null only clears nullable location columns
            if value is None and name not in NULLABLE_COLUMNS:
                continue
            updates[name] = value
        return updates


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class TagResponse(BaseModel):
    id: uuid.UUID
    name: str
    category: str
    icon: Optional[str] = None

    model_config = {"from_attributes": True}


class PhotoResponse(BaseModel):
    id: uuid.UUID
    display_order: int
    url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    dominant_colors: Optional[List[Dict[str, Any]]] = None
    exif_data: Optional[Dict[str, Any]] = None

    model_config = {"from_attributes": True}


class EntryResponse(BaseModel):
    """Full entry including its computed Smart Page fields, photos and tags."""
    id: uuid.UUID
    log_id: uuid.UUID
    event_date: date
    highlight_text: str
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    location_display_name: Optional[str] = None
    location_is_user_overridden: bool
    page_layout_type: str
    color_theme: str
    sprinkles: List[str] = Field(default_factory=list)
    is_processed: bool
    created_at: datetime
    updated_at: datetime
    photos: List[PhotoResponse] = Field(default_factory=list)
    tags: List[TagResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class EntryEnvelope(BaseModel):
    entry: EntryResponse


class EntryListResponse(BaseModel):
    entries: List[EntryResponse]


class TagSummary(BaseModel):
    id: uuid.UUID
    name: str
    icon: Optional[str] = None


class TagListResponse(BaseModel):
    """
    What:  Full tag vocabulary, sorted by category then name, plus the same
           tags grouped per category for the picker UI.
    """
    tags: List[TagResponse]
    tags_by_category: Dict[str, List[TagSummary]]
