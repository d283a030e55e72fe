"""
TogetherLog Backend - Worker Schemas
=====================================

What:  Request/response models for the /workers/* endpoints.

Coordinate fields of ReverseGeocodeRequest are typed `Any`: the geocoding
service owns the numeric and range checks (booleans, strings, NaN and
out-of-range values all raise InvalidCoordinates) and runs them before the
entry is loaded.
"""

import uuid
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ── Compute Smart Page ────────────────────────────────────────────────────

class SmartPageRequest(BaseModel):
    entry_id: uuid.UUID


class SmartPageFields(BaseModel):
    page_layout_type: str
    color_theme: str
    sprinkles: List[str]


class SmartPageInputs(BaseModel):
    """Summary of what the rules engine was fed, echoed for debugging."""
    photo_count: int
    tag_count: int
    tags: List[str]
    has_location: bool
    highlight_length: int


class SmartPageResponse(BaseModel):
    success: bool = True
    entry_id: uuid.UUID
    smart_page: SmartPageFields
    inputs: SmartPageInputs


# ── Reverse Geocode ───────────────────────────────────────────────────────

class ReverseGeocodeRequest(BaseModel):
    entry_id: uuid.UUID
    lat: Any = Field(description="Latitude in [-90, 90]")
    lng: Any = Field(description="Longitude in [-180, 180]")


class GeocodedLocation(BaseModel):
    lat: float
    lng: float
    display_name: str
    raw_data: Dict[str, Any] = Field(default_factory=dict)


class ReverseGeocodeResponse(BaseModel):
    """
    Either the geocoded location (success=True) or, for entries whose
    location the user set by hand, a skip message with no location.
    """
    success: Optional[bool] = None
    entry_id: uuid.UUID
    location: Optional[GeocodedLocation] = None
    message: Optional[str] = None


# ── Compute Colors ────────────────────────────────────────────────────────

class ComputeColorsRequest(BaseModel):
    photo_id: uuid.UUID


class DominantColorModel(BaseModel):
    hex: str
    rgb: List[int]
    percentage: float


class ComputeColorsResponse(BaseModel):
    success: bool = True
    photo_id: uuid.UUID
    dominant_colors: List[DominantColorModel]
    note: str


# ── Process Photo ─────────────────────────────────────────────────────────

class ProcessPhotoRequest(BaseModel):
    photo_id: uuid.UUID
    storage_path: str = Field(min_length=1, max_length=255, description="Object path inside the photo bucket")


class ProcessPhotoResponse(BaseModel):
    success: bool = True
    photo_id: uuid.UUID
    url: str
    thumbnail_url: str
    exif_data: Dict[str, Any]
    note: str
