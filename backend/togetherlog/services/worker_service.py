"""
TogetherLog Backend - Worker Service (Background Job Orchestrator)
===================================================================

What:  Runs the background jobs invoked through /workers/*:
       Smart Page computation, reverse geocoding, color extraction and
       photo processing.
How:   validate payload → load entry/photo → core component → one write-back
       → response model.
Who:   Called by the worker route handlers, usually right after an entry or
       photo is created or edited.

Orchestration Flow (POST /workers/reverse-geocode):
    ┌───────────┐    ┌────────────┐    ┌──────────────┐    ┌────────────┐
    │ Validate  │───▶│ Load entry │───▶│ Rate limiter │───▶│ Write back │
    │ lat / lng │    │ (404 if    │    │ + Nominatim  │    │ (skipped if│
    │ (400)     │    │  missing)  │    │ (cache first)│    │ overridden)│
    └───────────┘    └─────┬──────┘    └──────────────┘    └────────────┘
                           │ user-overridden
                           ▼
                      skip message, zero provider calls

The read transaction is committed before the rate-limiter wait, so a queued
job holds no pooled connection while it sleeps.

Failures are never retried here. A ProviderError or PersistenceError
propagates to the global handler (500) and the caller re-submits the job.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from togetherlog.services.color_service import PLACEHOLDER_NOTE, color_service
from togetherlog.services.entry_service import entry_service
from togetherlog.services.geocoding_service import (
    ReverseGeocoder,
    reverse_geocoder,
    validate_coordinates,
)
from togetherlog.services.photo_service import PROCESS_PHOTO_NOTE, photo_service
from togetherlog.services.smart_page import PhotoColors, compute_smart_page
from togetherlog.schemas.workers import (
    ComputeColorsResponse,
    GeocodedLocation,
    ProcessPhotoResponse,
    ReverseGeocodeResponse,
    SmartPageFields,
    SmartPageInputs,
    SmartPageResponse,
)

logger = logging.getLogger(__name__)

OVERRIDDEN_MESSAGE = "Location is user-overridden, skipping geocoding"


class WorkerService:
    """
    Stateless orchestrator for the background jobs.

    The geocoder is injectable so tests can supply one backed by
    httpx.MockTransport and a fresh rate limiter.
    """

    def __init__(self, geocoder: ReverseGeocoder = reverse_geocoder):
        self.geocoder = geocoder

    async def compute_smart_page(self, db: AsyncSession, entry_id: UUID) -> SmartPageResponse:
        """
        Compute and store the Smart Page fields for one entry.

        Raises:
            NotFoundError:    entry does not exist (→ 404)
            PersistenceError: load or write-back failed (→ 500)
        """
        entry = await entry_service.load_entry(db, entry_id)

        photos = list(entry.photos)
        tag_names = [tag.name for tag in entry.tags]
        page = compute_smart_page(
            photo_count=len(photos),
            tag_names=tag_names,
            photos=[PhotoColors.from_raw(photo.dominant_colors) for photo in photos],
        )

        await entry_service.write_smart_page(db, entry_id, page)
        logger.info(
            "Smart Page for entry %s: layout=%s theme=%s sprinkles=%s",
            entry_id, page.layout_type.value, page.color_theme.value, page.sprinkle_values(),
        )

        return SmartPageResponse(
            entry_id=entry_id,
            smart_page=SmartPageFields(
                page_layout_type=page.layout_type.value,
                color_theme=page.color_theme.value,
                sprinkles=page.sprinkle_values(),
            ),
            inputs=SmartPageInputs(
                photo_count=len(photos),
                tag_count=len(tag_names),
                tags=tag_names,
                has_location=entry.has_location,
                highlight_length=len(entry.highlight_text or ""),
            ),
        )

    async def reverse_geocode(
        self,
        db: AsyncSession,
        entry_id: UUID,
        lat: Any,
        lng: Any,
    ) -> ReverseGeocodeResponse:
        """
        Geocode coordinates and store the place name on the entry.

        Raises:
            InvalidCoordinates: bad lat/lng, raised before the entry is read (→ 400)
            NotFoundError:      entry does not exist (→ 404)
            ProviderError:      Nominatim failed (→ 500)
        """
        lat_f, lng_f = validate_coordinates(lat, lng)

        entry = await entry_service.load_entry(db, entry_id)
        if entry.location_is_user_overridden:
            logger.info("Entry %s has a user-set location; geocoding skipped", entry_id)
            return ReverseGeocodeResponse(entry_id=entry_id, message=OVERRIDDEN_MESSAGE)

        # Return the connection to the pool while queued on the rate limiter;
        # write_location re-checks the override flag in its WHERE clause
        await entry_service.end_read(db)

        result = await self.geocoder.geocode(lat_f, lng_f)

        written = await entry_service.write_location(
            db, entry_id, lat=lat_f, lng=lng_f, display_name=result.display_name
        )
        if not written:
            # Override (or delete) committed while the provider call was in flight
            logger.info("Entry %s changed during geocoding; result discarded", entry_id)
            return ReverseGeocodeResponse(entry_id=entry_id, message=OVERRIDDEN_MESSAGE)

        logger.info("Entry %s geocoded to '%s'", entry_id, result.display_name)
        return ReverseGeocodeResponse(
            success=True,
            entry_id=entry_id,
            location=GeocodedLocation(
                lat=lat_f,
                lng=lng_f,
                display_name=result.display_name,
                raw_data=result.raw_data,
            ),
        )

    async def compute_colors(self, db: AsyncSession, photo_id: UUID) -> ComputeColorsResponse:
        dominant_colors = color_service.extract_dominant_colors()
        await entry_service.write_photo_colors(db, photo_id, dominant_colors)
        logger.info("Stored %d dominant colors for photo %s", len(dominant_colors), photo_id)

        return ComputeColorsResponse(
            photo_id=photo_id,
            dominant_colors=dominant_colors,
            note=PLACEHOLDER_NOTE,
        )

    async def process_photo(
        self, db: AsyncSession, photo_id: UUID, storage_path: str
    ) -> ProcessPhotoResponse:
        """
        Store the public URL, thumbnail URL and placeholder metadata of a photo.

        Raises:
            NotFoundError:    photo does not exist (→ 404)
            PersistenceError: write-back failed (→ 500)
        """
        url = photo_service.public_url(storage_path)
        # Thumbnails are not rendered; the original image doubles as its thumbnail
        thumbnail_url = url
        exif_data = photo_service.placeholder_exif()

        await entry_service.write_photo_processing(
            db, photo_id, url=url, thumbnail_url=thumbnail_url, exif_data=exif_data
        )
        logger.info("Processed photo %s (%s)", photo_id, storage_path)

        return ProcessPhotoResponse(
            photo_id=photo_id,
            url=url,
            thumbnail_url=thumbnail_url,
            exif_data=exif_data,
            note=PROCESS_PHOTO_NOTE,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
worker_service = WorkerService()
