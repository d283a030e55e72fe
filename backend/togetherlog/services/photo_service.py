"""
TogetherLog Backend - Photo Processing Service
===============================================

What:  Derives the public URL, thumbnail URL and metadata stored on a photo
       by the process-photo worker.
How:   The URL is the bucket's public base joined with the storage path.
       Thumbnails are not rendered: thumbnail_url is the original URL.
       Metadata is a placeholder record, not EXIF read from the image.
Who:   Called by WorkerService.process_photo.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from togetherlog.config import settings

PROCESSOR_NAME = "TogetherLog-V1"

PROCESS_PHOTO_NOTE = (
    "Basic processing complete. EXIF and thumbnail generation require additional setup."
)


class PhotoService:

    def __init__(self, public_base_url: Optional[str] = None):
        self.public_base_url = (public_base_url or settings.photo_public_base_url).rstrip("/")

    def public_url(self, storage_path: str) -> str:
        """
        Example:
            public_url("2024/06/ab12.jpg")
            → "http://localhost:54321/storage/v1/object/public/photos/2024/06/ab12.jpg"
        """
        return f"{self.public_base_url}/{storage_path.lstrip('/')}"

    def placeholder_exif(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        processed_at = now or datetime.now(timezone.utc)
        return {
            "processed_at": processed_at.isoformat(),
            "processor": PROCESSOR_NAME,
            "note": "Full EXIF extraction requires additional setup",
        }


photo_service = PhotoService()
