"""
TogetherLog Backend - Photo Processing Service Tests
=====================================================

What we test:
    ✅ Public URL joins the bucket base and the storage path with one slash
    ✅ Placeholder metadata shape
"""

from datetime import datetime, timezone

import pytest

from togetherlog.services.photo_service import PROCESSOR_NAME, PhotoService


class TestPhotoService:

    def setup_method(self):
        self.service = PhotoService(public_base_url="https://cdn.example.com/photos/")

    @pytest.mark.parametrize("path", ["2024/06/a.jpg", "/2024/06/a.jpg"])
    def test_public_url(self, path):
        assert self.service.public_url(path) == "https://cdn.example.com/photos/2024/06/a.jpg"

    def test_default_base_from_settings(self):
        assert PhotoService().public_url("x.jpg").endswith("/photos/x.jpg")

    def test_placeholder_exif(self):
        now = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
        exif = self.service.placeholder_exif(now)
        assert exif == {
            "processed_at": "2024-06-01T12:00:00+00:00",
            "processor": PROCESSOR_NAME,
            "note": "Full EXIF extraction requires additional setup",
        }
