"""
TogetherLog Backend - Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the whole suite.
How:   No real database or network: sessions are AsyncMocks, the geocoding
       provider is an httpx.MockTransport, and endpoint tests drive the app
       through httpx.ASGITransport with get_db_session overridden.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session:  AsyncMock standing in for AsyncSession
    ├── user_id / auth_headers: caller identity as the gateway sends it
    ├── make_entry / make_photo / make_tag: transient ORM objects
    ├── provider_calls + mock_geocoder: ReverseGeocoder over MockTransport
    └── test_client: httpx AsyncClient bound to the FastAPI app
"""

import os
from datetime import date, datetime, timezone
from typing import Any, Dict, List
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import httpx
import pytest
import pytest_asyncio

# Settings are read at import time; set them before importing the package
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("GEOCODE_CACHE_SIZE", "0")

from togetherlog.database import get_db_session  # noqa: E402
from togetherlog.models import Entry, Photo, Tag  # noqa: E402
from togetherlog.services.geocoding_service import ReverseGeocoder  # noqa: E402
from togetherlog.services.rate_limiter import RateLimiter  # noqa: E402

PARIS_PAYLOAD: Dict[str, Any] = {
    "place_id": 88066702,
    "lat": "48.8566",
    "lon": "2.3522",
    "display_name": "Paris, Ile-de-France, Metropolitan France, France",
    "address": {"city": "Paris", "country": "France", "country_code": "fr"},
}


# ══════════════════════════════════════════════════════════════════════════
# Database Session
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.return_value = result_with(scalar=entry)
        await entry_service.get_entry(mock_db_session, user_id, entry.id)

    begin_nested() is a MagicMock so `async with db.begin_nested():` works.
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.begin_nested = MagicMock()
    return session


def result_with(scalar=None, scalars: List[Any] = None, rows: List[Any] = None, rowcount: int = 1):
    """Build a mock SQLAlchemy Result."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.scalars.return_value.all.return_value = scalars or []
    result.all.return_value = rows or []
    result.first.return_value = rows[0] if rows else None
    result.rowcount = rowcount
    return result


# ══════════════════════════════════════════════════════════════════════════
# Domain Objects
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def user_id():
    return uuid4()


@pytest.fixture
def auth_headers(user_id):
    return {"X-User-ID": str(user_id)}


@pytest.fixture
def make_tag():
    def _make(name: str, category: str = "Activities", icon: str = None) -> Tag:
        return Tag(id=uuid4(), name=name, category=category, icon=icon)
    return _make


@pytest.fixture
def make_photo():
    def _make(display_order: int = 0, dominant_colors=None) -> Photo:
        now = datetime.now(timezone.utc)
        return Photo(
            id=uuid4(),
            display_order=display_order,
            storage_path=f"photos/{uuid4()}.jpg",
            url=None,
            thumbnail_url=None,
            dominant_colors=dominant_colors,
            exif_data=None,
            created_at=now,
            updated_at=now,
        )
    return _make


@pytest.fixture
def make_entry():
    """
    Transient Entry with every column set (ORM defaults only apply on flush).
    Relationship lists are assigned directly.
    """
    def _make(photos=(), tags=(), **overrides) -> Entry:
        now = datetime.now(timezone.utc)
        fields = {
            "id": uuid4(),
            "log_id": uuid4(),
            "event_date": date(2024, 6, 1),
            "highlight_text": "Sunset picnic",
            "location_lat": None,
            "location_lng": None,
            "location_display_name": None,
            "location_is_user_overridden": False,
            "page_layout_type": "single_full",
            "color_theme": "neutral",
            "sprinkles": [],
            "is_processed": False,
            "created_at": now,
            "updated_at": now,
        }
        fields.update(overrides)
        entry = Entry(**fields)
        entry.photos = list(photos)
        entry.tags = list(tags)
        return entry
    return _make


# ══════════════════════════════════════════════════════════════════════════
# Geocoding Provider
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def provider_calls():
    """Requests received by the mocked Nominatim endpoint, in arrival order."""
    return []


@pytest.fixture
def mock_geocoder(provider_calls):
    """
    ReverseGeocoder whose HTTP client answers every request with PARIS_PAYLOAD.
    Uses a zero-interval limiter so unit tests do not sleep.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        provider_calls.append(request)
        return httpx.Response(200, json=PARIS_PAYLOAD)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ReverseGeocoder(rate_limiter=RateLimiter(min_interval=0.0), client=client, cache_size=0)


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(mock_db_session):
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    Every request gets `mock_db_session` instead of a pooled session.
    """
    from togetherlog.main import app

    async def override_db():
        yield mock_db_session

    app.dependency_overrides[get_db_session] = override_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
