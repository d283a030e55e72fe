"""
TogetherLog Backend - API Endpoint Tests
=========================================

What:  Drives the FastAPI app in-process through httpx.ASGITransport.
How:   get_db_session is overridden with mock_db_session (see conftest);
       the worker service's geocoder is swapped for mock_geocoder.

What we test:
    ✅ Worker endpoints (including process-photo): success bodies, 400 / 404 / 500 error bodies
    ✅ Override skip body is exactly {entry_id, message}
    ✅ X-User-ID identity (401) and path id parsing (400)
    ✅ Schema errors surface as one readable sentence
    ✅ /health with a reachable and an unreachable database
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from togetherlog.models import Log
from togetherlog.services.geocoding_service import ReverseGeocoder
from togetherlog.services.rate_limiter import RateLimiter
from togetherlog.services.worker_service import OVERRIDDEN_MESSAGE, worker_service

from conftest import result_with


@pytest.fixture
def use_geocoder(monkeypatch):
    def _use(geocoder: ReverseGeocoder) -> None:
        monkeypatch.setattr(worker_service, "geocoder", geocoder)
    return _use


def assert_error_body(response: httpx.Response, status: int, message: str = None) -> dict:
    assert response.status_code == status
    body = response.json()
    assert set(body) == {"error", "request_id"}
    assert body["request_id"] == response.headers["X-Request-ID"]
    if message is not None:
        assert body["error"] == message
    return body


# ══════════════════════════════════════════════════════════════════════════
# /workers/*
# ══════════════════════════════════════════════════════════════════════════


class TestComputeSmartPageEndpoint:

    @pytest.mark.asyncio
    async def test_success(self, test_client, mock_db_session, make_entry, make_photo, make_tag):
        entry = make_entry(
            photos=[make_photo(i) for i in range(5)],
            tags=[make_tag("Nature & Hiking", "Activities", "mountain")],
        )
        mock_db_session.execute.side_effect = [result_with(scalar=entry), result_with(rowcount=1)]

        response = await test_client.post(
            "/workers/compute-smart-page", json={"entry_id": str(entry.id)}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["entry_id"] == str(entry.id)
        assert body["smart_page"] == {
            "page_layout_type": "grid_3x2",
            "color_theme": "earth_green",
            "sprinkles": ["mountain", "sun"],
        }
        assert body["inputs"]["photo_count"] == 5
        assert body["inputs"]["tags"] == ["Nature & Hiking"]

    @pytest.mark.asyncio
    async def test_missing_entry_id(self, test_client):
        response = await test_client.post("/workers/compute-smart-page", json={})
        assert_error_body(response, 400, "entry_id is required")

    @pytest.mark.asyncio
    async def test_malformed_json(self, test_client):
        response = await test_client.post(
            "/workers/compute-smart-page",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert_error_body(response, 400, "Invalid JSON body")

    @pytest.mark.asyncio
    async def test_unknown_entry(self, test_client, mock_db_session):
        mock_db_session.execute.return_value = result_with(scalar=None)

        response = await test_client.post(
            "/workers/compute-smart-page", json={"entry_id": str(uuid.uuid4())}
        )
        assert_error_body(response, 404, "Entry not found")

    @pytest.mark.asyncio
    async def test_database_failure(self, test_client, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))

        response = await test_client.post(
            "/workers/compute-smart-page", json={"entry_id": str(uuid.uuid4())}
        )
        body = assert_error_body(response, 500)
        assert "down" not in body["error"]

    @pytest.mark.asyncio
    async def test_incoming_request_id_is_reused(self, test_client):
        response = await test_client.post(
            "/workers/compute-smart-page", json={}, headers={"X-Request-ID": "job-42"}
        )
        assert response.json()["request_id"] == "job-42"
        assert response.headers["X-Request-ID"] == "job-42"


class TestReverseGeocodeEndpoint:

    @pytest.mark.asyncio
    async def test_paris(self, test_client, mock_db_session, make_entry, mock_geocoder, use_geocoder):
        use_geocoder(mock_geocoder)
        entry = make_entry()
        mock_db_session.execute.side_effect = [result_with(scalar=entry), result_with(rowcount=1)]

        response = await test_client.post(
            "/workers/reverse-geocode",
            json={"entry_id": str(entry.id), "lat": 48.8566, "lng": 2.3522},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["location"]["display_name"] == "Paris, France"
        assert body["location"]["lat"] == 48.8566
        assert body["location"]["raw_data"]["address"]["country"] == "France"

    @pytest.mark.asyncio
    async def test_user_override_body(
        self, test_client, mock_db_session, make_entry, mock_geocoder, use_geocoder, provider_calls
    ):
        use_geocoder(mock_geocoder)
        entry = make_entry(location_is_user_overridden=True)
        mock_db_session.execute.return_value = result_with(scalar=entry)

        response = await test_client.post(
            "/workers/reverse-geocode",
            json={"entry_id": str(entry.id), "lat": 48.8566, "lng": 2.3522},
        )

        assert response.status_code == 200
        assert response.json() == {"message": OVERRIDDEN_MESSAGE, "entry_id": str(entry.id)}
        assert provider_calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("lat, lng", [(91, 0), (0, 200), ("48.8", 2.3), (True, 2.3)])
    async def test_invalid_coordinates(
        self, test_client, mock_db_session, mock_geocoder, use_geocoder, provider_calls, lat, lng
    ):
        use_geocoder(mock_geocoder)

        response = await test_client.post(
            "/workers/reverse-geocode",
            json={"entry_id": str(uuid.uuid4()), "lat": lat, "lng": lng},
        )

        assert_error_body(response, 400)
        assert provider_calls == []
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_integer_beyond_float_range(self, test_client, mock_db_session):
        body = '{"entry_id": "%s", "lat": 1%s, "lng": 2}' % (uuid.uuid4(), "0" * 400)

        response = await test_client.post(
            "/workers/reverse-geocode",
            content=body.encode(),
            headers={"Content-Type": "application/json"},
        )

        assert_error_body(response, 400, "Invalid coordinates")
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_lat(self, test_client):
        response = await test_client.post(
            "/workers/reverse-geocode", json={"entry_id": str(uuid.uuid4()), "lng": 2.3}
        )
        assert_error_body(response, 400, "lat is required")

    @pytest.mark.asyncio
    async def test_provider_failure_is_500(self, test_client, mock_db_session, make_entry, use_geocoder):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
        use_geocoder(ReverseGeocoder(rate_limiter=RateLimiter(0.0), client=client, cache_size=0))
        mock_db_session.execute.return_value = result_with(scalar=make_entry())

        response = await test_client.post(
            "/workers/reverse-geocode",
            json={"entry_id": str(uuid.uuid4()), "lat": 48.8566, "lng": 2.3522},
        )
        assert_error_body(response, 500, "Nominatim API error: 500")


class TestComputeColorsEndpoint:

    @pytest.mark.asyncio
    async def test_success(self, test_client, mock_db_session):
        mock_db_session.execute.return_value = result_with(rowcount=1)
        photo_id = str(uuid.uuid4())

        response = await test_client.post("/workers/compute-colors", json={"photo_id": photo_id})

        assert response.status_code == 200
        body = response.json()
        assert body["photo_id"] == photo_id
        assert len(body["dominant_colors"]) == 5
        assert body["dominant_colors"][0]["hex"] == "#8B7355"
        assert body["note"].startswith("Placeholder colors")

    @pytest.mark.asyncio
    async def test_unknown_photo(self, test_client, mock_db_session):
        mock_db_session.execute.return_value = result_with(rowcount=0)

        response = await test_client.post(
            "/workers/compute-colors", json={"photo_id": str(uuid.uuid4())}
        )
        assert_error_body(response, 404, "Photo not found")


class TestProcessPhotoEndpoint:

    @pytest.mark.asyncio
    async def test_success(self, test_client, mock_db_session):
        mock_db_session.execute.return_value = result_with(rowcount=1)
        photo_id = str(uuid.uuid4())

        response = await test_client.post(
            "/workers/process-photo",
            json={"photo_id": photo_id, "storage_path": "2024/06/sunset.jpg"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["photo_id"] == photo_id
        assert body["url"].endswith("/2024/06/sunset.jpg")
        assert body["thumbnail_url"] == body["url"]
        assert body["exif_data"]["processor"] == "TogetherLog-V1"
        assert body["note"].startswith("Basic processing complete")

    @pytest.mark.asyncio
    async def test_missing_storage_path(self, test_client, mock_db_session):
        response = await test_client.post(
            "/workers/process-photo", json={"photo_id": str(uuid.uuid4())}
        )
        assert_error_body(response, 400, "storage_path is required")
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_photo(self, test_client, mock_db_session):
        mock_db_session.execute.return_value = result_with(rowcount=0)

        response = await test_client.post(
            "/workers/process-photo",
            json={"photo_id": str(uuid.uuid4()), "storage_path": "a.jpg"},
        )
        assert_error_body(response, 404, "Photo not found")


# ══════════════════════════════════════════════════════════════════════════
# /api/*
# ══════════════════════════════════════════════════════════════════════════


class TestIdentity:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/api/logs", "/api/tags", f"/api/entries/{uuid.uuid4()}"])
    async def test_missing_user_header(self, test_client, path):
        response = await test_client.get(path)
        assert_error_body(response, 401, "Missing authorization header")

    @pytest.mark.asyncio
    async def test_malformed_user_header(self, test_client):
        response = await test_client.get("/api/logs", headers={"X-User-ID": "not-a-uuid"})
        assert_error_body(response, 401, "Invalid or expired token")


class TestLogsEndpoints:

    @pytest.mark.asyncio
    async def test_list_logs(self, test_client, mock_db_session, auth_headers, user_id):
        now = datetime.now(timezone.utc)
        log = Log(id=uuid.uuid4(), user_id=user_id, name="Paris 2024", type="Couple",
                  created_at=now, updated_at=now)
        mock_db_session.execute.return_value = result_with(rows=[(log, 3)])

        response = await test_client.get("/api/logs", headers=auth_headers)

        assert response.status_code == 200
        logs = response.json()["logs"]
        assert logs[0]["name"] == "Paris 2024"
        assert logs[0]["entry_count"] == 3

    @pytest.mark.asyncio
    async def test_invalid_log_id(self, test_client, auth_headers):
        response = await test_client.get("/api/logs/12345", headers=auth_headers)
        assert_error_body(response, 400, "Invalid log ID format")

    @pytest.mark.asyncio
    async def test_create_log_rejects_unknown_type(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/logs", json={"name": "Crew", "type": "Coworkers"}, headers=auth_headers
        )
        assert_error_body(response, 400)

    @pytest.mark.asyncio
    async def test_empty_update(self, test_client, auth_headers):
        response = await test_client.patch(
            f"/api/logs/{uuid.uuid4()}", json={}, headers=auth_headers
        )
        assert_error_body(response, 400, "No fields to update")

    @pytest.mark.asyncio
    async def test_delete_log(self, test_client, mock_db_session, auth_headers):
        mock_db_session.execute.return_value = result_with(rowcount=1)

        response = await test_client.delete(f"/api/logs/{uuid.uuid4()}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"message": "Log deleted successfully"}

    @pytest.mark.asyncio
    async def test_delete_foreign_log(self, test_client, mock_db_session, auth_headers):
        mock_db_session.execute.return_value = result_with(rowcount=0)

        response = await test_client.delete(f"/api/logs/{uuid.uuid4()}", headers=auth_headers)
        assert_error_body(response, 404, "Log not found")


class TestEntriesEndpoints:

    @pytest.mark.asyncio
    async def test_get_entry(self, test_client, mock_db_session, auth_headers, make_entry, make_photo):
        entry = make_entry(photos=[make_photo(0)], sprinkles=["star"], is_processed=True)
        mock_db_session.execute.return_value = result_with(scalar=entry)

        response = await test_client.get(f"/api/entries/{entry.id}", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()["entry"]
        assert body["id"] == str(entry.id)
        assert body["sprinkles"] == ["star"]
        assert body["is_processed"] is True
        assert len(body["photos"]) == 1

    @pytest.mark.asyncio
    async def test_invalid_entry_id(self, test_client, auth_headers):
        response = await test_client.get("/api/entries/abc", headers=auth_headers)
        assert_error_body(response, 400, "Invalid entry ID format")

    @pytest.mark.asyncio
    async def test_create_requires_location_pair(self, test_client, auth_headers):
        response = await test_client.post(
            f"/api/logs/{uuid.uuid4()}/entries",
            json={"event_date": "2024-06-01", "location_lat": 48.85},
            headers=auth_headers,
        )
        assert_error_body(
            response, 400, "Both location_lat and location_lng must be provided together"
        )

    @pytest.mark.asyncio
    async def test_create_rejects_long_highlight(self, test_client, auth_headers):
        response = await test_client.post(
            f"/api/logs/{uuid.uuid4()}/entries",
            json={"event_date": "2024-06-01", "highlight_text": "x" * 501},
            headers=auth_headers,
        )
        assert_error_body(response, 400)

    @pytest.mark.asyncio
    async def test_list_tags(self, test_client, mock_db_session, auth_headers, make_tag):
        mock_db_session.execute.return_value = result_with(
            scalars=[make_tag("Travel", "Travel", "airplane")]
        )

        response = await test_client.get("/api/tags", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["tags"][0]["name"] == "Travel"
        assert body["tags_by_category"]["Travel"][0]["icon"] == "airplane"


# ══════════════════════════════════════════════════════════════════════════
# /health
# ══════════════════════════════════════════════════════════════════════════


class TestHealth:

    @pytest.mark.asyncio
    async def test_healthy(self, test_client, monkeypatch):
        engine = MagicMock()
        conn = engine.connect.return_value.__aenter__.return_value
        conn.execute = AsyncMock()
        monkeypatch.setattr("togetherlog.routes.health.engine", engine)

        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["version"] == "1.0.0"

    @pytest.mark.asyncio
    async def test_degraded_when_database_unreachable(self, test_client, monkeypatch):
        engine = MagicMock()
        engine.connect.side_effect = OSError("connection refused")
        monkeypatch.setattr("togetherlog.routes.health.engine", engine)

        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["database"] == "disconnected"
