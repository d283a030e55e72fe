"""
TogetherLog Backend - Worker Service Tests
===========================================

What we test:
    ✅ compute-smart-page: reads the entry, writes all fields in one UPDATE
    ✅ reverse-geocode: validation first, user override respected, write-back
    ✅ compute-colors: placeholder palette stored on the photo
    ✅ process-photo: public URL, thumbnail URL and metadata stored on the photo
    ✅ Error propagation (404 / provider / persistence)
"""

import httpx
import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from togetherlog.exceptions import (
    InvalidCoordinates,
    NotFoundError,
    PersistenceError,
    ProviderError,
)
from togetherlog.services.color_service import PLACEHOLDER_NOTE, PLACEHOLDER_PALETTE
from togetherlog.services.geocoding_service import ReverseGeocoder
from togetherlog.services.photo_service import PROCESS_PHOTO_NOTE, PROCESSOR_NAME, photo_service
from togetherlog.services.rate_limiter import RateLimiter
from togetherlog.services.worker_service import OVERRIDDEN_MESSAGE, WorkerService

from conftest import PARIS_PAYLOAD, result_with


def compiled(stmt):
    return stmt.compile(dialect=postgresql.dialect())


class TestComputeSmartPage:

    @pytest.fixture(autouse=True)
    def _service(self, mock_geocoder):
        self.service = WorkerService(geocoder=mock_geocoder)

    @pytest.mark.asyncio
    async def test_computes_and_writes_back(self, mock_db_session, make_entry, make_photo, make_tag):
        entry = make_entry(
            photos=[
                make_photo(0, [{"hex": "#C81E1E", "rgb": [200, 30, 30], "percentage": 60}]),
                make_photo(1),
                make_photo(2),
            ],
            tags=[make_tag("Lake / Beach", "Places"), make_tag("Happy", "Emotions")],
        )
        mock_db_session.execute.side_effect = [result_with(scalar=entry), result_with(rowcount=1)]

        response = await self.service.compute_smart_page(mock_db_session, entry.id)

        assert response.success is True
        assert response.entry_id == entry.id
        assert response.smart_page.page_layout_type == "grid_2x2"
        assert response.smart_page.color_theme == "ocean_blue"
        assert response.smart_page.sprinkles == ["beach", "star", "sun"]
        assert response.inputs.photo_count == 3
        assert response.inputs.tag_count == 2
        assert response.inputs.tags == ["Lake / Beach", "Happy"]
        assert response.inputs.has_location is False
        assert response.inputs.highlight_length == len("Sunset picnic")

        update_stmt = mock_db_session.execute.call_args_list[1].args[0]
        params = compiled(update_stmt).params
        assert params["page_layout_type"] == "grid_2x2"
        assert params["color_theme"] == "ocean_blue"
        assert params["sprinkles"] == ["beach", "star", "sun"]
        assert params["is_processed"] is True

    @pytest.mark.asyncio
    async def test_empty_entry_gets_defaults(self, mock_db_session, make_entry):
        entry = make_entry(highlight_text="", location_lat=48.85, location_lng=2.35)
        mock_db_session.execute.side_effect = [result_with(scalar=entry), result_with(rowcount=1)]

        response = await self.service.compute_smart_page(mock_db_session, entry.id)

        assert response.smart_page.page_layout_type == "single_full"
        assert response.smart_page.color_theme == "neutral"
        assert response.smart_page.sprinkles == []
        assert response.inputs.has_location is True
        assert response.inputs.highlight_length == 0

    @pytest.mark.asyncio
    async def test_missing_entry_is_not_found(self, mock_db_session, make_entry):
        mock_db_session.execute.return_value = result_with(scalar=None)

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.compute_smart_page(mock_db_session, make_entry().id)

        assert exc_info.value.message == "Entry not found"
        assert mock_db_session.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_entry_deleted_before_write_is_not_found(self, mock_db_session, make_entry):
        entry = make_entry()
        mock_db_session.execute.side_effect = [result_with(scalar=entry), result_with(rowcount=0)]

        with pytest.raises(NotFoundError):
            await self.service.compute_smart_page(mock_db_session, entry.id)

    @pytest.mark.asyncio
    async def test_database_error_becomes_persistence_error(self, mock_db_session, make_entry):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))

        with pytest.raises(PersistenceError):
            await self.service.compute_smart_page(mock_db_session, make_entry().id)


class TestReverseGeocode:

    @pytest.fixture(autouse=True)
    def _service(self, mock_geocoder):
        self.geocoder = mock_geocoder
        self.service = WorkerService(geocoder=mock_geocoder)

    @pytest.mark.asyncio
    async def test_success_persists_location(self, mock_db_session, make_entry, provider_calls):
        entry = make_entry()
        mock_db_session.execute.side_effect = [result_with(scalar=entry), result_with(rowcount=1)]

        response = await self.service.reverse_geocode(mock_db_session, entry.id, 48.8566, 2.3522)

        assert response.success is True
        assert response.location.display_name == "Paris, France"
        assert response.location.lat == 48.8566
        assert response.location.lng == 2.3522
        assert response.location.raw_data["address"]["city"] == "Paris"
        assert len(provider_calls) == 1

        update_stmt = mock_db_session.execute.call_args_list[1].args[0]
        sql = str(compiled(update_stmt))
        params = compiled(update_stmt).params
        assert "location_is_user_overridden IS false" in sql
        assert params["location_display_name"] == "Paris, France"
        assert params["location_lat"] == 48.8566
        assert params["location_lng"] == 2.3522

    @pytest.mark.asyncio
    async def test_read_transaction_ends_before_provider_call(self, mock_db_session, make_entry):
        events = []

        def handler(request):
            events.append("provider")
            return httpx.Response(200, json=PARIS_PAYLOAD)

        async def record_commit():
            events.append("commit")

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        service = WorkerService(
            geocoder=ReverseGeocoder(rate_limiter=RateLimiter(0.0), client=client, cache_size=0)
        )
        entry = make_entry()
        mock_db_session.commit.side_effect = record_commit
        mock_db_session.execute.side_effect = [result_with(scalar=entry), result_with(rowcount=1)]

        await service.reverse_geocode(mock_db_session, entry.id, 48.8566, 2.3522)

        assert events == ["commit", "provider"]

    @pytest.mark.asyncio
    async def test_override_skip_keeps_transaction_open(self, mock_db_session, make_entry):
        entry = make_entry(location_is_user_overridden=True)
        mock_db_session.execute.return_value = result_with(scalar=entry)

        await self.service.reverse_geocode(mock_db_session, entry.id, 48.8566, 2.3522)

        mock_db_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_user_override_skips_provider_and_write(self, mock_db_session, make_entry, provider_calls):
        entry = make_entry(
            location_is_user_overridden=True,
            location_lat=1.0,
            location_lng=2.0,
            location_display_name="Our Place",
        )
        mock_db_session.execute.return_value = result_with(scalar=entry)

        response = await self.service.reverse_geocode(mock_db_session, entry.id, 48.8566, 2.3522)

        assert response.model_dump(exclude_none=True) == {
            "entry_id": entry.id,
            "message": OVERRIDDEN_MESSAGE,
        }
        assert provider_calls == []
        assert self.geocoder.rate_limiter.last_request is None
        assert mock_db_session.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_override_landing_mid_flight_is_not_overwritten(self, mock_db_session, make_entry):
        entry = make_entry()
        mock_db_session.execute.side_effect = [result_with(scalar=entry), result_with(rowcount=0)]

        response = await self.service.reverse_geocode(mock_db_session, entry.id, 48.8566, 2.3522)

        assert response.success is None
        assert response.location is None
        assert response.message == OVERRIDDEN_MESSAGE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("lat, lng", [(91, 0), (0, 200), ("north", 2.0), (None, None)])
    async def test_invalid_coordinates_rejected_before_any_io(
        self, mock_db_session, make_entry, provider_calls, lat, lng
    ):
        with pytest.raises(InvalidCoordinates):
            await self.service.reverse_geocode(mock_db_session, make_entry().id, lat, lng)

        mock_db_session.execute.assert_not_awaited()
        assert provider_calls == []

    @pytest.mark.asyncio
    async def test_missing_entry_makes_no_provider_call(self, mock_db_session, make_entry, provider_calls):
        mock_db_session.execute.return_value = result_with(scalar=None)

        with pytest.raises(NotFoundError):
            await self.service.reverse_geocode(mock_db_session, make_entry().id, 48.8566, 2.3522)
        assert provider_calls == []

    @pytest.mark.asyncio
    async def test_provider_failure_writes_nothing(self, mock_db_session, make_entry):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(502)))
        service = WorkerService(
            geocoder=ReverseGeocoder(rate_limiter=RateLimiter(0.0), client=client, cache_size=0)
        )
        entry = make_entry()
        mock_db_session.execute.return_value = result_with(scalar=entry)

        with pytest.raises(ProviderError) as exc_info:
            await service.reverse_geocode(mock_db_session, entry.id, 48.8566, 2.3522)

        assert exc_info.value.message == "Nominatim API error: 502"
        assert mock_db_session.execute.await_count == 1


class TestComputeColors:

    def setup_method(self):
        self.service = WorkerService()

    @pytest.mark.asyncio
    async def test_stores_placeholder_palette(self, mock_db_session, make_photo):
        photo = make_photo()
        mock_db_session.execute.return_value = result_with(rowcount=1)

        response = await self.service.compute_colors(mock_db_session, photo.id)

        assert response.success is True
        assert response.photo_id == photo.id
        assert response.note == PLACEHOLDER_NOTE
        assert [c.model_dump() for c in response.dominant_colors] == PLACEHOLDER_PALETTE
        assert sum(c.percentage for c in response.dominant_colors) <= 100

        params = compiled(mock_db_session.execute.call_args.args[0]).params
        assert params["dominant_colors"] == PLACEHOLDER_PALETTE

    @pytest.mark.asyncio
    async def test_missing_photo_is_not_found(self, mock_db_session, make_photo):
        mock_db_session.execute.return_value = result_with(rowcount=0)

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.compute_colors(mock_db_session, make_photo().id)
        assert exc_info.value.message == "Photo not found"


class TestProcessPhoto:

    def setup_method(self):
        self.service = WorkerService()

    @pytest.mark.asyncio
    async def test_stores_url_thumbnail_and_metadata(self, mock_db_session, make_photo):
        photo = make_photo()
        mock_db_session.execute.return_value = result_with(rowcount=1)

        response = await self.service.process_photo(mock_db_session, photo.id, "2024/06/sunset.jpg")

        assert response.success is True
        assert response.photo_id == photo.id
        assert response.url == photo_service.public_url("2024/06/sunset.jpg")
        assert response.thumbnail_url == response.url
        assert response.exif_data["processor"] == PROCESSOR_NAME
        assert response.note == PROCESS_PHOTO_NOTE

        params = compiled(mock_db_session.execute.call_args.args[0]).params
        assert params["url"] == response.url
        assert params["thumbnail_url"] == response.url
        assert params["exif_data"] == response.exif_data

    @pytest.mark.asyncio
    async def test_missing_photo_is_not_found(self, mock_db_session, make_photo):
        mock_db_session.execute.return_value = result_with(rowcount=0)

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.process_photo(mock_db_session, make_photo().id, "a.jpg")
        assert exc_info.value.message == "Photo not found"
