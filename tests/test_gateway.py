# ABOUTME: Contract tests for the exposed geocode and forecast operations.
# ABOUTME: Validates input checks, clamping, structured results, and human-readable summaries.

import math

import pytest

from src.errors import ValidationError
from src.gateway import format_candidate_label, geocode_place, get_forecast_report
from src.models import ForecastResult, GeocodingResult, GeoCandidate

FORECAST_PAYLOAD = {
    "latitude": 35.7,
    "longitude": 139.69,
    "timezone": "Asia/Tokyo",
    "current_weather": {"temperature": 6.4, "windspeed": 11.2, "winddirection": 320, "is_day": 1},
    "daily": {
        "time": ["2025-01-15", "2025-01-16"],
        "weather_code": [0, 63],
        "temperature_2m_max": [10.1, 8.0],
        "temperature_2m_min": [1.2, 3.4],
        "precipitation_probability_max": [0, 80],
    },
    "hourly": {},
}


class TestFormatCandidateLabel:
    def test_full_label(self):
        c = GeoCandidate(name="中央区", admin1="東京都", country="日本")
        assert format_candidate_label(c) == "中央区（東京都） / 日本"

    def test_name_only(self):
        assert format_candidate_label(GeoCandidate(name="Naha")) == "Naha"


class TestGeocodePlace:
    @pytest.mark.asyncio
    async def test_returns_structured_and_text(self, mock_client, make_deps):
        """geocode_place returns a GeocodingResult and a numbered candidate list.

        Implementation: Looks up "Tokyo" in the sample gazetteer.
        Passing implies: The tool output pairs structured data with a readable summary.
        """
        deps = make_deps(mock_client())
        response = await geocode_place(deps, "  Tokyo ", count=2, days=5)

        assert isinstance(response.structured, GeocodingResult)
        assert response.structured.query == "Tokyo"
        assert response.structured.days == 5
        assert len(response.structured.candidates) == 2
        lines = response.text.splitlines()
        assert lines[0] == "Search: Tokyo"
        assert lines[1] == "Candidates:"
        assert lines[2] == "1. 東京都（東京都） / 日本 (35.6895, 139.69171)"

    @pytest.mark.asyncio
    async def test_no_candidates_text(self, mock_client, json_response, make_deps):
        deps = make_deps(mock_client(json_response({"results": []}), json_response({"results": []})))
        response = await geocode_place(deps, "Xyzzy")

        assert response.structured.candidates == []
        assert response.text == "Search: Xyzzy\nNo candidates found."

    @pytest.mark.asyncio
    async def test_clamps_count_and_days(self, mock_client, json_response, make_deps):
        """count is clamped to 1-10 and days to 1-7.

        Implementation: Passes out-of-range values and inspects the remote request.
        Passing implies: Tool callers cannot request oversized result sets.
        """
        client = mock_client(json_response({"results": [{"name": "X", "latitude": 1.0, "longitude": 2.0}]}))
        deps = make_deps(client)
        response = await geocode_place(deps, "Xyzzy", count=50, days=0)

        assert client.get.call_args.kwargs["params"]["count"] == 10
        assert response.structured.days == 1

    @pytest.mark.asyncio
    async def test_uses_configured_languages_and_url(self, mock_client, json_response, make_deps):
        client = mock_client(json_response({}), json_response({}))
        deps = make_deps(
            client,
            geocoding_api_url="https://geo.test/v1/search",
            primary_language="ko",
            secondary_language="en",
        )
        await geocode_place(deps, "Xyzzy")

        calls = client.get.call_args_list
        assert [c.args[0] for c in calls] == ["https://geo.test/v1/search"] * 2
        assert [c.kwargs["params"]["language"] for c in calls] == ["ko", "en"]

    @pytest.mark.asyncio
    async def test_empty_place_is_rejected(self, mock_client, make_deps):
        deps = make_deps(mock_client())
        with pytest.raises(ValidationError) as exc_info:
            await geocode_place(deps, "   ")
        assert exc_info.value.field == "place"


class TestGetForecastReport:
    @pytest.mark.asyncio
    async def test_returns_structured_and_text(self, mock_client, json_response, make_deps):
        """get_forecast_report returns a ForecastResult and a per-day text summary.

        Implementation: Mocks a 2-day forecast response.
        Passing implies: Current weather, daily rows, and the label appear in the summary.
        """
        deps = make_deps(mock_client(json_response(FORECAST_PAYLOAD)))
        response = await get_forecast_report(deps, 35.7, 139.69, days=2, label="東京都")

        assert isinstance(response.structured, ForecastResult)
        assert response.structured.location.timezone == "Asia/Tokyo"
        assert response.structured.location.label == "東京都"
        assert len(response.structured.daily) == 2
        assert response.text.splitlines() == [
            "Coordinates: 35.7, 139.69 (Asia/Tokyo) / 東京都",
            "Now: 6.4°C / wind 11.2",
            "2025-01-15: 快晴 / 1.2-10.1°C / precipitation max 0%",
            "2025-01-16: 雨 / 3.4-8.0°C / precipitation max 80%",
        ]

    @pytest.mark.asyncio
    async def test_clamps_days_and_caches(self, mock_client, json_response, make_deps):
        client = mock_client(json_response(FORECAST_PAYLOAD))
        deps = make_deps(client)
        await get_forecast_report(deps, 35.7, 139.69, days=30, timezone="Asia/Tokyo")
        await get_forecast_report(deps, 35.7, 139.69, days=7, timezone="Asia/Tokyo")

        assert client.get.call_args.kwargs["params"]["forecast_days"] == 7
        assert client.get.call_count == 1
        assert deps.forecast_cache.get_stats().hits == 1

    @pytest.mark.asyncio
    async def test_non_finite_coordinates_are_rejected(self, mock_client, make_deps):
        """NaN or infinite coordinates raise ValidationError before any request.

        Implementation: Calls with NaN latitude and infinite longitude.
        Passing implies: Bad input is surfaced immediately and never sent upstream.
        """
        client = mock_client()
        deps = make_deps(client)
        with pytest.raises(ValidationError):
            await get_forecast_report(deps, math.nan, 139.0)
        with pytest.raises(ValidationError):
            await get_forecast_report(deps, 35.0, math.inf)
        client.get.assert_not_called()
