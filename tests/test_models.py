# ABOUTME: Contract tests for Pydantic models used in geocoding and forecast output.
# ABOUTME: Validates that models correctly parse, validate, default, and serialize gateway data.

from datetime import date

import pytest
from pydantic import ValidationError

from src.models import (
    DailyForecast,
    ForecastLocation,
    ForecastResult,
    GeocodingResult,
    GeoCandidate,
    HourlyWindow,
    ToolResponse,
)


class TestGeoCandidate:
    def test_valid_candidate_parses(self):
        """GeoCandidate accepts a complete remote geocoder hit.

        Implementation: Constructs a GeoCandidate with all fields.
        Passing implies: The model stores name, country, admin1, coordinates, and timezone.
        """
        c = GeoCandidate(
            name="渋谷区",
            country="日本",
            country_code="JP",
            admin1="東京都",
            latitude=35.66,
            longitude=139.7,
            timezone="Asia/Tokyo",
        )
        assert c.name == "渋谷区"
        assert c.admin1 == "東京都"
        assert c.latitude == 35.66

    def test_only_name_is_required(self):
        """GeoCandidate works without location metadata.

        Implementation: Constructs a GeoCandidate with only a name.
        Passing implies: Remote rows missing coordinates still parse, with None values.
        """
        c = GeoCandidate(name="Somewhere")
        assert c.country is None
        assert c.latitude is None
        assert c.timezone is None


class TestDailyForecast:
    def test_requires_date_and_summary(self):
        with pytest.raises(ValidationError):
            DailyForecast(date=date(2025, 1, 15))

    def test_optional_fields_default_to_none(self):
        """DailyForecast only requires the date and summary.

        Implementation: Constructs DailyForecast with the minimum fields.
        Passing implies: All numeric fields and the hourly window default to None.
        """
        day = DailyForecast(date=date(2025, 1, 15), summary="快晴")
        assert day.temp_max_c is None
        assert day.humidity_min_percent is None
        assert day.hourly is None

    def test_date_parses_from_iso_string(self):
        day = DailyForecast(date="2025-01-15", summary="くもり")
        assert day.date == date(2025, 1, 15)


class TestResults:
    def test_geocoding_result_defaults(self):
        result = GeocodingResult(query="Tokyo", days=3)
        assert result.kind == "geocode"
        assert result.candidates == []

    def test_forecast_result_defaults(self):
        """ForecastResult carries kind, source, and empty collections by default.

        Implementation: Constructs a ForecastResult with only a location.
        Passing implies: current is None and daily is an empty list, not None.
        """
        result = ForecastResult(location=ForecastLocation(latitude=35.0, longitude=139.0, timezone="Asia/Tokyo"))
        assert result.kind == "forecast"
        assert result.source == "Open-Meteo"
        assert result.current is None
        assert result.daily == []

    def test_tool_response_serializes_to_json(self):
        """ToolResponse dumps to JSON-compatible types for tool and HTTP output.

        Implementation: Dumps a forecast ToolResponse in JSON mode.
        Passing implies: Dates become ISO strings and the result kind is preserved.
        """
        result = ForecastResult(
            location=ForecastLocation(latitude=35.0, longitude=139.0, timezone="Asia/Tokyo", label="東京"),
            daily=[
                DailyForecast(
                    date=date(2025, 1, 15),
                    summary="快晴",
                    hourly=HourlyWindow(time=["2025-01-15T00:00"], temperature_2m=[1.5]),
                )
            ],
        )
        dumped = ToolResponse(structured=result, text="ok").model_dump(mode="json")

        assert dumped["structured"]["kind"] == "forecast"
        assert dumped["structured"]["daily"][0]["date"] == "2025-01-15"
        assert dumped["structured"]["daily"][0]["hourly"]["temperature_2m"] == [1.5]
        assert dumped["text"] == "ok"
