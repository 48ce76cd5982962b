# ABOUTME: The two operations exposed to tools and HTTP callers: place lookup and forecast lookup.
# ABOUTME: Validates and clamps input, calls the resolver or forecast service, and writes text summaries.

import math

from src.deps import GatewayDeps
from src.errors import ValidationError
from src.models import ForecastLocation, ForecastResult, GeocodingResult, GeoCandidate, ToolResponse
from src.resolver import resolve_candidates
from src.weather_service import fetch_forecast, normalize_forecast, parse_current_weather

MAX_TOOL_COUNT = 10
MAX_DAYS = 7


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def format_candidate_label(candidate: GeoCandidate) -> str:
    """Display label, e.g. "中央区（東京都） / 日本"."""
    label = candidate.name
    if candidate.admin1:
        label += f"（{candidate.admin1}）"
    if candidate.country:
        label += f" / {candidate.country}"
    return label


async def geocode_place(deps: GatewayDeps, place: str, count: int = 5, days: int = 3) -> ToolResponse:
    """Look up candidate locations for a place name."""
    place = place.strip()
    if not place:
        raise ValidationError("place", "place must not be empty")
    count = _clamp(count, 1, MAX_TOOL_COUNT)
    days = _clamp(days, 1, MAX_DAYS)

    settings = deps.settings
    candidates = await resolve_candidates(
        deps.http_client,
        place,
        count,
        cache=deps.geocode_cache,
        gazetteer=deps.gazetteer,
        geocoding_url=settings.geocoding_api_url,
        languages=(settings.primary_language, settings.secondary_language),
    )

    lines = [f"Search: {place}"]
    if not candidates:
        lines.append("No candidates found.")
    else:
        lines.append("Candidates:")
        for i, c in enumerate(candidates, start=1):
            lines.append(f"{i}. {format_candidate_label(c)} ({c.latitude}, {c.longitude})")

    return ToolResponse(
        structured=GeocodingResult(query=place, days=days, candidates=candidates),
        text="\n".join(lines),
    )


async def get_forecast_report(
    deps: GatewayDeps,
    latitude: float,
    longitude: float,
    days: int = 3,
    timezone: str | None = None,
    label: str | None = None,
) -> ToolResponse:
    """Fetch current weather and a daily forecast for a coordinate pair."""
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise ValidationError("latitude/longitude", "latitude and longitude must be finite numbers")
    days = _clamp(days, 1, MAX_DAYS)
    timezone = timezone or deps.settings.default_timezone

    raw = await fetch_forecast(
        deps.http_client,
        latitude,
        longitude,
        timezone,
        days,
        cache=deps.forecast_cache,
        url=deps.settings.forecast_api_url,
    )
    result = ForecastResult(
        location=ForecastLocation(latitude=latitude, longitude=longitude, timezone=timezone, label=label),
        current=parse_current_weather(raw),
        daily=normalize_forecast(raw),
    )

    header = f"Coordinates: {latitude}, {longitude} ({timezone})"
    if label:
        header += f" / {label}"
    lines = [header]
    if result.current:
        lines.append(f"Now: {result.current.temperature_c}°C / wind {result.current.windspeed}")
    for day in result.daily:
        lines.append(
            f"{day.date.isoformat()}: {day.summary} / {day.temp_min_c}-{day.temp_max_c}°C"
            f" / precipitation max {day.precip_prob_max_percent}%"
        )
    return ToolResponse(structured=result, text="\n".join(lines))
