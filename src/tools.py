# ABOUTME: Agent tool definitions for place lookup and forecast retrieval.
# ABOUTME: Registers geocode_place and get_forecast on the agent via decorators.

from pydantic_ai import ModelRetry, RunContext

from src.agent import agent
from src.deps import GatewayDeps
from src.errors import APIError, ValidationError
from src.gateway import geocode_place as run_geocode_place
from src.gateway import get_forecast_report


@agent.tool
async def geocode_place(ctx: RunContext[GatewayDeps], place: str, count: int = 5, days: int = 3) -> dict:
    """Find candidate locations (latitude, longitude, timezone) for a place name.

    Always call this first before fetching weather data.

    Args:
        ctx: Agent run context with gateway dependencies.
        place: Place name, e.g. "中央区", "Shibuya", or "Tokyo".
        count: Maximum number of candidates (1-10, default 5).
        days: Forecast days the user is interested in (1-7, default 3).
    """
    try:
        result = await run_geocode_place(ctx.deps, place, count, days)
    except ValidationError as e:
        raise ModelRetry(f"Invalid geocoding request: {e.message}") from e
    except APIError as e:
        raise ModelRetry(f"Geocoding API failed for '{place}': {e}") from e
    return result.model_dump(mode="json")


@agent.tool
async def get_forecast(
    ctx: RunContext[GatewayDeps],
    latitude: float,
    longitude: float,
    days: int = 3,
    timezone: str | None = None,
    label: str | None = None,
) -> dict:
    """Get current weather and a daily forecast for a location.

    Args:
        ctx: Agent run context with gateway dependencies.
        latitude: Location latitude from geocode_place.
        longitude: Location longitude from geocode_place.
        days: Number of days to forecast (1-7, default 3).
        timezone: Location timezone from geocode_place (e.g. "Asia/Tokyo").
        label: Display label for the location.
    """
    try:
        result = await get_forecast_report(ctx.deps, latitude, longitude, days, timezone, label)
    except ValidationError as e:
        raise ModelRetry(f"Invalid forecast request: {e.message}") from e
    except APIError as e:
        raise ModelRetry(f"Forecast API failed: {e}") from e
    return result.model_dump(mode="json")
