# ABOUTME: Pydantic BaseModels for geocoding candidates, forecasts, and tool responses.
# ABOUTME: Defines the structured output contract shared by the agent tools and the HTTP API.

from datetime import date
from typing import Literal

from pydantic import BaseModel


class GeoCandidate(BaseModel):
    """Resolved place with coordinates and metadata.

    Remote geocoder rows may lack coordinates, so latitude and longitude are optional.
    """

    name: str
    country: str | None = None
    country_code: str | None = None
    admin1: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    timezone: str | None = None


class GeocodingResult(BaseModel):
    """Structured output of the geocode tool."""

    kind: Literal["geocode"] = "geocode"
    query: str
    days: int
    candidates: list[GeoCandidate] = []


class CurrentWeather(BaseModel):
    """Current conditions from the Open-Meteo current_weather block."""

    temperature_c: float | None = None
    windspeed: float | None = None
    winddirection: float | None = None
    is_day: bool | None = None
    time: str | None = None


class HourlyWindow(BaseModel):
    """24 hourly values aligned to one forecast day."""

    time: list[str] = []
    temperature_2m: list[float | None] = []
    relative_humidity_2m: list[float | None] = []
    weather_code: list[int | None] = []
    precipitation_probability: list[float | None] = []


class DailyForecast(BaseModel):
    """One reshaped forecast day."""

    date: date
    weather_code: int | None = None
    summary: str
    temp_max_c: float | None = None
    temp_min_c: float | None = None
    precip_prob_max_percent: int | float | None = None
    humidity_min_percent: int | float | None = None
    humidity_max_percent: int | float | None = None
    pressure_min_hpa: float | None = None
    pressure_max_hpa: float | None = None
    hourly: HourlyWindow | None = None


class ForecastLocation(BaseModel):
    latitude: float
    longitude: float
    timezone: str
    label: str | None = None


class ForecastResult(BaseModel):
    """Structured output of the forecast tool."""

    kind: Literal["forecast"] = "forecast"
    location: ForecastLocation
    current: CurrentWeather | None = None
    daily: list[DailyForecast] = []
    source: str = "Open-Meteo"


class ToolResponse(BaseModel):
    """A structured result paired with a human-readable summary."""

    structured: GeocodingResult | ForecastResult
    text: str


class CacheStats(BaseModel):
    hits: int = 0
    misses: int = 0
    size: int = 0
