# ABOUTME: Service layer for Open-Meteo forecast calls and response reshaping.
# ABOUTME: Fetches (and caches) raw forecasts, maps WMO codes to summaries, and builds per-day records.

import logging
from datetime import date

import httpx

from src.cache import TTLCache, forecast_cache_key
from src.config import FORECAST_URL
from src.errors import APIError
from src.models import CurrentWeather, DailyForecast, HourlyWindow

logger = logging.getLogger(__name__)

DAILY_PARAMS = "weather_code,temperature_2m_max,temperature_2m_min,precipitation_probability_max"

HOURLY_PARAMS = "temperature_2m,relative_humidity_2m,weather_code,precipitation_probability,pressure_msl"

HOURS_PER_DAY = 24

WMO_SUMMARIES = {
    0: "快晴",
    1: "ほぼ快晴",
    2: "晴れ時々くもり",
    3: "くもり",
    45: "霧",
    48: "着氷性の霧",
    51: "弱い霧雨",
    53: "霧雨",
    55: "強い霧雨",
    61: "弱い雨",
    63: "雨",
    65: "強い雨",
    71: "弱い雪",
    73: "雪",
    75: "強い雪",
    80: "にわか雨（弱）",
    81: "にわか雨",
    82: "にわか雨（強）",
    95: "雷雨",
}


def describe_weather_code(code: int | None) -> str:
    """Localized summary for a WMO weather code. Unknown codes are rendered, not rejected."""
    if code is None:
        return "不明"
    return WMO_SUMMARIES.get(code, f"不明（code={code}）")


async def fetch_forecast(
    client: httpx.AsyncClient,
    latitude: float,
    longitude: float,
    timezone: str,
    forecast_days: int = 3,
    *,
    cache: TTLCache | None = None,
    url: str = FORECAST_URL,
) -> dict:
    """Fetch the raw forecast payload from Open-Meteo, served from the cache when fresh."""
    key = forecast_cache_key(latitude, longitude, forecast_days, timezone)
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            return cached

    try:
        resp = await client.get(
            url,
            params={
                "latitude": latitude,
                "longitude": longitude,
                "timezone": timezone,
                "current_weather": "true",
                "forecast_days": forecast_days,
                "daily": DAILY_PARAMS,
                "hourly": HOURLY_PARAMS,
            },
        )
        resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        raise APIError(
            "FORECAST_ERR", f"HTTP {status}", status=status, retryable=status == 429 or status >= 500
        ) from e
    except httpx.TransportError as e:
        raise APIError("FORECAST_ERR", f"Forecast request failed: {e}", retryable=True) from e

    try:
        data = resp.json()
    except ValueError as e:
        raise APIError("FORECAST_ERR", "invalid response body", status=resp.status_code) from e
    if not isinstance(data, dict):
        raise APIError("FORECAST_ERR", "invalid response body", status=resp.status_code)
    if cache is not None:
        cache.set(key, data)
    return data


def parse_current_weather(raw: dict) -> CurrentWeather | None:
    current = raw.get("current_weather")
    if not current:
        return None
    is_day = current.get("is_day")
    return CurrentWeather(
        temperature_c=current.get("temperature"),
        windspeed=current.get("windspeed"),
        winddirection=current.get("winddirection"),
        is_day=None if is_day is None else bool(is_day),
        time=current.get("time"),
    )


def normalize_forecast(raw: dict) -> list[DailyForecast]:
    """Reshape Open-Meteo column-oriented daily and hourly data into one DailyForecast per day.

    Hourly columns are cut into 24-hour windows aligned to each day index. Missing
    columns are treated as empty.
    """
    daily = raw.get("daily") or {}
    hourly = raw.get("hourly") or {}
    dates = daily.get("time") or []

    result = []
    for i, d in enumerate(dates):
        code = _get_at(daily, "weather_code", i)
        window = _hourly_window(hourly, i)
        humidity = _present(_slice(hourly, "relative_humidity_2m", i))
        pressure = _present(_slice(hourly, "pressure_msl", i))
        result.append(
            DailyForecast(
                date=date.fromisoformat(d),
                weather_code=code,
                summary=describe_weather_code(code),
                temp_max_c=_get_at(daily, "temperature_2m_max", i),
                temp_min_c=_get_at(daily, "temperature_2m_min", i),
                precip_prob_max_percent=_get_at(daily, "precipitation_probability_max", i),
                humidity_min_percent=min(humidity, default=None),
                humidity_max_percent=max(humidity, default=None),
                pressure_min_hpa=min(pressure, default=None),
                pressure_max_hpa=max(pressure, default=None),
                hourly=window,
            )
        )
    return result


def _hourly_window(hourly: dict, day_index: int) -> HourlyWindow | None:
    times = _slice(hourly, "time", day_index)
    if not times:
        return None
    return HourlyWindow(
        time=times,
        temperature_2m=_slice(hourly, "temperature_2m", day_index),
        relative_humidity_2m=_slice(hourly, "relative_humidity_2m", day_index),
        weather_code=_slice(hourly, "weather_code", day_index),
        precipitation_probability=_slice(hourly, "precipitation_probability", day_index),
    )


def _slice(data: dict, key: str, day_index: int) -> list:
    col = data.get(key) or []
    start = day_index * HOURS_PER_DAY
    return list(col[start : start + HOURS_PER_DAY])


def _present(values: list) -> list:
    return [v for v in values if v is not None]


def _get_at(data: dict, key: str, index: int):
    """Safely get value at index from a column array, returning None if missing."""
    col = data.get(key)
    if col is None or index >= len(col):
        return None
    return col[index]
