# ABOUTME: Runtime configuration read from the environment and an optional .env file.
# ABOUTME: Holds API endpoints, gazetteer location, cache policy, and logging setup.

import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
DEFAULT_TIMEZONE = "Asia/Tokyo"


class Settings(BaseModel):
    """Gateway settings. Defaults match the public Open-Meteo endpoints and the JP gazetteer."""

    geocoding_api_url: str = GEOCODING_URL
    forecast_api_url: str = FORECAST_URL
    gazetteer_path: Path = Path("JP/JP.txt")
    gazetteer_country: str = "日本"
    gazetteer_country_code: str = "JP"
    default_timezone: str = DEFAULT_TIMEZONE
    primary_language: str = "ja"
    secondary_language: str = "en"
    geocode_cache_max_size: int = 100
    geocode_cache_ttl: float = 86400
    forecast_cache_max_size: int = 200
    forecast_cache_ttl: float = 3600
    http_timeout: float = 10.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, loading .env first. Unset variables keep defaults."""
        load_dotenv()
        env_names = {
            "geocoding_api_url": "GEOCODING_API_URL",
            "forecast_api_url": "FORECAST_API_URL",
            "gazetteer_path": "GAZETTEER_PATH",
            "gazetteer_country": "GAZETTEER_COUNTRY",
            "gazetteer_country_code": "GAZETTEER_COUNTRY_CODE",
            "default_timezone": "DEFAULT_TIMEZONE",
            "primary_language": "GEOCODE_PRIMARY_LANGUAGE",
            "secondary_language": "GEOCODE_SECONDARY_LANGUAGE",
            "geocode_cache_max_size": "GEOCODE_CACHE_MAX_SIZE",
            "geocode_cache_ttl": "GEOCODE_CACHE_TTL",
            "forecast_cache_max_size": "FORECAST_CACHE_MAX_SIZE",
            "forecast_cache_ttl": "FORECAST_CACHE_TTL",
            "http_timeout": "HTTP_TIMEOUT",
            "log_level": "LOG_LEVEL",
        }
        values = {field: os.environ[name] for field, name in env_names.items() if os.environ.get(name)}
        return cls(**values)


def configure_logging(level: str = "INFO") -> None:
    """Send log records to stderr at the given level."""
    logging.basicConfig(
        stream=sys.stderr,
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
