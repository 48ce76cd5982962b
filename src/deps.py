# ABOUTME: Dependency container for the gateway tools using Pydantic BaseModel.
# ABOUTME: Holds the shared httpx.AsyncClient, the two TTL caches, and the gazetteer store.

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic_ai.retries import AsyncTenacityTransport, RetryConfig, wait_retry_after
from tenacity import retry_if_exception, stop_after_attempt

from src.cache import TTLCache
from src.config import Settings
from src.gazetteer import GazetteerStore


class GatewayDeps(BaseModel):
    """Dependencies injected into the gateway operations and agent tools via RunContext."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    http_client: httpx.AsyncClient
    settings: Settings
    geocode_cache: TTLCache
    forecast_cache: TTLCache
    gazetteer: GazetteerStore

    def cleanup_caches(self) -> int:
        """Evict expired entries from both caches. Returns the number removed."""
        return self.geocode_cache.cleanup() + self.forecast_cache.cleanup()

    def clear_caches(self) -> None:
        self.geocode_cache.clear()
        self.forecast_cache.clear()

    def cache_statistics(self) -> dict:
        """Stats and hit rate for both caches, for monitoring."""
        return {
            name: {**cache.get_stats().model_dump(), "hit_rate": cache.get_hit_rate()}
            for name, cache in (("geocode", self.geocode_cache), ("forecast", self.forecast_cache))
        }


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (httpx.ConnectError, httpx.ReadTimeout)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


def create_http_client(timeout: float = 10.0) -> httpx.AsyncClient:
    """Create an httpx client with tenacity retry on transient HTTP errors.

    Retries connection errors, timeouts, and 429/5xx responses with exponential backoff.
    """
    transport = AsyncTenacityTransport(
        RetryConfig(
            retry=retry_if_exception(_is_transient),
            wait=wait_retry_after(max_wait=30),
            stop=stop_after_attempt(3),
            reraise=True,
        ),
        validate_response=lambda r: r.raise_for_status(),
    )
    return httpx.AsyncClient(transport=transport, timeout=timeout)


def create_deps(settings: Settings | None = None, http_client: httpx.AsyncClient | None = None) -> GatewayDeps:
    """Build the caches, gazetteer store, and HTTP client once for the application."""
    settings = settings or Settings.from_env()
    return GatewayDeps(
        http_client=http_client or create_http_client(settings.http_timeout),
        settings=settings,
        geocode_cache=TTLCache(
            max_size=settings.geocode_cache_max_size,
            default_ttl=settings.geocode_cache_ttl,
        ),
        forecast_cache=TTLCache(
            max_size=settings.forecast_cache_max_size,
            default_ttl=settings.forecast_cache_ttl,
        ),
        gazetteer=GazetteerStore(
            settings.gazetteer_path,
            default_timezone=settings.default_timezone,
            country=settings.gazetteer_country,
            country_code=settings.gazetteer_country_code,
        ),
    )
