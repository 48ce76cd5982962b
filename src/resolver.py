# ABOUTME: Candidate resolution for free-text place names.
# ABOUTME: Tries the cache, the local gazetteer, then the remote geocoder in a primary and a secondary language.

import logging
import math

import httpx

from src.cache import TTLCache, geocode_cache_key
from src.config import GEOCODING_URL
from src.errors import APIError, IndexBuildError, ValidationError
from src.gazetteer import GazetteerStore
from src.models import GeoCandidate

logger = logging.getLogger(__name__)

MAX_COUNT = 20


def _is_retryable_status(status: int) -> bool:
    return status == 429 or status >= 500


def _coordinate_key(candidate: GeoCandidate) -> str | None:
    lat, lon = candidate.latitude, candidate.longitude
    if lat is None or lon is None or not (math.isfinite(lat) and math.isfinite(lon)):
        return None
    return f"{lat:.6f},{lon:.6f}"


def dedupe_by_coordinates(candidates: list[GeoCandidate]) -> list[GeoCandidate]:
    """Drop candidates whose coordinates, rounded to 6 decimals, were already seen.

    Candidates without finite coordinates are always kept.
    """
    seen: set[str] = set()
    result = []
    for candidate in candidates:
        key = _coordinate_key(candidate)
        if key is not None:
            if key in seen:
                continue
            seen.add(key)
        result.append(candidate)
    return result


async def fetch_remote_candidates(
    client: httpx.AsyncClient,
    place: str,
    count: int,
    language: str,
    url: str = GEOCODING_URL,
) -> list[GeoCandidate]:
    """Query the Open-Meteo geocoding API in one language. Results are returned as retrieved."""
    try:
        resp = await client.get(
            url,
            params={"name": place, "count": count, "language": language, "format": "json"},
        )
        resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        raise APIError("GEO_ERR", f"HTTP {status}", status=status, retryable=_is_retryable_status(status)) from e
    except httpx.TransportError as e:
        raise APIError("GEO_ERR", f"Geocoding request failed: {e}", retryable=True) from e

    try:
        data = resp.json()
    except ValueError as e:
        raise APIError("GEO_ERR", "invalid response body", status=resp.status_code) from e
    if not isinstance(data, dict):
        raise APIError("GEO_ERR", "invalid response body", status=resp.status_code)
    results = data.get("results") or []
    return [
        GeoCandidate(
            name=hit.get("name") or "",
            country=hit.get("country"),
            country_code=hit.get("country_code"),
            admin1=hit.get("admin1"),
            latitude=hit.get("latitude"),
            longitude=hit.get("longitude"),
            timezone=hit.get("timezone"),
        )
        for hit in results[:count]
    ]


async def resolve_candidates(
    client: httpx.AsyncClient,
    place: str,
    count: int,
    *,
    cache: TTLCache,
    gazetteer: GazetteerStore,
    geocoding_url: str = GEOCODING_URL,
    languages: tuple[str, str] = ("ja", "en"),
) -> list[GeoCandidate]:
    """Resolve a place name to at most `count` candidates with distinct coordinates.

    Order of attempts: cache, local gazetteer, remote geocoder in the primary language,
    remote geocoder in the secondary language. Every answer is cached, including an empty one.
    A broken local gazetteer is logged and skipped; remote failures raise APIError.
    """
    if not place or not place.strip():
        raise ValidationError("place", "place must not be empty")
    if not 1 <= count <= MAX_COUNT:
        raise ValidationError("count", f"count must be between 1 and {MAX_COUNT}")

    key = geocode_cache_key(place, count)
    cached = cache.get(key)
    if cached is not None:
        return cached

    try:
        local = await gazetteer.search(place, count)
    except IndexBuildError as e:
        logger.warning("Local gazetteer unavailable, falling back to remote geocoder: %s", e)
        local = []
    if local:
        return _store(cache, key, local)

    primary, secondary = languages
    found = await fetch_remote_candidates(client, place, count, primary, geocoding_url)
    if found:
        return _store(cache, key, found)

    logger.info("No %s results for %r, retrying in %s", primary, place, secondary)
    found = await fetch_remote_candidates(client, place, count, secondary, geocoding_url)
    return _store(cache, key, found)


def _store(cache: TTLCache, key: str, candidates: list[GeoCandidate]) -> list[GeoCandidate]:
    deduped = dedupe_by_coordinates(candidates)
    cache.set(key, deduped)
    return deduped
