# ABOUTME: ASGI middleware exposing the geocoding lookup and cache statistics over plain HTTP.
# ABOUTME: Serves GET /api/geocode and GET /api/cache/stats with CORS headers, passing other paths through.

import json
import logging
from urllib.parse import parse_qs

import pydantic
from pydantic import BaseModel, Field

from src.deps import GatewayDeps
from src.errors import APIError, ValidationError
from src.resolver import MAX_COUNT, resolve_candidates

logger = logging.getLogger(__name__)

GEOCODE_PATH = "/api/geocode"
CACHE_STATS_PATH = "/api/cache/stats"

_CORS_HEADERS = [
    [b"access-control-allow-origin", b"*"],
    [b"access-control-allow-methods", b"GET,OPTIONS"],
    [b"access-control-allow-headers", b"Content-Type"],
    [b"cache-control", b"no-store"],
]


class GeocodeQuery(BaseModel):
    """Query string of GET /api/geocode."""

    place: str = Field(min_length=1)
    count: int = Field(default=MAX_COUNT, ge=1, le=MAX_COUNT)


def parse_query_string(query_string: bytes) -> dict[str, str]:
    """Decode a query string, keeping the first value of each parameter and dropping empty ones."""
    parsed = parse_qs(query_string.decode("utf-8", errors="replace"))
    return {key: values[0] for key, values in parsed.items() if values and values[0]}


class GeocodeApiMiddleware:
    """ASGI middleware answering the geocoding HTTP endpoints itself.

    Requests to any other path are handed to the wrapped app unchanged.
    """

    def __init__(self, app, deps: GatewayDeps):
        self.app = app
        self.deps = deps

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or scope["path"] not in (GEOCODE_PATH, CACHE_STATS_PATH):
            await self.app(scope, receive, send)
            return

        method = scope.get("method")
        if method == "OPTIONS":
            await self._send(send, 204, None)
        elif method != "GET":
            await self._send(send, 405, {"error": "method_not_allowed"})
        elif scope["path"] == CACHE_STATS_PATH:
            await self._send(send, 200, self.deps.cache_statistics())
        else:
            await self._handle_geocode(scope, send)

    async def _handle_geocode(self, scope, send):
        params = parse_query_string(scope.get("query_string", b""))
        try:
            query = GeocodeQuery.model_validate(params)
        except pydantic.ValidationError as e:
            details = [{"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]} for err in e.errors()]
            await self._send(send, 400, {"error": "invalid_query", "details": details})
            return

        settings = self.deps.settings
        try:
            candidates = await resolve_candidates(
                self.deps.http_client,
                query.place,
                query.count,
                cache=self.deps.geocode_cache,
                gazetteer=self.deps.gazetteer,
                geocoding_url=settings.geocoding_api_url,
                languages=(settings.primary_language, settings.secondary_language),
            )
        except ValidationError as e:
            await self._send(send, 400, {"error": "invalid_query", "details": [{"field": e.field, "message": e.message}]})
            return
        except APIError as e:
            logger.error("Geocoding failed for %r: %s", query.place, e)
            await self._send(send, 502, {"error": e.code, "message": e.message, "status": e.status})
            return

        await self._send(
            send,
            200,
            {
                "kind": "geocode",
                "query": query.place,
                "candidates": [c.model_dump(mode="json") for c in candidates],
            },
        )

    async def _send(self, send, status: int, payload: dict | None):
        headers = list(_CORS_HEADERS)
        body = b""
        if payload is not None:
            body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
            headers.append([b"content-type", b"application/json; charset=utf-8"])
        await send({"type": "http.response.start", "status": status, "headers": headers})
        await send({"type": "http.response.body", "body": body})
