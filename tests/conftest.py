# ABOUTME: Shared test fixtures for the place and weather gateway test suite.
# ABOUTME: Provides a sample gazetteer file, mock HTTP client factories, and dependency containers.

import os
from pathlib import Path
from unittest.mock import AsyncMock

import httpx
import pydantic_ai.models
import pytest

from src.config import Settings
from src.deps import create_deps
from tests.sample_data import SAMPLE_LINES

# Prevent accidental LLM calls during testing
pydantic_ai.models.ALLOW_MODEL_REQUESTS = False

# src.agent builds its provider at import time, which requires a non-empty API key
os.environ.setdefault("OPENROUTER_API_KEY", "test-key")


@pytest.fixture
def gazetteer_path(tmp_path) -> Path:
    """A small JP gazetteer file covering capitals, admin divisions, ties, and malformed lines."""
    path = tmp_path / "JP.txt"
    path.write_text("\n".join(SAMPLE_LINES) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def json_response():
    """Factory for httpx.Response objects carrying JSON and a request (needed by raise_for_status)."""

    def _make(data: dict, status_code: int = 200) -> httpx.Response:
        return httpx.Response(status_code=status_code, json=data, request=httpx.Request("GET", "https://test"))

    return _make


@pytest.fixture
def mock_client():
    """Factory for a mock httpx.AsyncClient returning the given responses in order."""

    def _make(*responses) -> AsyncMock:
        mock = AsyncMock(spec=httpx.AsyncClient)
        if len(responses) == 1:
            mock.get.return_value = responses[0]
        else:
            mock.get.side_effect = list(responses)
        return mock

    return _make


@pytest.fixture
def make_deps(gazetteer_path):
    """Factory for GatewayDeps wired to the sample gazetteer and a given HTTP client."""

    def _make(client, **overrides):
        settings = Settings(**{"gazetteer_path": gazetteer_path, **overrides})
        return create_deps(settings, http_client=client)

    return _make
