"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable

import httpx
import pytest
from fastapi import FastAPI

from chat_adapter.main import create_app
from chat_adapter.settings import AdapterSettings, ProviderSettings
from chat_adapter.testing import FakeProvider

PROVIDER_BASE_URL = "http://gemini.test/v1beta"
TEST_API_KEY = "test-key"


# =============================================================================
# Provider Fixtures
# =============================================================================


@pytest.fixture
def fake_provider() -> FakeProvider:
    """Fake Gemini upstream; inspect ``calls`` / ``call_count`` after a request."""
    return FakeProvider()


@pytest.fixture
def provider_settings() -> ProviderSettings:
    return ProviderSettings(
        base_url=PROVIDER_BASE_URL,
        model="gemini-test",
        stream_model="gemini-test-stream",
        api_key=TEST_API_KEY,
        timeout=5.0,
    )


# =============================================================================
# App Fixtures
# =============================================================================


@pytest.fixture
def make_app(
    fake_provider: FakeProvider, provider_settings: ProviderSettings
) -> Callable[..., FastAPI]:
    """Build an adapter app wired to the fake provider.

    Keyword arguments override fields of ``provider_settings``; pass
    ``transport=`` to swap the upstream transport.
    """

    def _make(transport: Any = None, **overrides: Any) -> FastAPI:
        settings = AdapterSettings(provider=replace(provider_settings, **overrides))
        return create_app(settings=settings, transport=transport or fake_provider.transport)

    return _make


@pytest.fixture
def app(make_app: Callable[..., FastAPI]) -> FastAPI:
    return make_app()


def make_client(app: FastAPI) -> httpx.AsyncClient:
    """Create an async HTTP client talking to the app in-process."""
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://adapter.local",
    )


@pytest.fixture
def client(app: FastAPI) -> httpx.AsyncClient:
    return make_client(app)
