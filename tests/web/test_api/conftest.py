"""Test configuration and fixtures specifically for API testing."""

from __future__ import annotations

from typing import AsyncGenerator, Dict

import pytest
from httpx import ASGITransport, AsyncClient

from markpress.web.api.app import api


@pytest.fixture
async def api_client(
    test_settings, kv_store, identity_provider, date_provider
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with the in-memory store and fake identity provider.

    ASGITransport does not run the lifespan, so the collaborators it would
    create are placed on ``app.state`` directly.
    """
    original_state = {
        name: getattr(api.state, name, None)
        for name in ("settings", "store", "identity_provider", "date_provider")
    }
    api.state.settings = test_settings
    api.state.store = kv_store
    api.state.identity_provider = identity_provider
    api.state.date_provider = date_provider

    try:
        async with AsyncClient(transport=ASGITransport(app=api), base_url="http://test") as client:
            yield client
    finally:
        for name, value in original_state.items():
            setattr(api.state, name, value)


@pytest.fixture
def alice_headers() -> Dict[str, str]:
    return {"Authorization": "Bearer alice-token"}


@pytest.fixture
def bob_headers() -> Dict[str, str]:
    return {"Authorization": "Bearer bob-token"}
