"""Test configuration and fixtures for the Markpress project."""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional, Tuple

import pytest

from markpress.services.content import ContentService
from markpress.services.exceptions import IdentityProviderError, ValidationError
from markpress.services.models import User
from markpress.services.profiles import ProfileService
from markpress.services.tags import TagAggregator
from markpress.shared.config import Settings, override_settings
from markpress.shared.date_provider import MockDateProvider
from markpress.shared.identity import Identity
from markpress.shared.kv_store import KVStore

ALICE_ID = "alice-0001-0000-0000-000000000000"
BOB_ID = "bob-00002-0000-0000-000000000000"
ALICE_TOKEN = "alice-token"
BOB_TOKEN = "bob-token"


class InMemoryKVStore(KVStore):
    """Dict-backed store with the same copy semantics as a JSON store.

    Values are deep-copied on the way in and out so callers can never
    mutate what is stored without writing it back.
    """

    def __init__(self):
        self.data: Dict[str, Any] = {}

    async def get(self, key: str) -> Optional[Any]:
        return copy.deepcopy(self.data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self.data[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)

    async def scan_prefix(self, prefix: str) -> List[Tuple[str, Any]]:
        return [
            (key, copy.deepcopy(self.data[key]))
            for key in sorted(self.data)
            if key.startswith(prefix)
        ]

    def keys_with_prefix(self, prefix: str) -> List[str]:
        return sorted(key for key in self.data if key.startswith(prefix))


class FakeIdentityProvider:
    """Identity provider mapping fixed tokens to identities."""

    def __init__(self):
        self.tokens: Dict[str, Identity] = {}
        self.created: List[Identity] = []
        self.unavailable = False
        self.closed = False

    def register_token(self, token: str, user_id: str, email: str = "", name: str = "") -> None:
        self.tokens[token] = Identity(id=user_id, email=email or None, name=name or None)

    async def get_user(self, token: str) -> Optional[Identity]:
        return self.tokens.get(token)

    async def create_user(self, email: str, password: str, name: str) -> Identity:
        if self.unavailable:
            raise IdentityProviderError("Identity provider request failed: connection refused")
        if any(identity.email == email for identity in self.created):
            raise ValidationError("email", "A user with this email address has already been registered")

        identity = Identity(id=f"user-{len(self.created) + 1:04d}", email=email, name=name)
        self.created.append(identity)
        return identity

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return override_settings(
        environment="testing",
        log_level="DEBUG",
        identity_url="http://identity.test",
        identity_service_key="test-service-key",
        verbose_errors_enabled=False,
    )


@pytest.fixture
def date_provider() -> MockDateProvider:
    """Clock fixed at 2024-01-15 00:00 UTC until a test advances it."""
    return MockDateProvider()


@pytest.fixture
def kv_store() -> InMemoryKVStore:
    return InMemoryKVStore()


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    provider = FakeIdentityProvider()
    provider.register_token(ALICE_TOKEN, ALICE_ID, "alice@example.com", "Alice")
    provider.register_token(BOB_TOKEN, BOB_ID, "bob@example.com", "Bob")
    return provider


@pytest.fixture
def content_service(kv_store, date_provider) -> ContentService:
    return ContentService(kv_store, date_provider)


@pytest.fixture
def profile_service(kv_store, date_provider) -> ProfileService:
    return ProfileService(kv_store, date_provider)


@pytest.fixture
def tag_aggregator(kv_store) -> TagAggregator:
    return TagAggregator(kv_store)


@pytest.fixture
async def alice(profile_service) -> User:
    """Stored profile for the first test author."""
    return await profile_service.create_profile(ALICE_ID, "Alice", "alice@example.com")


@pytest.fixture
async def bob(profile_service) -> User:
    """Stored profile for the second test author."""
    return await profile_service.create_profile(BOB_ID, "Bob", "bob@example.com")
