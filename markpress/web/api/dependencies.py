"""FastAPI dependencies for authentication and service access.

The store, identity provider and clock live on ``app.state``; services are
built per request around them so every handler sees the same injected
collaborators without reaching for a module-level client.
"""

from __future__ import annotations

import logging
from typing import Annotated, Optional

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from markpress.services.content import ContentService
from markpress.services.exceptions import AuthError
from markpress.services.profiles import ProfileService
from markpress.services.tags import TagAggregator
from markpress.shared.config import Settings, get_settings
from markpress.shared.date_provider import DateProvider, UTCDateProvider
from markpress.shared.identity import IdentityProvider
from markpress.shared.kv_store import KVStore

logger = logging.getLogger(__name__)

# Missing credentials are handled here so optional-auth routes still work.
security = HTTPBearer(
    scheme_name="Bearer Token",
    description="Identity provider access token",
    auto_error=False
)


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def get_store(request: Request) -> KVStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise RuntimeError("Key-value store not initialized")
    return store


def get_identity_provider(request: Request) -> IdentityProvider:
    provider = getattr(request.app.state, "identity_provider", None)
    if provider is None:
        raise RuntimeError("Identity provider not initialized")
    return provider


def get_date_provider(request: Request) -> DateProvider:
    return getattr(request.app.state, "date_provider", None) or UTCDateProvider()


def get_content_service(
    store: Annotated[KVStore, Depends(get_store)],
    date_provider: Annotated[DateProvider, Depends(get_date_provider)],
    settings: Annotated[Settings, Depends(get_app_settings)]
) -> ContentService:
    return ContentService(store, date_provider, page_size=settings.default_page_size)


def get_profile_service(
    store: Annotated[KVStore, Depends(get_store)],
    date_provider: Annotated[DateProvider, Depends(get_date_provider)]
) -> ProfileService:
    return ProfileService(store, date_provider)


def get_tag_aggregator(
    store: Annotated[KVStore, Depends(get_store)]
) -> TagAggregator:
    return TagAggregator(store)


async def get_optional_user_id(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Security(security)],
    identity_provider: Annotated[IdentityProvider, Depends(get_identity_provider)]
) -> Optional[str]:
    """Resolve the bearer token to a user ID, or None for anonymous callers.

    Invalid tokens are treated as anonymous; routes that need a caller use
    ``get_current_user_id`` instead.
    """
    if credentials is None or not credentials.credentials:
        return None

    identity = await identity_provider.get_user(credentials.credentials)
    if identity is None:
        return None

    request.state.user_id = identity.id
    return identity.id


async def get_current_user_id(
    user_id: Annotated[Optional[str], Depends(get_optional_user_id)]
) -> str:
    """Require an authenticated caller.

    Raises:
        AuthError: If the bearer token is missing or invalid
    """
    if user_id is None:
        raise AuthError()
    return user_id


# Type aliases for common dependencies
CurrentUser = Annotated[str, Depends(get_current_user_id)]
OptionalUser = Annotated[Optional[str], Depends(get_optional_user_id)]
Content = Annotated[ContentService, Depends(get_content_service)]
Profiles = Annotated[ProfileService, Depends(get_profile_service)]
Tags = Annotated[TagAggregator, Depends(get_tag_aggregator)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Identities = Annotated[IdentityProvider, Depends(get_identity_provider)]
