"""Identity provider client.

Authentication is delegated to an external identity service speaking the
GoTrue REST dialect: bearer tokens are resolved with ``GET /auth/v1/user``
and signups go through ``POST /auth/v1/admin/users`` with the service key.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import httpx

from markpress.services.exceptions import IdentityProviderError, ValidationError
from markpress.shared.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Authenticated principal returned by the identity provider."""

    id: str
    email: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> Identity:
        if not isinstance(payload, dict):
            raise TypeError(f"Expected a user object, got {type(payload).__name__}")
        metadata = payload.get("user_metadata") or {}
        if not isinstance(metadata, dict):
            metadata = {}
        return cls(
            id=str(payload["id"]),
            email=payload.get("email"),
            name=metadata.get("name"),
        )


class IdentityProvider(Protocol):
    """Protocol for identity providers used by the API."""

    async def get_user(self, token: str) -> Optional[Identity]:
        """Resolve a bearer token to an identity, or None when invalid."""
        ...

    async def create_user(self, email: str, password: str, name: str) -> Identity:
        """Create a confirmed identity.

        Raises:
            ValidationError: If the provider rejects the signup data
            IdentityProviderError: If the provider cannot be reached
        """
        ...

    async def close(self) -> None:
        ...


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for field in ("msg", "message", "error_description", "error"):
            if body.get(field):
                return str(body[field])
    return f"HTTP {response.status_code}"


class HTTPIdentityProvider:
    """httpx client for a GoTrue-compatible identity service."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """Initialize the identity provider client.

        Args:
            base_url: Base URL of the identity service
            service_key: Service key sent as ``apikey`` and used for admin calls
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self._base_url = base_url.rstrip("/")
        self._service_key = service_key
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> HTTPIdentityProvider:
        return cls(
            base_url=settings.identity_url,
            service_key=settings.identity_service_key,
            timeout=settings.identity_timeout,
        )

    async def __aenter__(self) -> HTTPIdentityProvider:
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={
                    "apikey": self._service_key,
                    "Accept": "application/json",
                    "User-Agent": "Markpress/1.0",
                },
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get_user(self, token: str) -> Optional[Identity]:
        client = self._ensure_client()
        try:
            response = await client.get(
                "/auth/v1/user",
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            # Unreachable provider means the caller cannot be authenticated.
            logger.warning(f"Identity provider request failed: {e}")
            return None

        if response.status_code != 200:
            logger.info(
                "Bearer token rejected by identity provider",
                extra={"status_code": response.status_code},
            )
            return None

        try:
            return Identity.from_payload(response.json())
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Malformed identity provider response: {e}")
            return None

    async def create_user(self, email: str, password: str, name: str) -> Identity:
        client = self._ensure_client()
        try:
            response = await client.post(
                "/auth/v1/admin/users",
                json={
                    "email": email,
                    "password": password,
                    "user_metadata": {"name": name},
                    # No mail server is configured, so confirm immediately.
                    "email_confirm": True,
                },
                headers={"Authorization": f"Bearer {self._service_key}"},
            )
        except httpx.HTTPError as e:
            raise IdentityProviderError(f"Identity provider request failed: {e}") from e

        if response.status_code >= 500:
            raise IdentityProviderError(
                f"Identity provider error: {_error_message(response)}",
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise ValidationError("email", _error_message(response))

        try:
            payload = response.json()
            # Some GoTrue versions wrap the created user.
            if isinstance(payload, dict) and isinstance(payload.get("user"), dict):
                payload = payload["user"]
            identity = Identity.from_payload(payload)
        except (ValueError, KeyError, TypeError) as e:
            raise IdentityProviderError(
                f"Malformed identity provider response: {e}",
                status_code=response.status_code,
            ) from e
        logger.info("Created identity", extra={"user_id": identity.id})
        return identity
