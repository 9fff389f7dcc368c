"""Base service class and store key layout shared by all services."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Optional

from markpress.services.models import AuthorSummary, User
from markpress.shared.date_provider import DateProvider, UTCDateProvider
from markpress.shared.kv_store import KVStore

logger = logging.getLogger(__name__)

PUBLISHED_PREFIX = "blog:published:"


def user_key(user_id: str) -> str:
    return f"user:{user_id}"


def user_blogs_key(user_id: str) -> str:
    return f"user:{user_id}:blogs"


def blog_key(blog_id: str) -> str:
    return f"blog:{blog_id}"


def published_key(blog_id: str) -> str:
    return f"{PUBLISHED_PREFIX}{blog_id}"


def comment_prefix(blog_id: str) -> str:
    return f"comment:{blog_id}:"


def comment_key(blog_id: str, comment_id: str) -> str:
    return f"{comment_prefix(blog_id)}{comment_id}"


class BaseService:
    """Common plumbing for services.

    The store and clock are injected at construction; services hold no
    other state between calls.
    """

    def __init__(self, store: KVStore, date_provider: Optional[DateProvider] = None):
        self.store = store
        self.date_provider = date_provider or UTCDateProvider()
        self._logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    def _now(self) -> datetime:
        return self.date_provider.utcnow()

    async def _load_user(self, user_id: str) -> Optional[User]:
        record = await self.store.get(user_key(user_id))
        if record is None:
            return None
        return User.model_validate(record)

    async def _author_summary(
        self,
        author_id: str,
        cache: Optional[Dict[str, Optional[AuthorSummary]]] = None
    ) -> Optional[AuthorSummary]:
        """Resolve the {id, name} projection for an author.

        Args:
            author_id: User ID to resolve
            cache: Optional per-call cache so listings read each author once

        Returns:
            AuthorSummary or None when the user record is missing
        """
        if cache is not None and author_id in cache:
            return cache[author_id]

        user = await self._load_user(author_id)
        summary = user.summary() if user else None
        if cache is not None:
            cache[author_id] = summary
        return summary
