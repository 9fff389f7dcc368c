"""User profile operations.

The profile service is the only writer of ``user:{id}`` records. Profiles
are created at signup and afterwards edited only by their owner.
"""

from __future__ import annotations

from typing import Optional

from markpress.services.base import BaseService, blog_key, user_blogs_key, user_key
from markpress.services.exceptions import ForbiddenError, NotFoundError, ValidationError
from markpress.services.models import (
    SOCIAL_PLATFORMS,
    Preferences,
    ProfileUpdate,
    User,
    UserSummary,
)


def _clean(value: Optional[str]) -> str:
    return value.strip() if value else ""


class ProfileService(BaseService):
    """Profile reads and self-service edits."""

    async def create_profile(self, user_id: str, name: str, email: str) -> User:
        """Write the initial profile for a newly signed-up user.

        Args:
            user_id: Identifier issued by the identity provider
            name: Display name
            email: Account email

        Returns:
            User: The stored profile with default preferences
        """
        user = User(
            id=user_id,
            name=name.strip(),
            email=email.strip(),
            social_links={},
            preferences=Preferences(),
            created_at=self._now(),
        )
        await self.store.set(user_key(user_id), user.to_record())
        self._logger.info("Created profile", extra={"user_id": user_id})
        return user

    async def _published_blog_count(self, user_id: str) -> int:
        count = 0
        for blog_id in await self.store.get(user_blogs_key(user_id)) or []:
            record = await self.store.get(blog_key(blog_id))
            if record is not None and not record.get("isDraft", False):
                count += 1
        return count

    async def _summarize(self, user: User) -> UserSummary:
        return UserSummary(
            **user.model_dump(),
            blog_count=await self._published_blog_count(user.id),
        )

    async def get_profile(self, user_id: str) -> UserSummary:
        """Fetch a profile with its published blog count.

        Raises:
            NotFoundError: If the user doesn't exist
        """
        user = await self._load_user(user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        return await self._summarize(user)

    async def update_profile(self, user_id: str, caller_id: Optional[str], patch: ProfileUpdate) -> UserSummary:
        """Apply the owner's edit to a profile.

        Name is required. Email keeps its stored value when left blank; the
        other text fields are replaced, blank when omitted. Preferences are
        merged key by key over the stored ones, while social links replace
        the stored mapping entirely.

        Args:
            user_id: Profile to edit
            caller_id: Authenticated caller, must equal user_id
            patch: Submitted profile fields

        Raises:
            ForbiddenError: If the caller is editing someone else's profile
            NotFoundError: If the profile doesn't exist
            ValidationError: If the name is blank or a social platform is unknown
        """
        if caller_id != user_id:
            raise ForbiddenError("user", user_id, caller_id)

        existing = await self._load_user(user_id)
        if existing is None:
            raise NotFoundError("user", user_id)

        name = _clean(patch.name)
        if not name:
            raise ValidationError("name", "Name is required")

        social_links = {}
        for platform, url in (patch.social_links or {}).items():
            if platform not in SOCIAL_PLATFORMS:
                raise ValidationError("socialLinks", f"Unsupported social platform: {platform}")
            if url and url.strip():
                social_links[platform] = url.strip()

        preferences = existing.preferences
        if patch.preferences is not None:
            preferences = preferences.model_copy(update=patch.preferences.model_dump(exclude_none=True))

        updated = existing.model_copy(update={
            "name": name,
            "email": _clean(patch.email) or existing.email,
            "bio": _clean(patch.bio),
            "location": _clean(patch.location),
            "phone": _clean(patch.phone),
            "website": _clean(patch.website),
            "avatar": _clean(patch.avatar),
            "social_links": social_links,
            "preferences": preferences,
            "updated_at": self._now(),
        })
        await self.store.set(user_key(user_id), updated.to_record())

        self._logger.info("Updated profile", extra={"user_id": user_id})
        return await self._summarize(updated)
