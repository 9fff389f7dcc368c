"""Tests for ProfileService."""

from __future__ import annotations

import pytest

from markpress.services.base import user_key
from markpress.services.exceptions import ForbiddenError, NotFoundError, ValidationError
from markpress.services.models import PreferencesUpdate, ProfileUpdate


class TestCreateAndGetProfile:
    """Profile creation at signup and public reads."""

    async def test_create_profile_defaults(self, profile_service, kv_store, date_provider):
        user = await profile_service.create_profile("user-1", " Carol ", "carol@example.com")

        assert user.name == "Carol"
        assert user.social_links == {}
        assert user.preferences.email_notifications is True
        assert user.preferences.public_profile is True
        assert user.preferences.show_email is False
        assert user.preferences.show_phone is False
        assert user.preferences.show_location is True
        assert user.created_at == date_provider.utcnow()

        stored = kv_store.data[user_key("user-1")]
        assert stored["email"] == "carol@example.com"
        assert stored["socialLinks"] == {}
        assert stored["preferences"]["emailNotifications"] is True

    async def test_get_profile_counts_published_blogs_only(self, profile_service, content_service, alice):
        await content_service.create_blog(alice.id, "One", "Body")
        await content_service.create_blog(alice.id, "Two", "Body")
        await content_service.create_blog(alice.id, "Draft", "Body", is_draft=True)

        profile = await profile_service.get_profile(alice.id)

        assert profile.id == alice.id
        assert profile.name == "Alice"
        assert profile.blog_count == 2

    async def test_get_profile_skips_deleted_blogs(self, profile_service, content_service, kv_store, alice):
        blog = await content_service.create_blog(alice.id, "One", "Body")
        del kv_store.data[f"blog:{blog.id}"]

        profile = await profile_service.get_profile(alice.id)

        assert profile.blog_count == 0

    async def test_get_missing_profile(self, profile_service):
        with pytest.raises(NotFoundError) as exc_info:
            await profile_service.get_profile("nobody")

        assert exc_info.value.get_user_message() == "User not found"


class TestUpdateProfile:
    """Self-service profile edits."""

    async def test_update_replaces_fields(self, profile_service, kv_store, alice, date_provider):
        date_provider.advance(300)
        patch = ProfileUpdate(
            name="  Alice Liddell ",
            bio="Curious",
            location=" Oxford ",
            website="https://alice.example.com",
        )

        updated = await profile_service.update_profile(alice.id, alice.id, patch)

        assert updated.name == "Alice Liddell"
        assert updated.bio == "Curious"
        assert updated.location == "Oxford"
        assert updated.website == "https://alice.example.com"
        assert updated.phone == ""
        assert updated.email == "alice@example.com"
        assert updated.updated_at == date_provider.utcnow()
        assert updated.created_at == alice.created_at
        assert kv_store.data[user_key(alice.id)]["name"] == "Alice Liddell"

    async def test_omitted_text_fields_are_cleared(self, profile_service, alice):
        await profile_service.update_profile(alice.id, alice.id, ProfileUpdate(name="Alice", bio="Hello"))

        updated = await profile_service.update_profile(alice.id, alice.id, ProfileUpdate(name="Alice"))

        assert updated.bio == ""

    async def test_blank_email_keeps_existing(self, profile_service, alice):
        updated = await profile_service.update_profile(
            alice.id, alice.id, ProfileUpdate(name="Alice", email="   ")
        )

        assert updated.email == "alice@example.com"

    async def test_email_can_change(self, profile_service, alice):
        updated = await profile_service.update_profile(
            alice.id, alice.id, ProfileUpdate(name="Alice", email=" new@example.com ")
        )

        assert updated.email == "new@example.com"

    @pytest.mark.parametrize("name", [None, "", "   "])
    async def test_name_is_required(self, profile_service, alice, name):
        with pytest.raises(ValidationError) as exc_info:
            await profile_service.update_profile(alice.id, alice.id, ProfileUpdate(name=name))

        assert exc_info.value.get_user_message() == "Name is required"

    async def test_social_links_replace_and_drop_blanks(self, profile_service, alice):
        await profile_service.update_profile(
            alice.id,
            alice.id,
            ProfileUpdate(name="Alice", social_links={"twitter": "https://x.com/alice"}),
        )

        updated = await profile_service.update_profile(
            alice.id,
            alice.id,
            ProfileUpdate(name="Alice", social_links={"github": " https://github.com/alice ", "linkedin": "  "}),
        )

        assert updated.social_links == {"github": "https://github.com/alice"}

    async def test_unknown_social_platform(self, profile_service, kv_store, alice):
        with pytest.raises(ValidationError):
            await profile_service.update_profile(
                alice.id,
                alice.id,
                ProfileUpdate(name="Alice", social_links={"myspace": "https://myspace.com/alice"}),
            )

        assert kv_store.data[user_key(alice.id)]["name"] == "Alice"

    async def test_preferences_merge_shallowly(self, profile_service, alice):
        updated = await profile_service.update_profile(
            alice.id,
            alice.id,
            ProfileUpdate(name="Alice", preferences=PreferencesUpdate(show_email=True, public_profile=False)),
        )

        assert updated.preferences.show_email is True
        assert updated.preferences.public_profile is False
        assert updated.preferences.email_notifications is True
        assert updated.preferences.show_location is True

    async def test_omitted_preferences_are_kept(self, profile_service, alice):
        await profile_service.update_profile(
            alice.id, alice.id, ProfileUpdate(name="Alice", preferences=PreferencesUpdate(show_phone=True))
        )

        updated = await profile_service.update_profile(alice.id, alice.id, ProfileUpdate(name="Alice"))

        assert updated.preferences.show_phone is True

    async def test_update_reports_blog_count(self, profile_service, content_service, alice):
        await content_service.create_blog(alice.id, "One", "Body")

        updated = await profile_service.update_profile(alice.id, alice.id, ProfileUpdate(name="Alice"))

        assert updated.blog_count == 1

    async def test_update_other_profile_is_forbidden(self, profile_service, kv_store, alice, bob):
        with pytest.raises(ForbiddenError):
            await profile_service.update_profile(alice.id, bob.id, ProfileUpdate(name="Hacked"))

        assert kv_store.data[user_key(alice.id)]["name"] == "Alice"

    async def test_update_missing_profile(self, profile_service):
        with pytest.raises(NotFoundError):
            await profile_service.update_profile("ghost", "ghost", ProfileUpdate(name="Ghost"))
