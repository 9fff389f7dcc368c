"""Tests for user profile endpoints."""

from __future__ import annotations

from httpx import AsyncClient


class TestGetUser:
    """GET /users/{userId}."""

    async def test_get_profile_with_blog_count(self, api_client: AsyncClient, alice, alice_headers):
        await api_client.post("/blogs", json={"title": "One", "content": "Body"}, headers=alice_headers)
        await api_client.post(
            "/blogs", json={"title": "Two", "content": "Body", "isDraft": True}, headers=alice_headers
        )

        response = await api_client.get(f"/users/{alice.id}")

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["id"] == alice.id
        assert user["name"] == "Alice"
        assert user["blogCount"] == 1
        assert user["socialLinks"] == {}
        assert user["preferences"] == {
            "emailNotifications": True,
            "publicProfile": True,
            "showEmail": False,
            "showPhone": False,
            "showLocation": True,
        }

    async def test_get_missing_profile(self, api_client: AsyncClient):
        response = await api_client.get("/users/nobody")

        assert response.status_code == 404
        assert response.json()["error"] == "User not found"


class TestUpdateUser:
    """PUT /users/{userId}."""

    async def test_update_own_profile(self, api_client: AsyncClient, alice, alice_headers):
        response = await api_client.put(
            f"/users/{alice.id}",
            json={
                "name": "Alice L.",
                "bio": "Writes about Redis",
                "socialLinks": {"github": "https://github.com/alice", "twitter": ""},
                "preferences": {"showEmail": True},
            },
            headers=alice_headers,
        )

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["name"] == "Alice L."
        assert user["bio"] == "Writes about Redis"
        assert user["email"] == "alice@example.com"
        assert user["socialLinks"] == {"github": "https://github.com/alice"}
        assert user["preferences"]["showEmail"] is True
        assert user["preferences"]["emailNotifications"] is True
        assert user["blogCount"] == 0

    async def test_update_other_profile(self, api_client: AsyncClient, alice, bob, bob_headers):
        response = await api_client.put(f"/users/{alice.id}", json={"name": "Bob"}, headers=bob_headers)

        assert response.status_code == 403
        assert response.json()["error"] == "Forbidden"

    async def test_update_without_token(self, api_client: AsyncClient, alice):
        response = await api_client.put(f"/users/{alice.id}", json={"name": "Anon"})

        assert response.status_code == 401

    async def test_update_requires_name(self, api_client: AsyncClient, alice, alice_headers):
        response = await api_client.put(f"/users/{alice.id}", json={"bio": "No name"}, headers=alice_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Name is required"

    async def test_update_unknown_social_platform(self, api_client: AsyncClient, alice, alice_headers):
        response = await api_client.put(
            f"/users/{alice.id}",
            json={"name": "Alice", "socialLinks": {"friendster": "https://friendster.com/alice"}},
            headers=alice_headers,
        )

        assert response.status_code == 400
