"""Tests for user search and avatar endpoints."""

from __future__ import annotations

from tests.conftest import insert_user
from tests.factories import make_user
from tests.rest_api.conftest import assert_error_response


class TestSearch:
    async def test_prefix_search_excludes_caller(self, client, fresh_db, alice):
        await insert_user(fresh_db, make_user(id="alicia", username="alicia"))
        await insert_user(fresh_db, make_user(id="bob", username="bob"))

        resp = await client.get("/api/users/search", params={"q": "ali", "exclude": "alice"})

        assert resp.status_code == 200
        assert resp.json()["users"] == [{"id": "alicia", "username": "alicia", "avatarUrl": None}]

    async def test_empty_query_returns_nobody(self, client, alice):
        resp = await client.get("/api/users/search")
        assert resp.json() == {"success": True, "users": []}


class TestAvatar:
    async def test_set_avatar(self, client, alice):
        resp = await client.put("/api/users/alice/avatar", json={"avatarUrl": "/uploads/a.png"})
        assert resp.status_code == 200
        assert resp.json()["avatarUrl"] == "/uploads/a.png"

    async def test_unknown_user_404(self, client):
        resp = await client.put("/api/users/ghost/avatar", json={"avatarUrl": "/a.png"})
        assert_error_response(resp, 404, "User not found")
