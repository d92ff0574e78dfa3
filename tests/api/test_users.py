"""Tests for user registration, profiles and the leaderboard."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from tests.api.conftest import auth


class TestRegister:
    @pytest.mark.asyncio
    async def test_requires_identity(self, client: AsyncClient):
        resp = await client.post("/api/users", json={"username": "neo"})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_register(self, client: AsyncClient):
        resp = await client.post("/api/users", json={"username": " neo "}, headers=auth("u9"))
        assert resp.status_code == 201
        assert resp.json() == {
            "id": "u9",
            "username": "neo",
            "points": 0,
            "streak": 0,
            "badges": [],
        }

    @pytest.mark.asyncio
    async def test_username_taken(self, client: AsyncClient):
        resp = await client.post("/api/users", json={"username": "v1"}, headers=auth("u9"))
        assert resp.status_code == 409
        assert resp.json()["error"] == "UsernameTakenError"

    @pytest.mark.asyncio
    async def test_blank_username(self, client: AsyncClient):
        resp = await client.post("/api/users", json={"username": "  "}, headers=auth("u9"))
        assert resp.status_code == 422
        assert resp.json()["error"] == "InvalidUsernameError"


class TestProfile:
    @pytest.mark.asyncio
    async def test_get_profile(self, client: AsyncClient):
        resp = await client.get("/api/users/v1")
        assert resp.status_code == 200
        assert resp.json()["username"] == "v1"

    @pytest.mark.asyncio
    async def test_unknown_user(self, client: AsyncClient):
        resp = await client.get("/api/users/ghost")
        assert resp.status_code == 404
        assert resp.json()["error"] == "DocumentNotFoundError"


class TestLeaderboard:
    @pytest.mark.asyncio
    async def test_ranked_after_settlement(self, client: AsyncClient):
        await client.post(
            "/api/predictions/closed/resolve", json={"outcome": "cold"}, headers=auth("author")
        )

        resp = await client.get("/api/leaderboard")
        assert resp.status_code == 200
        rows = resp.json()
        assert rows[0]["rank"] == 1
        assert rows[0]["user_id"] == "v3"
        assert rows[0]["points"] == 12
        assert rows[0]["streak"] == 1
        assert [r["rank"] for r in rows] == list(range(1, len(rows) + 1))
        assert rows[-1]["points"] == -5
