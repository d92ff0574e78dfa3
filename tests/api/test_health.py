"""Tests for the liveness endpoint, metrics endpoint and error handling."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from hottakes.common.exceptions import RetryExhaustedError
from hottakes.lifecycle.exceptions import IneligibleVoterError, InvalidOutcomeError
from hottakes.main import VERSION, app, status_for
from hottakes.store.exceptions import DocumentNotFoundError


@pytest.fixture
async def bare_client() -> AsyncClient:
    """Client with no dependency overrides."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_ok(self, bare_client: AsyncClient):
        resp = await bare_client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "version": VERSION}

    @pytest.mark.asyncio
    async def test_metrics_exposed(self, bare_client: AsyncClient):
        resp = await bare_client.get("/metrics/")
        assert resp.status_code == 200
        assert "settlements" in resp.text


class TestErrorStatus:
    @pytest.mark.parametrize(
        ("exc", "status"),
        [
            (IneligibleVoterError("x"), 403),
            (DocumentNotFoundError("x"), 404),
            (RetryExhaustedError("x"), 409),
            (InvalidOutcomeError("x"), 422),
        ],
    )
    def test_status_mapping(self, exc, status: int):
        assert status_for(exc) == status
