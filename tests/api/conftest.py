"""API test fixtures: httpx.AsyncClient with the service dependency overridden.

Each test gets a fresh InMemoryDocumentStore, so endpoints never share
state through the process-wide store in hottakes.api.deps. Endpoints read
the real wall clock, so seeded predictions are placed relative to it.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from hottakes.api.deps import get_service
from hottakes.common.schemas import Prediction
from hottakes.main import app
from hottakes.service import PredictionService
from hottakes.store.base import ABSENT, Write
from hottakes.store.memory import InMemoryDocumentStore
from tests.factories import make_prediction, make_registry


def auth(user_id: str) -> dict[str, str]:
    """Identity header as set by the identity provider."""
    return {"X-User-Id": user_id}


@pytest_asyncio.fixture
async def api_store(store: InMemoryDocumentStore) -> InMemoryDocumentStore:
    """Store seeded with users plus one open and one closed take."""
    now = datetime.now(UTC)
    writes = [
        Write("users", uid, user, ABSENT)
        for uid, user in make_registry("author", "collab", "v1", "v2", "v3").items()
    ]
    writes.append(
        Write(
            "predictions",
            "open",
            make_prediction(
                "open",
                title="Rain on Saturday",
                category="Weather",
                created_at=now - timedelta(days=1),
                close_at=now + timedelta(days=1),
            ),
            ABSENT,
        )
    )
    writes.append(
        Write(
            "predictions",
            "closed",
            make_prediction(
                "closed",
                title="Lakers win tonight",
                collaborators=["collab"],
                hot=["v1", "v2"],
                cold=["v3"],
                created_at=now - timedelta(days=2),
                close_at=now - timedelta(hours=1),
            ),
            ABSENT,
        )
    )
    await store.commit(writes)
    return store


@pytest.fixture
async def client(api_store: InMemoryDocumentStore, test_settings) -> AsyncClient:
    """Async client against the full app, bound to the seeded store."""
    service = PredictionService(api_store, test_settings)
    app.dependency_overrides[get_service] = lambda: service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def stored_prediction(store: InMemoryDocumentStore, prediction_id: str) -> Prediction:
    return (await store.get_prediction(prediction_id)).value
