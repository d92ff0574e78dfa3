"""Root test configuration: shared fixtures for all test modules.

IMPORTANT: Environment variables are set BEFORE any hottakes imports
so that config.py loads predictable Settings without a .env file.
"""

from __future__ import annotations

import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("APP_ID", "test-app")
os.environ.setdefault("WRITE_RETRY_LIMIT", "3")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from hottakes.common.config import Settings, get_settings  # noqa: E402
from hottakes.common.schemas import Prediction, User  # noqa: E402
from hottakes.service import PredictionService  # noqa: E402
from hottakes.store.base import ABSENT, Write  # noqa: E402
from hottakes.store.memory import InMemoryDocumentStore  # noqa: E402
from tests.factories import make_prediction, make_registry  # noqa: E402

# ─── Clear cached settings so test env vars are used ───
get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    return get_settings()


@pytest.fixture
def registry() -> dict[str, User]:
    """Author, one collaborator and four would-be voters, all at zero."""
    return make_registry("author", "collab", "v1", "v2", "v3", "v4")


@pytest.fixture
def open_prediction() -> Prediction:
    """Closes at NOW; open for any clock before NOW."""
    return make_prediction()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore("test-app")


@pytest.fixture
def service(store: InMemoryDocumentStore, test_settings: Settings) -> PredictionService:
    return PredictionService(store, test_settings)


@pytest_asyncio.fixture
async def seeded_store(
    store: InMemoryDocumentStore,
    registry: dict[str, User],
) -> InMemoryDocumentStore:
    """Store pre-loaded with the registry users and an open prediction p1."""
    writes = [Write("users", uid, user, ABSENT) for uid, user in registry.items()]
    writes.append(Write("predictions", "p1", make_prediction(collaborators=["collab"]), ABSENT))
    await store.commit(writes)
    return store
