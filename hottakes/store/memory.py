"""In-memory DocumentStore used by the API process and the test suite.

A single asyncio.Lock serializes commits, which makes each batch atomic
with respect to every other commit on the same event loop. Subscribers are
notified after the lock is released, in commit order; a listener that
raises is logged and skipped.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable, Sequence

from pydantic import BaseModel

from hottakes.common.logging import get_logger
from hottakes.common.metrics import STORE_WRITE_CONFLICTS_TOTAL
from hottakes.common.schemas import Prediction, User
from hottakes.store.base import (
    ABSENT,
    COLLECTIONS,
    ChangeEvent,
    ChangeListener,
    Collection,
    DocumentStore,
    Snapshot,
    Write,
)
from hottakes.store.exceptions import DocumentNotFoundError, StoreError, WriteConflictError

logger = get_logger("STORE")


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store with per-document revisions.

    Args:
        app_id: Tenant scope recorded on every change event.
    """

    def __init__(self, app_id: str) -> None:
        super().__init__(app_id)
        self._docs: dict[str, dict[str, tuple[BaseModel, int]]] = {c: {} for c in COLLECTIONS}
        self._listeners: dict[str, list[ChangeListener]] = {c: [] for c in COLLECTIONS}
        self._lock = asyncio.Lock()

    # ─── Reads ───

    def _get(self, collection: Collection, doc_id: str) -> Snapshot:
        entry = self._docs[collection].get(doc_id)
        if entry is None:
            raise DocumentNotFoundError(
                f"No {collection[:-1]} with id {doc_id!r}",
                context={"app_id": self.app_id, "collection": collection, "doc_id": doc_id},
            )
        value, revision = entry
        return Snapshot(value=value, revision=revision)

    def _list(self, collection: Collection) -> list[Snapshot]:
        return [Snapshot(value=v, revision=r) for v, r in self._docs[collection].values()]

    async def get_user(self, user_id: str) -> Snapshot[User]:
        return self._get("users", user_id)

    async def list_users(self) -> list[Snapshot[User]]:
        return self._list("users")

    async def get_prediction(self, prediction_id: str) -> Snapshot[Prediction]:
        return self._get("predictions", prediction_id)

    async def list_predictions(self) -> list[Snapshot[Prediction]]:
        return self._list("predictions")

    # ─── Writes ───

    async def commit(self, writes: Sequence[Write]) -> dict[tuple[str, str], int]:
        for write in writes:
            if write.collection not in COLLECTIONS:
                raise StoreError(
                    f"Unknown collection {write.collection!r}",
                    context={"app_id": self.app_id},
                )

        async with self._lock:
            for write in writes:
                entry = self._docs[write.collection].get(write.doc_id)
                current = entry[1] if entry is not None else ABSENT
                if current != write.expected_revision:
                    STORE_WRITE_CONFLICTS_TOTAL.labels(operation=write.collection).inc()
                    logger.info(
                        "Write conflict",
                        extra={
                            "data": {
                                "collection": write.collection,
                                "doc_id": write.doc_id,
                                "expected": write.expected_revision,
                                "actual": current,
                            }
                        },
                    )
                    raise WriteConflictError(
                        "Document changed since it was read",
                        context={
                            "collection": write.collection,
                            "doc_id": write.doc_id,
                            "expected_revision": write.expected_revision,
                            "actual_revision": current,
                        },
                    )

            revisions: dict[tuple[str, str], int] = {}
            events: list[ChangeEvent] = []
            for write in writes:
                key = (write.collection, write.doc_id)
                revision = revisions.get(key, write.expected_revision) + 1
                self._docs[write.collection][write.doc_id] = (write.value, revision)
                revisions[key] = revision
                events.append(
                    ChangeEvent(
                        app_id=self.app_id,
                        collection=write.collection,
                        doc_id=write.doc_id,
                        value=write.value,
                        revision=revision,
                    )
                )

        logger.debug(
            "Committed",
            extra={"data": {"app_id": self.app_id, "writes": len(writes)}},
        )
        await self._notify(events)
        return revisions

    # ─── Subscriptions ───

    def subscribe(self, collection: Collection, listener: ChangeListener) -> Callable[[], None]:
        listeners = self._listeners[collection]
        listeners.append(listener)

        def unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    async def _notify(self, events: list[ChangeEvent]) -> None:
        for event in events:
            for listener in list(self._listeners[event.collection]):
                try:
                    result = listener(event)
                    if inspect.isawaitable(result):
                        await result
                except Exception as exc:
                    # Already committed: log and move on to the next listener
                    logger.error(
                        f"Change listener failed: {type(exc).__name__}: {exc}",
                        extra={
                            "data": {
                                "app_id": event.app_id,
                                "collection": event.collection,
                                "doc_id": event.doc_id,
                                "revision": event.revision,
                            }
                        },
                    )
