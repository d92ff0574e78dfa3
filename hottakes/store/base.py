"""The document store contract the service layer depends on.

Users and predictions live in a tenant-scoped key-value document store with
push notification on change. Every document carries a revision number that
increases on each write (0 means "does not exist"). The one capability the
exactly-once settlement guarantee rests on is ``commit``: an all-or-nothing
batch of writes, each guarded by the revision the caller last read.

Usage:
    snap = await store.get_prediction("p1")
    await store.commit([Write("predictions", "p1", new_value, snap.revision)])
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel

from hottakes.common.schemas import Prediction, User

Collection = Literal["users", "predictions"]
COLLECTIONS: tuple[str, ...] = ("users", "predictions")

ABSENT = 0  # Revision of a document that has never been written

T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class Snapshot(Generic[T]):
    """A document value together with the revision it was read at."""

    value: T
    revision: int


@dataclass(frozen=True)
class Write:
    """One guarded write inside a ``commit`` batch."""

    collection: Collection
    doc_id: str
    value: BaseModel
    expected_revision: int


@dataclass(frozen=True)
class ChangeEvent:
    """Pushed to subscribers after a committed write."""

    app_id: str
    collection: Collection
    doc_id: str
    value: BaseModel
    revision: int


ChangeListener = Callable[[ChangeEvent], Awaitable[None] | None]


class DocumentStore(ABC):
    """Tenant-scoped document store with compare-and-swap batch commits.

    Args:
        app_id: Application/tenant identifier every document is scoped to.
    """

    def __init__(self, app_id: str) -> None:
        self.app_id = app_id

    @abstractmethod
    async def get_user(self, user_id: str) -> Snapshot[User]:
        """Raises DocumentNotFoundError if absent."""

    @abstractmethod
    async def list_users(self) -> list[Snapshot[User]]: ...

    @abstractmethod
    async def get_prediction(self, prediction_id: str) -> Snapshot[Prediction]:
        """Raises DocumentNotFoundError if absent."""

    @abstractmethod
    async def list_predictions(self) -> list[Snapshot[Prediction]]: ...

    @abstractmethod
    async def commit(self, writes: Sequence[Write]) -> dict[tuple[str, str], int]:
        """Apply every write or none of them.

        Each write succeeds only if the stored revision equals its
        ``expected_revision`` (``ABSENT`` to create).

        Returns:
            Mapping of (collection, doc_id) -> new revision.

        Raises:
            WriteConflictError: Any expected revision did not match.
        """

    @abstractmethod
    def subscribe(self, collection: Collection, listener: ChangeListener) -> Callable[[], None]:
        """Register ``listener`` for changes; returns an unsubscribe callable."""

    async def load_registry(self) -> tuple[dict[str, User], dict[str, int]]:
        """Read every user.

        Returns:
            Tuple of (user id -> User, user id -> revision).
        """
        snapshots = await self.list_users()
        registry = {s.value.id: s.value for s in snapshots}
        revisions = {s.value.id: s.revision for s in snapshots}
        return registry, revisions
