"""Document store contract and the in-memory implementation."""

from __future__ import annotations

from hottakes.store.base import ABSENT, ChangeEvent, DocumentStore, Snapshot, Write
from hottakes.store.exceptions import DocumentNotFoundError, StoreError, WriteConflictError
from hottakes.store.memory import InMemoryDocumentStore

__all__ = [
    "ABSENT",
    "ChangeEvent",
    "DocumentNotFoundError",
    "DocumentStore",
    "InMemoryDocumentStore",
    "Snapshot",
    "StoreError",
    "Write",
    "WriteConflictError",
]
