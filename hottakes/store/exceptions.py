"""Document store exception classes."""

from __future__ import annotations

from hottakes.common.exceptions import HotTakesError


class StoreError(HotTakesError):
    """General document store failure."""


class DocumentNotFoundError(StoreError):
    """No document exists under the requested id."""


class WriteConflictError(StoreError):
    """A compare-and-swap commit saw a different revision than expected.

    Nothing from the rejected commit was written; reload and try again.
    """
