"""Lifecycle-specific exception classes.

These extend the common HotTakesError hierarchy. Every one of them is a
local validation failure raised before any new state is computed, so a
caller that catches one holds an unchanged snapshot and can either report
the message or refresh and try again.
"""

from __future__ import annotations

from hottakes.common.exceptions import HotTakesError


class LifecycleError(HotTakesError):
    """Base class for rejected lifecycle transitions."""


class IneligibleVoterError(LifecycleError):
    """The author or a collaborator tried to vote on their own take."""


class VotingClosedError(LifecycleError):
    """The deadline has passed or the prediction is already resolved."""


class NotAuthorizedError(LifecycleError):
    """Only the author or a collaborator may perform this action."""


class TooEarlyError(LifecycleError):
    """Resolution was attempted before the deadline."""


class AlreadyResolvedError(LifecycleError):
    """The prediction has already been resolved."""


class InvalidOutcomeError(LifecycleError):
    """An outcome or vote side other than "hot" / "cold" was supplied."""


class InvalidPredictionError(LifecycleError):
    """Prediction fields failed validation (empty title, past deadline, ...)."""


class UnknownUserError(LifecycleError):
    """A referenced user id is not present in the registry."""


class InvalidUsernameError(LifecycleError):
    """The requested username is empty."""


class UsernameTakenError(LifecycleError):
    """The requested username (or user id) is already registered."""
