"""Posting and editing takes, and registering users.

These mirror the validation the posting and editing forms applied before a
document was written: a trimmed, non-empty title, a deadline in the future,
and collaborators / challenge opponents that exist in the registry.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime

from hottakes.common.logging import get_logger
from hottakes.common.schemas import Prediction, User, ensure_utc
from hottakes.lifecycle.exceptions import (
    AlreadyResolvedError,
    InvalidPredictionError,
    InvalidUsernameError,
    NotAuthorizedError,
    UnknownUserError,
    UsernameTakenError,
)

logger = get_logger("LIFECYCLE")

DEFAULT_CATEGORY = "Sports"


def _clean_title(title: str) -> str:
    cleaned = title.strip()
    if not cleaned:
        raise InvalidPredictionError("Title cannot be empty.")
    return cleaned


def _check_deadline(close_at: datetime, now: datetime) -> datetime:
    close_at = ensure_utc(close_at)
    if close_at <= ensure_utc(now):
        raise InvalidPredictionError(
            "Deadline must be in the future.",
            context={"close_at": close_at.isoformat()},
        )
    return close_at


def _require_user(registry: Mapping[str, User], user_id: str, role: str) -> User:
    user = registry.get(user_id)
    if user is None:
        raise UnknownUserError(
            f"Unknown {role}: {user_id}",
            context={"user_id": user_id, "role": role},
        )
    return user


def create_prediction(
    prediction_id: str,
    author_id: str,
    title: str,
    close_at: datetime,
    now: datetime,
    registry: Mapping[str, User],
    *,
    description: str = "",
    category: str = DEFAULT_CATEGORY,
    collaborators: Iterable[str] = (),
    image_url: str | None = None,
    challenge_opponent_id: str | None = None,
) -> Prediction:
    """Build a new, open prediction with empty vote pools.

    Raises:
        InvalidPredictionError: Empty title, deadline not in the future, or the
            author listed as their own collaborator.
        UnknownUserError: Author, a collaborator or the challenge opponent is
            not in ``registry``.
    """
    author = _require_user(registry, author_id, "author")
    clean_title = _clean_title(title)
    close_at = _check_deadline(close_at, now)

    collaborator_ids = frozenset(collaborators)
    if author_id in collaborator_ids:
        raise InvalidPredictionError(
            "You cannot add yourself as a collaborator.",
            context={"author_id": author_id},
        )
    for collaborator_id in sorted(collaborator_ids):
        _require_user(registry, collaborator_id, "collaborator")

    if challenge_opponent_id is not None:
        _require_user(registry, challenge_opponent_id, "challenge opponent")

    prediction = Prediction(
        id=prediction_id,
        author_id=author_id,
        author_name=author.username,
        title=clean_title,
        description=description.strip(),
        category=category.strip() or DEFAULT_CATEGORY,
        collaborators=collaborator_ids,
        created_at=now,
        close_at=close_at,
        image_url=image_url,
        challenge_opponent_id=challenge_opponent_id,
    )
    logger.info(
        "Prediction created",
        extra={
            "data": {
                "prediction_id": prediction_id,
                "author_id": author_id,
                "collaborators": sorted(collaborator_ids),
                "close_at": close_at.isoformat(),
            }
        },
    )
    return prediction


def edit_prediction(
    prediction: Prediction,
    user_id: str,
    now: datetime,
    *,
    title: str | None = None,
    description: str | None = None,
    category: str | None = None,
    image_url: str | None = None,
    close_at: datetime | None = None,
) -> Prediction:
    """Apply the author's edits to an unresolved prediction.

    Only presentational fields and the deadline can change; votes,
    collaborators and the resolution flags are fixed. Fields left as None
    keep their current value.

    Raises:
        NotAuthorizedError: ``user_id`` is not the author.
        AlreadyResolvedError: The prediction has been resolved.
        InvalidPredictionError: Empty title or a deadline not in the future.
    """
    if user_id != prediction.author_id:
        raise NotAuthorizedError(
            "Only the author can edit this take",
            context={"prediction_id": prediction.id, "user_id": user_id},
        )
    if prediction.resolved:
        raise AlreadyResolvedError(
            "Resolved takes cannot be edited",
            context={"prediction_id": prediction.id},
        )

    update: dict = {}
    if title is not None:
        update["title"] = _clean_title(title)
    if description is not None:
        update["description"] = description.strip()
    if category is not None:
        update["category"] = category.strip() or DEFAULT_CATEGORY
    if image_url is not None:
        update["image_url"] = image_url
    if close_at is not None:
        update["close_at"] = _check_deadline(close_at, now)

    logger.info(
        "Prediction edited",
        extra={"data": {"prediction_id": prediction.id, "fields": sorted(update)}},
    )
    return prediction.model_copy(update=update)


def register_user(user_id: str, username: str, registry: Mapping[str, User]) -> User:
    """Create a fresh user record with a unique username.

    Raises:
        InvalidUsernameError: Username is empty after trimming.
        UsernameTakenError: The id already has a profile, or the name is in use.
    """
    clean = username.strip()
    if not clean:
        raise InvalidUsernameError("Username cannot be empty.")
    if user_id in registry:
        raise UsernameTakenError(
            "This account already has a username.",
            context={"user_id": user_id},
        )
    if any(u.username == clean for u in registry.values()):
        raise UsernameTakenError(
            "Username already taken. Please choose another.",
            context={"username": clean},
        )

    logger.info("User registered", extra={"data": {"user_id": user_id, "username": clean}})
    return User(id=user_id, username=clean)
