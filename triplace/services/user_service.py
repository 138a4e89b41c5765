"""
triplace.services.user_service — User profiles
===============================================

CRUD for member profiles plus the small state changes the client makes
repeatedly: location updates, online status and activity heartbeats, and
onboarding completion.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from triplace.database.models import User
from triplace.exceptions import DuplicateUserError

logger = logging.getLogger(__name__)

# Columns a client may never overwrite through update_user().
_FROZEN_FIELDS = frozenset({"id", "created_at"})


def _detach(session: Session, user: User | None) -> User | None:
    if user is not None:
        session.expunge(user)
    return user


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_user(engine, user_id: int) -> User | None:
    with Session(engine) as session:
        return _detach(session, session.get(User, user_id))


def get_user_by_firebase_uid(engine, firebase_uid: str) -> User | None:
    with Session(engine) as session:
        user = session.scalar(select(User).where(User.firebase_uid == firebase_uid))
        return _detach(session, user)


def get_user_by_email(engine, email: str) -> User | None:
    with Session(engine) as session:
        user = session.scalar(select(User).where(User.email == email))
        return _detach(session, user)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------
def create_user(engine, data: dict[str, Any]) -> User:
    """Insert a new user.

    Raises
    ------
    DuplicateUserError
        If the Firebase UID or email is already registered.
    """
    now = datetime.now(UTC)
    with Session(engine, expire_on_commit=False) as session:
        if session.scalar(select(User.id).where(User.firebase_uid == data["firebase_uid"])):
            raise DuplicateUserError("firebase_uid", data["firebase_uid"])
        if session.scalar(select(User.id).where(User.email == data["email"])):
            raise DuplicateUserError("email", data["email"])

        user = User(
            **{k: v for k, v in data.items() if k not in _FROZEN_FIELDS},
            last_active_at=now,
            created_at=now,
        )
        if user.interests is None:
            user.interests = []
        session.add(user)
        try:
            session.commit()
        except IntegrityError:
            # Lost a race with a concurrent signup.
            session.rollback()
            raise DuplicateUserError("firebase_uid", data["firebase_uid"]) from None
        logger.info("Created user %d (%s)", user.id, user.email)
        return user


def update_user(engine, user_id: int, **updates: Any) -> User | None:
    """Apply a partial update.  ``id`` and ``created_at`` are ignored.

    Raises
    ------
    DuplicateUserError
        If the new Firebase UID or email belongs to another user.
    """
    with Session(engine, expire_on_commit=False) as session:
        user = session.get(User, user_id)
        if user is None:
            return None
        for field in ("firebase_uid", "email"):
            value = updates.get(field)
            if value is None:
                continue
            taken = session.scalar(
                select(User.id).where(getattr(User, field) == value, User.id != user_id)
            )
            if taken:
                raise DuplicateUserError(field, value)
        for key, value in updates.items():
            if key in _FROZEN_FIELDS or not hasattr(User, key):
                continue
            setattr(user, key, value)
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            raise DuplicateUserError("email", updates.get("email")) from None
        return user


def update_location(
    engine,
    user_id: int,
    latitude: float,
    longitude: float,
    location: str | None = None,
) -> User | None:
    with Session(engine, expire_on_commit=False) as session:
        user = session.get(User, user_id)
        if user is None:
            return None
        user.latitude = latitude
        user.longitude = longitude
        if location is not None:
            user.location = location
        session.commit()
        logger.debug("User %d moved to (%.4f, %.4f)", user_id, latitude, longitude)
        return user


def set_online_status(engine, user_id: int, is_online: bool) -> User | None:
    with Session(engine, expire_on_commit=False) as session:
        user = session.get(User, user_id)
        if user is None:
            return None
        user.is_online = is_online
        user.last_active_at = datetime.now(UTC)
        session.commit()
        return user


def touch_user_activity(engine, user_id: int) -> User | None:
    with Session(engine, expire_on_commit=False) as session:
        user = session.get(User, user_id)
        if user is None:
            return None
        user.last_active_at = datetime.now(UTC)
        session.commit()
        return user


def complete_onboarding(
    engine,
    user_id: int,
    *,
    interests: list[str],
    quiz_answers: dict | None = None,
    location: str | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
) -> User | None:
    """Store the onboarding answers and flag the profile as onboarded."""
    with Session(engine, expire_on_commit=False) as session:
        user = session.get(User, user_id)
        if user is None:
            return None
        user.interests = list(interests)
        user.quiz_answers = quiz_answers
        if location is not None:
            user.location = location
        if latitude is not None and longitude is not None:
            user.latitude = latitude
            user.longitude = longitude
        user.onboarding_completed = True
        session.commit()
        logger.info("User %d completed onboarding with %d interests", user_id, len(interests))
        return user
