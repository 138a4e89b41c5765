"""
triplace.api.routes.users — Profiles, onboarding & per-user listings
=====================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import Engine

from triplace.api.deps import get_config, get_engine
from triplace.api.serializers import (
    community_dict,
    event_dict,
    feed_item_dict,
    kudos_dict,
    message_dict,
    public_user_dict,
    user_dict,
)
from triplace.config import TriPlaceConfig
from triplace.exceptions import DuplicateUserError
from triplace.services import (
    community_service,
    event_service,
    feed_service,
    kudos_service,
    message_service,
    user_service,
)

router = APIRouter(tags=["users"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class UserCreate(BaseModel):
    firebase_uid: str = Field(min_length=1)
    email: str = Field(min_length=3)
    name: str = Field(min_length=1)
    avatar: str | None = None
    bio: str | None = None
    location: str | None = None
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    interests: list[str] = Field(default_factory=list)


class UserUpdate(BaseModel):
    email: str | None = None
    name: str | None = None
    avatar: str | None = None
    bio: str | None = None
    location: str | None = None
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    interests: list[str] | None = None


class LocationUpdate(BaseModel):
    user_id: int
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    location: str | None = None


class StatusUpdate(BaseModel):
    is_online: bool


class OnboardingComplete(BaseModel):
    user_id: int
    interests: list[str] = Field(min_length=1)
    quiz_answers: dict | None = None
    location: str | None = None
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)


def _found(user):
    if user is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "User not found")
    return user_dict(user)


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------
@router.post("/users", status_code=status.HTTP_201_CREATED)
def create_user(body: UserCreate, engine: Engine = Depends(get_engine)):
    try:
        user = user_service.create_user(engine, body.model_dump())
    except DuplicateUserError as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, str(exc))
    return user_dict(user)


@router.get("/users/firebase/{firebase_uid}")
def get_user_by_firebase_uid(firebase_uid: str, engine: Engine = Depends(get_engine)):
    return _found(user_service.get_user_by_firebase_uid(engine, firebase_uid))


@router.patch("/users/current/location")
def update_location(body: LocationUpdate, engine: Engine = Depends(get_engine)):
    return _found(user_service.update_location(
        engine, body.user_id, body.latitude, body.longitude, body.location,
    ))


@router.get("/users/{user_id}")
def get_user(user_id: int, engine: Engine = Depends(get_engine)):
    return _found(user_service.get_user(engine, user_id))


@router.patch("/users/{user_id}")
def update_user(user_id: int, body: UserUpdate, engine: Engine = Depends(get_engine)):
    try:
        user = user_service.update_user(engine, user_id, **body.model_dump(exclude_unset=True))
    except DuplicateUserError as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, str(exc))
    return _found(user)


@router.post("/users/{user_id}/status")
def set_status(user_id: int, body: StatusUpdate, engine: Engine = Depends(get_engine)):
    return _found(user_service.set_online_status(engine, user_id, body.is_online))


@router.post("/users/{user_id}/activity")
def touch_activity(user_id: int, engine: Engine = Depends(get_engine)):
    return _found(user_service.touch_user_activity(engine, user_id))


@router.post("/onboarding/complete")
def complete_onboarding(body: OnboardingComplete, engine: Engine = Depends(get_engine)):
    return _found(user_service.complete_onboarding(
        engine,
        body.user_id,
        interests=body.interests,
        quiz_answers=body.quiz_answers,
        location=body.location,
        latitude=body.latitude,
        longitude=body.longitude,
    ))


# ---------------------------------------------------------------------------
# Per-user listings
# ---------------------------------------------------------------------------
@router.get("/users/{user_id}/communities")
def user_communities(user_id: int, engine: Engine = Depends(get_engine)):
    return [community_dict(c) for c in community_service.get_user_communities(engine, user_id)]


@router.get("/users/{user_id}/active-communities")
def user_active_communities(user_id: int, engine: Engine = Depends(get_engine)):
    rows = community_service.get_user_active_communities(engine, user_id)
    return [
        {
            **community_dict(r["community"]),
            "activity_score": r["activity_score"],
            "membership_last_activity_at": (
                r["last_activity_at"].isoformat() if r["last_activity_at"] else None
            ),
        }
        for r in rows
    ]


@router.get("/users/{user_id}/events")
def user_events(user_id: int, engine: Engine = Depends(get_engine)):
    return [
        {**event_dict(r["event"]), "attendance_status": r["status"]}
        for r in event_service.get_user_events(engine, user_id)
    ]


@router.get("/users/{user_id}/conversations")
def user_conversations(user_id: int, engine: Engine = Depends(get_engine)):
    return [
        {
            "user": public_user_dict(c["user"]),
            "last_message": message_dict(c["last_message"]),
            "unread_count": c["unread_count"],
        }
        for c in message_service.get_user_conversations(engine, user_id)
    ]


@router.get("/users/{user_id}/kudos/received")
def kudos_received(user_id: int, engine: Engine = Depends(get_engine)):
    return [kudos_dict(k) for k in kudos_service.get_user_kudos_received(engine, user_id)]


@router.get("/users/{user_id}/kudos/given")
def kudos_given(user_id: int, engine: Engine = Depends(get_engine)):
    return [kudos_dict(k) for k in kudos_service.get_user_kudos_given(engine, user_id)]


@router.get("/users/{user_id}/activity")
def activity_feed(
    user_id: int,
    limit: int | None = Query(None, ge=1, le=200),
    engine: Engine = Depends(get_engine),
    cfg: TriPlaceConfig = Depends(get_config),
):
    items = feed_service.get_user_activity_feed(
        engine, user_id, limit=limit or cfg.activity_feed_limit,
    )
    return [feed_item_dict(i) for i in items]
