"""
triplace.api.routes.events — Events & attendance
=================================================
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import Engine

from triplace import constants
from triplace.api.deps import get_engine
from triplace.api.serializers import event_dict, public_user_dict
from triplace.services import event_service

router = APIRouter(prefix="/events", tags=["events"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: str
    organizer: str
    date: datetime
    location: str
    address: str
    category: str
    price: str | None = None
    image: str | None = None
    tags: list[str] = Field(default_factory=list)
    max_attendees: int | None = Field(None, ge=1)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    creator_id: int | None = None
    is_global: bool = False
    event_type: str | None = None
    brand_partner_name: str | None = None
    revenue_share_percentage: int = Field(7, ge=0, le=100)


class EventUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=300)
    description: str | None = None
    organizer: str | None = None
    date: datetime | None = None
    location: str | None = None
    address: str | None = None
    category: str | None = None
    price: str | None = None
    image: str | None = None
    tags: list[str] | None = None
    max_attendees: int | None = Field(None, ge=1)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    is_global: bool | None = None
    event_type: str | None = None
    status: str | None = None


class AttendanceAction(BaseModel):
    user_id: int
    status: str = "registered"


class UserAction(BaseModel):
    user_id: int


def _require_event(event):
    if event is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Event not found")
    return event_dict(event)


def _register(engine: Engine, event_id: int, user_id: int, attendance: str) -> dict:
    try:
        attendee = event_service.register_for_event(engine, user_id, event_id, attendance)
    except ValueError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(exc))
    if attendee is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "User or event not found")
    return {
        "user_id": attendee.user_id,
        "event_id": attendee.event_id,
        "status": attendee.status,
        "registered_at": attendee.registered_at.isoformat() if attendee.registered_at else None,
    }


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------
@router.get("")
def list_events(
    category: str | None = Query(None),
    engine: Engine = Depends(get_engine),
):
    if category:
        rows = event_service.get_events_by_category(engine, category)
    else:
        rows = event_service.list_events(engine)
    return [event_dict(e) for e in rows]


@router.get("/upcoming")
def upcoming_events(
    limit: int = Query(constants.UPCOMING_EVENTS_LIMIT, ge=1, le=100),
    engine: Engine = Depends(get_engine),
):
    return [event_dict(e) for e in event_service.get_upcoming_events(engine, limit)]


@router.get("/global")
def global_events(
    limit: int = Query(constants.GLOBAL_EVENTS_LIMIT, ge=1, le=100),
    engine: Engine = Depends(get_engine),
):
    return [event_dict(e) for e in event_service.get_global_events(engine, limit)]


@router.get("/nearby")
def nearby_events(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius: float = Query(constants.EVENT_RADIUS_MILES, gt=0, le=500),
    engine: Engine = Depends(get_engine),
):
    return [
        event_dict(e)
        for e in event_service.get_events_by_location(engine, latitude, longitude, radius)
    ]


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------
@router.post("", status_code=status.HTTP_201_CREATED)
def create_event(body: EventCreate, engine: Engine = Depends(get_engine)):
    return event_dict(event_service.create_event(engine, body.model_dump()))


@router.get("/{event_id}")
def get_event(event_id: int, engine: Engine = Depends(get_engine)):
    return _require_event(event_service.get_event(engine, event_id))


@router.patch("/{event_id}")
def update_event(event_id: int, body: EventUpdate, engine: Engine = Depends(get_engine)):
    return _require_event(
        event_service.update_event(engine, event_id, **body.model_dump(exclude_unset=True))
    )


# ---------------------------------------------------------------------------
# Attendance
# ---------------------------------------------------------------------------
@router.post("/{event_id}/register")
def register(event_id: int, body: AttendanceAction, engine: Engine = Depends(get_engine)):
    return _register(engine, event_id, body.user_id, body.status)


@router.post("/{event_id}/unregister")
def unregister(event_id: int, body: UserAction, engine: Engine = Depends(get_engine)):
    if not event_service.unregister_from_event(engine, body.user_id, event_id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Registration not found")
    return {"success": True}


@router.post("/{event_id}/mark-attended")
def mark_attended(event_id: int, body: UserAction, engine: Engine = Depends(get_engine)):
    return _register(engine, event_id, body.user_id, "attended")


@router.get("/{event_id}/attendees")
def attendees(event_id: int, engine: Engine = Depends(get_engine)):
    _require_event(event_service.get_event(engine, event_id))
    return [
        {**public_user_dict(r["user"]), "attendance_status": r["status"]}
        for r in event_service.get_event_attendees(engine, event_id)
    ]
