"""
triplace.services.event_service — Events & Attendance
======================================================
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from triplace import constants
from triplace.database.models import Event, EventAttendee, User
from triplace.engine.geo import haversine_miles
from triplace.services.feed_service import append_feed_item

logger = logging.getLogger(__name__)

_FROZEN_FIELDS = frozenset({"id", "created_at", "attendee_count"})


def _expunge_all(session: Session, rows) -> list:
    for r in rows:
        session.expunge(r)
    return list(rows)


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------
def create_event(engine, data: dict[str, Any]) -> Event:
    fields = {k: v for k, v in data.items() if k not in _FROZEN_FIELDS}
    with Session(engine, expire_on_commit=False) as session:
        event = Event(**fields, attendee_count=0, created_at=datetime.now(UTC))
        if event.tags is None:
            event.tags = []
        session.add(event)
        session.commit()
        logger.info("Created event %d %r on %s", event.id, event.title, event.date)
        return event


def get_event(engine, event_id: int) -> Event | None:
    with Session(engine) as session:
        event = session.get(Event, event_id)
        if event is not None:
            session.expunge(event)
        return event


def update_event(engine, event_id: int, **updates: Any) -> Event | None:
    with Session(engine, expire_on_commit=False) as session:
        event = session.get(Event, event_id)
        if event is None:
            return None
        for key, value in updates.items():
            if key in _FROZEN_FIELDS or not hasattr(Event, key):
                continue
            setattr(event, key, value)
        session.commit()
        return event


def list_events(engine) -> list[Event]:
    """All events, latest date first."""
    with Session(engine) as session:
        rows = session.scalars(select(Event).order_by(Event.date.desc(), Event.id.desc())).all()
        return _expunge_all(session, rows)


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------
def get_upcoming_events(engine, limit: int = constants.UPCOMING_EVENTS_LIMIT) -> list[Event]:
    with Session(engine) as session:
        rows = session.scalars(
            select(Event)
            .where(Event.date >= datetime.now(UTC))
            .order_by(Event.date, Event.id)
            .limit(limit)
        ).all()
        return _expunge_all(session, rows)


def get_events_by_category(engine, category: str) -> list[Event]:
    with Session(engine) as session:
        rows = session.scalars(
            select(Event)
            .where(Event.category == category, Event.date >= datetime.now(UTC))
            .order_by(Event.date, Event.id)
        ).all()
        return _expunge_all(session, rows)


def get_events_by_location(
    engine,
    latitude: float,
    longitude: float,
    radius_miles: float = constants.EVENT_RADIUS_MILES,
) -> list[Event]:
    """Events with coordinates inside *radius_miles*, soonest first."""
    with Session(engine) as session:
        rows = _expunge_all(
            session,
            session.scalars(
                select(Event)
                .where(Event.latitude.is_not(None), Event.longitude.is_not(None))
                .order_by(Event.date, Event.id)
            ).all(),
        )
    return [
        e for e in rows
        if haversine_miles(latitude, longitude, e.latitude, e.longitude) <= radius_miles
    ]


def get_global_events(engine, limit: int = constants.GLOBAL_EVENTS_LIMIT) -> list[Event]:
    """Upcoming global or brand-partner events."""
    with Session(engine) as session:
        rows = session.scalars(
            select(Event)
            .where(
                Event.date >= datetime.now(UTC),
                or_(Event.is_global.is_(True), Event.event_type == "partner"),
            )
            .order_by(Event.date, Event.id)
            .limit(limit)
        ).all()
        return _expunge_all(session, rows)


# ---------------------------------------------------------------------------
# Attendance
# ---------------------------------------------------------------------------
def register_for_event(
    engine, user_id: int, event_id: int, status: str = "registered"
) -> EventAttendee | None:
    """Create or update the user's attendance row.

    ``attendee_count`` and the ``event_joined`` feed item only change for a
    new row.  Returns ``None`` if the event or user is missing.

    Raises
    ------
    ValueError
        If *status* is not a known attendance status.
    """
    if status not in constants.ATTENDANCE_STATUSES:
        raise ValueError(
            f"Invalid status {status!r}. Must be one of {sorted(constants.ATTENDANCE_STATUSES)}"
        )
    with Session(engine, expire_on_commit=False) as session:
        event = session.get(Event, event_id)
        if event is None or session.get(User, user_id) is None:
            return None
        attendee = session.scalar(
            select(EventAttendee).where(
                EventAttendee.user_id == user_id, EventAttendee.event_id == event_id
            )
        )
        if attendee is not None:
            attendee.status = status
        else:
            attendee = EventAttendee(
                user_id=user_id,
                event_id=event_id,
                status=status,
                registered_at=datetime.now(UTC),
            )
            session.add(attendee)
            event.attendee_count = (event.attendee_count or 0) + 1
            append_feed_item(session, user_id, constants.FEED_EVENT_JOINED, {
                "event_id": event.id,
                "event_title": event.title,
                "status": status,
            })
        session.commit()
        logger.info("User %d %s for event %d", user_id, status, event_id)
        return attendee


def unregister_from_event(engine, user_id: int, event_id: int) -> bool:
    with Session(engine) as session:
        attendee = session.scalar(
            select(EventAttendee).where(
                EventAttendee.user_id == user_id, EventAttendee.event_id == event_id
            )
        )
        if attendee is None:
            return False
        event = session.get(Event, event_id)
        if event is not None:
            event.attendee_count = max((event.attendee_count or 0) - 1, 0)
        session.delete(attendee)
        session.commit()
        return True


def get_user_events(engine, user_id: int) -> list[dict]:
    """Events the user is attending with their attendance status, soonest first."""
    with Session(engine) as session:
        rows = session.execute(
            select(Event, EventAttendee.status)
            .join(EventAttendee, EventAttendee.event_id == Event.id)
            .where(EventAttendee.user_id == user_id)
            .order_by(Event.date, Event.id)
        ).all()
        result = []
        for event, status in rows:
            session.expunge(event)
            result.append({"event": event, "status": status})
        return result


def get_event_attendees(engine, event_id: int) -> list[dict]:
    with Session(engine) as session:
        rows = session.execute(
            select(User, EventAttendee.status)
            .join(EventAttendee, EventAttendee.user_id == User.id)
            .where(EventAttendee.event_id == event_id)
            .order_by(EventAttendee.registered_at, User.id)
        ).all()
        result = []
        for user, status in rows:
            session.expunge(user)
            result.append({"user": user, "status": status})
        return result
