"""
triplace.database.seed — Sample Data Seeder
============================================

Two communities and two events so a fresh database has something to
browse.  Idempotent — rows are matched by name/title and never duplicated
or overwritten.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import Engine, select

from triplace.database.engine import get_session
from triplace.database.models import Community, Event

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Sample catalogue
# ---------------------------------------------------------------------------
SAMPLE_COMMUNITIES: list[dict] = [
    {
        "name": "Mindful Yoga SF",
        "description": "Weekly yoga sessions in Golden Gate Park",
        "category": "fitness",
        "image": "https://images.unsplash.com/photo-1544367567-0f2fcb009e0b?auto=format&fit=crop&w=400&h=300",
        "location": "San Francisco, CA",
    },
    {
        "name": "SF Tech Meetup",
        "description": "Connect with fellow developers and entrepreneurs",
        "category": "technology",
        "image": "https://images.unsplash.com/photo-1515187029135-18ee286d815b?auto=format&fit=crop&w=400&h=300",
        "location": "San Francisco, CA",
    },
]

# Event dates are offsets from "now" so the samples are always upcoming.
SAMPLE_EVENTS: list[tuple[timedelta, dict]] = [
    (timedelta(days=7, hours=18), {
        "title": "Summer Music Festival",
        "description": "Join us for an amazing evening of live music in the park",
        "organizer": "Golden Gate Park Events",
        "location": "Golden Gate Park",
        "address": "Golden Gate Park, San Francisco, CA",
        "price": "$25",
        "image": "https://images.unsplash.com/photo-1459749411175-04bf5292ceea?auto=format&fit=crop&w=400&h=300",
        "category": "music",
        "tags": ["music", "outdoor", "festival"],
        "max_attendees": 500,
        "latitude": 37.7694,
        "longitude": -122.4862,
    }),
    (timedelta(days=8, hours=8), {
        "title": "Weekly Hiking Group",
        "description": "Explore the beautiful trails of Mount Tamalpais",
        "organizer": "Bay Area Hikers",
        "location": "Mount Tamalpais",
        "address": "Mount Tamalpais State Park, Mill Valley, CA",
        "price": "Free",
        "image": "https://images.unsplash.com/photo-1551698618-1dfe5d97d256?auto=format&fit=crop&w=400&h=300",
        "category": "outdoor",
        "tags": ["hiking", "nature", "outdoor"],
        "max_attendees": 30,
        "latitude": 37.9235,
        "longitude": -122.5965,
    }),
]


# ---------------------------------------------------------------------------
# Seeder
# ---------------------------------------------------------------------------
def seed_sample_data(engine: Engine) -> dict[str, int]:
    """Insert the sample communities and events that don't yet exist.

    Returns the number of rows inserted per table.
    """
    now = datetime.now(UTC)
    inserted = {"communities": 0, "events": 0}
    with get_session(engine) as session:
        for data in SAMPLE_COMMUNITIES:
            exists = session.scalar(
                select(Community.id).where(Community.name == data["name"])
            )
            if exists is None:
                session.add(Community(
                    **data, member_count=0, is_active=True,
                    created_at=now, last_activity_at=now,
                ))
                inserted["communities"] += 1

        for offset, data in SAMPLE_EVENTS:
            exists = session.scalar(
                select(Event.id).where(Event.title == data["title"])
            )
            if exists is None:
                session.add(Event(**data, date=now + offset, created_at=now))
                inserted["events"] += 1

    if any(inserted.values()):
        logger.info(
            "Seeded %d communities and %d events.",
            inserted["communities"], inserted["events"],
        )
    return inserted
