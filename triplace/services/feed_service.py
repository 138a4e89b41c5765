"""
triplace.services.feed_service — Per-user activity feed
========================================================

Feed rows are written by other services inside their own transaction via
:func:`append_feed_item`, so a feed entry exists if and only if the action
that produced it was committed.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from triplace import constants
from triplace.database.models import ActivityFeedItem

logger = logging.getLogger(__name__)


def append_feed_item(
    session: Session, user_id: int, item_type: str, content: dict
) -> ActivityFeedItem:
    """Stage a feed row on an open session.  The caller commits."""
    item = ActivityFeedItem(
        user_id=user_id,
        type=item_type,
        content=content,
        created_at=datetime.now(UTC),
    )
    session.add(item)
    return item


def add_activity_item(engine, user_id: int, item_type: str, content: dict) -> ActivityFeedItem:
    with Session(engine, expire_on_commit=False) as session:
        item = append_feed_item(session, user_id, item_type, content)
        session.commit()
        return item


def get_user_activity_feed(
    engine, user_id: int, limit: int = constants.ACTIVITY_FEED_LIMIT
) -> list[ActivityFeedItem]:
    """Newest first, at most *limit* rows."""
    with Session(engine) as session:
        rows = session.scalars(
            select(ActivityFeedItem)
            .where(ActivityFeedItem.user_id == user_id)
            .order_by(ActivityFeedItem.created_at.desc(), ActivityFeedItem.id.desc())
            .limit(limit)
        ).all()
        for r in rows:
            session.expunge(r)
        return list(rows)
