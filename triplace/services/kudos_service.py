"""
triplace.services.kudos_service — Peer recognition
===================================================

A kudos and the receiver's ``kudos_received`` feed item are committed in
one transaction.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from triplace import constants
from triplace.database.models import Kudos, User
from triplace.services.feed_service import append_feed_item

logger = logging.getLogger(__name__)


def give_kudos(
    engine,
    giver_id: int,
    receiver_id: int,
    message: str | None = None,
    kudos_type: str = "general",
    related_id: int | None = None,
) -> Kudos | None:
    """Record a kudos.  Returns ``None`` if either user is missing.

    Raises
    ------
    ValueError
        On self-kudos or an unknown *kudos_type*.
    """
    if giver_id == receiver_id:
        raise ValueError("Cannot give kudos to yourself")
    if kudos_type not in constants.KUDOS_TYPES:
        raise ValueError(
            f"Invalid kudos type {kudos_type!r}. Must be one of {sorted(constants.KUDOS_TYPES)}"
        )

    with Session(engine, expire_on_commit=False) as session:
        giver = session.get(User, giver_id)
        if giver is None or session.get(User, receiver_id) is None:
            return None
        kudos = Kudos(
            giver_id=giver_id,
            receiver_id=receiver_id,
            message=message,
            type=kudos_type,
            related_id=related_id,
            created_at=datetime.now(UTC),
        )
        session.add(kudos)
        session.flush()
        append_feed_item(session, receiver_id, constants.FEED_KUDOS_RECEIVED, {
            "kudos_id": kudos.id,
            "from_user_id": giver_id,
            "from_user_name": giver.name,
            "message": message,
            "type": kudos_type,
        })
        session.commit()
        logger.info("Kudos %d: %d → %d (%s)", kudos.id, giver_id, receiver_id, kudos_type)
        return kudos


def get_kudos(engine, kudos_id: int) -> Kudos | None:
    with Session(engine) as session:
        kudos = session.get(Kudos, kudos_id)
        if kudos is not None:
            session.expunge(kudos)
        return kudos


def _kudos_for(engine, column, user_id: int) -> list[Kudos]:
    with Session(engine) as session:
        rows = session.scalars(
            select(Kudos)
            .where(column == user_id)
            .order_by(Kudos.created_at.desc(), Kudos.id.desc())
        ).all()
        for r in rows:
            session.expunge(r)
        return list(rows)


def get_user_kudos_received(engine, user_id: int) -> list[Kudos]:
    return _kudos_for(engine, Kudos.receiver_id, user_id)


def get_user_kudos_given(engine, user_id: int) -> list[Kudos]:
    return _kudos_for(engine, Kudos.giver_id, user_id)
