"""
triplace.services.message_service — Direct & Community Messaging
=================================================================

Direct messages between two users, group messages inside a community,
and "resonance" (one like per user per community message).

Sending a community message counts as activity in that community: the
sender's membership score and recency are bumped in the same transaction.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from triplace.database.models import (
    Community,
    CommunityMessage,
    Message,
    MessageResonance,
    User,
)
from triplace.services.community_service import stage_community_activity

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Direct messages
# ---------------------------------------------------------------------------
def send_message(engine, sender_id: int, receiver_id: int, content: str) -> Message | None:
    """Returns ``None`` if the sender or receiver is missing."""
    with Session(engine, expire_on_commit=False) as session:
        if session.get(User, sender_id) is None or session.get(User, receiver_id) is None:
            return None
        message = Message(
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            is_read=False,
            created_at=datetime.now(UTC),
        )
        session.add(message)
        session.commit()
        logger.debug("Message %d: %d → %d", message.id, sender_id, receiver_id)
        return message


def get_message(engine, message_id: int) -> Message | None:
    with Session(engine) as session:
        message = session.get(Message, message_id)
        if message is not None:
            session.expunge(message)
        return message


def mark_message_as_read(engine, message_id: int) -> bool:
    with Session(engine) as session:
        message = session.get(Message, message_id)
        if message is None:
            return False
        message.is_read = True
        session.commit()
        return True


def get_conversation(engine, user_a: int, user_b: int) -> list[Message]:
    """Both directions between two users, oldest first."""
    with Session(engine) as session:
        rows = session.scalars(
            select(Message)
            .where(or_(
                and_(Message.sender_id == user_a, Message.receiver_id == user_b),
                and_(Message.sender_id == user_b, Message.receiver_id == user_a),
            ))
            .order_by(Message.created_at, Message.id)
        ).all()
        for r in rows:
            session.expunge(r)
        return list(rows)


def get_user_conversations(engine, user_id: int) -> list[dict]:
    """One entry per conversation partner, most recent conversation first.

    Each entry carries the partner, the latest message and the number of
    unread messages the partner sent to *user_id*.
    """
    with Session(engine) as session:
        messages = session.scalars(
            select(Message)
            .where(or_(Message.sender_id == user_id, Message.receiver_id == user_id))
            .order_by(Message.created_at.desc(), Message.id.desc())
        ).all()

        latest: dict[int, Message] = {}
        unread: dict[int, int] = {}
        for m in messages:
            partner = m.receiver_id if m.sender_id == user_id else m.sender_id
            latest.setdefault(partner, m)
            if m.receiver_id == user_id and not m.is_read:
                unread[partner] = unread.get(partner, 0) + 1

        partners = {
            u.id: u for u in session.scalars(select(User).where(User.id.in_(list(latest)))).all()
        }
        conversations = []
        for partner_id, message in latest.items():
            partner = partners.get(partner_id)
            if partner is None:
                continue
            session.expunge(partner)
            session.expunge(message)
            conversations.append({
                "user": partner,
                "last_message": message,
                "unread_count": unread.get(partner_id, 0),
            })
        return conversations


# ---------------------------------------------------------------------------
# Community messages
# ---------------------------------------------------------------------------
def send_community_message(
    engine, community_id: int, sender_id: int, content: str
) -> CommunityMessage | None:
    """Post to a community.  Returns ``None`` if the community or sender is missing."""
    with Session(engine, expire_on_commit=False) as session:
        if session.get(Community, community_id) is None or session.get(User, sender_id) is None:
            return None
        message = CommunityMessage(
            community_id=community_id,
            sender_id=sender_id,
            content=content,
            created_at=datetime.now(UTC),
        )
        session.add(message)
        stage_community_activity(session, sender_id, community_id)
        session.commit()
        return message


def get_community_messages(engine, community_id: int, limit: int | None = None) -> list[dict]:
    """Newest first, each with its sender and resonance count."""
    resonance_counts = (
        select(MessageResonance.message_id, func.count().label("n"))
        .group_by(MessageResonance.message_id)
        .subquery()
    )
    stmt = (
        select(CommunityMessage, User, func.coalesce(resonance_counts.c.n, 0))
        .join(User, User.id == CommunityMessage.sender_id)
        .outerjoin(resonance_counts, resonance_counts.c.message_id == CommunityMessage.id)
        .where(CommunityMessage.community_id == community_id)
        .order_by(CommunityMessage.created_at.desc(), CommunityMessage.id.desc())
    )
    if limit:
        stmt = stmt.limit(limit)

    with Session(engine) as session:
        result = []
        for message, sender, count in session.execute(stmt).all():
            session.expunge(message)
            if sender in session:
                session.expunge(sender)
            result.append({"message": message, "sender": sender, "resonate_count": int(count)})
        return result


def resonate_message(engine, message_id: int, user_id: int) -> bool | None:
    """Record a resonance.  ``False`` if the user already resonated.

    Returns ``None`` if the message or user is missing.
    """
    with Session(engine) as session:
        if session.get(CommunityMessage, message_id) is None or session.get(User, user_id) is None:
            return None
        try:
            with session.begin_nested():   # SAVEPOINT
                session.add(MessageResonance(
                    message_id=message_id,
                    user_id=user_id,
                    created_at=datetime.now(UTC),
                ))
                session.flush()
        except IntegrityError:
            # Duplicate; the SAVEPOINT was rolled back.
            session.commit()
            return False
        session.commit()
        return True
