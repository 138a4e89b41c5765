"""
triplace.services.community_service — Communities & Memberships
================================================================

Community CRUD, interest-based recommendations, membership with the
five-community rotation cap, activity tracking, and dynamic (nearby,
like-minded) member discovery.

Rotation
--------
A user holds at most ``cap`` active memberships.  Joining another one
drops the least recently active membership first.  The drop and the join
are staged on a single session and committed together, so a failed join
leaves the existing memberships untouched.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from triplace import constants
from triplace.database.models import Community, CommunityMember, Event, User
from triplace.engine.matching import (
    RotationResult,
    ScoredCommunity,
    filter_dynamic_members,
    rank_communities,
    select_rotation_drop,
)
from triplace.services.feed_service import append_feed_item

logger = logging.getLogger(__name__)

_FROZEN_FIELDS = frozenset({"id", "created_at", "member_count"})


def _expunge_all(session: Session, rows) -> list:
    for r in rows:
        session.expunge(r)
    return list(rows)


# ---------------------------------------------------------------------------
# Community CRUD
# ---------------------------------------------------------------------------
def create_community(engine, data: dict[str, Any]) -> Community:
    """Insert a community.  A missing image falls back to the category stock image."""
    now = datetime.now(UTC)
    fields = {k: v for k, v in data.items() if k not in _FROZEN_FIELDS}
    if not fields.get("image"):
        fields["image"] = constants.default_community_image(fields["category"])
    with Session(engine, expire_on_commit=False) as session:
        community = Community(
            **fields, member_count=0, created_at=now, last_activity_at=now,
        )
        session.add(community)
        session.commit()
        logger.info("Created community %d %r", community.id, community.name)
        return community


def get_community(engine, community_id: int) -> Community | None:
    with Session(engine) as session:
        community = session.get(Community, community_id)
        if community is not None:
            session.expunge(community)
        return community


def update_community(engine, community_id: int, **updates: Any) -> Community | None:
    with Session(engine, expire_on_commit=False) as session:
        community = session.get(Community, community_id)
        if community is None:
            return None
        for key, value in updates.items():
            if key in _FROZEN_FIELDS or not hasattr(Community, key):
                continue
            setattr(community, key, value)
        session.commit()
        return community


def list_communities(engine) -> list[Community]:
    """Active communities in id order."""
    with Session(engine) as session:
        rows = session.scalars(
            select(Community).where(Community.is_active.is_(True)).order_by(Community.id)
        ).all()
        return _expunge_all(session, rows)


def list_communities_by_category(engine, category: str) -> list[Community]:
    with Session(engine) as session:
        rows = session.scalars(
            select(Community)
            .where(Community.is_active.is_(True), Community.category == category)
            .order_by(Community.id)
        ).all()
        return _expunge_all(session, rows)


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------
def get_recommended_communities(
    engine,
    interests: list[str],
    location: tuple[float, float] | None = None,
    user_id: int | None = None,
    *,
    threshold: float = constants.RECOMMENDATION_THRESHOLD,
    limit: int = constants.RECOMMENDATION_LIMIT,
) -> list[ScoredCommunity]:
    """Rank active communities against *interests*.

    Communities *user_id* already belongs to are excluded.  *location* is
    accepted but not used: communities carry only a free-text location.
    """
    with Session(engine) as session:
        stmt = select(Community).where(Community.is_active.is_(True))
        if user_id is not None:
            joined = select(CommunityMember.community_id).where(
                CommunityMember.user_id == user_id
            )
            stmt = stmt.where(Community.id.not_in(joined))
        candidates = _expunge_all(session, session.scalars(stmt.order_by(Community.id)).all())

    ranked = rank_communities(candidates, interests, threshold=threshold, limit=limit)
    logger.debug(
        "Recommended %d of %d communities for %d interests",
        len(ranked), len(candidates), len(interests),
    )
    return ranked


# ---------------------------------------------------------------------------
# Membership
# ---------------------------------------------------------------------------
def _find_membership(session: Session, user_id: int, community_id: int) -> CommunityMember | None:
    return session.scalar(
        select(CommunityMember).where(
            CommunityMember.user_id == user_id,
            CommunityMember.community_id == community_id,
        )
    )


def _stage_join(session: Session, user_id: int, community: Community) -> CommunityMember:
    now = datetime.now(UTC)
    membership = CommunityMember(
        user_id=user_id,
        community_id=community.id,
        joined_at=now,
        last_activity_at=now,
        activity_score=1,
        is_active=True,
    )
    session.add(membership)
    community.member_count = (community.member_count or 0) + 1
    append_feed_item(session, user_id, constants.FEED_COMMUNITY_JOINED, {
        "community_id": community.id,
        "community_name": community.name,
    })
    return membership


def _stage_leave(session: Session, membership: CommunityMember) -> None:
    community = session.get(Community, membership.community_id)
    if community is not None:
        community.member_count = max((community.member_count or 0) - 1, 0)
    session.delete(membership)


def join_community(engine, user_id: int, community_id: int) -> CommunityMember | None:
    """Join without rotation.  Returns ``None`` if the user or community is missing.

    An existing membership is returned unchanged.
    """
    with Session(engine, expire_on_commit=False) as session:
        community = session.get(Community, community_id)
        if community is None or session.get(User, user_id) is None:
            return None
        existing = _find_membership(session, user_id, community_id)
        if existing is not None:
            return existing
        membership = _stage_join(session, user_id, community)
        session.commit()
        logger.info("User %d joined community %d", user_id, community_id)
        return membership


def leave_community(engine, user_id: int, community_id: int) -> bool:
    with Session(engine) as session:
        membership = _find_membership(session, user_id, community_id)
        if membership is None:
            return False
        _stage_leave(session, membership)
        session.commit()
        logger.info("User %d left community %d", user_id, community_id)
        return True


def join_community_with_rotation(
    engine,
    user_id: int,
    community_id: int,
    *,
    cap: int = constants.MAX_ACTIVE_COMMUNITIES,
) -> RotationResult | None:
    """Join *community_id*, dropping the least active membership if at *cap*.

    Returns ``None`` if the user or community is missing.  ``dropped`` is the
    :class:`Community` that was left, or ``None``.
    """
    with Session(engine, expire_on_commit=False) as session:
        community = session.get(Community, community_id)
        if community is None or session.get(User, user_id) is None:
            return None
        existing = _find_membership(session, user_id, community_id)
        if existing is not None:
            return RotationResult(joined=existing)

        # Memberships in deactivated communities do not count toward the cap.
        active = session.scalars(
            select(CommunityMember)
            .join(Community, Community.id == CommunityMember.community_id)
            .where(
                CommunityMember.user_id == user_id,
                CommunityMember.is_active.is_(True),
                Community.is_active.is_(True),
            )
        ).all()
        victim = select_rotation_drop(active, cap)

        dropped: Community | None = None
        if victim is not None:
            dropped = session.get(Community, victim.community_id)
            _stage_leave(session, victim)
            if dropped is not None:
                append_feed_item(session, user_id, constants.FEED_COMMUNITY_DROPPED, {
                    "community_id": dropped.id,
                    "community_name": dropped.name,
                    "replaced_by": community.id,
                })
            # Release the unique (user, community) slot before the insert.
            session.flush()

        membership = _stage_join(session, user_id, community)
        session.commit()

    if dropped is not None:
        logger.info(
            "User %d joined community %d; rotated out community %d",
            user_id, community_id, dropped.id,
        )
    else:
        logger.info("User %d joined community %d", user_id, community_id)
    return RotationResult(joined=membership, dropped=dropped)


def get_user_communities(engine, user_id: int) -> list[Community]:
    with Session(engine) as session:
        rows = session.scalars(
            select(Community)
            .join(CommunityMember, CommunityMember.community_id == Community.id)
            .where(
                CommunityMember.user_id == user_id,
                CommunityMember.is_active.is_(True),
                Community.is_active.is_(True),
            )
            .order_by(Community.id)
        ).all()
        return _expunge_all(session, rows)


def get_user_active_communities(engine, user_id: int) -> list[dict]:
    """Communities with the membership's engagement, most recently active first."""
    with Session(engine) as session:
        rows = session.execute(
            select(Community, CommunityMember)
            .join(CommunityMember, CommunityMember.community_id == Community.id)
            .where(
                CommunityMember.user_id == user_id,
                CommunityMember.is_active.is_(True),
                Community.is_active.is_(True),
            )
            .order_by(CommunityMember.last_activity_at.desc(), CommunityMember.id.desc())
        ).all()
        result = []
        for community, membership in rows:
            session.expunge(community)
            result.append({
                "community": community,
                "activity_score": membership.activity_score,
                "last_activity_at": membership.last_activity_at,
            })
        return result


def get_community_members(engine, community_id: int) -> list[User]:
    with Session(engine) as session:
        rows = session.scalars(
            select(User)
            .join(CommunityMember, CommunityMember.user_id == User.id)
            .where(CommunityMember.community_id == community_id)
            .order_by(User.id)
        ).all()
        return _expunge_all(session, rows)


# ---------------------------------------------------------------------------
# Activity
# ---------------------------------------------------------------------------
def stage_community_activity(session: Session, user_id: int, community_id: int) -> bool:
    """Bump the membership score and recency on an open session."""
    membership = _find_membership(session, user_id, community_id)
    if membership is None:
        return False
    now = datetime.now(UTC)
    membership.activity_score = (membership.activity_score or 0) + 1
    membership.last_activity_at = now
    community = session.get(Community, community_id)
    if community is not None:
        community.last_activity_at = now
    return True


def update_community_activity(engine, user_id: int, community_id: int) -> bool:
    with Session(engine) as session:
        updated = stage_community_activity(session, user_id, community_id)
        if updated:
            session.commit()
        return updated


# ---------------------------------------------------------------------------
# Dynamic membership
# ---------------------------------------------------------------------------
def get_dynamic_community_members(
    engine,
    community_id: int,
    location: tuple[float, float],
    interests: list[str],
    radius_miles: float = constants.MEMBER_RADIUS_MILES,
    exclude_user_id: int | None = None,
    *,
    threshold: float = constants.MEMBER_OVERLAP_THRESHOLD,
    limit: int = constants.MEMBER_LIMIT,
) -> list[User]:
    """Nearby users sharing interests.  ``[]`` if the community does not exist."""
    with Session(engine) as session:
        if session.get(Community, community_id) is None:
            return []
        users = _expunge_all(
            session,
            session.scalars(
                select(User)
                .where(User.latitude.is_not(None), User.longitude.is_not(None))
                .order_by(User.id)
            ).all(),
        )
    return filter_dynamic_members(
        users,
        location,
        interests,
        radius_miles=radius_miles,
        threshold=threshold,
        limit=limit,
        exclude_user_id=exclude_user_id,
    )


def get_dynamic_community_members_with_expansion(
    engine,
    community_id: int,
    location: tuple[float, float],
    interests: list[str],
    exclude_user_id: int | None = None,
    *,
    radius_miles: float = constants.MEMBER_RADIUS_MILES,
    expanded_radius_miles: float = constants.EXPANDED_RADIUS_MILES,
    threshold: float = constants.MEMBER_OVERLAP_THRESHOLD,
    limit: int = constants.MEMBER_LIMIT,
) -> tuple[list[User], float]:
    """Search at *radius_miles*, widening to *expanded_radius_miles* if empty."""
    members: list[User] = []
    radius_used = radius_miles
    for radius_used in (radius_miles, expanded_radius_miles):
        members = get_dynamic_community_members(
            engine, community_id, location, interests, radius_used, exclude_user_id,
            threshold=threshold, limit=limit,
        )
        if members:
            break
    return members, radius_used


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------
def get_community_events(engine, community_id: int) -> list[Event]:
    """Upcoming events in the community's category, soonest first."""
    with Session(engine) as session:
        community = session.get(Community, community_id)
        if community is None:
            return []
        rows = session.scalars(
            select(Event)
            .where(Event.category == community.category, Event.date >= datetime.now(UTC))
            .order_by(Event.date, Event.id)
        ).all()
        return _expunge_all(session, rows)
