"""
triplace.engine.matching — Community matching rules
====================================================

Pure functions behind recommendations, membership rotation and dynamic
membership.  No database access: callers load rows and pass them in, which
keeps every rule unit-testable with plain objects.

Rules:
    * Recommendation score = share of the user's interests found as
      substrings of a community's name, description and category.
    * Rotation: at most ``cap`` active memberships; joining one more drops
      the least recently active.
    * Dynamic members: users within a haversine radius whose interests
      overlap the requester's by at least the threshold.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol, TypeVar

from triplace import constants
from triplace.engine.geo import city_coordinates, haversine_miles

logger = logging.getLogger(__name__)


class _Describable(Protocol):
    name: str
    description: str
    category: str


class _Membership(Protocol):
    id: int
    last_activity_at: datetime | None


C = TypeVar("C", bound=_Describable)
M = TypeVar("M", bound=_Membership)


@dataclass(slots=True)
class RotationResult:
    """Outcome of a rotation-aware join."""
    joined: Any
    dropped: Any | None = None


@dataclass(frozen=True, slots=True)
class ScoredCommunity:
    community: Any
    score: float


# ---------------------------------------------------------------------------
# Interest normalisation
# ---------------------------------------------------------------------------
def normalize_interests(interests: Iterable[str] | None) -> list[str]:
    """Lowercase and strip, dropping blanks.  Order and duplicates kept."""
    if not interests:
        return []
    return [i.strip().lower() for i in interests if i and i.strip()]


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------
def interest_score(community: _Describable, interests: Iterable[str] | None) -> float:
    """Fraction of *interests* that appear in the community's text."""
    terms = normalize_interests(interests)
    if not terms:
        return 0.0
    haystack = " ".join(
        (community.name or "", community.description or "", community.category or "")
    ).lower()
    hits = sum(1 for term in terms if term in haystack)
    return hits / len(terms)


def rank_communities(
    communities: Sequence[C],
    interests: Iterable[str] | None,
    *,
    threshold: float = constants.RECOMMENDATION_THRESHOLD,
    limit: int = constants.RECOMMENDATION_LIMIT,
) -> list[ScoredCommunity]:
    """Score, keep ``score > threshold``, sort descending, return the top *limit*.

    The sort is stable, so equal scores keep the input order.
    """
    terms = normalize_interests(interests)
    scored = [ScoredCommunity(c, interest_score(c, terms)) for c in communities]
    kept = [s for s in scored if s.score > threshold]
    kept.sort(key=lambda s: s.score, reverse=True)
    return kept[:limit]


# ---------------------------------------------------------------------------
# Rotation
# ---------------------------------------------------------------------------
def _recency_key(membership: _Membership) -> tuple[bool, datetime, int]:
    ts = membership.last_activity_at
    return (ts is not None, ts or datetime.min, membership.id)


def select_rotation_drop(
    memberships: Sequence[M],
    cap: int = constants.MAX_ACTIVE_COMMUNITIES,
) -> M | None:
    """Pick the membership to drop before joining another community.

    Returns ``None`` while the user is under *cap*.  Otherwise the least
    recently active membership; on equal timestamps the lowest id (oldest
    membership) goes first, and a missing timestamp counts as least recent.
    """
    if len(memberships) < cap:
        return None
    ordered = sorted(memberships, key=_recency_key, reverse=True)
    return ordered[-1]


# ---------------------------------------------------------------------------
# Dynamic membership
# ---------------------------------------------------------------------------
def interest_overlap(a: Iterable[str] | None, b: Iterable[str] | None) -> float:
    """``|A ∩ B| / min(|A|, |B|)`` over normalised interest sets."""
    set_a = set(normalize_interests(a))
    set_b = set(normalize_interests(b))
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / min(len(set_a), len(set_b))


def _user_coordinates(user: Any) -> tuple[float, float] | None:
    """Stored coordinates, else the city table entry for the free-text location."""
    if user.latitude is not None and user.longitude is not None:
        return user.latitude, user.longitude
    place = getattr(user, "location", None)
    return city_coordinates(place) if place else None


def filter_dynamic_members(
    users: Iterable[Any],
    location: tuple[float, float],
    interests: Iterable[str] | None,
    *,
    radius_miles: float = constants.MEMBER_RADIUS_MILES,
    threshold: float = constants.MEMBER_OVERLAP_THRESHOLD,
    limit: int = constants.MEMBER_LIMIT,
    exclude_user_id: int | None = None,
) -> list[Any]:
    """Users near *location* who share enough interests, in input order."""
    lat, lon = location
    wanted = normalize_interests(interests)
    matches: list[Any] = []
    for user in users:
        if exclude_user_id is not None and user.id == exclude_user_id:
            continue
        if not user.interests:
            continue
        coords = _user_coordinates(user)
        if coords is None or haversine_miles(lat, lon, *coords) > radius_miles:
            continue
        if interest_overlap(user.interests, wanted) < threshold:
            continue
        matches.append(user)
        if len(matches) >= limit:
            break
    logger.debug(
        "Dynamic members: %d match within %.0f mi of (%.4f, %.4f)",
        len(matches), radius_miles, lat, lon,
    )
    return matches
