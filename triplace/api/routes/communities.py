"""
triplace.api.routes.communities — Communities, membership & community chat
===========================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import Engine

from triplace.api.deps import get_config, get_engine
from triplace.api.serializers import (
    community_dict,
    community_message_dict,
    event_dict,
    membership_dict,
    public_user_dict,
)
from triplace.config import TriPlaceConfig
from triplace.services import community_service, message_service

router = APIRouter(prefix="/communities", tags=["communities"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class CommunityCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str
    category: str = Field(min_length=1)
    image: str | None = None
    location: str | None = None


class CommunityUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    category: str | None = None
    image: str | None = None
    location: str | None = None
    is_active: bool | None = None


class MembershipAction(BaseModel):
    user_id: int


class CommunityMessageCreate(BaseModel):
    sender_id: int
    content: str = Field(min_length=1)


def _split_interests(raw: str | None) -> list[str]:
    return [i.strip() for i in (raw or "").split(",") if i.strip()]


def _require_community(engine: Engine, community_id: int):
    community = community_service.get_community(engine, community_id)
    if community is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Community not found")
    return community


# ---------------------------------------------------------------------------
# Listing & recommendations
# ---------------------------------------------------------------------------
@router.get("")
def list_communities(
    category: str | None = Query(None),
    engine: Engine = Depends(get_engine),
):
    if category:
        rows = community_service.list_communities_by_category(engine, category)
    else:
        rows = community_service.list_communities(engine)
    return [community_dict(c) for c in rows]


@router.get("/recommended")
def recommended_communities(
    interests: str = Query(..., description="Comma-separated interests"),
    latitude: float | None = Query(None, ge=-90, le=90),
    longitude: float | None = Query(None, ge=-180, le=180),
    user_id: int | None = Query(None, alias="userId"),
    engine: Engine = Depends(get_engine),
    cfg: TriPlaceConfig = Depends(get_config),
):
    terms = _split_interests(interests)
    if not terms:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "interests must not be empty")
    location = (latitude, longitude) if latitude is not None and longitude is not None else None
    ranked = community_service.get_recommended_communities(
        engine,
        terms,
        location,
        user_id,
        threshold=cfg.recommendation_threshold,
        limit=cfg.recommendation_limit,
    )
    return [{**community_dict(s.community), "match_score": round(s.score, 4)} for s in ranked]


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------
@router.post("", status_code=status.HTTP_201_CREATED)
def create_community(body: CommunityCreate, engine: Engine = Depends(get_engine)):
    return community_dict(community_service.create_community(engine, body.model_dump()))


@router.get("/{community_id}")
def get_community(community_id: int, engine: Engine = Depends(get_engine)):
    return community_dict(_require_community(engine, community_id))


@router.patch("/{community_id}")
def update_community(
    community_id: int, body: CommunityUpdate, engine: Engine = Depends(get_engine)
):
    community = community_service.update_community(
        engine, community_id, **body.model_dump(exclude_unset=True)
    )
    if community is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Community not found")
    return community_dict(community)


# ---------------------------------------------------------------------------
# Membership
# ---------------------------------------------------------------------------
@router.post("/{community_id}/join")
def join_community(
    community_id: int,
    body: MembershipAction,
    engine: Engine = Depends(get_engine),
    cfg: TriPlaceConfig = Depends(get_config),
):
    """Join with rotation: at the cap, the least active membership is dropped."""
    result = community_service.join_community_with_rotation(
        engine, body.user_id, community_id, cap=cfg.max_active_communities,
    )
    if result is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "User or community not found")
    return {
        "membership": membership_dict(result.joined),
        "dropped_community": community_dict(result.dropped) if result.dropped else None,
    }


@router.post("/{community_id}/leave")
def leave_community(
    community_id: int, body: MembershipAction, engine: Engine = Depends(get_engine)
):
    if not community_service.leave_community(engine, body.user_id, community_id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Membership not found")
    return {"success": True}


@router.post("/{community_id}/activity")
def record_activity(
    community_id: int, body: MembershipAction, engine: Engine = Depends(get_engine)
):
    if not community_service.update_community_activity(engine, body.user_id, community_id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Membership not found")
    return {"success": True}


@router.get("/{community_id}/members")
def community_members(community_id: int, engine: Engine = Depends(get_engine)):
    _require_community(engine, community_id)
    return [public_user_dict(u) for u in community_service.get_community_members(engine, community_id)]


@router.get("/{community_id}/dynamic-members")
def dynamic_members(
    community_id: int,
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    interests: str = Query(..., description="Comma-separated interests"),
    radius: float | None = Query(None, gt=0, le=500),
    expand: bool = Query(False),
    user_id: int | None = Query(None, alias="userId"),
    engine: Engine = Depends(get_engine),
    cfg: TriPlaceConfig = Depends(get_config),
):
    """Nearby users whose interests overlap the caller's."""
    terms = _split_interests(interests)
    location = (latitude, longitude)
    radius_miles = radius or cfg.member_radius_miles
    if expand:
        members, radius_used = community_service.get_dynamic_community_members_with_expansion(
            engine,
            community_id,
            location,
            terms,
            user_id,
            radius_miles=radius_miles,
            expanded_radius_miles=cfg.expanded_radius_miles,
            threshold=cfg.member_overlap_threshold,
            limit=cfg.member_limit,
        )
    else:
        radius_used = radius_miles
        members = community_service.get_dynamic_community_members(
            engine,
            community_id,
            location,
            terms,
            radius_miles,
            user_id,
            threshold=cfg.member_overlap_threshold,
            limit=cfg.member_limit,
        )
    return {
        "members": [public_user_dict(u) for u in members],
        "radius_used": radius_used,
    }


@router.get("/{community_id}/events")
def community_events(community_id: int, engine: Engine = Depends(get_engine)):
    _require_community(engine, community_id)
    return [event_dict(e) for e in community_service.get_community_events(engine, community_id)]


# ---------------------------------------------------------------------------
# Community chat
# ---------------------------------------------------------------------------
@router.get("/{community_id}/messages")
def community_messages(
    community_id: int,
    limit: int | None = Query(None, ge=1, le=500),
    engine: Engine = Depends(get_engine),
):
    _require_community(engine, community_id)
    return [
        {
            **community_message_dict(r["message"]),
            "sender": public_user_dict(r["sender"]),
            "resonate_count": r["resonate_count"],
        }
        for r in message_service.get_community_messages(engine, community_id, limit)
    ]


@router.post("/{community_id}/messages", status_code=status.HTTP_201_CREATED)
def post_community_message(
    community_id: int,
    body: CommunityMessageCreate,
    engine: Engine = Depends(get_engine),
):
    message = message_service.send_community_message(
        engine, community_id, body.sender_id, body.content,
    )
    if message is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Community or user not found")
    return community_message_dict(message)
