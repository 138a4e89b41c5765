"""
triplace.api.serializers — ORM row → JSON dict helpers
=======================================================

Shared by every router so a community looks the same whether it comes from
``/communities`` or ``/users/{id}/communities``.
"""

from __future__ import annotations

from datetime import datetime

from triplace.database.models import (
    ActivityFeedItem,
    Community,
    CommunityMember,
    CommunityMessage,
    Event,
    Kudos,
    Message,
    User,
)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def user_dict(u: User) -> dict:
    return {
        "id": u.id,
        "firebase_uid": u.firebase_uid,
        "email": u.email,
        "name": u.name,
        "avatar": u.avatar,
        "bio": u.bio,
        "location": u.location,
        "latitude": u.latitude,
        "longitude": u.longitude,
        "interests": u.interests or [],
        "onboarding_completed": u.onboarding_completed,
        "quiz_answers": u.quiz_answers,
        "is_online": u.is_online,
        "last_active_at": _iso(u.last_active_at),
        "created_at": _iso(u.created_at),
    }


def public_user_dict(u: User) -> dict:
    """Profile fields safe to show to other members."""
    return {
        "id": u.id,
        "name": u.name,
        "avatar": u.avatar,
        "bio": u.bio,
        "location": u.location,
        "interests": u.interests or [],
        "is_online": u.is_online,
    }


def community_dict(c: Community) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "description": c.description,
        "category": c.category,
        "image": c.image,
        "member_count": c.member_count,
        "is_active": c.is_active,
        "location": c.location,
        "created_at": _iso(c.created_at),
        "last_activity_at": _iso(c.last_activity_at),
    }


def membership_dict(m: CommunityMember) -> dict:
    return {
        "id": m.id,
        "user_id": m.user_id,
        "community_id": m.community_id,
        "joined_at": _iso(m.joined_at),
        "last_activity_at": _iso(m.last_activity_at),
        "activity_score": m.activity_score,
        "is_active": m.is_active,
    }


def event_dict(e: Event) -> dict:
    return {
        "id": e.id,
        "title": e.title,
        "description": e.description,
        "organizer": e.organizer,
        "date": _iso(e.date),
        "location": e.location,
        "address": e.address,
        "price": e.price,
        "image": e.image,
        "category": e.category,
        "tags": e.tags or [],
        "attendee_count": e.attendee_count,
        "max_attendees": e.max_attendees,
        "latitude": e.latitude,
        "longitude": e.longitude,
        "creator_id": e.creator_id,
        "is_global": e.is_global,
        "event_type": e.event_type,
        "brand_partner_name": e.brand_partner_name,
        "revenue_share_percentage": e.revenue_share_percentage,
        "status": e.status,
        "created_at": _iso(e.created_at),
    }


def message_dict(m: Message) -> dict:
    return {
        "id": m.id,
        "sender_id": m.sender_id,
        "receiver_id": m.receiver_id,
        "content": m.content,
        "is_read": m.is_read,
        "created_at": _iso(m.created_at),
    }


def community_message_dict(m: CommunityMessage) -> dict:
    return {
        "id": m.id,
        "community_id": m.community_id,
        "sender_id": m.sender_id,
        "content": m.content,
        "created_at": _iso(m.created_at),
    }


def kudos_dict(k: Kudos) -> dict:
    return {
        "id": k.id,
        "giver_id": k.giver_id,
        "receiver_id": k.receiver_id,
        "message": k.message,
        "type": k.type,
        "related_id": k.related_id,
        "created_at": _iso(k.created_at),
    }


def feed_item_dict(item: ActivityFeedItem) -> dict:
    return {
        "id": item.id,
        "user_id": item.user_id,
        "type": item.type,
        "content": item.content,
        "created_at": _iso(item.created_at),
    }
