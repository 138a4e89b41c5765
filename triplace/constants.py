"""
triplace.constants — Shared Constants
======================================

Single source of truth for matching defaults and feed/activity vocabulary.
Import from here instead of duplicating in services and routes.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Community rotation
# ---------------------------------------------------------------------------
MAX_ACTIVE_COMMUNITIES = 5

# ---------------------------------------------------------------------------
# Recommendation scoring
# ---------------------------------------------------------------------------
RECOMMENDATION_THRESHOLD = 0.3  # strictly greater-than
RECOMMENDATION_LIMIT = 10

# ---------------------------------------------------------------------------
# Dynamic membership
# ---------------------------------------------------------------------------
MEMBER_RADIUS_MILES = 50.0
EXPANDED_RADIUS_MILES = 100.0
MEMBER_OVERLAP_THRESHOLD = 0.7
MEMBER_LIMIT = 20

# ---------------------------------------------------------------------------
# Events / feed
# ---------------------------------------------------------------------------
EVENT_RADIUS_MILES = 50.0
UPCOMING_EVENTS_LIMIT = 20
GLOBAL_EVENTS_LIMIT = 10
ACTIVITY_FEED_LIMIT = 50

ATTENDANCE_STATUSES: frozenset[str] = frozenset({
    "interested", "registered", "going", "attended",
})

KUDOS_TYPES: frozenset[str] = frozenset({"general", "event", "community"})

# Activity feed item types
FEED_KUDOS_RECEIVED = "kudos_received"
FEED_EVENT_JOINED = "event_joined"
FEED_COMMUNITY_JOINED = "community_joined"
FEED_COMMUNITY_DROPPED = "community_dropped"

# ---------------------------------------------------------------------------
# Category presentation
# ---------------------------------------------------------------------------
DEFAULT_CATEGORY_IMAGES: dict[str, str] = {
    "tech": "https://images.unsplash.com/photo-1519389950473-47ba0277781c?auto=format&fit=crop&w=400&h=300",
    "creative": "https://images.unsplash.com/photo-1513475382585-d06e58bcb0e0?auto=format&fit=crop&w=400&h=300",
    "wellness": "https://images.unsplash.com/photo-1544367567-0f2fcb009e0b?auto=format&fit=crop&w=400&h=300",
    "outdoor": "https://images.unsplash.com/photo-1551632811-561732d1e306?auto=format&fit=crop&w=400&h=300",
    "food": "https://images.unsplash.com/photo-1556909114-f6e7ad7d3136?auto=format&fit=crop&w=400&h=300",
    "professional": "https://images.unsplash.com/photo-1515187029135-18ee286d815b?auto=format&fit=crop&w=400&h=300",
}


def default_community_image(category: str) -> str:
    """Stock image for *category*, falling back to the tech image."""
    return DEFAULT_CATEGORY_IMAGES.get(category.lower(), DEFAULT_CATEGORY_IMAGES["tech"])
