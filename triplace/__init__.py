"""
TriPlace — Community & Social Networking Backend
=================================================
Users find local communities that match their interests, meet nearby people,
join events, message each other, and send kudos.  This package is the REST
backend behind the TriPlace web and mobile clients.

Package layout::

    triplace/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Matching defaults, feed vocabulary
    ├── exceptions.py      # Domain errors
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   ├── models.py      # All ORM models
    │   └── seed.py        # Sample communities / events
    ├── engine/
    │   ├── geo.py         # Haversine distance + city fallbacks
    │   └── matching.py    # Recommendation, rotation, dynamic members
    ├── services/
    │   ├── user_service.py       # Profiles, location, onboarding
    │   ├── community_service.py  # Membership, rotation, recommendations
    │   ├── event_service.py      # Events + attendance
    │   ├── message_service.py    # DMs, community chat, resonance
    │   ├── kudos_service.py      # Kudos
    │   ├── feed_service.py       # Per-user activity feed
    │   ├── health_service.py     # Database / storage probes
    │   └── log_buffer.py         # In-memory log tail for admins
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # Engine / config / admin JWT dependencies
        ├── serializers.py # ORM row → JSON dicts
        └── routes/        # REST endpoints
"""

__version__ = "0.1.0"
