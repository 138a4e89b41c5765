"""
triplace.database.models — SQLAlchemy 2.0 Data Models
======================================================

Tables:
- users              — Member profiles (Firebase UID + email unique)
- communities        — Named interest groups
- community_members  — Membership rows with activity score / recency
- events             — Dated gatherings, optionally geolocated
- event_attendees    — Registration / attendance per user+event
- messages           — Direct messages between two users
- community_messages — Group chat inside a community
- message_resonance  — One "resonate" per user per community message
- kudos              — Peer recognition records
- activity_feed      — Per-user timeline items
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all TriPlace ORM models."""


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    firebase_uid: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    avatar: Mapped[str | None] = mapped_column(String(500), default=None)
    bio: Mapped[str | None] = mapped_column(Text, default=None)
    location: Mapped[str | None] = mapped_column(String(200), default=None)
    latitude: Mapped[float | None] = mapped_column(Float, default=None)
    longitude: Mapped[float | None] = mapped_column(Float, default=None)
    interests: Mapped[list | None] = mapped_column(JSONB, default=list)
    onboarding_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    quiz_answers: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    is_online: Mapped[bool] = mapped_column(Boolean, default=False)
    last_active_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    memberships: Mapped[list[CommunityMember]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} name={self.name!r}>"


# ---------------------------------------------------------------------------
# Communities
# ---------------------------------------------------------------------------
class Community(Base):
    __tablename__ = "communities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    image: Mapped[str | None] = mapped_column(String(500), default=None)
    member_count: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    location: Mapped[str | None] = mapped_column(String(200), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    last_activity_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    members: Mapped[list[CommunityMember]] = relationship(
        back_populates="community", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_communities_category", "category"),
    )

    def __repr__(self) -> str:
        return f"<Community id={self.id} name={self.name!r} category={self.category!r}>"


# ---------------------------------------------------------------------------
# CommunityMember — membership with engagement tracking
# ---------------------------------------------------------------------------
class CommunityMember(Base):
    """One user's membership in one community.

    ``activity_score`` counts messages sent in the community and
    ``last_activity_at`` drives the rotation rule (least recently active
    membership is dropped when the cap is reached).
    """
    __tablename__ = "community_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    community_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("communities.id", ondelete="CASCADE"), nullable=False
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    last_activity_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    activity_score: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    user: Mapped[User] = relationship(back_populates="memberships")
    community: Mapped[Community] = relationship(back_populates="members")

    __table_args__ = (
        UniqueConstraint("user_id", "community_id", name="uq_community_members_user_community"),
        Index("ix_community_members_user_activity", "user_id", "last_activity_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<CommunityMember user={self.user_id} community={self.community_id} "
            f"score={self.activity_score}>"
        )


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------
class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    organizer: Mapped[str] = mapped_column(String(200), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    location: Mapped[str] = mapped_column(String(300), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    price: Mapped[str | None] = mapped_column(String(50), default=None)
    image: Mapped[str | None] = mapped_column(String(500), default=None)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    tags: Mapped[list | None] = mapped_column(JSONB, default=list)
    attendee_count: Mapped[int] = mapped_column(Integer, default=0)
    max_attendees: Mapped[int | None] = mapped_column(Integer, default=None)
    latitude: Mapped[float | None] = mapped_column(Float, default=None)
    longitude: Mapped[float | None] = mapped_column(Float, default=None)
    creator_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    is_global: Mapped[bool] = mapped_column(Boolean, default=False)
    event_type: Mapped[str | None] = mapped_column(String(50), default=None)
    brand_partner_name: Mapped[str | None] = mapped_column(String(200), default=None)
    revenue_share_percentage: Mapped[int] = mapped_column(Integer, default=7)
    status: Mapped[str] = mapped_column(String(20), default="active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_events_date", "date"),
        Index("ix_events_category_date", "category", "date"),
    )

    def __repr__(self) -> str:
        return f"<Event id={self.id} title={self.title!r} date={self.date}>"


# ---------------------------------------------------------------------------
# EventAttendee
# ---------------------------------------------------------------------------
class EventAttendee(Base):
    __tablename__ = "event_attendees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    event_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(20), default="interested")
    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_event_attendees_user_event"),
    )

    def __repr__(self) -> str:
        return f"<EventAttendee user={self.user_id} event={self.event_id} status={self.status!r}>"


# ---------------------------------------------------------------------------
# Messages — direct messages
# ---------------------------------------------------------------------------
class Message(Base):
    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sender_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    receiver_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_messages_pair_time", "sender_id", "receiver_id", "created_at"),
        Index("ix_messages_receiver", "receiver_id"),
    )

    def __repr__(self) -> str:
        return f"<Message id={self.id} {self.sender_id}->{self.receiver_id}>"


# ---------------------------------------------------------------------------
# CommunityMessage — group chat inside a community
# ---------------------------------------------------------------------------
class CommunityMessage(Base):
    __tablename__ = "community_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    community_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("communities.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_community_messages_community_time", "community_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<CommunityMessage id={self.id} community={self.community_id}>"


# ---------------------------------------------------------------------------
# MessageResonance — one per (message, user)
# ---------------------------------------------------------------------------
class MessageResonance(Base):
    __tablename__ = "message_resonance"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    message_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("community_messages.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("message_id", "user_id", name="uq_message_resonance_message_user"),
    )

    def __repr__(self) -> str:
        return f"<MessageResonance message={self.message_id} user={self.user_id}>"


# ---------------------------------------------------------------------------
# Kudos — peer recognition
# ---------------------------------------------------------------------------
class Kudos(Base):
    __tablename__ = "kudos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    giver_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    receiver_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    message: Mapped[str | None] = mapped_column(Text, default=None)
    type: Mapped[str] = mapped_column(String(20), default="general")  # general, event, community
    related_id: Mapped[int | None] = mapped_column(Integer, nullable=True)  # event or community id
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_kudos_receiver_time", "receiver_id", "created_at"),
        Index("ix_kudos_giver_time", "giver_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Kudos id={self.id} {self.giver_id}->{self.receiver_id} type={self.type!r}>"


# ---------------------------------------------------------------------------
# ActivityFeedItem — per-user timeline
# ---------------------------------------------------------------------------
class ActivityFeedItem(Base):
    __tablename__ = "activity_feed"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    content: Mapped[dict] = mapped_column(JSONB, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_activity_feed_user_time", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ActivityFeedItem id={self.id} user={self.user_id} type={self.type!r}>"
