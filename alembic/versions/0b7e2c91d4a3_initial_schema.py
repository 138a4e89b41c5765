"""Initial schema: users, communities, events, messaging, kudos, feed

Revision ID: 0b7e2c91d4a3
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0b7e2c91d4a3"
down_revision = None
branch_labels = None
depends_on = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("firebase_uid", sa.String(128), nullable=False, unique=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("avatar", sa.String(500), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("interests", postgresql.JSONB(), nullable=True),
        sa.Column("onboarding_completed", sa.Boolean(), nullable=True),
        sa.Column("quiz_answers", postgresql.JSONB(), nullable=True),
        sa.Column("is_online", sa.Boolean(), nullable=True),
        sa.Column(
            "last_active_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        _created_at(),
    )

    op.create_table(
        "communities",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("image", sa.String(500), nullable=True),
        sa.Column("member_count", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("location", sa.String(200), nullable=True),
        _created_at(),
        sa.Column(
            "last_activity_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )
    op.create_index("ix_communities_category", "communities", ["category"])

    op.create_table(
        "community_members",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column(
            "user_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "community_id", sa.Integer(),
            sa.ForeignKey("communities.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column(
            "last_activity_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.Column("activity_score", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.UniqueConstraint(
            "user_id", "community_id", name="uq_community_members_user_community"
        ),
    )
    op.create_index(
        "ix_community_members_user_activity",
        "community_members",
        ["user_id", "last_activity_at"],
    )

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("organizer", sa.String(200), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.String(300), nullable=False),
        sa.Column("address", sa.String(500), nullable=False),
        sa.Column("price", sa.String(50), nullable=True),
        sa.Column("image", sa.String(500), nullable=True),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("tags", postgresql.JSONB(), nullable=True),
        sa.Column("attendee_count", sa.Integer(), nullable=True),
        sa.Column("max_attendees", sa.Integer(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column(
            "creator_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("is_global", sa.Boolean(), nullable=True),
        sa.Column("event_type", sa.String(50), nullable=True),
        sa.Column("brand_partner_name", sa.String(200), nullable=True),
        sa.Column("revenue_share_percentage", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(20), nullable=True),
        _created_at(),
    )
    op.create_index("ix_events_date", "events", ["date"])
    op.create_index("ix_events_category_date", "events", ["category", "date"])

    op.create_table(
        "event_attendees",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column(
            "user_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "event_id", sa.Integer(),
            sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("status", sa.String(20), nullable=True),
        sa.Column(
            "registered_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.UniqueConstraint("user_id", "event_id", name="uq_event_attendees_user_event"),
    )

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column(
            "sender_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "receiver_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=True),
        _created_at(),
    )
    op.create_index(
        "ix_messages_pair_time", "messages", ["sender_id", "receiver_id", "created_at"]
    )
    op.create_index("ix_messages_receiver", "messages", ["receiver_id"])

    op.create_table(
        "community_messages",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column(
            "community_id", sa.Integer(),
            sa.ForeignKey("communities.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "sender_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_index(
        "ix_community_messages_community_time",
        "community_messages",
        ["community_id", "created_at"],
    )

    op.create_table(
        "message_resonance",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column(
            "message_id", sa.Integer(),
            sa.ForeignKey("community_messages.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "user_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        _created_at(),
        sa.UniqueConstraint(
            "message_id", "user_id", name="uq_message_resonance_message_user"
        ),
    )

    op.create_table(
        "kudos",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column(
            "giver_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "receiver_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("type", sa.String(20), nullable=True),
        sa.Column("related_id", sa.Integer(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_kudos_receiver_time", "kudos", ["receiver_id", "created_at"])
    op.create_index("ix_kudos_giver_time", "kudos", ["giver_id", "created_at"])

    op.create_table(
        "activity_feed",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column(
            "user_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("content", postgresql.JSONB(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_activity_feed_user_time", "activity_feed", ["user_id", "created_at"])


def downgrade() -> None:
    op.drop_table("activity_feed")
    op.drop_table("kudos")
    op.drop_table("message_resonance")
    op.drop_table("community_messages")
    op.drop_table("messages")
    op.drop_table("event_attendees")
    op.drop_table("events")
    op.drop_table("community_members")
    op.drop_table("communities")
    op.drop_table("users")
