"""Create users, profiles, connections, notifications and messaging tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Initial schema for the DevLink backend.
How:   UUID primary keys and TIMESTAMP WITH TIME ZONE throughout. The
       connection and notification invariants that must hold under
       concurrent requests are enforced by the database itself:
       - uq_connections_pair_key: one connection per unordered user pair
       - ck_connections_not_self / ck_notifications_not_self
       - ck_connections_status: pending, accepted, rejected only

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

NOTIFICATION_TYPES = (
    "connection_request",
    "connection_accepted",
    "post_like",
    "post_comment",
    "connection_suggestion",
)


def upgrade() -> None:
    # ── users / profiles ──────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column(
            "password_hash",
            sa.String(255),
            nullable=False,
            server_default=sa.text("''"),
            comment="Owned by the auth service; never returned by this API",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    # Suggestions are ordered by account age
    op.create_index("ix_users_created_at", "users", ["created_at"])

    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("skills", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("profile_picture", sa.String(512), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_profiles"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", name="uq_profiles_user_id"),
    )

    # ── connections ───────────────────────────────────────────────────────
    op.create_table(
        "connections",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("requester_id", sa.Uuid(), nullable=False),
        sa.Column("recipient_id", sa.Uuid(), nullable=False),
        sa.Column(
            "pair_key",
            sa.String(80),
            nullable=False,
            comment="Both user ids, lower first; identical for A→B and B→A",
        ),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column(
            "requested_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("responded_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_connections"),
        sa.ForeignKeyConstraint(["requester_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["recipient_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("pair_key", name="uq_connections_pair_key"),
        sa.UniqueConstraint(
            "requester_id", "recipient_id", name="uq_connections_requester_recipient"
        ),
        sa.CheckConstraint("requester_id <> recipient_id", name="ck_connections_not_self"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected')",
            name="ck_connections_status",
        ),
    )
    op.create_index(
        "idx_connections_recipient_status", "connections", ["recipient_id", "status"]
    )
    op.create_index(
        "idx_connections_requester_status", "connections", ["requester_id", "status"]
    )

    # ── notifications ─────────────────────────────────────────────────────
    type_values = ", ".join(f"'{t}'" for t in NOTIFICATION_TYPES)
    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("recipient_id", sa.Uuid(), nullable=False),
        sa.Column(
            "sender_id",
            sa.Uuid(),
            nullable=False,
            comment="No FK: notifications outlive deleted senders",
        ),
        sa.Column("type", sa.String(40), nullable=False),
        sa.Column("message", sa.String(500), nullable=False),
        sa.Column("related_post_id", sa.Uuid(), nullable=True),
        sa.Column("related_connection_id", sa.Uuid(), nullable=True),
        sa.Column("related_comment_id", sa.Uuid(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("read_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_notifications"),
        sa.ForeignKeyConstraint(["recipient_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("recipient_id <> sender_id", name="ck_notifications_not_self"),
        sa.CheckConstraint(f"type IN ({type_values})", name="ck_notifications_type"),
    )
    op.create_index(
        "idx_notifications_recipient_unread", "notifications", ["recipient_id", "is_read"]
    )
    op.create_index(
        "idx_notifications_recipient_created",
        "notifications",
        ["recipient_id", sa.text("created_at DESC")],
    )

    # ── conversations / messages ──────────────────────────────────────────
    op.create_table(
        "conversations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_low_id", sa.Uuid(), nullable=False),
        sa.Column("user_high_id", sa.Uuid(), nullable=False),
        sa.Column("last_message", sa.Text(), nullable=True),
        sa.Column(
            "last_message_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_conversations"),
        sa.ForeignKeyConstraint(["user_low_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_high_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "user_low_id", "user_high_id", name="uq_conversations_participants"
        ),
    )
    op.create_index(
        "idx_conversations_last_message_at",
        "conversations",
        [sa.text("last_message_at DESC")],
    )

    op.create_table(
        "messages",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("conversation_id", sa.Uuid(), nullable=False),
        sa.Column("sender_id", sa.Uuid(), nullable=False),
        sa.Column("recipient_id", sa.Uuid(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id", name="pk_messages"),
        sa.ForeignKeyConstraint(
            ["conversation_id"], ["conversations.id"], ondelete="CASCADE"
        ),
    )
    op.create_index(
        "idx_messages_recipient_unread", "messages", ["recipient_id", "is_read"]
    )
    op.create_index(
        "idx_messages_conversation_created",
        "messages",
        ["conversation_id", sa.text("created_at DESC")],
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order (destructive)."""
    op.drop_index("idx_messages_conversation_created", table_name="messages")
    op.drop_index("idx_messages_recipient_unread", table_name="messages")
    op.drop_table("messages")

    op.drop_index("idx_conversations_last_message_at", table_name="conversations")
    op.drop_table("conversations")

    op.drop_index("idx_notifications_recipient_created", table_name="notifications")
    op.drop_index("idx_notifications_recipient_unread", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("idx_connections_requester_status", table_name="connections")
    op.drop_index("idx_connections_recipient_status", table_name="connections")
    op.drop_table("connections")

    op.drop_table("profiles")

    op.drop_index("ix_users_created_at", table_name="users")
    op.drop_table("users")
