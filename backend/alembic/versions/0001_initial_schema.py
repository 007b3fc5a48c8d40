"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17

Creates all tables for the chat backend:
users, chat_groups, chat_group_members, chat_messages.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_name", sa.String(100), primary_key=True),
        sa.Column("session_id", sa.String(36), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- chat_groups ---
    op.create_table(
        "chat_groups",
        sa.Column("group_name", sa.String(150), primary_key=True),
        sa.Column("created_by", sa.String(100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_in", sa.Integer, nullable=False),
        sa.Column("is_expired", sa.Boolean, nullable=False, server_default=sa.false()),
    )

    # --- chat_group_members ---
    op.create_table(
        "chat_group_members",
        sa.Column("group_name", sa.String(150), sa.ForeignKey("chat_groups.group_name"), primary_key=True),
        sa.Column("user_name", sa.String(100), primary_key=True),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
    )

    # --- chat_messages (group_name is a plain column, no foreign key) ---
    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("group_name", sa.String(150), nullable=False),
        sa.Column("sender", sa.String(100), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "type",
            sa.Enum("chat", "join", "leave", "delete", name="messagetype"),
            nullable=False,
        ),
        sa.Column("reply_to", sa.JSON, nullable=True),
    )
    op.create_index("ix_chat_messages_group_name", "chat_messages", ["group_name"])


def downgrade() -> None:
    op.drop_index("ix_chat_messages_group_name", table_name="chat_messages")
    op.drop_table("chat_messages")
    op.drop_table("chat_group_members")
    op.drop_table("chat_groups")
    op.drop_table("users")
    sa.Enum(name="messagetype").drop(op.get_bind(), checkfirst=True)
