"""Initial schema: principals, customers, tasks, calls, notifications, activity.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _has_table(bind, name: str) -> bool:
    return sa.inspect(bind).has_table(name)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()

    if not _has_table(bind, "principal"):
        op.create_table(
            "principal",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("password_hash", sa.String(length=255), nullable=False),
            sa.Column("role", sa.String(length=20), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False),
            sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_principal_email", "principal", ["email"], unique=True)
        op.create_index("ix_principal_role", "principal", ["role"], unique=False)

    if not _has_table(bind, "customer"):
        op.create_table(
            "customer",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("company_name", sa.String(length=200), nullable=False),
            sa.Column("company_type", sa.String(length=100), nullable=False),
            sa.Column("url", sa.String(length=500), nullable=True),
            sa.Column("installation_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("tax_id", sa.String(length=15), nullable=True),
            sa.Column("address", sa.JSON(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False),
            sa.Column("created_by", sa.Uuid(), nullable=False),
            sa.Column("version", sa.Integer(), nullable=False),
            *_timestamps(),
            sa.ForeignKeyConstraint(["created_by"], ["principal.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_customer_company_name", "customer", ["company_name"], unique=False)
        op.create_index("ix_customer_company_type", "customer", ["company_type"], unique=False)
        op.create_index("ix_customer_is_active", "customer", ["is_active"], unique=False)
        op.create_index("ix_customer_created_by", "customer", ["created_by"], unique=False)

    if not _has_table(bind, "customer_contact"):
        op.create_table(
            "customer_contact",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("customer_id", sa.Uuid(), nullable=False),
            sa.Column("position", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("phone", sa.String(length=20), nullable=False),
            sa.Column("designation", sa.String(length=100), nullable=False),
            sa.Column("is_primary", sa.Boolean(), nullable=False),
            sa.ForeignKeyConstraint(["customer_id"], ["customer.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_customer_contact_customer_id", "customer_contact", ["customer_id"], unique=False)
        op.create_index("ix_customer_contact_email", "customer_contact", ["email"], unique=False)

    if not _has_table(bind, "task_category"):
        op.create_table(
            "task_category",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("name", sa.String(length=50), nullable=False),
            sa.Column("description", sa.String(length=200), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("name"),
        )

    if not _has_table(bind, "task"):
        op.create_table(
            "task",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("title", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("category", sa.String(length=50), nullable=False),
            sa.Column("priority", sa.String(length=20), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False),
            sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
            sa.Column("assigned_to", sa.Uuid(), nullable=False),
            sa.Column("customer_id", sa.Uuid(), nullable=True),
            sa.Column("created_by", sa.Uuid(), nullable=False),
            sa.Column("version", sa.Integer(), nullable=False),
            *_timestamps(),
            sa.ForeignKeyConstraint(["assigned_to"], ["principal.id"]),
            sa.ForeignKeyConstraint(["customer_id"], ["customer.id"]),
            sa.ForeignKeyConstraint(["created_by"], ["principal.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_task_priority", "task", ["priority"], unique=False)
        op.create_index("ix_task_due_date", "task", ["due_date"], unique=False)
        op.create_index("ix_task_customer_id", "task", ["customer_id"], unique=False)
        op.create_index("ix_task_created_by", "task", ["created_by"], unique=False)
        op.create_index("ix_task_assigned_status", "task", ["assigned_to", "status"], unique=False)

    if not _has_table(bind, "task_comment"):
        op.create_table(
            "task_comment",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("task_id", sa.Uuid(), nullable=False),
            sa.Column("position", sa.Integer(), nullable=False),
            sa.Column("text", sa.String(length=500), nullable=False),
            sa.Column("author_id", sa.Uuid(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["task_id"], ["task.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["author_id"], ["principal.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_task_comment_task_id", "task_comment", ["task_id"], unique=False)

    if not _has_table(bind, "task_attachment"):
        op.create_table(
            "task_attachment",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("task_id", sa.Uuid(), nullable=False),
            sa.Column("position", sa.Integer(), nullable=False),
            sa.Column("filename", sa.String(length=255), nullable=False),
            sa.Column("blob_ref", sa.String(length=128), nullable=False),
            sa.Column("mime_type", sa.String(length=100), nullable=False),
            sa.Column("size", sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(["task_id"], ["task.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_task_attachment_task_id", "task_attachment", ["task_id"], unique=False)

    if not _has_table(bind, "call"):
        op.create_table(
            "call",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("customer_id", sa.Uuid(), nullable=False),
            sa.Column("user_id", sa.Uuid(), nullable=False),
            sa.Column("direction", sa.String(length=20), nullable=False),
            sa.Column("summary", sa.Text(), nullable=False),
            sa.Column("duration_seconds", sa.Integer(), nullable=True),
            sa.Column("outcome", sa.String(length=200), nullable=True),
            sa.Column("follow_up_required", sa.Boolean(), nullable=False),
            sa.Column("follow_up_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("tags", sa.JSON(), nullable=False),
            sa.Column("version", sa.Integer(), nullable=False),
            *_timestamps(),
            sa.ForeignKeyConstraint(["customer_id"], ["customer.id"]),
            sa.ForeignKeyConstraint(["user_id"], ["principal.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_call_customer_id", "call", ["customer_id"], unique=False)
        op.create_index("ix_call_user_id", "call", ["user_id"], unique=False)
        op.create_index("ix_call_direction", "call", ["direction"], unique=False)
        op.create_index("ix_call_follow_up", "call", ["follow_up_required", "follow_up_date"], unique=False)

    if not _has_table(bind, "notification"):
        op.create_table(
            "notification",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("recipient_id", sa.Uuid(), nullable=False),
            sa.Column("kind", sa.String(length=30), nullable=False),
            sa.Column("message", sa.String(length=500), nullable=False),
            sa.Column("link", sa.String(length=255), nullable=False),
            sa.Column("is_read", sa.Boolean(), nullable=False),
            sa.Column("related_type", sa.String(length=20), nullable=False),
            sa.Column("related_id", sa.Uuid(), nullable=False),
            *_timestamps(),
            sa.ForeignKeyConstraint(["recipient_id"], ["principal.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(
            "ix_notification_recipient_read",
            "notification",
            ["recipient_id", "is_read", "created_at"],
            unique=False,
        )

    if not _has_table(bind, "activity"):
        op.create_table(
            "activity",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("actor_id", sa.Uuid(), nullable=False),
            sa.Column("action", sa.String(length=50), nullable=False),
            sa.Column("entity_type", sa.String(length=20), nullable=False),
            sa.Column("entity_id", sa.Uuid(), nullable=False),
            sa.Column("details", sa.JSON(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.ForeignKeyConstraint(["actor_id"], ["principal.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_activity_actor_id", "activity", ["actor_id"], unique=False)
        op.create_index("ix_activity_entity_type", "activity", ["entity_type"], unique=False)
        op.create_index("ix_activity_entity_id", "activity", ["entity_id"], unique=False)
        op.create_index("ix_activity_created_at", "activity", ["created_at"], unique=False)


def downgrade() -> None:
    for table in (
        "activity",
        "notification",
        "call",
        "task_attachment",
        "task_comment",
        "task",
        "task_category",
        "customer_contact",
        "customer",
        "principal",
    ):
        op.drop_table(table)
