"""create identities, authenticated_users, admin_action_logs, mock_entities

Revision ID: 3b7e1c9d4a20
Revises:
Create Date: 2026-10-18 10:12:41.503921

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b7e1c9d4a20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ADMIN_ACTIONS = (
    "APPROVE_USER",
    "REJECT_USER",
    "REVOKE_ROLE",
    "BOOTSTRAP_ADMIN",
    "REMOVE_USER",
    "EDIT_ATTRIBUTES",
)


def upgrade():
    op.create_table(
        "identities",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("refresh_token_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_identities_email", "identities", ["email"], unique=True)
    op.alter_column("identities", "refresh_token_version", server_default=None)

    op.create_table(
        "authenticated_users",
        sa.Column("id", sa.Uuid(), sa.ForeignKey("identities.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("is_administrator", sa.Boolean(), nullable=False),
        sa.Column("is_missionary", sa.Boolean(), nullable=False),
        sa.Column("is_sponsor", sa.Boolean(), nullable=False),
        sa.Column("is_center", sa.Boolean(), nullable=False),
        sa.Column("approved", sa.Boolean(), nullable=True),
        sa.Column("approved_by", sa.Uuid(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sponsor_id", sa.String(length=8), nullable=True),
        sa.Column("child_id", sa.String(length=10), nullable=True),
        sa.Column("center_id", sa.String(length=8), nullable=True),
        sa.Column("center_name", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "(approved IS NULL AND approved_by IS NULL AND approved_at IS NULL)"
            " OR (approved IS NOT NULL AND approved_by IS NOT NULL AND approved_at IS NOT NULL)",
            name="ck_authenticated_users_approval_decision",
        ),
    )
    op.create_index("ix_authenticated_users_email", "authenticated_users", ["email"])
    op.create_index("ix_authenticated_users_is_administrator", "authenticated_users", ["is_administrator"])
    op.create_index("ix_authenticated_users_approved", "authenticated_users", ["approved"])

    op.create_table(
        "admin_action_logs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("actor_id", sa.Uuid(), nullable=False),
        sa.Column("target_user_id", sa.Uuid(), nullable=True),
        sa.Column("action", sa.Enum(*ADMIN_ACTIONS, name="admin_action"), nullable=False),
        sa.Column("before_state", sa.String(length=100), nullable=True),
        sa.Column("after_state", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_admin_action_logs_actor_id", "admin_action_logs", ["actor_id"])

    op.create_table(
        "mock_entities",
        sa.Column("key", sa.String(length=64), primary_key=True),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade():
    op.drop_table("mock_entities")
    op.drop_index("ix_admin_action_logs_actor_id", table_name="admin_action_logs")
    op.drop_table("admin_action_logs")
    op.execute("DROP TYPE IF EXISTS admin_action")
    op.drop_index("ix_authenticated_users_approved", table_name="authenticated_users")
    op.drop_index("ix_authenticated_users_is_administrator", table_name="authenticated_users")
    op.drop_index("ix_authenticated_users_email", table_name="authenticated_users")
    op.drop_table("authenticated_users")
    op.drop_index("ix_identities_email", table_name="identities")
    op.drop_table("identities")
