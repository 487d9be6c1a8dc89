"""Access schema - actor, role, role_permission, sessions, delegated tokens.

Also installs ``notify_record_change()``, a row trigger function business
tables attach to publish change events on the ``record_changes`` channel.

Revision ID: 001
Revises:
Create Date: 2025-06-01

"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


NOTIFY_FUNCTION = """
CREATE OR REPLACE FUNCTION notify_record_change()
RETURNS TRIGGER AS $$
DECLARE
    row_data JSONB;
BEGIN
    IF TG_OP = 'DELETE' THEN
        row_data = to_jsonb(OLD);
    ELSE
        row_data = to_jsonb(NEW);
    END IF;

    PERFORM pg_notify(
        COALESCE(TG_ARGV[0], 'record_changes'),
        jsonb_build_object(
            'resource', TG_TABLE_NAME,
            'operation', TG_OP,
            'record_id', row_data -> 'id',
            'owner_actor_id', row_data -> 'owner_actor_id',
            'owner_group_id', row_data -> 'owner_group_id',
            'timestamp', CURRENT_TIMESTAMP
        )::text
    );
    RETURN COALESCE(NEW, OLD);
END;
$$ LANGUAGE plpgsql;
"""


def upgrade() -> None:
    op.create_table(
        "actor",
        sa.Column("id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column("handle", sa.String(255), nullable=False),
        sa.Column("group_id", sa.BigInteger(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_locked", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_actor_handle", "actor", ["handle"], unique=True)

    op.create_table(
        "role",
        sa.Column("id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("description", sa.String(255), nullable=True),
    )
    op.create_index("ix_role_name", "role", ["name"], unique=True)

    op.create_table(
        "role_permission",
        sa.Column("role_id", sa.BigInteger(), sa.ForeignKey("role.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("resource", sa.String(100), primary_key=True),
        sa.Column("action", sa.String(50), primary_key=True),
        sa.Column("scope", sa.String(10), primary_key=True),
        sa.CheckConstraint("scope IN ('own', 'group', 'all')", name="ck_role_permission_scope"),
    )

    op.create_table(
        "actor_role",
        sa.Column("actor_id", sa.BigInteger(), sa.ForeignKey("actor.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("role_id", sa.BigInteger(), sa.ForeignKey("role.id", ondelete="RESTRICT"), primary_key=True),
    )

    op.create_table(
        "actor_session",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("actor_id", sa.BigInteger(), sa.ForeignKey("actor.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_actor_session_actor_id", "actor_session", ["actor_id"])

    op.create_table(
        "delegated_token",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("actor_id", sa.BigInteger(), sa.ForeignKey("actor.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("permissions", postgresql.ARRAY(sa.Text()), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("expires_at > created_at", name="ck_delegated_token_expiry"),
    )
    op.create_index("ix_delegated_token_hash", "delegated_token", ["token_hash"], unique=True)
    op.create_index("ix_delegated_token_actor_id", "delegated_token", ["actor_id"])

    op.execute(NOTIFY_FUNCTION)


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS notify_record_change()")
    op.drop_table("delegated_token")
    op.drop_table("actor_session")
    op.drop_table("actor_role")
    op.drop_table("role_permission")
    op.drop_table("role")
    op.drop_table("actor")
