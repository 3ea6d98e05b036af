"""Track linked account renames and distributor deletion requests."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "0002_linked_account_management"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None

sqlite_bigint = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    """Add the rename timestamp and the deletion request table."""

    op.add_column(
        "distributor_accounts",
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        "deletion_requests",
        sa.Column("id", sqlite_bigint, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )
    op.create_index("ix_deletion_requests_user_id", "deletion_requests", ["user_id"])


def downgrade() -> None:
    """Drop the deletion request table and the rename timestamp."""

    op.drop_index("ix_deletion_requests_user_id", table_name="deletion_requests")
    op.drop_table("deletion_requests")
    with op.batch_alter_table("distributor_accounts") as batch_op:
        batch_op.drop_column("updated_at")
