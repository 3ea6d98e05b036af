"""Initial schema for users, reference data, registrations, OTP codes, and linked accounts."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

sqlite_bigint = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def _created_at() -> sa.Column[object]:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("password_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("first_name", sa.Text(), nullable=False),
        sa.Column("last_name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("privacy_policy_accepted", sa.Boolean(), nullable=True),
        sa.Column("reset_token", sa.Text(), nullable=True),
        sa.Column("reset_token_expires_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'locked', 'expired')",
            name="ck_users_status",
        ),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )
    op.create_index("ix_users_reset_token", "users", ["reset_token"])

    op.create_table(
        "user_roles",
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("role", sa.Text(), primary_key=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.CheckConstraint(
            "role IN ('distributor', 'administrator', 'super_administrator')",
            name="ck_user_roles_role",
        ),
    )

    op.create_table(
        "companies",
        sa.Column("code", sa.Text(), primary_key=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
    )
    op.create_table(
        "countries",
        sa.Column("code", sa.Text(), primary_key=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
    )

    op.create_table(
        "admin_users",
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column(
            "company_code",
            sa.Text(),
            sa.ForeignKey("companies.code"),
            nullable=False,
        ),
    )

    op.create_table(
        "user_logins",
        sa.Column("id", sqlite_bigint, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("device_id", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.Text(), nullable=True),
        sa.Column("channel_code", sa.Text(), nullable=False),
        sa.Column("login_date", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_user_logins_user_id_login_date",
        "user_logins",
        ["user_id", "login_date"],
    )

    op.create_table(
        "user_password_histories",
        sa.Column("id", sqlite_bigint, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_index(
        "ix_user_password_histories_user_id",
        "user_password_histories",
        ["user_id"],
    )

    op.create_table(
        "registrations",
        sa.Column("registration_id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("company_code", sa.Text(), nullable=False),
        sa.Column("country_code", sa.Text(), nullable=False),
        sa.Column("distributor_number", sa.Text(), nullable=False),
        sa.Column("channel_code", sa.Text(), nullable=False),
        sa.Column("device_id", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False),
        _created_at(),
        sa.CheckConstraint("status IN ('new', 'completed')", name="ck_registrations_status"),
    )

    op.create_table(
        "otp_codes",
        sa.Column("id", sqlite_bigint, primary_key=True, autoincrement=True),
        sa.Column("code_hash", sa.Text(), nullable=False),
        sa.Column("purpose", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column(
            "registration_id",
            sa.Uuid(),
            sa.ForeignKey("registrations.registration_id"),
            nullable=True,
        ),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("reference", sa.Text(), nullable=False),
        sa.Column("display_id", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("consumed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("superseded_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "(user_id IS NULL) <> (registration_id IS NULL)",
            name="ck_otp_codes_single_owner",
        ),
        sa.CheckConstraint(
            "purpose IN ('login', 'account_link', 'registration', 'password_reset')",
            name="ck_otp_codes_purpose",
        ),
        sa.UniqueConstraint("reference", name="uq_otp_codes_reference"),
        sa.UniqueConstraint("display_id", name="uq_otp_codes_display_id"),
    )
    op.create_index("ix_otp_codes_user_id", "otp_codes", ["user_id"])
    op.create_index("ix_otp_codes_registration_id", "otp_codes", ["registration_id"])

    op.create_table(
        "distributor_accounts",
        sa.Column("id", sqlite_bigint, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("company_code", sa.Text(), nullable=False),
        sa.Column("country_code", sa.Text(), nullable=False),
        sa.Column("distributor_number", sa.Text(), nullable=False),
        sa.Column("distributor_name", sa.Text(), nullable=False),
        sa.Column("friendly_name", sa.Text(), nullable=True),
        sa.Column("account_type", sa.Text(), nullable=False),
        _created_at(),
        sa.CheckConstraint(
            "account_type IN ('BG', 'CC', 'CS')",
            name="ck_distributor_accounts_type",
        ),
        sa.UniqueConstraint(
            "company_code",
            "country_code",
            "distributor_number",
            name="uq_distributor_accounts_company_country_number",
        ),
    )
    op.create_index("ix_distributor_accounts_user_id", "distributor_accounts", ["user_id"])

    op.create_table(
        "integration_events",
        sa.Column("id", sqlite_bigint, primary_key=True, autoincrement=True),
        sa.Column("topic", sa.Text(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        _created_at(),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_integration_events_unpublished",
        "integration_events",
        ["published_at", "id"],
    )


def downgrade() -> None:
    op.drop_index("ix_integration_events_unpublished", table_name="integration_events")
    op.drop_table("integration_events")
    op.drop_index("ix_distributor_accounts_user_id", table_name="distributor_accounts")
    op.drop_table("distributor_accounts")
    op.drop_index("ix_otp_codes_registration_id", table_name="otp_codes")
    op.drop_index("ix_otp_codes_user_id", table_name="otp_codes")
    op.drop_table("otp_codes")
    op.drop_table("registrations")
    op.drop_index(
        "ix_user_password_histories_user_id",
        table_name="user_password_histories",
    )
    op.drop_table("user_password_histories")
    op.drop_index("ix_user_logins_user_id_login_date", table_name="user_logins")
    op.drop_table("user_logins")
    op.drop_table("admin_users")
    op.drop_table("countries")
    op.drop_table("companies")
    op.drop_table("user_roles")
    op.drop_index("ix_users_reset_token", table_name="users")
    op.drop_table("users")
