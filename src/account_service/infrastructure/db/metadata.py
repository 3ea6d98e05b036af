"""SQLAlchemy metadata definitions for account service tables."""

from __future__ import annotations

import sqlalchemy as sa

metadata = sa.MetaData()
sqlite_bigint = sa.BigInteger().with_variant(sa.Integer(), "sqlite")

users = sa.Table(
    "users",
    metadata,
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
    sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    ),
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

sa.Index("ix_users_reset_token", users.c.reset_token)

user_roles = sa.Table(
    "user_roles",
    metadata,
    sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), primary_key=True),
    sa.Column("role", sa.Text(), primary_key=True),
    sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
    sa.CheckConstraint(
        "role IN ('distributor', 'administrator', 'super_administrator')",
        name="ck_user_roles_role",
    ),
)

companies = sa.Table(
    "companies",
    metadata,
    sa.Column("code", sa.Text(), primary_key=True, nullable=False),
    sa.Column("name", sa.Text(), nullable=False),
)

countries = sa.Table(
    "countries",
    metadata,
    sa.Column("code", sa.Text(), primary_key=True, nullable=False),
    sa.Column("name", sa.Text(), nullable=False),
)

admin_users = sa.Table(
    "admin_users",
    metadata,
    sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), primary_key=True),
    sa.Column("company_code", sa.Text(), sa.ForeignKey("companies.code"), nullable=False),
)

user_logins = sa.Table(
    "user_logins",
    metadata,
    sa.Column("id", sqlite_bigint, primary_key=True, autoincrement=True),
    sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
    sa.Column("device_id", sa.Text(), nullable=True),
    sa.Column("ip_address", sa.Text(), nullable=True),
    sa.Column("channel_code", sa.Text(), nullable=False),
    sa.Column("login_date", sa.DateTime(timezone=True), nullable=False),
)

sa.Index("ix_user_logins_user_id_login_date", user_logins.c.user_id, user_logins.c.login_date)

user_password_histories = sa.Table(
    "user_password_histories",
    metadata,
    sa.Column("id", sqlite_bigint, primary_key=True, autoincrement=True),
    sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
    sa.Column("password_hash", sa.Text(), nullable=False),
    sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    ),
)

sa.Index("ix_user_password_histories_user_id", user_password_histories.c.user_id)

registrations = sa.Table(
    "registrations",
    metadata,
    sa.Column("registration_id", sa.Uuid(), primary_key=True, nullable=False),
    sa.Column("company_code", sa.Text(), nullable=False),
    sa.Column("country_code", sa.Text(), nullable=False),
    sa.Column("distributor_number", sa.Text(), nullable=False),
    sa.Column("channel_code", sa.Text(), nullable=False),
    sa.Column("device_id", sa.Text(), nullable=True),
    sa.Column("status", sa.Text(), nullable=False),
    sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    ),
    sa.CheckConstraint("status IN ('new', 'completed')", name="ck_registrations_status"),
)

otp_codes = sa.Table(
    "otp_codes",
    metadata,
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

sa.Index("ix_otp_codes_user_id", otp_codes.c.user_id)
sa.Index("ix_otp_codes_registration_id", otp_codes.c.registration_id)

distributor_accounts = sa.Table(
    "distributor_accounts",
    metadata,
    sa.Column("id", sqlite_bigint, primary_key=True, autoincrement=True),
    sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
    sa.Column("company_code", sa.Text(), nullable=False),
    sa.Column("country_code", sa.Text(), nullable=False),
    sa.Column("distributor_number", sa.Text(), nullable=False),
    sa.Column("distributor_name", sa.Text(), nullable=False),
    sa.Column("friendly_name", sa.Text(), nullable=True),
    sa.Column("account_type", sa.Text(), nullable=False),
    sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    ),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    sa.CheckConstraint("account_type IN ('BG', 'CC', 'CS')", name="ck_distributor_accounts_type"),
    sa.UniqueConstraint(
        "company_code",
        "country_code",
        "distributor_number",
        name="uq_distributor_accounts_company_country_number",
    ),
)

sa.Index("ix_distributor_accounts_user_id", distributor_accounts.c.user_id)

deletion_requests = sa.Table(
    "deletion_requests",
    metadata,
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

sa.Index("ix_deletion_requests_user_id", deletion_requests.c.user_id)

integration_events = sa.Table(
    "integration_events",
    metadata,
    sa.Column("id", sqlite_bigint, primary_key=True, autoincrement=True),
    sa.Column("topic", sa.Text(), nullable=False),
    sa.Column("payload", sa.JSON(), nullable=False),
    sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    ),
    sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
)

sa.Index(
    "ix_integration_events_unpublished",
    integration_events.c.published_at,
    integration_events.c.id,
)
