from __future__ import annotations

from pathlib import Path

import sqlalchemy as sa
from alembic.config import Config

from alembic import command


def _config(tmp_path: Path) -> tuple[Config, str]:
    database_url = f"sqlite+pysqlite:///{tmp_path / 'accounts_management.db'}"
    alembic_config = Config("alembic.ini")
    alembic_config.set_main_option("sqlalchemy.url", database_url)
    return alembic_config, database_url


def test_upgrade_adds_deletion_requests_and_rename_timestamp(tmp_path: Path) -> None:
    alembic_config, database_url = _config(tmp_path)

    command.upgrade(alembic_config, "head")

    inspector = sa.inspect(sa.create_engine(database_url))
    assert "deletion_requests" in inspector.get_table_names()
    account_columns = {column["name"] for column in inspector.get_columns("distributor_accounts")}
    assert "updated_at" in account_columns
    deletion_indexes = {index["name"] for index in inspector.get_indexes("deletion_requests")}
    assert "ix_deletion_requests_user_id" in deletion_indexes


def test_downgrade_to_initial_schema_keeps_existing_links(tmp_path: Path) -> None:
    alembic_config, database_url = _config(tmp_path)
    command.upgrade(alembic_config, "head")
    engine = sa.create_engine(database_url)
    with engine.begin() as connection:
        connection.execute(
            sa.text(
                "INSERT INTO users (id, username, password_hash, status, first_name, "
                "last_name, email) VALUES ('00000000000000000000000000000001', 'jdoe', "
                "'hash', 'active', 'Jane', 'Doe', 'jane@example.com')"
            )
        )
        connection.execute(
            sa.text(
                "INSERT INTO distributor_accounts (user_id, company_code, country_code, "
                "distributor_number, distributor_name, account_type, updated_at) VALUES "
                "('00000000000000000000000000000001', 'KE01', 'KE', '100200', 'Acme', 'CS', "
                "'2026-03-01 10:00:00')"
            )
        )

    command.downgrade(alembic_config, "0001_initial_schema")

    inspector = sa.inspect(sa.create_engine(database_url))
    assert "deletion_requests" not in inspector.get_table_names()
    account_columns = {column["name"] for column in inspector.get_columns("distributor_accounts")}
    assert "updated_at" not in account_columns
    with sa.create_engine(database_url).connect() as connection:
        count = connection.execute(sa.text("SELECT COUNT(*) FROM distributor_accounts"))
        assert count.scalar_one() == 1
