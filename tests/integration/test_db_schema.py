"""Schema integrity tests for the Alembic migrations."""
from __future__ import annotations

from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic import command
from alembic.config import Config

from elections.models import Base


@pytest.fixture(scope="module")
def alembic_config(tmp_path_factory: pytest.TempPathFactory) -> Config:
    """Provide Alembic config bound to a temporary SQLite database."""

    project_root = Path(__file__).resolve().parents[2]
    db_path = tmp_path_factory.mktemp("db") / "schema.db"

    config = Config(str(project_root / "alembic.ini"))
    config.set_main_option("sqlalchemy.url", f"sqlite:///{db_path}")
    config.set_main_option("script_location", str(project_root / "migrations"))
    return config


@pytest.fixture(scope="module")
def migrated_engine(alembic_config: Config):
    """Run migrations against SQLite and yield an engine."""

    command.upgrade(alembic_config, "head")
    engine = sa.create_engine(alembic_config.get_main_option("sqlalchemy.url"))
    try:
        yield engine
    finally:
        engine.dispose()


def test_tables_exist(migrated_engine: sa.Engine) -> None:
    tables = set(sa.inspect(migrated_engine).get_table_names())
    expected = {
        "admins",
        "admin_sessions",
        "nomination_events",
        "nominations",
        "voting_events",
        "candidates",
        "votes",
        "otp_records",
    }
    assert expected.issubset(tables)


def test_foreign_keys_enforced(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    fk_expectations = {
        "admin_sessions": {"admin_id": "admins"},
        "nominations": {"event_id": "nomination_events"},
        "candidates": {"event_id": "voting_events"},
        "votes": {"event_id": "voting_events"},
        "nomination_events": {"created_by_id": "admins"},
    }

    for table, expected in fk_expectations.items():
        fk_map = {
            tuple(fk["constrained_columns"]): fk["referred_table"] for fk in inspector.get_foreign_keys(table)
        }
        for column, target in expected.items():
            assert fk_map[(column,)] == target


def test_unique_constraints(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    unique_expectations = {
        "nominations": {"uq_nominations_email_event": {"email", "event_id"}},
        "votes": {"uq_votes_voter_event": {"voter_email", "event_id"}},
        "otp_records": {"uq_otp_records_purpose_event_email": {"purpose", "event_id", "email"}},
    }

    for table, expected in unique_expectations.items():
        found = {
            constraint["name"]: set(constraint["column_names"])
            for constraint in inspector.get_unique_constraints(table)
        }
        for name, columns in expected.items():
            assert found[name] == columns


def test_event_indexes(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    index_expectations = {
        "nominations": "ix_nominations_event_id",
        "votes": "ix_votes_event_id",
        "candidates": "ix_candidates_event_id",
        "admin_sessions": "ix_admin_sessions_admin_id",
    }

    for table, index_name in index_expectations.items():
        assert index_name in {index["name"] for index in inspector.get_indexes(table)}


def test_migration_matches_models(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    for table in Base.metadata.sorted_tables:
        columns = {column["name"] for column in inspector.get_columns(table.name)}
        assert columns == {column.name for column in table.columns}, table.name
