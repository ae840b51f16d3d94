"""Initial schema for election entities."""
from __future__ import annotations

from collections.abc import Iterable

import sqlalchemy as sa
from alembic import op

revision = "20241001_01"
down_revision = None
branch_labels = None
depends_on: Iterable[str] | None = None


def _drop_enum(name: str) -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute(sa.text(f"DROP TYPE IF EXISTS {name}"))


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:  # noqa: D401
    """Create election tables and constraints."""

    admin_role = sa.Enum("ADMIN", "SUPER_ADMIN", name="admin_role")
    otp_purpose = sa.Enum("nomination", "voting", "withdrawal", name="otp_purpose")

    admin_role.create(op.get_bind(), checkfirst=True)
    otp_purpose.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "admins",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", admin_role, nullable=False, server_default="ADMIN"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("failed_attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_locked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("locked_until", sa.DateTime(timezone=True)),
        sa.Column("last_login_at", sa.DateTime(timezone=True)),
        *_timestamps(),
    )

    op.create_table(
        "admin_sessions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("admin_id", sa.String(length=36), nullable=False),
        sa.Column("session_id", sa.String(length=64), nullable=False, unique=True),
        sa.Column("ip_address", sa.String(length=64)),
        sa.Column("user_agent", sa.String(length=512)),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["admin_id"], ["admins.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_admin_sessions_admin_id", "admin_sessions", ["admin_id"])

    op.create_table(
        "nomination_events",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("slug", sa.String(length=128), nullable=False, unique=True),
        sa.Column("description", sa.Text()),
        sa.Column("rules", sa.Text()),
        sa.Column("nomination_start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("nomination_end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("withdrawal_start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("withdrawal_end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("eligible_emails", sa.JSON(), nullable=False),
        sa.Column("enable_time_check", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("enable_nomination_time", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("enable_withdrawal_time", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by_id", sa.String(length=36)),
        *_timestamps(),
        sa.ForeignKeyConstraint(["created_by_id"], ["admins.id"], ondelete="SET NULL"),
    )

    op.create_table(
        "nominations",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("event_id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("first_name", sa.String(length=50), nullable=False),
        sa.Column("last_name", sa.String(length=50), nullable=False),
        sa.Column("student_id", sa.String(length=7), nullable=False),
        sa.Column("faculty", sa.String(length=100), nullable=False),
        sa.Column("year", sa.String(length=16), nullable=False),
        sa.Column("positions", sa.JSON(), nullable=False),
        sa.Column("is_withdrawn", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("withdrawn_at", sa.DateTime(timezone=True)),
        sa.Column("withdrawn_positions", sa.JSON(), nullable=False),
        sa.Column("withdrawal_token", sa.String(length=64), nullable=False, unique=True),
        sa.Column("ip_address", sa.String(length=64)),
        sa.Column("location", sa.String(length=255)),
        sa.Column("submitted_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["event_id"], ["nomination_events.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("email", "event_id", name="uq_nominations_email_event"),
    )
    op.create_index("ix_nominations_event_id", "nominations", ["event_id"])

    op.create_table(
        "voting_events",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("slug", sa.String(length=128), nullable=False, unique=True),
        sa.Column("description", sa.Text()),
        sa.Column("rules", sa.Text()),
        sa.Column("voting_start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("voting_end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("eligible_emails", sa.JSON(), nullable=False),
        sa.Column("enable_time_check", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("enable_voting_time", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by_id", sa.String(length=36)),
        *_timestamps(),
        sa.ForeignKeyConstraint(["created_by_id"], ["admins.id"], ondelete="SET NULL"),
    )

    op.create_table(
        "candidates",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("event_id", sa.String(length=36), nullable=False),
        sa.Column("first_name", sa.String(length=50), nullable=False),
        sa.Column("last_name", sa.String(length=50), nullable=False),
        sa.Column("student_id", sa.String(length=7), nullable=False),
        sa.Column("faculty", sa.String(length=100), nullable=False),
        sa.Column("year", sa.String(length=16), nullable=False),
        sa.Column("positions", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["event_id"], ["voting_events.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_candidates_event_id", "candidates", ["event_id"])

    op.create_table(
        "votes",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("event_id", sa.String(length=36), nullable=False),
        sa.Column("voter_email", sa.String(length=320), nullable=False),
        sa.Column("voter_first_name", sa.String(length=50), nullable=False),
        sa.Column("voter_last_name", sa.String(length=50), nullable=False),
        sa.Column("voter_student_id", sa.String(length=7), nullable=False),
        sa.Column("voter_faculty", sa.String(length=100), nullable=False),
        sa.Column("voter_year", sa.String(length=16), nullable=False),
        sa.Column("ballot", sa.JSON(), nullable=False),
        sa.Column("ip_address", sa.String(length=64)),
        sa.Column("location", sa.String(length=255)),
        sa.Column("user_agent", sa.String(length=512)),
        sa.Column("submitted_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["event_id"], ["voting_events.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("voter_email", "event_id", name="uq_votes_voter_event"),
    )
    op.create_index("ix_votes_event_id", "votes", ["event_id"])

    op.create_table(
        "otp_records",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("purpose", otp_purpose, nullable=False),
        sa.Column("event_id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("otp", sa.String(length=6), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False, unique=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_used", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("used_at", sa.DateTime(timezone=True)),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_attempts", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("ip_address", sa.String(length=64)),
        *_timestamps(),
        sa.UniqueConstraint("purpose", "event_id", "email", name="uq_otp_records_purpose_event_email"),
    )


def downgrade() -> None:
    """Drop election tables."""

    op.drop_table("otp_records")
    op.drop_index("ix_votes_event_id", table_name="votes")
    op.drop_table("votes")
    op.drop_index("ix_candidates_event_id", table_name="candidates")
    op.drop_table("candidates")
    op.drop_table("voting_events")
    op.drop_index("ix_nominations_event_id", table_name="nominations")
    op.drop_table("nominations")
    op.drop_table("nomination_events")
    op.drop_index("ix_admin_sessions_admin_id", table_name="admin_sessions")
    op.drop_table("admin_sessions")
    op.drop_table("admins")

    _drop_enum("otp_purpose")
    _drop_enum("admin_role")
