"""Vote ORM model."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from elections.models.base import Base, TimestampMixin, new_id


class Vote(TimestampMixin, Base):
    """One voter's ballot for a voting event; never updated after insert."""

    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("voter_email", "event_id", name="uq_votes_voter_event"),
        Index("ix_votes_event_id", "event_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    event_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("voting_events.id", ondelete="CASCADE"), nullable=False
    )
    voter_email: Mapped[str] = mapped_column(String(320), nullable=False)
    voter_first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    voter_last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    voter_student_id: Mapped[str] = mapped_column(String(7), nullable=False)
    voter_faculty: Mapped[str] = mapped_column(String(100), nullable=False)
    voter_year: Mapped[str] = mapped_column(String(16), nullable=False)
    ballot: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(64))
    location: Mapped[str | None] = mapped_column(String(255))
    user_agent: Mapped[str | None] = mapped_column(String(512))
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    event = relationship("VotingEvent", back_populates="votes")


__all__ = ["Vote"]
