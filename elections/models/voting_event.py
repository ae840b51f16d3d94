"""Voting event and candidate ORM models."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from elections.models.base import Base, TimestampMixin, new_id


class VotingEvent(TimestampMixin, Base):
    """Ballot round with a single voting window and a candidate slate."""

    __tablename__ = "voting_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    rules: Mapped[str | None] = mapped_column(Text)
    voting_start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    voting_end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    eligible_emails: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    enable_time_check: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    enable_voting_time: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("admins.id", ondelete="SET NULL")
    )

    candidates = relationship(
        "Candidate",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="Candidate.first_name",
    )
    votes = relationship("Vote", back_populates="event", cascade="all, delete-orphan")


class Candidate(TimestampMixin, Base):
    """Candidate standing for one or more positions in a voting event."""

    __tablename__ = "candidates"
    __table_args__ = (Index("ix_candidates_event_id", "event_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    event_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("voting_events.id", ondelete="CASCADE"), nullable=False
    )
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    student_id: Mapped[str] = mapped_column(String(7), nullable=False)
    faculty: Mapped[str] = mapped_column(String(100), nullable=False)
    year: Mapped[str] = mapped_column(String(16), nullable=False)
    positions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    event = relationship("VotingEvent", back_populates="candidates")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


__all__ = ["Candidate", "VotingEvent"]
