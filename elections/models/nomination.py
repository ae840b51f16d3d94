"""Nomination ORM model."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from elections.models.base import Base, TimestampMixin, new_id


class Nomination(TimestampMixin, Base):
    """A student's nomination for one or more positions."""

    __tablename__ = "nominations"
    __table_args__ = (
        UniqueConstraint("email", "event_id", name="uq_nominations_email_event"),
        Index("ix_nominations_event_id", "event_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    event_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("nomination_events.id", ondelete="CASCADE"), nullable=False
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    student_id: Mapped[str] = mapped_column(String(7), nullable=False)
    faculty: Mapped[str] = mapped_column(String(100), nullable=False)
    year: Mapped[str] = mapped_column(String(16), nullable=False)
    positions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_withdrawn: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    withdrawn_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    withdrawn_positions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    withdrawal_token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    ip_address: Mapped[str | None] = mapped_column(String(64))
    location: Mapped[str | None] = mapped_column(String(255))
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    event = relationship("NominationEvent", back_populates="nominations")

    @property
    def has_withdrawal(self) -> bool:
        return self.is_withdrawn or bool(self.withdrawn_positions)


__all__ = ["Nomination"]
