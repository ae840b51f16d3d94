"""Nomination event ORM model."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from elections.models.base import Base, TimestampMixin, new_id


class NominationEvent(TimestampMixin, Base):
    """Nomination round with its nomination and withdrawal windows."""

    __tablename__ = "nomination_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    rules: Mapped[str | None] = mapped_column(Text)
    nomination_start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    nomination_end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    withdrawal_start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    withdrawal_end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    eligible_emails: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    enable_time_check: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    enable_nomination_time: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    enable_withdrawal_time: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("admins.id", ondelete="SET NULL")
    )

    nominations = relationship(
        "Nomination", back_populates="event", cascade="all, delete-orphan"
    )


__all__ = ["NominationEvent"]
