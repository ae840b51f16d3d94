"""One-time passcode ORM model shared by every verification flow."""
from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from elections.models.base import Base, TimestampMixin, new_id


class Purpose(str, enum.Enum):
    NOMINATION = "nomination"
    VOTING = "voting"
    WITHDRAWAL = "withdrawal"


class OtpRecord(TimestampMixin, Base):
    """Pending or consumed OTP for an (email, event, purpose) triple."""

    __tablename__ = "otp_records"
    __table_args__ = (
        UniqueConstraint("purpose", "event_id", "email", name="uq_otp_records_purpose_event_email"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    purpose: Mapped[Purpose] = mapped_column(
        Enum(Purpose, name="otp_purpose", values_callable=lambda e: [item.value for item in e]),
        nullable=False,
    )
    event_id: Mapped[str] = mapped_column(String(36), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    otp: Mapped[str] = mapped_column(String(6), nullable=False)
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    ip_address: Mapped[str | None] = mapped_column(String(64))


__all__ = ["OtpRecord", "Purpose"]
