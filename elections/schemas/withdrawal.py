"""Withdrawal form and detail schemas."""
from __future__ import annotations

from pydantic import Field

from elections.schemas.common import CamelModel, ReadModel


class WithdrawalForm(CamelModel):
    """Positions the nominee keeps; an empty list withdraws the whole nomination."""

    positions: list[str] = Field(default_factory=list)


class WithdrawalDetails(ReadModel):
    email: str
    first_name: str
    last_name: str
    student_id: str
    faculty: str
    year: str
    positions: list[str]
    event_name: str


class WithdrawalDetailsEnvelope(CamelModel):
    nomination: WithdrawalDetails


__all__ = ["WithdrawalDetails", "WithdrawalDetailsEnvelope", "WithdrawalForm"]
