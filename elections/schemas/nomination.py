"""Nomination form and public nomination event schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from elections.schemas.common import (
    NAME_PATTERN,
    STUDENT_ID_PATTERN,
    CamelModel,
    Position,
    ReadModel,
    Year,
    check_positions,
    check_student_id,
)


class NominationForm(CamelModel):
    """Nominee details; also the shape of a candidate on a voting event."""

    first_name: str = Field(..., min_length=1, max_length=50, pattern=NAME_PATTERN)
    last_name: str = Field(..., min_length=1, max_length=50, pattern=NAME_PATTERN)
    student_id: str = Field(..., pattern=STUDENT_ID_PATTERN)
    faculty: str = Field(..., min_length=1, max_length=100, pattern=NAME_PATTERN)
    year: Year
    positions: list[Position] = Field(..., min_length=1)

    @field_validator("student_id")
    @classmethod
    def _student_id_range(cls, value: str) -> str:
        return check_student_id(value)

    @field_validator("positions")
    @classmethod
    def _unique_positions(cls, value: list[str]) -> list[str]:
        return check_positions(value)


class NominationEventPublic(ReadModel):
    id: str
    name: str
    description: str | None = None
    rules: str | None = None
    nomination_start_time: datetime
    nomination_end_time: datetime
    withdrawal_start_time: datetime
    withdrawal_end_time: datetime
    enable_time_check: bool
    enable_nomination_time: bool
    is_open: bool


class PublicNominationEventResponse(CamelModel):
    event: NominationEventPublic


class NominationSessionResponse(CamelModel):
    email: str
    event_name: str


class NominationRead(ReadModel):
    """Submission row as shown to administrators."""

    id: str
    email: str
    first_name: str
    last_name: str
    student_id: str
    faculty: str
    year: str
    positions: list[str]
    is_withdrawn: bool
    withdrawn_at: datetime | None = None
    withdrawn_positions: list[str]
    submitted_at: datetime
    ip_address: str | None = None
    location: str | None = None
    event_name: str | None = None


class NominationSuggestion(ReadModel):
    first_name: str
    last_name: str
    student_id: str
    faculty: str
    year: str
    positions: list[str]
    event_name: str


__all__ = [
    "PublicNominationEventResponse",
    "NominationEventPublic",
    "NominationForm",
    "NominationRead",
    "NominationSessionResponse",
    "NominationSuggestion",
]
