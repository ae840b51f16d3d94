"""Ballot, candidate and voting event schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from elections.schemas.common import (
    NAME_PATTERN,
    STUDENT_ID_PATTERN,
    CamelModel,
    ReadModel,
    Year,
    check_student_id,
)


class BallotForm(CamelModel):
    """Voter identity plus the ``position -> candidate id`` selections."""

    voter_first_name: str = Field(..., min_length=1, max_length=50, pattern=NAME_PATTERN)
    voter_last_name: str = Field(..., min_length=1, max_length=50, pattern=NAME_PATTERN)
    voter_student_id: str = Field(..., pattern=STUDENT_ID_PATTERN)
    voter_faculty: str = Field(..., min_length=1, max_length=100, pattern=NAME_PATTERN)
    voter_year: Year
    ballot: dict[str, str]

    @field_validator("voter_student_id")
    @classmethod
    def _student_id_range(cls, value: str) -> str:
        return check_student_id(value)


class CandidateRead(ReadModel):
    id: str
    first_name: str
    last_name: str
    student_id: str
    faculty: str
    year: str
    positions: list[str]


class VotingEventPublic(ReadModel):
    id: str
    name: str
    description: str | None = None
    rules: str | None = None
    voting_start_time: datetime
    voting_end_time: datetime
    is_open: bool
    candidates_by_position: dict[str, list[CandidateRead]]


class PublicVotingEventResponse(CamelModel):
    event: VotingEventPublic


class VoteRead(ReadModel):
    id: str
    voter_name: str
    voter_email: str
    voter_student_id: str
    voter_faculty: str
    voter_year: str
    submitted_at: datetime
    ip_address: str | None = None
    location: str | None = None


__all__ = [
    "BallotForm",
    "CandidateRead",
    "VoteRead",
    "PublicVotingEventResponse",
    "VotingEventPublic",
]
