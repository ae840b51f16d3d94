"""Administrator authentication and event management schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from elections.models import AdminRole
from elections.schemas.common import CamelModel, ReadModel, check_email, ensure_utc
from elections.schemas.nomination import NominationForm
from elections.schemas.voting import CandidateRead, VoteRead


class LoginRequest(CamelModel):
    email: str = Field(..., max_length=320)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, value: str) -> str:
        return check_email(value)


class AdminRead(ReadModel):
    id: str
    email: str
    name: str
    role: AdminRole
    is_active: bool = True
    last_login_at: datetime | None = None


class LoginResponse(CamelModel):
    token: str
    admin: AdminRead


def _utc_or_none(value: datetime | None) -> datetime | None:
    return ensure_utc(value) if value is not None else None


def _emails(value: list[str] | None) -> list[str] | None:
    if value is None:
        return None
    return list(dict.fromkeys(check_email(item) for item in value))


class NominationEventCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    rules: str | None = None
    nomination_start_time: datetime
    nomination_end_time: datetime
    withdrawal_start_time: datetime
    withdrawal_end_time: datetime
    eligible_emails: list[str]
    enable_time_check: bool = True
    enable_nomination_time: bool = True
    enable_withdrawal_time: bool = True

    @field_validator(
        "nomination_start_time", "nomination_end_time", "withdrawal_start_time", "withdrawal_end_time"
    )
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @field_validator("eligible_emails")
    @classmethod
    def _eligible(cls, value: list[str]) -> list[str]:
        return _emails(value) or []


class NominationEventUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    rules: str | None = None
    nomination_start_time: datetime | None = None
    nomination_end_time: datetime | None = None
    withdrawal_start_time: datetime | None = None
    withdrawal_end_time: datetime | None = None
    eligible_emails: list[str] | None = None
    enable_time_check: bool | None = None
    enable_nomination_time: bool | None = None
    enable_withdrawal_time: bool | None = None
    is_active: bool | None = None

    @field_validator(
        "nomination_start_time", "nomination_end_time", "withdrawal_start_time", "withdrawal_end_time"
    )
    @classmethod
    def _utc(cls, value: datetime | None) -> datetime | None:
        return _utc_or_none(value)

    @field_validator("eligible_emails")
    @classmethod
    def _eligible(cls, value: list[str] | None) -> list[str] | None:
        return _emails(value)


class TimeSettingsUpdate(CamelModel):
    enable_time_check: bool | None = None
    enable_nomination_time: bool | None = None
    enable_withdrawal_time: bool | None = None


class NominationEventRead(ReadModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    rules: str | None = None
    nomination_start_time: datetime
    nomination_end_time: datetime
    withdrawal_start_time: datetime
    withdrawal_end_time: datetime
    eligible_emails: list[str]
    enable_time_check: bool
    enable_nomination_time: bool
    enable_withdrawal_time: bool
    is_active: bool
    created_at: datetime | None = None
    nomination_count: int = 0
    nomination_link: str | None = None


class NominationEventEnvelope(CamelModel):
    message: str | None = None
    event: NominationEventRead


class NominationEventList(CamelModel):
    events: list[NominationEventRead]


class CandidateCreate(NominationForm):
    pass


class VotingEventCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    rules: str | None = None
    voting_start_time: datetime
    voting_end_time: datetime
    eligible_emails: list[str]
    candidates: list[CandidateCreate] = Field(default_factory=list)
    enable_time_check: bool = True
    enable_voting_time: bool = True

    @field_validator("voting_start_time", "voting_end_time")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @field_validator("eligible_emails")
    @classmethod
    def _eligible(cls, value: list[str]) -> list[str]:
        return _emails(value) or []


class VotingEventUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    rules: str | None = None
    voting_start_time: datetime | None = None
    voting_end_time: datetime | None = None
    eligible_emails: list[str] | None = None
    enable_time_check: bool | None = None
    enable_voting_time: bool | None = None
    is_active: bool | None = None

    @field_validator("voting_start_time", "voting_end_time")
    @classmethod
    def _utc(cls, value: datetime | None) -> datetime | None:
        return _utc_or_none(value)

    @field_validator("eligible_emails")
    @classmethod
    def _eligible(cls, value: list[str] | None) -> list[str] | None:
        return _emails(value)


class ExtendVotingRequest(CamelModel):
    additional_minutes: int = Field(..., gt=0, le=60 * 24 * 30)


class VotingEventRead(ReadModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    rules: str | None = None
    voting_start_time: datetime
    voting_end_time: datetime
    eligible_emails: list[str]
    enable_time_check: bool
    enable_voting_time: bool
    is_active: bool
    created_at: datetime | None = None
    candidates: list[CandidateRead] = Field(default_factory=list)
    vote_count: int = 0
    voting_link: str | None = None


class VotingEventEnvelope(CamelModel):
    message: str | None = None
    event: VotingEventRead


class VotingEventList(CamelModel):
    events: list[VotingEventRead]


class CandidateTally(ReadModel):
    id: str
    name: str
    faculty: str
    year: str
    votes: int


class PositionResult(ReadModel):
    candidates: list[CandidateTally]
    total_votes: int


class VoterStats(ReadModel):
    total_eligible: int
    total_voted: int
    turnout_percentage: str
    not_voted: list[str]


class ResultsEventSummary(ReadModel):
    id: str
    name: str
    voting_start_time: datetime
    voting_end_time: datetime


class VotingResultsResponse(CamelModel):
    event: ResultsEventSummary
    results: dict[str, PositionResult]
    voter_stats: VoterStats
    votes: list[VoteRead]


__all__ = [
    "AdminRead",
    "CandidateCreate",
    "CandidateTally",
    "ExtendVotingRequest",
    "LoginRequest",
    "LoginResponse",
    "NominationEventCreate",
    "NominationEventEnvelope",
    "NominationEventList",
    "NominationEventRead",
    "NominationEventUpdate",
    "PositionResult",
    "ResultsEventSummary",
    "TimeSettingsUpdate",
    "VoterStats",
    "VotingEventCreate",
    "VotingEventEnvelope",
    "VotingEventList",
    "VotingEventRead",
    "VotingEventUpdate",
    "VotingResultsResponse",
]
