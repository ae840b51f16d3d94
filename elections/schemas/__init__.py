"""Pydantic schemas package."""

from .admin import (
    AdminRead,
    CandidateCreate,
    ExtendVotingRequest,
    LoginRequest,
    LoginResponse,
    NominationEventCreate,
    NominationEventEnvelope,
    NominationEventList,
    NominationEventRead,
    NominationEventUpdate,
    TimeSettingsUpdate,
    VotingEventCreate,
    VotingEventEnvelope,
    VotingEventList,
    VotingEventRead,
    VotingEventUpdate,
    VotingResultsResponse,
)
from .common import POSITIONS, YEARS, MessageResponse, parse_payload
from .nomination import (
    NominationEventPublic,
    NominationForm,
    NominationRead,
    NominationSessionResponse,
    NominationSuggestion,
    PublicNominationEventResponse,
)
from .otp import (
    CodeRequest,
    ShortCodeResponse,
    ShortCodeVerifyRequest,
    TokenResponse,
    TokenVerifyRequest,
    VerifyResponse,
    WithdrawalCodeRequest,
)
from .voting import BallotForm, CandidateRead, PublicVotingEventResponse, VoteRead, VotingEventPublic
from .withdrawal import WithdrawalDetails, WithdrawalDetailsEnvelope, WithdrawalForm

__all__ = [
    "AdminRead",
    "BallotForm",
    "CandidateCreate",
    "CandidateRead",
    "CodeRequest",
    "ExtendVotingRequest",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "NominationEventCreate",
    "NominationEventEnvelope",
    "NominationEventList",
    "NominationEventPublic",
    "NominationEventRead",
    "NominationEventUpdate",
    "NominationForm",
    "NominationRead",
    "NominationSessionResponse",
    "NominationSuggestion",
    "POSITIONS",
    "PublicNominationEventResponse",
    "PublicVotingEventResponse",
    "ShortCodeResponse",
    "ShortCodeVerifyRequest",
    "TimeSettingsUpdate",
    "TokenResponse",
    "TokenVerifyRequest",
    "VerifyResponse",
    "VoteRead",
    "VotingEventCreate",
    "VotingEventEnvelope",
    "VotingEventList",
    "VotingEventPublic",
    "VotingEventRead",
    "VotingEventUpdate",
    "VotingResultsResponse",
    "WithdrawalCodeRequest",
    "WithdrawalDetails",
    "WithdrawalDetailsEnvelope",
    "WithdrawalForm",
    "YEARS",
    "parse_payload",
]
