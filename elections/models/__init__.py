"""ORM models package."""
from .admin import Admin, AdminRole, AdminSession
from .base import Base, TimestampMixin, as_utc, new_id, utcnow
from .nomination import Nomination
from .nomination_event import NominationEvent
from .otp_record import OtpRecord, Purpose
from .vote import Vote
from .voting_event import Candidate, VotingEvent

__all__ = [
    "Admin",
    "AdminRole",
    "AdminSession",
    "Base",
    "Candidate",
    "Nomination",
    "NominationEvent",
    "OtpRecord",
    "Purpose",
    "TimestampMixin",
    "Vote",
    "VotingEvent",
    "as_utc",
    "new_id",
    "utcnow",
]
