"""Vote tallying for a voting event."""
from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from elections.schemas.common import POSITIONS


class CandidateLike(Protocol):
    id: str
    first_name: str
    last_name: str
    faculty: str
    year: str
    positions: list[str]


class BallotLike(Protocol):
    voter_email: str
    ballot: Mapping[str, str]


@dataclass(slots=True)
class CandidateTally:
    id: str
    name: str
    faculty: str
    year: str
    votes: int = 0


@dataclass(slots=True)
class PositionResult:
    candidates: list[CandidateTally] = field(default_factory=list)
    total_votes: int = 0


@dataclass(slots=True, frozen=True)
class VoterStats:
    total_eligible: int
    total_voted: int
    turnout_percentage: str
    not_voted: list[str]


@dataclass(slots=True, frozen=True)
class ResultsSummary:
    results: dict[str, PositionResult]
    voter_stats: VoterStats


def turnout(total_voted: int, total_eligible: int) -> str:
    """Percentage with one decimal place; ``"0.0"`` when nobody is eligible."""
    if total_eligible <= 0:
        return "0.0"
    return f"{total_voted / total_eligible * 100:.1f}"


def tally(
    candidates: Sequence[CandidateLike],
    votes: Iterable[BallotLike],
    eligible_emails: Sequence[str],
    positions: Sequence[str] = POSITIONS,
) -> ResultsSummary:
    """Count selections per position over the fixed position list.

    Selections naming a candidate that does not stand for the position are
    ignored.
    """
    votes = list(votes)
    results: dict[str, PositionResult] = {}
    for position in positions:
        standing = [candidate for candidate in candidates if position in (candidate.positions or [])]
        counts = {candidate.id: 0 for candidate in standing}
        for vote in votes:
            selected = vote.ballot.get(position)
            if selected in counts:
                counts[selected] += 1
        results[position] = PositionResult(
            candidates=[
                CandidateTally(
                    id=candidate.id,
                    name=f"{candidate.first_name} {candidate.last_name}",
                    faculty=candidate.faculty,
                    year=candidate.year,
                    votes=counts[candidate.id],
                )
                for candidate in standing
            ],
            total_votes=sum(counts.values()),
        )

    voted = {vote.voter_email.lower() for vote in votes}
    stats = VoterStats(
        total_eligible=len(eligible_emails),
        total_voted=len(votes),
        turnout_percentage=turnout(len(votes), len(eligible_emails)),
        not_voted=[email for email in eligible_emails if email.lower() not in voted],
    )
    return ResultsSummary(results=results, voter_stats=stats)


__all__ = [
    "CandidateTally",
    "PositionResult",
    "ResultsSummary",
    "VoterStats",
    "tally",
    "turnout",
]
