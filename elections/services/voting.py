"""Voting flow: ballot details, code request, verification and vote submission."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from elections.core.config import Settings
from elections.core.errors import ConflictError, EligibilityError, ValidationError
from elections.core.logging import mask_email
from elections.models import Candidate, Purpose, Vote, VotingEvent, as_utc, utcnow
from elections.obs.audit import log_security_event
from elections.obs.metrics import SUBMISSION_COUNTER
from elections.schemas import POSITIONS, BallotForm, CandidateRead, VotingEventPublic, parse_payload
from elections.services import event_store
from elections.services.email_templates import vote_receipt_email
from elections.services.location import ClientInfo
from elections.services.notifier import Notifier
from elections.services.token_store import TokenStore
from elections.services.verification import (
    SessionClaims,
    VerifiedSession,
    issue_code,
    policy_for,
    verify_code,
)

logger = logging.getLogger(__name__)

ALREADY_VOTED_MESSAGE = "You have already voted in this event"
INVALID_SELECTION_MESSAGE = "Invalid candidate selection"


def candidates_by_position(candidates: list[Candidate]) -> dict[str, list[Candidate]]:
    return {
        position: [candidate for candidate in candidates if position in (candidate.positions or [])]
        for position in POSITIONS
    }


def get_public_event(session: Session, slug: str) -> VotingEventPublic:
    event = event_store.get_active_voting_event(session, slug)
    grouped = candidates_by_position(list(event.candidates))
    return VotingEventPublic(
        id=event.id,
        name=event.name,
        description=event.description,
        rules=event.rules,
        voting_start_time=as_utc(event.voting_start_time),
        voting_end_time=as_utc(event.voting_end_time),
        is_open=event_store.voting_window_open(event, utcnow()),
        candidates_by_position={
            position: [CandidateRead.model_validate(candidate) for candidate in members]
            for position, members in grouped.items()
        },
    )


def request_code(
    session: Session,
    store: TokenStore,
    notifier: Notifier,
    settings: Settings,
    *,
    email: str,
    slug: str,
    client: ClientInfo,
) -> str:
    """Issue a voting OTP and return the opaque token that identifies it."""
    event = event_store.get_active_voting_event(session, slug)
    if not event_store.voting_window_open(event, utcnow()):
        raise EligibilityError("Voting period is not active")
    if not event_store.is_eligible(event.eligible_emails, email):
        raise EligibilityError("Your email is not eligible for this voting event")
    if event_store.find_vote(session, event_id=event.id, email=email) is not None:
        raise ConflictError(ALREADY_VOTED_MESSAGE)

    return issue_code(
        store,
        notifier,
        policy_for(Purpose.VOTING, settings),
        settings,
        event_id=event.id,
        event_name=event.name,
        email=email,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )


def verify(
    store: TokenStore,
    settings: Settings,
    *,
    token: str,
    otp: str,
    client: ClientInfo,
) -> VerifiedSession:
    return verify_code(
        store,
        policy_for(Purpose.VOTING, settings),
        settings,
        code=token,
        otp=otp,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )


def resolve_ballot(event: VotingEvent, ballot: dict[str, str]) -> list[tuple[str, Candidate]]:
    """Map each ``position -> candidate id`` selection onto this event's slate.

    Every selected id must belong to the event and appear once on the ballot.
    The candidate must also stand for the position it was chosen for.
    """
    if len(set(ballot.values())) != len(ballot):
        raise ValidationError(INVALID_SELECTION_MESSAGE)
    slate = {candidate.id: candidate for candidate in event.candidates}
    selections: list[tuple[str, Candidate]] = []
    for position, candidate_id in ballot.items():
        candidate = slate.get(candidate_id)
        if candidate is None or position not in (candidate.positions or []):
            raise ValidationError(INVALID_SELECTION_MESSAGE)
        selections.append((position, candidate))
    return selections


def submit(
    session: Session,
    notifier: Notifier,
    settings: Settings,
    claims: SessionClaims,
    payload: Any,
    *,
    client: ClientInfo,
) -> Vote:
    event = event_store.get_voting_event(session, claims.event_id, active_only=True)
    if not event_store.voting_window_open(event, utcnow()):
        raise EligibilityError("Voting period is not active")
    if not event_store.is_eligible(event.eligible_emails, claims.email):
        raise EligibilityError("Your email is not eligible for this voting event")
    if event_store.find_vote(session, event_id=event.id, email=claims.email) is not None:
        raise ConflictError(ALREADY_VOTED_MESSAGE)
    form = parse_payload(BallotForm, payload)
    selections = resolve_ballot(event, form.ballot)

    now = utcnow()
    vote = Vote(
        event_id=event.id,
        voter_email=claims.email,
        voter_first_name=form.voter_first_name,
        voter_last_name=form.voter_last_name,
        voter_student_id=form.voter_student_id,
        voter_faculty=form.voter_faculty,
        voter_year=form.voter_year,
        ballot=dict(form.ballot),
        ip_address=client.ip_address,
        location=client.location,
        user_agent=client.user_agent,
        submitted_at=now,
    )
    session.add(vote)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise ConflictError(ALREADY_VOTED_MESSAGE) from exc

    SUBMISSION_COUNTER.labels(purpose=Purpose.VOTING.value).inc()
    logger.info("vote recorded for %s on event %s", mask_email(claims.email), event.id)
    log_security_event(
        "VOTE_SUBMITTED",
        ip_address=client.ip_address,
        user_agent=client.user_agent,
        email=claims.email,
        event_id=event.id,
    )

    content = vote_receipt_email(
        event_name=event.name,
        first_name=form.voter_first_name,
        last_name=form.voter_last_name,
        student_id=form.voter_student_id,
        selections=[(position, candidate.full_name) for position, candidate in selections],
        submitted_at=now,
    )
    notifier.send(claims.email, content.subject, content.html)
    return vote


__all__ = [
    "ALREADY_VOTED_MESSAGE",
    "INVALID_SELECTION_MESSAGE",
    "candidates_by_position",
    "get_public_event",
    "request_code",
    "resolve_ballot",
    "submit",
    "verify",
]
