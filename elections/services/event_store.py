"""Lookups over event aggregates and their submissions."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from elections.core.errors import NotFoundError
from elections.models import Nomination, NominationEvent, Vote, VotingEvent, as_utc


def window_open(
    *,
    enable_time_check: bool,
    enable_window: bool,
    start: datetime,
    end: datetime,
    now: datetime,
) -> bool:
    """Return whether ``now`` falls inside ``[start, end]`` when the window is enforced."""
    if not (enable_time_check and enable_window):
        return True
    return as_utc(start) <= now <= as_utc(end)


def nomination_window_open(event: NominationEvent, now: datetime) -> bool:
    return window_open(
        enable_time_check=event.enable_time_check,
        enable_window=event.enable_nomination_time,
        start=event.nomination_start_time,
        end=event.nomination_end_time,
        now=now,
    )


def withdrawal_window_open(event: NominationEvent, now: datetime) -> bool:
    return window_open(
        enable_time_check=event.enable_time_check,
        enable_window=event.enable_withdrawal_time,
        start=event.withdrawal_start_time,
        end=event.withdrawal_end_time,
        now=now,
    )


def voting_window_open(event: VotingEvent, now: datetime) -> bool:
    return window_open(
        enable_time_check=event.enable_time_check,
        enable_window=event.enable_voting_time,
        start=event.voting_start_time,
        end=event.voting_end_time,
        now=now,
    )


def is_eligible(eligible_emails: list[str], email: str) -> bool:
    return email.lower() in {item.lower() for item in eligible_emails}


def get_active_nomination_event(session: Session, slug: str) -> NominationEvent:
    event = session.scalars(
        select(NominationEvent).where(NominationEvent.slug == slug, NominationEvent.is_active.is_(True))
    ).one_or_none()
    if event is None:
        raise NotFoundError("Nomination event not found")
    return event


def get_active_voting_event(session: Session, slug: str) -> VotingEvent:
    event = session.scalars(
        select(VotingEvent)
        .options(selectinload(VotingEvent.candidates))
        .where(VotingEvent.slug == slug, VotingEvent.is_active.is_(True))
    ).one_or_none()
    if event is None:
        raise NotFoundError("Voting event not found")
    return event


def get_nomination_event(session: Session, event_id: str, *, active_only: bool = False) -> NominationEvent:
    event = session.get(NominationEvent, event_id)
    if event is None or (active_only and not event.is_active):
        raise NotFoundError("Event not found")
    return event


def get_voting_event(session: Session, event_id: str, *, active_only: bool = False) -> VotingEvent:
    event = session.get(VotingEvent, event_id, options=[selectinload(VotingEvent.candidates)])
    if event is None or (active_only and not event.is_active):
        raise NotFoundError("Voting event not found")
    return event


def find_nomination(session: Session, *, event_id: str, email: str) -> Nomination | None:
    return session.scalars(
        select(Nomination).where(Nomination.event_id == event_id, Nomination.email == email)
    ).one_or_none()


def find_nomination_by_withdrawal_token(session: Session, token: str) -> Nomination | None:
    return session.scalars(
        select(Nomination)
        .options(selectinload(Nomination.event))
        .where(Nomination.withdrawal_token == token, Nomination.is_withdrawn.is_(False))
    ).one_or_none()


def find_vote(session: Session, *, event_id: str, email: str) -> Vote | None:
    return session.scalars(
        select(Vote).where(Vote.event_id == event_id, Vote.voter_email == email)
    ).one_or_none()


def count_nominations(session: Session, event_id: str) -> int:
    return session.scalar(select(func.count(Nomination.id)).where(Nomination.event_id == event_id)) or 0


def count_votes(session: Session, event_id: str) -> int:
    return session.scalar(select(func.count(Vote.id)).where(Vote.event_id == event_id)) or 0


__all__ = [
    "count_nominations",
    "count_votes",
    "find_nomination",
    "find_nomination_by_withdrawal_token",
    "find_vote",
    "get_active_nomination_event",
    "get_active_voting_event",
    "get_nomination_event",
    "get_voting_event",
    "is_eligible",
    "nomination_window_open",
    "voting_window_open",
    "window_open",
    "withdrawal_window_open",
]
