"""Administrator management of nomination and voting events."""
from __future__ import annotations

import csv
import io
import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Literal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from elections.core.config import Settings
from elections.core.errors import ConflictError, NotFoundError, ValidationError
from elections.models import (
    Admin,
    Candidate,
    Nomination,
    NominationEvent,
    Vote,
    VotingEvent,
    as_utc,
    utcnow,
)
from elections.schemas import (
    NominationEventCreate,
    NominationEventUpdate,
    TimeSettingsUpdate,
    VotingEventCreate,
    VotingEventUpdate,
)
from elections.services import event_store
from elections.services.results import ResultsSummary, tally

logger = logging.getLogger(__name__)

ExportFormat = Literal["csv", "json"]

SUGGESTION_LIMIT = 50
SUGGESTION_WINDOW_DAYS = 30

_CSV_HEADERS = [
    "Email",
    "First Name",
    "Last Name",
    "Student ID",
    "Faculty",
    "Year",
    "Positions",
    "Is Withdrawn",
    "Withdrawn Positions",
    "Submitted At",
    "IP Address",
    "Location",
]


def slugify(name: str) -> str:
    """Lower-case ``name``, drop anything but ``[a-z0-9]``, spaces and hyphens, hyphenate spaces."""
    slug = re.sub(r"[^a-z0-9\s-]", "", name.lower())
    return re.sub(r"\s+", "-", slug.strip())


def _check_window(start: datetime, end: datetime, label: str) -> None:
    if as_utc(start) >= as_utc(end):
        raise ValidationError(f"{label} end time must be after start time")


def _commit_or_conflict(session: Session, message: str) -> None:
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise ConflictError(message) from exc


def _nomination_link(settings: Settings, slug: str) -> str:
    return f"{settings.frontend_url.rstrip('/')}/nominate/{slug}"


def _voting_link(settings: Settings, slug: str) -> str:
    return f"{settings.frontend_url.rstrip('/')}/vote/{slug}"


# Nomination events


def create_nomination_event(
    session: Session,
    settings: Settings,
    payload: NominationEventCreate,
    *,
    admin: Admin | None = None,
) -> tuple[NominationEvent, str]:
    """Create a nomination event and return it with its public nomination link."""
    slug = slugify(payload.name)
    if not slug:
        raise ValidationError("Event name must contain letters or digits")
    existing = session.scalars(
        select(NominationEvent.id).where(
            (NominationEvent.slug == slug) | (NominationEvent.name == payload.name)
        )
    ).first()
    if existing is not None:
        raise ConflictError("Event name already exists")
    _check_window(payload.nomination_start_time, payload.nomination_end_time, "Nomination")
    _check_window(payload.withdrawal_start_time, payload.withdrawal_end_time, "Withdrawal")

    event = NominationEvent(
        name=payload.name,
        slug=slug,
        description=payload.description,
        rules=payload.rules,
        nomination_start_time=payload.nomination_start_time,
        nomination_end_time=payload.nomination_end_time,
        withdrawal_start_time=payload.withdrawal_start_time,
        withdrawal_end_time=payload.withdrawal_end_time,
        eligible_emails=list(payload.eligible_emails),
        enable_time_check=payload.enable_time_check,
        enable_nomination_time=payload.enable_nomination_time,
        enable_withdrawal_time=payload.enable_withdrawal_time,
        created_by_id=admin.id if admin else None,
    )
    session.add(event)
    _commit_or_conflict(session, "Event name already exists")
    session.refresh(event)
    logger.info("nomination event %s created", event.slug)
    return event, _nomination_link(settings, slug)


def list_nomination_events(session: Session) -> list[tuple[NominationEvent, int]]:
    counts = (
        select(Nomination.event_id, func.count(Nomination.id).label("total"))
        .group_by(Nomination.event_id)
        .subquery()
    )
    rows = session.execute(
        select(NominationEvent, func.coalesce(counts.c.total, 0))
        .outerjoin(counts, counts.c.event_id == NominationEvent.id)
        .order_by(NominationEvent.created_at.desc())
    ).all()
    return [(event, int(total)) for event, total in rows]


def update_nomination_event(
    session: Session, event_id: str, payload: NominationEventUpdate
) -> NominationEvent:
    """Apply the supplied fields; the slug stays fixed so published links keep working."""
    event = event_store.get_nomination_event(session, event_id)
    changes = payload.model_dump(exclude_unset=True)
    for key in (
        "nomination_start_time",
        "nomination_end_time",
        "withdrawal_start_time",
        "withdrawal_end_time",
    ):
        if key in changes and changes[key] is None:
            raise ValidationError(f"{key} cannot be cleared")
    _check_window(
        changes.get("nomination_start_time", event.nomination_start_time),
        changes.get("nomination_end_time", event.nomination_end_time),
        "Nomination",
    )
    _check_window(
        changes.get("withdrawal_start_time", event.withdrawal_start_time),
        changes.get("withdrawal_end_time", event.withdrawal_end_time),
        "Withdrawal",
    )
    for key, value in changes.items():
        if value is None and key not in {"description", "rules"}:
            continue
        setattr(event, key, list(value) if key == "eligible_emails" else value)
    _commit_or_conflict(session, "Event name already exists")
    session.refresh(event)
    return event


def update_time_settings(session: Session, event_id: str, payload: TimeSettingsUpdate) -> NominationEvent:
    event = event_store.get_nomination_event(session, event_id)
    for key, value in payload.model_dump(exclude_none=True).items():
        setattr(event, key, value)
    session.commit()
    session.refresh(event)
    return event


def list_submissions(session: Session, event_id: str) -> list[Nomination]:
    event_store.get_nomination_event(session, event_id)
    return list(
        session.scalars(
            select(Nomination)
            .options(selectinload(Nomination.event))
            .where(Nomination.event_id == event_id)
            .order_by(Nomination.submitted_at.desc())
        )
    )


@dataclass(slots=True, frozen=True)
class ExportFile:
    content: str
    media_type: str
    filename: str


def _submission_row(nomination: Nomination) -> list[str]:
    return [
        nomination.email,
        nomination.first_name,
        nomination.last_name,
        nomination.student_id,
        nomination.faculty,
        nomination.year,
        "; ".join(nomination.positions),
        "Yes" if nomination.is_withdrawn else "No",
        "; ".join(nomination.withdrawn_positions or []),
        as_utc(nomination.submitted_at).isoformat(),
        nomination.ip_address or "",
        nomination.location or "N/A",
    ]


def _submission_dict(nomination: Nomination) -> dict[str, object]:
    return {
        "id": nomination.id,
        "email": nomination.email,
        "firstName": nomination.first_name,
        "lastName": nomination.last_name,
        "studentId": nomination.student_id,
        "faculty": nomination.faculty,
        "year": nomination.year,
        "positions": list(nomination.positions),
        "isWithdrawn": nomination.is_withdrawn,
        "withdrawnAt": as_utc(nomination.withdrawn_at).isoformat() if nomination.withdrawn_at else None,
        "withdrawnPositions": list(nomination.withdrawn_positions or []),
        "submittedAt": as_utc(nomination.submitted_at).isoformat(),
        "ipAddress": nomination.ip_address,
        "location": nomination.location,
    }


def export_submissions(session: Session, event_id: str, fmt: ExportFormat = "json") -> ExportFile:
    event = event_store.get_nomination_event(session, event_id)
    nominations = list_submissions(session, event_id)
    stem = re.sub(r"[^a-z0-9]", "_", event.name.lower())
    filename = f"nominations-{stem}-{utcnow():%Y%m%d%H%M%S}"

    if fmt == "csv":
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(_CSV_HEADERS)
        for nomination in nominations:
            writer.writerow(_submission_row(nomination))
        return ExportFile(content=output.getvalue(), media_type="text/csv", filename=f"{filename}.csv")

    document = {
        "event": {
            "id": event.id,
            "name": event.name,
            "slug": event.slug,
            "nominationStartTime": as_utc(event.nomination_start_time).isoformat(),
            "nominationEndTime": as_utc(event.nomination_end_time).isoformat(),
            "withdrawalStartTime": as_utc(event.withdrawal_start_time).isoformat(),
            "withdrawalEndTime": as_utc(event.withdrawal_end_time).isoformat(),
        },
        "submissions": [_submission_dict(nomination) for nomination in nominations],
    }
    return ExportFile(
        content=json.dumps(document, indent=2),
        media_type="application/json",
        filename=f"{filename}.json",
    )


def nomination_suggestions(session: Session, *, now: datetime | None = None) -> list[Nomination]:
    """Recent active nominations, used to pre-fill candidate slates."""
    since = (now or utcnow()) - timedelta(days=SUGGESTION_WINDOW_DAYS)
    return list(
        session.scalars(
            select(Nomination)
            .join(NominationEvent, Nomination.event_id == NominationEvent.id)
            .options(selectinload(Nomination.event))
            .where(Nomination.is_withdrawn.is_(False), NominationEvent.created_at >= since)
            .order_by(Nomination.submitted_at.desc())
            .limit(SUGGESTION_LIMIT)
        )
    )


# Voting events


def create_voting_event(
    session: Session,
    settings: Settings,
    payload: VotingEventCreate,
    *,
    admin: Admin | None = None,
) -> tuple[VotingEvent, str]:
    slug = slugify(payload.name)
    if not slug:
        raise ValidationError("Event name must contain letters or digits")
    existing = session.scalars(
        select(VotingEvent.id).where((VotingEvent.slug == slug) | (VotingEvent.name == payload.name))
    ).first()
    if existing is not None:
        raise ConflictError("Event name already exists")
    _check_window(payload.voting_start_time, payload.voting_end_time, "Voting")

    event = VotingEvent(
        name=payload.name,
        slug=slug,
        description=payload.description,
        rules=payload.rules,
        voting_start_time=payload.voting_start_time,
        voting_end_time=payload.voting_end_time,
        eligible_emails=list(payload.eligible_emails),
        enable_time_check=payload.enable_time_check,
        enable_voting_time=payload.enable_voting_time,
        created_by_id=admin.id if admin else None,
        candidates=[
            Candidate(
                first_name=candidate.first_name,
                last_name=candidate.last_name,
                student_id=candidate.student_id,
                faculty=candidate.faculty,
                year=candidate.year,
                positions=list(candidate.positions),
            )
            for candidate in payload.candidates
        ],
    )
    session.add(event)
    _commit_or_conflict(session, "Event name already exists")
    session.refresh(event)
    logger.info("voting event %s created with %d candidates", event.slug, len(payload.candidates))
    return event, _voting_link(settings, slug)


def list_voting_events(session: Session) -> list[tuple[VotingEvent, int]]:
    counts = (
        select(Vote.event_id, func.count(Vote.id).label("total")).group_by(Vote.event_id).subquery()
    )
    rows = session.execute(
        select(VotingEvent, func.coalesce(counts.c.total, 0))
        .options(selectinload(VotingEvent.candidates))
        .outerjoin(counts, counts.c.event_id == VotingEvent.id)
        .order_by(VotingEvent.created_at.desc())
    ).all()
    return [(event, int(total)) for event, total in rows]


def update_voting_event(session: Session, event_id: str, payload: VotingEventUpdate) -> VotingEvent:
    event = event_store.get_voting_event(session, event_id)
    changes = payload.model_dump(exclude_unset=True)
    for key in ("voting_start_time", "voting_end_time"):
        if key in changes and changes[key] is None:
            raise ValidationError(f"{key} cannot be cleared")
    _check_window(
        changes.get("voting_start_time", event.voting_start_time),
        changes.get("voting_end_time", event.voting_end_time),
        "Voting",
    )
    for key, value in changes.items():
        if value is None and key not in {"description", "rules"}:
            continue
        setattr(event, key, list(value) if key == "eligible_emails" else value)
    _commit_or_conflict(session, "Event name already exists")
    session.refresh(event)
    return event


def deactivate_voting_event(session: Session, event_id: str) -> VotingEvent:
    """Soft delete: the event leaves the public surface, votes are kept."""
    event = event_store.get_voting_event(session, event_id)
    event.is_active = False
    session.commit()
    return event


def extend_voting_period(session: Session, event_id: str, additional_minutes: int) -> VotingEvent:
    event = event_store.get_voting_event(session, event_id)
    event.voting_end_time = as_utc(event.voting_end_time) + timedelta(minutes=additional_minutes)
    session.commit()
    session.refresh(event)
    return event


def voting_results(session: Session, event_id: str) -> tuple[VotingEvent, list[Vote], ResultsSummary]:
    event = event_store.get_voting_event(session, event_id)
    votes = list(
        session.scalars(select(Vote).where(Vote.event_id == event.id).order_by(Vote.submitted_at))
    )
    return event, votes, tally(list(event.candidates), votes, list(event.eligible_emails))


__all__ = [
    "ExportFile",
    "SUGGESTION_LIMIT",
    "create_nomination_event",
    "create_voting_event",
    "deactivate_voting_event",
    "export_submissions",
    "extend_voting_period",
    "list_nomination_events",
    "list_submissions",
    "list_voting_events",
    "nomination_suggestions",
    "slugify",
    "update_nomination_event",
    "update_time_settings",
    "update_voting_event",
    "voting_results",
]
