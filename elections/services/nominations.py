"""Nomination flow: event details, code request, verification and submission."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from elections.core.config import Settings
from elections.core.errors import ConflictError, EligibilityError
from elections.core.logging import mask_email
from elections.models import Nomination, NominationEvent, Purpose, as_utc, utcnow
from elections.obs.audit import log_security_event
from elections.obs.metrics import SUBMISSION_COUNTER
from elections.schemas import NominationEventPublic, NominationForm, parse_payload
from elections.services import event_store
from elections.services.email_templates import nomination_confirmation_email
from elections.services.location import ClientInfo
from elections.services.notifier import Notifier
from elections.services.token_store import TokenStore
from elections.services.verification import (
    SessionClaims,
    VerifiedSession,
    generate_hex_token,
    issue_code,
    policy_for,
    verify_code,
)

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "You have already submitted a nomination for this event"


def get_public_event(session: Session, slug: str) -> NominationEventPublic:
    event = event_store.get_active_nomination_event(session, slug)
    return NominationEventPublic(
        id=event.id,
        name=event.name,
        description=event.description,
        rules=event.rules,
        nomination_start_time=as_utc(event.nomination_start_time),
        nomination_end_time=as_utc(event.nomination_end_time),
        withdrawal_start_time=as_utc(event.withdrawal_start_time),
        withdrawal_end_time=as_utc(event.withdrawal_end_time),
        enable_time_check=event.enable_time_check,
        enable_nomination_time=event.enable_nomination_time,
        is_open=event_store.nomination_window_open(event, utcnow()),
    )


def _ensure_open_and_eligible(event: NominationEvent, email: str) -> None:
    if not event_store.nomination_window_open(event, utcnow()):
        raise EligibilityError("Nomination period is not active")
    if not event_store.is_eligible(event.eligible_emails, email):
        raise EligibilityError("Your email is not eligible for this event")


def _ensure_can_nominate(session: Session, event: NominationEvent, email: str) -> None:
    existing = event_store.find_nomination(session, event_id=event.id, email=email)
    if existing is not None and not existing.is_withdrawn:
        raise ConflictError(DUPLICATE_MESSAGE)


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
    """Issue a nomination OTP and return the short code that identifies it."""
    event = event_store.get_active_nomination_event(session, slug)
    _ensure_open_and_eligible(event, email)
    _ensure_can_nominate(session, event, email)

    return issue_code(
        store,
        notifier,
        policy_for(Purpose.NOMINATION, settings),
        settings,
        event_id=event.id,
        event_name=event.name,
        email=email,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )


def verify(
    session: Session,
    store: TokenStore,
    settings: Settings,
    *,
    short_code: str,
    otp: str,
    client: ClientInfo,
) -> tuple[VerifiedSession, NominationEvent]:
    verified = verify_code(
        store,
        policy_for(Purpose.NOMINATION, settings),
        settings,
        code=short_code,
        otp=otp,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return verified, event_store.get_nomination_event(session, verified.event_id)


def session_summary(session: Session, claims: SessionClaims) -> dict[str, str]:
    event = event_store.get_nomination_event(session, claims.event_id)
    return {"email": claims.email, "event_name": event.name}


def withdrawal_link(settings: Settings, slug: str, token: str) -> str:
    return f"{settings.frontend_url.rstrip('/')}/nominate/{slug}/withdraw?token={token}"


def submit(
    session: Session,
    notifier: Notifier,
    settings: Settings,
    claims: SessionClaims,
    payload: Any,
    *,
    client: ClientInfo,
) -> Nomination:
    """Record the nomination for the verified session holder.

    A fully withdrawn nomination for the same email and event is reused so the
    ``(email, event)`` uniqueness holds across re-nomination.
    """
    event = event_store.get_nomination_event(session, claims.event_id, active_only=True)
    _ensure_open_and_eligible(event, claims.email)
    existing = event_store.find_nomination(session, event_id=event.id, email=claims.email)
    if existing is not None and not existing.is_withdrawn:
        raise ConflictError(DUPLICATE_MESSAGE)
    form = parse_payload(NominationForm, payload)

    token = generate_hex_token()
    now = utcnow()
    nomination = existing or Nomination(event_id=event.id, email=claims.email)
    nomination.first_name = form.first_name
    nomination.last_name = form.last_name
    nomination.student_id = form.student_id
    nomination.faculty = form.faculty
    nomination.year = form.year
    nomination.positions = list(form.positions)
    nomination.is_withdrawn = False
    nomination.withdrawn_at = None
    nomination.withdrawn_positions = []
    nomination.withdrawal_token = token
    nomination.ip_address = client.ip_address
    nomination.location = client.location
    nomination.submitted_at = now
    session.add(nomination)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise ConflictError(DUPLICATE_MESSAGE) from exc

    SUBMISSION_COUNTER.labels(purpose=Purpose.NOMINATION.value).inc()
    logger.info("nomination recorded for %s on event %s", mask_email(claims.email), event.id)
    log_security_event(
        "NOMINATION_SUBMITTED",
        ip_address=client.ip_address,
        user_agent=client.user_agent,
        email=claims.email,
        event_id=event.id,
    )

    content = nomination_confirmation_email(
        event_name=event.name,
        first_name=form.first_name,
        last_name=form.last_name,
        student_id=form.student_id,
        faculty=form.faculty,
        year=form.year,
        positions=list(form.positions),
        withdrawal_link=withdrawal_link(settings, event.slug, token),
        withdrawal_start=as_utc(event.withdrawal_start_time),
        withdrawal_end=as_utc(event.withdrawal_end_time),
    )
    notifier.send(claims.email, content.subject, content.html)
    return nomination


__all__ = [
    "DUPLICATE_MESSAGE",
    "get_public_event",
    "request_code",
    "session_summary",
    "submit",
    "verify",
    "withdrawal_link",
]
