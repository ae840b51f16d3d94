"""Withdrawal flow: code request by withdrawal link, verification and withdrawal."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from elections.core.config import Settings
from elections.core.errors import ConflictError, EligibilityError, NotFoundError, ValidationError
from elections.core.logging import mask_email
from elections.models import Nomination, Purpose, utcnow
from elections.obs.audit import log_security_event
from elections.obs.metrics import SUBMISSION_COUNTER
from elections.schemas import WithdrawalDetails, WithdrawalForm, parse_payload
from elections.services import event_store
from elections.services.email_templates import withdrawal_confirmation_email
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


def request_code(
    session: Session,
    store: TokenStore,
    notifier: Notifier,
    settings: Settings,
    *,
    withdrawal_token: str,
    client: ClientInfo,
) -> str:
    """Issue a withdrawal OTP to the nominee behind ``withdrawal_token``."""
    nomination = event_store.find_nomination_by_withdrawal_token(session, withdrawal_token)
    if nomination is None:
        raise NotFoundError("Nomination not found or already withdrawn")
    event = nomination.event
    if not event_store.withdrawal_window_open(event, utcnow()):
        raise EligibilityError("Withdrawal period is not active")

    return issue_code(
        store,
        notifier,
        policy_for(Purpose.WITHDRAWAL, settings),
        settings,
        event_id=event.id,
        event_name=event.name,
        email=nomination.email,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )


def verify(
    store: TokenStore,
    settings: Settings,
    *,
    short_code: str,
    otp: str,
    client: ClientInfo,
) -> VerifiedSession:
    return verify_code(
        store,
        policy_for(Purpose.WITHDRAWAL, settings),
        settings,
        code=short_code,
        otp=otp,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )


def _active_nomination(session: Session, claims: SessionClaims) -> Nomination:
    nomination = event_store.find_nomination(session, event_id=claims.event_id, email=claims.email)
    if nomination is None or nomination.is_withdrawn:
        raise NotFoundError("Nomination not found")
    return nomination


def get_details(session: Session, claims: SessionClaims) -> WithdrawalDetails:
    nomination = _active_nomination(session, claims)
    return WithdrawalDetails(
        email=nomination.email,
        first_name=nomination.first_name,
        last_name=nomination.last_name,
        student_id=nomination.student_id,
        faculty=nomination.faculty,
        year=nomination.year,
        positions=list(nomination.positions),
        event_name=nomination.event.name,
    )


def submit(
    session: Session,
    notifier: Notifier,
    settings: Settings,
    claims: SessionClaims,
    payload: Any,
    *,
    client: ClientInfo,
) -> Nomination:
    """Withdraw the whole nomination, or every position not listed in ``payload``.

    A nomination can be withdrawn from once; any recorded withdrawal blocks
    further changes.
    """
    form = parse_payload(WithdrawalForm, payload)
    nomination = _active_nomination(session, claims)
    if nomination.has_withdrawal:
        raise ConflictError("Nomination has already been withdrawn or partially withdrawn")
    event = nomination.event
    if not event_store.withdrawal_window_open(event, utcnow()):
        raise EligibilityError("Withdrawal period is not active")

    original = list(nomination.positions)
    kept = list(dict.fromkeys(form.positions))
    unknown = [position for position in kept if position not in original]
    if unknown:
        raise ValidationError(
            "Invalid input",
            details=[{"path": ["positions"], "message": f"Not nominated for: {', '.join(unknown)}"}],
        )

    now = utcnow()
    if kept:
        withdrawn = [position for position in original if position not in kept]
        nomination.positions = kept
    else:
        withdrawn = original
        nomination.is_withdrawn = True
    nomination.withdrawn_positions = withdrawn
    nomination.withdrawn_at = now
    session.commit()

    SUBMISSION_COUNTER.labels(purpose=Purpose.WITHDRAWAL.value).inc()
    logger.info(
        "%s withdrawal recorded for %s on event %s",
        "partial" if kept else "complete",
        mask_email(claims.email),
        event.id,
    )
    log_security_event(
        "WITHDRAWAL_SUBMITTED",
        ip_address=client.ip_address,
        user_agent=client.user_agent,
        email=claims.email,
        event_id=event.id,
        withdrawn_positions=withdrawn,
    )

    content = withdrawal_confirmation_email(
        event_name=event.name,
        first_name=nomination.first_name,
        last_name=nomination.last_name,
        student_id=nomination.student_id,
        faculty=nomination.faculty,
        year=nomination.year,
        withdrawn_positions=withdrawn,
        remaining_positions=kept,
        processed_at=now,
    )
    notifier.send(nomination.email, content.subject, content.html)
    return nomination


__all__ = ["get_details", "request_code", "submit", "verify"]
