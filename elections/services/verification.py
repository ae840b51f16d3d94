"""OTP issue, verification and session handling shared by every election flow.

Each flow (nomination, voting, withdrawal) walks the same states for an
``(email, event, purpose)`` triple::

    NONE -> REQUESTED -> VERIFIED -> CONSUMED

``REQUESTED`` is a live OTP record, ``VERIFIED`` is the record marked used plus
a signed session cookie, and ``CONSUMED`` is reached when the submission
handler clears that cookie. Requesting again upserts the record and starts
over. The differences between flows live entirely in :class:`FlowPolicy`.
"""
from __future__ import annotations

import hmac
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from jose import JWTError, jwt  # type: ignore[import-untyped]

from elections.core.config import Settings
from elections.core.errors import AuthError, LockoutError
from elections.core.logging import mask_email
from elections.models import Purpose, utcnow
from elections.obs.audit import log_security_event
from elections.obs.metrics import OTP_REQUEST_COUNTER, OTP_VERIFY_COUNTER
from elections.obs.tracing import workflow_span
from elections.services.email_templates import (
    EmailContent,
    nomination_otp_email,
    voting_otp_email,
    withdrawal_otp_email,
)
from elections.services.notifier import Notifier
from elections.services.token_store import TokenStore

logger = logging.getLogger(__name__)


def generate_otp() -> str:
    """Six decimal digits drawn uniformly from 100000-999999."""
    return str(100000 + secrets.randbelow(900000))


def generate_short_code() -> str:
    # 12 random bytes encode to exactly 16 URL-safe characters.
    return secrets.token_urlsafe(12)


def generate_hex_token() -> str:
    return secrets.token_hex(32)


@dataclass(slots=True, frozen=True)
class FlowPolicy:
    """Per-purpose parameters for the shared verification workflow."""

    purpose: Purpose
    cookie_name: str
    session_minutes: int
    code_factory: Callable[[], str]
    otp_email: Callable[[str, str, int], EmailContent]

    @property
    def session_seconds(self) -> int:
        return self.session_minutes * 60


def policy_for(purpose: Purpose, settings: Settings) -> FlowPolicy:
    if purpose is Purpose.NOMINATION:
        return FlowPolicy(
            purpose=purpose,
            cookie_name="sessionToken",
            session_minutes=settings.nomination_session_minutes,
            code_factory=generate_short_code,
            otp_email=nomination_otp_email,
        )
    if purpose is Purpose.VOTING:
        return FlowPolicy(
            purpose=purpose,
            cookie_name="votingSession",
            session_minutes=settings.voting_session_minutes,
            code_factory=generate_hex_token,
            otp_email=voting_otp_email,
        )
    return FlowPolicy(
        purpose=Purpose.WITHDRAWAL,
        cookie_name="withdrawalToken",
        session_minutes=settings.withdrawal_session_minutes,
        code_factory=generate_short_code,
        otp_email=withdrawal_otp_email,
    )


@dataclass(slots=True, frozen=True)
class VerifiedSession:
    """Result of a successful verification: the signed token and its scope."""

    token: str
    email: str
    event_id: str
    max_age: int


@dataclass(slots=True, frozen=True)
class SessionClaims:
    email: str
    event_id: str


def issue_code(
    store: TokenStore,
    notifier: Notifier,
    policy: FlowPolicy,
    settings: Settings,
    *,
    event_id: str,
    event_name: str,
    email: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
    now: datetime | None = None,
) -> str:
    """Create or replace the pending OTP for ``email`` and mail it out.

    Returns the public code the client echoes back on verification.
    """
    now = now or utcnow()
    otp = generate_otp()
    code = policy.code_factory()
    with workflow_span("issue_code", purpose=policy.purpose.value, event_id=event_id):
        store.upsert(
            purpose=policy.purpose,
            event_id=event_id,
            email=email,
            otp=otp,
            code=code,
            expires_at=now + timedelta(minutes=settings.otp_ttl_minutes),
            max_attempts=settings.otp_max_attempts,
            ip_address=ip_address,
        )
        content = policy.otp_email(event_name, otp, settings.otp_ttl_minutes)
        notifier.send(email, content.subject, content.html)

        OTP_REQUEST_COUNTER.labels(purpose=policy.purpose.value).inc()
        logger.info("%s code issued for %s on event %s", policy.purpose.value, mask_email(email), event_id)
        log_security_event(
            "OTP_REQUESTED",
            ip_address=ip_address,
            user_agent=user_agent,
            purpose=policy.purpose.value,
            email=email,
            event_id=event_id,
        )
        return code


def issue_session_token(
    settings: Settings,
    *,
    email: str,
    event_id: str,
    purpose: Purpose,
    minutes: int,
    now: datetime | None = None,
) -> str:
    now = now or utcnow()
    claims = {
        "email": email.lower(),
        "event_id": event_id,
        "type": purpose.value,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=minutes)).timestamp()),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_code(
    store: TokenStore,
    policy: FlowPolicy,
    settings: Settings,
    *,
    code: str,
    otp: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
    now: datetime | None = None,
) -> VerifiedSession:
    """Check ``otp`` against the live record behind ``code`` and open a session.

    Raises :class:`AuthError` for unknown, expired, used or mismatched codes and
    :class:`LockoutError` once the record has used up its attempts.
    """
    now = now or utcnow()
    purpose = policy.purpose.value
    with workflow_span("verify_code", purpose=purpose) as span:
        record = store.find_live_by_code(code, policy.purpose, now)
        if record is None:
            OTP_VERIFY_COUNTER.labels(purpose=purpose, outcome="invalid").inc()
            raise AuthError("Invalid or expired OTP")
        span.set_attribute("election.event_id", record.event_id)

        if record.attempts >= record.max_attempts:
            OTP_VERIFY_COUNTER.labels(purpose=purpose, outcome="locked").inc()
            log_security_event(
                "OTP_LOCKED", ip_address=ip_address, user_agent=user_agent, purpose=purpose, email=record.email
            )
            raise LockoutError()

        if not hmac.compare_digest(record.otp, otp):
            attempts = store.increment_attempts(record.id)
            OTP_VERIFY_COUNTER.labels(purpose=purpose, outcome="mismatch").inc()
            raise AuthError("Invalid OTP", extra={"remainingAttempts": max(record.max_attempts - attempts, 0)})

        if not store.mark_used(record.id, now):
            # Another request consumed the record between lookup and update.
            OTP_VERIFY_COUNTER.labels(purpose=purpose, outcome="invalid").inc()
            raise AuthError("Invalid or expired OTP")

        token = issue_session_token(
            settings,
            email=record.email,
            event_id=record.event_id,
            purpose=policy.purpose,
            minutes=policy.session_minutes,
            now=now,
        )
        OTP_VERIFY_COUNTER.labels(purpose=purpose, outcome="verified").inc()
        log_security_event(
            "OTP_VERIFIED",
            ip_address=ip_address,
            user_agent=user_agent,
            purpose=purpose,
            email=record.email,
            event_id=record.event_id,
        )
        return VerifiedSession(
            token=token,
            email=record.email.lower(),
            event_id=record.event_id,
            max_age=policy.session_seconds,
        )


def consume_session(token: str | None, purpose: Purpose, settings: Settings) -> SessionClaims:
    """Decode a flow session cookie, rejecting tokens minted for another flow."""
    if not token:
        raise AuthError("Session required. Please verify your email first.")
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise AuthError("Invalid session. Please verify your email again.") from exc
    if claims.get("type") != purpose.value:
        raise AuthError("Invalid session type")
    email = claims.get("email")
    event_id = claims.get("event_id")
    if not isinstance(email, str) or not isinstance(event_id, str):
        raise AuthError("Invalid session. Please verify your email again.")
    return SessionClaims(email=email.lower(), event_id=event_id)


__all__ = [
    "FlowPolicy",
    "SessionClaims",
    "VerifiedSession",
    "consume_session",
    "generate_hex_token",
    "generate_otp",
    "generate_short_code",
    "issue_code",
    "issue_session_token",
    "policy_for",
    "verify_code",
]
