"""Administrator credentials, lockout and bearer session handling."""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

import bcrypt
from jose import JWTError, jwt  # type: ignore[import-untyped]
from sqlalchemy import select
from sqlalchemy.orm import Session

from elections.core.config import Settings
from elections.core.errors import AccountLockedError, AuthError
from elections.core.logging import mask_email
from elections.models import Admin, AdminRole, AdminSession, as_utc, utcnow
from elections.obs.audit import log_security_event
from elections.services.location import ClientInfo

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


@dataclass(frozen=True)
class AuthenticatedAdmin:
    admin: Admin
    session: AdminSession


def hash_password(raw_password: str) -> str:
    return bcrypt.hashpw(raw_password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(raw_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(raw_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:  # pragma: no cover - invalid hash format
        return False


def create_admin(
    session: Session,
    *,
    email: str,
    name: str,
    password: str,
    role: AdminRole = AdminRole.ADMIN,
) -> Admin:
    admin = Admin(email=email.lower(), name=name, password_hash=hash_password(password), role=role)
    session.add(admin)
    session.commit()
    session.refresh(admin)
    return admin


def is_locked(admin: Admin, now: datetime) -> bool:
    """A timed lock expires on its own; a lock without ``locked_until`` is manual."""
    if admin.locked_until is not None:
        return as_utc(admin.locked_until) > now
    return admin.is_locked


def _record_failure(session: Session, admin: Admin, settings: Settings, now: datetime) -> bool:
    if admin.locked_until is not None and as_utc(admin.locked_until) <= now:
        # Previous timed lock has lapsed; start counting again.
        admin.failed_attempts = 0
        admin.is_locked = False
        admin.locked_until = None
    admin.failed_attempts += 1
    locked = admin.failed_attempts >= settings.admin_max_failed_attempts
    if locked:
        admin.is_locked = True
        admin.locked_until = now + timedelta(minutes=settings.admin_lockout_minutes)
    session.commit()
    return locked


def _issue_token(settings: Settings, admin: Admin, session_id: str, now: datetime, expires_at: datetime) -> str:
    claims = {
        "sub": admin.id,
        "email": admin.email,
        "role": admin.role.value,
        "sid": session_id,
        "type": "admin",
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def login(
    session: Session,
    settings: Settings,
    *,
    email: str,
    password: str,
    client: ClientInfo,
) -> tuple[str, Admin]:
    """Check credentials and open a server-side admin session.

    Raises :class:`AuthError` for unknown accounts and wrong passwords and
    :class:`AccountLockedError` while the account is locked.
    """
    now = utcnow()
    email = email.lower()
    admin = session.scalars(select(Admin).where(Admin.email == email, Admin.is_active.is_(True))).one_or_none()
    if admin is None:
        log_security_event(
            "ADMIN_LOGIN_FAILED", ip_address=client.ip_address, user_agent=client.user_agent, email=email
        )
        raise AuthError(INVALID_CREDENTIALS)

    if is_locked(admin, now):
        log_security_event(
            "ADMIN_LOGIN_LOCKED", ip_address=client.ip_address, user_agent=client.user_agent, email=email
        )
        raise AccountLockedError()

    if not verify_password(password, admin.password_hash):
        locked = _record_failure(session, admin, settings, now)
        log_security_event(
            "ACCOUNT_LOCKOUT" if locked else "ADMIN_LOGIN_FAILED",
            ip_address=client.ip_address,
            user_agent=client.user_agent,
            email=email,
            failed_attempts=admin.failed_attempts,
        )
        raise AuthError(INVALID_CREDENTIALS)

    admin.failed_attempts = 0
    admin.is_locked = False
    admin.locked_until = None
    admin.last_login_at = now
    session_id = secrets.token_hex(16)
    expires_at = now + timedelta(hours=settings.admin_token_expire_hours)
    session.add(
        AdminSession(
            admin_id=admin.id,
            session_id=session_id,
            ip_address=client.ip_address,
            user_agent=client.user_agent,
            expires_at=expires_at,
        )
    )
    session.commit()
    session.refresh(admin)

    logger.info("admin %s logged in", mask_email(admin.email))
    log_security_event(
        "ADMIN_LOGIN", ip_address=client.ip_address, user_agent=client.user_agent, email=admin.email
    )
    return _issue_token(settings, admin, session_id, now, expires_at), admin


def authenticate(session: Session, settings: Settings, token: str) -> AuthenticatedAdmin:
    """Resolve a bearer token to its live admin session."""
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise AuthError("Invalid token") from exc
    if claims.get("type") != "admin" or not claims.get("sid"):
        raise AuthError("Invalid token")

    now = utcnow()
    admin_session = session.scalars(
        select(AdminSession).where(
            AdminSession.session_id == claims["sid"],
            AdminSession.is_active.is_(True),
            AdminSession.expires_at > now,
        )
    ).one_or_none()
    if admin_session is None or admin_session.admin_id != claims.get("sub"):
        raise AuthError("Session expired or revoked")

    admin = admin_session.admin
    if admin is None or not admin.is_active:
        raise AuthError("Admin account is not active")
    if is_locked(admin, now):
        raise AccountLockedError()
    return AuthenticatedAdmin(admin=admin, session=admin_session)


def logout(session: Session, current: AuthenticatedAdmin, client: ClientInfo) -> None:
    current.session.is_active = False
    session.commit()
    log_security_event(
        "ADMIN_LOGOUT",
        ip_address=client.ip_address,
        user_agent=client.user_agent,
        email=current.admin.email,
    )


__all__ = [
    "AuthenticatedAdmin",
    "INVALID_CREDENTIALS",
    "authenticate",
    "create_admin",
    "hash_password",
    "is_locked",
    "login",
    "logout",
    "verify_password",
]
