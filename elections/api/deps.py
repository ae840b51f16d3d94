"""Common dependencies for API routes."""
from __future__ import annotations

from collections.abc import Iterator
from functools import lru_cache

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from elections.core.config import Settings, get_settings
from elections.core.errors import AuthError, EligibilityError
from elections.db.session import SessionLocal
from elections.models import AdminRole
from elections.services import admin_auth
from elections.services.location import ClientInfo, LocationService, client_ip, user_agent
from elections.services.notifier import Notifier, build_notifier
from elections.services.token_store import SqlAlchemyTokenStore, TokenStore

bearer_scheme = HTTPBearer(auto_error=False)


def get_db_session() -> Iterator[Session]:
    """Yield a database session for FastAPI dependencies."""

    session: Session = SessionLocal()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@lru_cache
def _default_notifier() -> Notifier:
    return build_notifier(get_settings())


def get_notifier() -> Notifier:
    return _default_notifier()


def get_token_store(session: Session = Depends(get_db_session)) -> TokenStore:
    return SqlAlchemyTokenStore(session)


def get_location_service() -> LocationService:
    return LocationService.from_settings(get_settings())


def get_client_info(request: Request, settings: Settings = Depends(get_settings)) -> ClientInfo:
    """Caller address and user agent, without a location lookup."""
    ip = client_ip(request, trust_forwarded=settings.trust_forwarded_headers)
    return ClientInfo(ip_address=ip, user_agent=user_agent(request))


def get_located_client(
    request: Request,
    locations: LocationService = Depends(get_location_service),
    settings: Settings = Depends(get_settings),
) -> ClientInfo:
    ip = client_ip(request, trust_forwarded=settings.trust_forwarded_headers)
    return ClientInfo(ip_address=ip, user_agent=user_agent(request), location=locations.lookup(ip))


def get_current_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> admin_auth.AuthenticatedAdmin:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthError("Access token required")
    current = admin_auth.authenticate(session, settings, credentials.credentials)
    request.state.actor_email = current.admin.email
    return current


def require_admin(
    current: admin_auth.AuthenticatedAdmin = Depends(get_current_admin),
) -> admin_auth.AuthenticatedAdmin:
    if current.admin.role not in (AdminRole.ADMIN, AdminRole.SUPER_ADMIN):
        raise EligibilityError("Insufficient permissions")
    return current


__all__ = [
    "bearer_scheme",
    "get_client_info",
    "get_current_admin",
    "get_db_session",
    "get_located_client",
    "get_location_service",
    "get_notifier",
    "get_token_store",
    "require_admin",
]
