"""Public voting endpoints."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Cookie, Depends, Response
from sqlalchemy.orm import Session

from elections.api.cookies import clear_session_cookie, set_session_cookie
from elections.api.deps import (
    get_client_info,
    get_db_session,
    get_located_client,
    get_notifier,
    get_token_store,
)
from elections.core.config import Settings, get_settings
from elections.models import Purpose
from elections.schemas import (
    CodeRequest,
    MessageResponse,
    PublicVotingEventResponse,
    TokenResponse,
    TokenVerifyRequest,
    VerifyResponse,
)
from elections.services import voting
from elections.services.location import ClientInfo
from elections.services.notifier import Notifier
from elections.services.rate_limit import enforce_rate_limit
from elections.services.token_store import TokenStore
from elections.services.verification import consume_session

router = APIRouter(prefix="/voting")

SESSION_COOKIE = "votingSession"


@router.get("/event/{slug}", response_model=PublicVotingEventResponse)
def get_event(slug: str, session: Session = Depends(get_db_session)) -> PublicVotingEventResponse:
    """Ballot details with candidates grouped by position."""

    return PublicVotingEventResponse(event=voting.get_public_event(session, slug))


@router.post("/request-otp", response_model=TokenResponse, dependencies=[Depends(enforce_rate_limit)])
def request_otp(
    payload: CodeRequest,
    session: Session = Depends(get_db_session),
    store: TokenStore = Depends(get_token_store),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
    client: ClientInfo = Depends(get_client_info),
) -> TokenResponse:
    token = voting.request_code(
        session, store, notifier, settings, email=payload.email, slug=payload.slug, client=client
    )
    return TokenResponse(token=token)


@router.post("/verify-otp", response_model=VerifyResponse, response_model_exclude_none=True)
def verify_otp(
    payload: TokenVerifyRequest,
    response: Response,
    store: TokenStore = Depends(get_token_store),
    settings: Settings = Depends(get_settings),
    client: ClientInfo = Depends(get_client_info),
) -> VerifyResponse:
    verified = voting.verify(store, settings, token=payload.token, otp=payload.otp, client=client)
    set_session_cookie(response, settings, name=SESSION_COOKIE, token=verified.token, max_age=verified.max_age)
    return VerifyResponse(message="Verification successful")


@router.post("/submit", response_model=MessageResponse)
def submit(
    response: Response,
    payload: Any = Body(default=None),
    session_token: str | None = Cookie(default=None, alias=SESSION_COOKIE),
    session: Session = Depends(get_db_session),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
    client: ClientInfo = Depends(get_located_client),
) -> MessageResponse:
    claims = consume_session(session_token, Purpose.VOTING, settings)
    voting.submit(session, notifier, settings, claims, payload, client=client)
    clear_session_cookie(response, settings, name=SESSION_COOKIE)
    return MessageResponse(message="Vote submitted successfully")


__all__ = ["router"]
