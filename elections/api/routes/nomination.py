"""Public nomination endpoints."""
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
    NominationSessionResponse,
    PublicNominationEventResponse,
    ShortCodeResponse,
    ShortCodeVerifyRequest,
    VerifyResponse,
)
from elections.services import nominations
from elections.services.location import ClientInfo
from elections.services.notifier import Notifier
from elections.services.rate_limit import enforce_rate_limit
from elections.services.token_store import TokenStore
from elections.services.verification import consume_session, policy_for

router = APIRouter(prefix="/nomination")

SESSION_COOKIE = "sessionToken"


@router.get("/event/{slug}", response_model=PublicNominationEventResponse)
def get_event(slug: str, session: Session = Depends(get_db_session)) -> PublicNominationEventResponse:
    return PublicNominationEventResponse(event=nominations.get_public_event(session, slug))


@router.post(
    "/request-otp",
    response_model=ShortCodeResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
def request_otp(
    payload: CodeRequest,
    session: Session = Depends(get_db_session),
    store: TokenStore = Depends(get_token_store),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
    client: ClientInfo = Depends(get_client_info),
) -> ShortCodeResponse:
    """Email a one-time code to an eligible student for the nomination form."""

    short_code = nominations.request_code(
        session, store, notifier, settings, email=payload.email, slug=payload.slug, client=client
    )
    return ShortCodeResponse(short_code=short_code)


@router.post("/verify-otp", response_model=VerifyResponse, response_model_exclude_none=True)
def verify_otp(
    payload: ShortCodeVerifyRequest,
    response: Response,
    session: Session = Depends(get_db_session),
    store: TokenStore = Depends(get_token_store),
    settings: Settings = Depends(get_settings),
    client: ClientInfo = Depends(get_client_info),
) -> VerifyResponse:
    verified, event = nominations.verify(
        session, store, settings, short_code=payload.short_code, otp=payload.otp, client=client
    )
    set_session_cookie(
        response,
        settings,
        name=policy_for(Purpose.NOMINATION, settings).cookie_name,
        token=verified.token,
        max_age=verified.max_age,
    )
    return VerifyResponse(
        message="OTP verified successfully",
        event_name=event.name,
        redirect_to=f"/nominate/{event.slug}/form",
    )


@router.get("/session", response_model=NominationSessionResponse)
def get_session(
    session_token: str | None = Cookie(default=None, alias=SESSION_COOKIE),
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> NominationSessionResponse:
    claims = consume_session(session_token, Purpose.NOMINATION, settings)
    summary = nominations.session_summary(session, claims)
    return NominationSessionResponse(email=summary["email"], event_name=summary["event_name"])


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
    """Record the nomination for the verified session and clear the session cookie."""

    claims = consume_session(session_token, Purpose.NOMINATION, settings)
    nominations.submit(session, notifier, settings, claims, payload, client=client)
    clear_session_cookie(response, settings, name=SESSION_COOKIE)
    return MessageResponse(message="Nomination submitted successfully!")


__all__ = ["router"]
