"""Public nomination withdrawal endpoints."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Cookie, Depends, Response
from sqlalchemy.orm import Session

from elections.api.cookies import clear_session_cookie, set_session_cookie
from elections.api.deps import get_client_info, get_db_session, get_notifier, get_token_store
from elections.core.config import Settings, get_settings
from elections.models import Purpose
from elections.schemas import (
    MessageResponse,
    ShortCodeResponse,
    ShortCodeVerifyRequest,
    VerifyResponse,
    WithdrawalCodeRequest,
    WithdrawalDetailsEnvelope,
)
from elections.services import withdrawals
from elections.services.location import ClientInfo
from elections.services.notifier import Notifier
from elections.services.rate_limit import enforce_rate_limit
from elections.services.token_store import TokenStore
from elections.services.verification import consume_session

router = APIRouter(prefix="/withdrawal")

SESSION_COOKIE = "withdrawalToken"


@router.post("/request-otp", response_model=ShortCodeResponse, dependencies=[Depends(enforce_rate_limit)])
def request_otp(
    payload: WithdrawalCodeRequest,
    session: Session = Depends(get_db_session),
    store: TokenStore = Depends(get_token_store),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
    client: ClientInfo = Depends(get_client_info),
) -> ShortCodeResponse:
    """Email a withdrawal code to the nominee behind the emailed withdrawal link."""

    short_code = withdrawals.request_code(
        session, store, notifier, settings, withdrawal_token=payload.token, client=client
    )
    return ShortCodeResponse(short_code=short_code)


@router.post("/verify-otp", response_model=VerifyResponse, response_model_exclude_none=True)
def verify_otp(
    payload: ShortCodeVerifyRequest,
    response: Response,
    store: TokenStore = Depends(get_token_store),
    settings: Settings = Depends(get_settings),
    client: ClientInfo = Depends(get_client_info),
) -> VerifyResponse:
    verified = withdrawals.verify(
        store, settings, short_code=payload.short_code, otp=payload.otp, client=client
    )
    set_session_cookie(response, settings, name=SESSION_COOKIE, token=verified.token, max_age=verified.max_age)
    return VerifyResponse(message="Verification successful")


@router.get("/details", response_model=WithdrawalDetailsEnvelope)
def get_details(
    session_token: str | None = Cookie(default=None, alias=SESSION_COOKIE),
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> WithdrawalDetailsEnvelope:
    claims = consume_session(session_token, Purpose.WITHDRAWAL, settings)
    return WithdrawalDetailsEnvelope(nomination=withdrawals.get_details(session, claims))


@router.post("/submit", response_model=MessageResponse)
def submit(
    response: Response,
    payload: Any = Body(default=None),
    session_token: str | None = Cookie(default=None, alias=SESSION_COOKIE),
    session: Session = Depends(get_db_session),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
    client: ClientInfo = Depends(get_client_info),
) -> MessageResponse:
    claims = consume_session(session_token, Purpose.WITHDRAWAL, settings)
    withdrawals.submit(session, notifier, settings, claims, payload or {}, client=client)
    clear_session_cookie(response, settings, name=SESSION_COOKIE)
    return MessageResponse(message="Withdrawal processed successfully")


__all__ = ["router"]
