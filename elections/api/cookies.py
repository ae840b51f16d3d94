"""Session cookie helpers shared by the flow routers."""
from __future__ import annotations

from fastapi import Response

from elections.core.config import Settings


def set_session_cookie(response: Response, settings: Settings, *, name: str, token: str, max_age: int) -> None:
    response.set_cookie(
        key=name,
        value=token,
        max_age=max_age,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        domain=settings.cookie_domain,
        path="/",
    )


def clear_session_cookie(response: Response, settings: Settings, *, name: str) -> None:
    response.delete_cookie(
        key=name,
        domain=settings.cookie_domain,
        path="/",
        secure=settings.cookie_secure,
        httponly=True,
        samesite="lax",
    )


__all__ = ["clear_session_cookie", "set_session_cookie"]
