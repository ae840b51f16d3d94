"""Request and response bodies for the code request and verify steps."""
from __future__ import annotations

from pydantic import Field, field_validator

from elections.core.config import get_settings
from elections.schemas.common import OTP_PATTERN, CamelModel, check_email


class CodeRequest(CamelModel):
    """Ask for a verification code for ``email`` on the event at ``slug``."""

    email: str = Field(..., max_length=320)
    slug: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def _institutional_email(cls, value: str) -> str:
        return check_email(value, get_settings().allowed_email_domain)


class WithdrawalCodeRequest(CamelModel):
    token: str = Field(..., min_length=1, max_length=128)


class ShortCodeVerifyRequest(CamelModel):
    short_code: str = Field(..., min_length=1, max_length=64)
    otp: str = Field(..., pattern=OTP_PATTERN)


class TokenVerifyRequest(CamelModel):
    token: str = Field(..., min_length=1, max_length=64)
    otp: str = Field(..., pattern=OTP_PATTERN)


class ShortCodeResponse(CamelModel):
    short_code: str


class TokenResponse(CamelModel):
    token: str


class VerifyResponse(CamelModel):
    message: str
    event_name: str | None = None
    redirect_to: str | None = None


__all__ = [
    "CodeRequest",
    "ShortCodeResponse",
    "ShortCodeVerifyRequest",
    "TokenResponse",
    "TokenVerifyRequest",
    "VerifyResponse",
    "WithdrawalCodeRequest",
]
