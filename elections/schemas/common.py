"""Shared field rules and the camelCase wire base model."""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Literal, TypeVar

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from elections.core.errors import ValidationError

POSITIONS: tuple[str, ...] = (
    "President",
    "Vice President",
    "General Secretary",
    "Treasurer",
    "Event Coordinator",
    "Webmaster",
)
YEARS: tuple[str, ...] = ("1st Year", "2nd Year", "3rd Year", "4th Year", "5th Year")

Position = Literal[
    "President",
    "Vice President",
    "General Secretary",
    "Treasurer",
    "Event Coordinator",
    "Webmaster",
]
Year = Literal["1st Year", "2nd Year", "3rd Year", "4th Year", "5th Year"]

NAME_PATTERN = r"^[A-Za-z\s'-]+$"
STUDENT_ID_PATTERN = r"^\d{7}$"
OTP_PATTERN = r"^\d{6}$"
MIN_STUDENT_ID = 3_000_000

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

ModelT = TypeVar("ModelT", bound=BaseModel)


class CamelModel(BaseModel):
    """Base for request and response bodies exchanged as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReadModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    @field_validator("*")
    @classmethod
    def _timestamps_as_utc(cls, value: object) -> object:
        if isinstance(value, datetime):
            return ensure_utc(value)
        return value


class MessageResponse(CamelModel):
    message: str


def check_student_id(value: str) -> str:
    if int(value) <= MIN_STUDENT_ID:
        raise ValueError(f"Student ID must be greater than {MIN_STUDENT_ID}")
    return value


def check_positions(value: list[str]) -> list[str]:
    # Preserve order, drop repeats.
    return list(dict.fromkeys(value))


def check_email(value: str, domain: str | None = None) -> str:
    email = value.strip().lower()
    if not _EMAIL_RE.match(email):
        raise ValueError("Invalid email address")
    if domain and not email.endswith(f"@{domain.lower()}"):
        raise ValueError(f"Email must be a @{domain} address")
    return email


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def validation_details(exc: PydanticValidationError) -> list[dict[str, object]]:
    return [
        {
            "path": [str(part) for part in error.get("loc", ())],
            "message": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]


def parse_payload(model: type[ModelT], payload: object) -> ModelT:
    """Validate ``payload`` against ``model`` raising the 400 ``Invalid input`` error."""
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError("Invalid input", details=validation_details(exc)) from exc


__all__ = [
    "CamelModel",
    "MIN_STUDENT_ID",
    "MessageResponse",
    "NAME_PATTERN",
    "OTP_PATTERN",
    "POSITIONS",
    "Position",
    "ReadModel",
    "STUDENT_ID_PATTERN",
    "YEARS",
    "Year",
    "check_email",
    "check_positions",
    "check_student_id",
    "ensure_utc",
    "parse_payload",
    "validation_details",
]
