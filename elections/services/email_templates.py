"""HTML bodies for the messages sent during the election workflows."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from html import escape

_WRAPPER = '<div style="max-width: 600px; margin: 0 auto; font-family: Arial, sans-serif;">{body}</div>'
_CODE_BLOCK = (
    '<div style="background: #f0f0f0; padding: 20px; text-align: center; font-size: 24px; '
    'font-weight: bold; letter-spacing: 3px; margin: 20px 0;">{otp}</div>'
)
_PANEL = '<div style="background: #f8f9fa; padding: 20px; border-radius: 8px; margin: 20px 0;">{body}</div>'


@dataclass(slots=True, frozen=True)
class EmailContent:
    subject: str
    html: str


def _field(label: str, value: str) -> str:
    return f"<p><strong>{escape(label)}:</strong> {escape(value)}</p>"


def _joined(items: Iterable[str]) -> str:
    return ", ".join(items)


def otp_email(*, heading: str, subject: str, intro: str, otp: str, ttl_minutes: int) -> EmailContent:
    body = (
        f"<h2>{escape(heading)}</h2>"
        f"<p>{escape(intro)}</p>"
        + _CODE_BLOCK.format(otp=escape(otp))
        + f"<p>This OTP will expire in {ttl_minutes} minutes.</p>"
        "<p>If you didn't request this, please ignore this email.</p>"
    )
    return EmailContent(subject=subject, html=_WRAPPER.format(body=body))


def nomination_otp_email(event_name: str, otp: str, ttl_minutes: int) -> EmailContent:
    return otp_email(
        heading="Nomination Verification",
        subject=f"Nomination OTP for {event_name}",
        intro=f"Your OTP for {event_name} nomination is:",
        otp=otp,
        ttl_minutes=ttl_minutes,
    )


def voting_otp_email(event_name: str, otp: str, ttl_minutes: int) -> EmailContent:
    return otp_email(
        heading="Voting Access Code",
        subject=f"Voting Verification - {event_name}",
        intro=f"Your secure voting access code for {event_name} is:",
        otp=otp,
        ttl_minutes=ttl_minutes,
    )


def withdrawal_otp_email(event_name: str, otp: str, ttl_minutes: int) -> EmailContent:
    return otp_email(
        heading="Withdrawal Verification",
        subject=f"Withdrawal Verification - {event_name}",
        intro=f"Your OTP for withdrawing from {event_name} is:",
        otp=otp,
        ttl_minutes=ttl_minutes,
    )


def nomination_confirmation_email(
    *,
    event_name: str,
    first_name: str,
    last_name: str,
    student_id: str,
    faculty: str,
    year: str,
    positions: list[str],
    withdrawal_link: str,
    withdrawal_start: datetime,
    withdrawal_end: datetime,
) -> EmailContent:
    details = (
        "<h3>Your Details:</h3>"
        + _field("Name", f"{first_name} {last_name}")
        + _field("Student ID", student_id)
        + _field("Faculty", faculty)
        + _field("Year", year)
        + _field("Positions", _joined(positions))
    )
    body = (
        "<h2>Nomination Submitted Successfully!</h2>"
        f"<p>Your nomination for <strong>{escape(event_name)}</strong> has been submitted.</p>"
        + _PANEL.format(body=details)
        + "<p>If you need to withdraw or modify your nomination, you can do so during the "
        "withdrawal period using this link:</p>"
        f'<div style="text-align: center; margin: 30px 0;"><a href="{escape(withdrawal_link, quote=True)}" '
        'style="background: #dc3545; color: white; padding: 12px 24px; text-decoration: none; '
        'border-radius: 6px;">Withdraw Nomination</a></div>'
        f"<p><small>Withdrawal period: {withdrawal_start:%Y-%m-%d} - {withdrawal_end:%Y-%m-%d}</small></p>"
    )
    return EmailContent(subject=f"Nomination Submitted - {event_name}", html=_WRAPPER.format(body=body))


def vote_receipt_email(
    *,
    event_name: str,
    first_name: str,
    last_name: str,
    student_id: str,
    selections: list[tuple[str, str]],
    submitted_at: datetime,
) -> EmailContent:
    voter = (
        "<h4>Voter Information:</h4>"
        + _field("Name", f"{first_name} {last_name}")
        + _field("Student ID", student_id)
    )
    ballot = "<h4>Your Selections:</h4>" + "".join(
        _field(position, candidate) for position, candidate in selections
    )
    body = (
        "<h2>Vote Confirmed</h2>"
        f"<h3>{escape(event_name)}</h3>"
        + _PANEL.format(body=voter)
        + _PANEL.format(body=ballot)
        + f"<p><small>Vote recorded on: {submitted_at:%Y-%m-%d %H:%M} UTC</small></p>"
        "<p>Keep this email as your voting receipt.</p>"
    )
    return EmailContent(subject=f"Vote Confirmation - {event_name}", html=_WRAPPER.format(body=body))


def withdrawal_confirmation_email(
    *,
    event_name: str,
    first_name: str,
    last_name: str,
    student_id: str,
    faculty: str,
    year: str,
    withdrawn_positions: list[str],
    remaining_positions: list[str],
    processed_at: datetime,
) -> EmailContent:
    kind = "partial" if remaining_positions else "complete"
    details = (
        "<h3>Your Details:</h3>"
        + _field("Name", f"{first_name} {last_name}")
        + _field("Student ID", student_id)
        + _field("Faculty", faculty)
        + _field("Year", year)
        + _field("Withdrawn Positions", _joined(withdrawn_positions))
    )
    if remaining_positions:
        details += _field("Remaining Positions", _joined(remaining_positions))
    body = (
        "<h2>Nomination Withdrawal Confirmation</h2>"
        f"<p>Your {kind} withdrawal from <strong>{escape(event_name)}</strong> has been processed successfully.</p>"
        + _PANEL.format(body=details)
        + "<p>This action cannot be undone. If you believe this was a mistake, please contact the "
        "election committee.</p>"
        f"<p><small>Withdrawal processed on: {processed_at:%Y-%m-%d}</small></p>"
    )
    return EmailContent(subject=f"Withdrawal Confirmation - {event_name}", html=_WRAPPER.format(body=body))


__all__ = [
    "EmailContent",
    "nomination_confirmation_email",
    "nomination_otp_email",
    "otp_email",
    "vote_receipt_email",
    "voting_otp_email",
    "withdrawal_confirmation_email",
    "withdrawal_otp_email",
]
