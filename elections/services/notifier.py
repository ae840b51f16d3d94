"""Outbound email delivery."""
from __future__ import annotations

import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Protocol

from elections.core.config import Settings
from elections.core.logging import mask_email
from elections.obs.metrics import NOTIFICATION_FAILURE_COUNTER

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send(self, to: str, subject: str, html: str) -> bool: ...


class SmtpNotifier:
    """Deliver HTML mail over SMTP; port 465 uses implicit TLS, anything else STARTTLS."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def _build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._settings.smtp_from
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html, subtype="html")
        return message

    def send(self, to: str, subject: str, html: str) -> bool:
        settings = self._settings
        message = self._build_message(to, subject, html)
        context = ssl.create_default_context()
        try:
            if settings.smtp_port == 465:
                with smtplib.SMTP_SSL(
                    settings.smtp_host,
                    settings.smtp_port,
                    context=context,
                    timeout=settings.smtp_timeout_seconds,
                ) as client:
                    if settings.smtp_user and settings.smtp_password:
                        client.login(settings.smtp_user, settings.smtp_password)
                    client.send_message(message)
            else:
                with smtplib.SMTP(
                    settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout_seconds
                ) as client:
                    client.ehlo()
                    if client.has_extn("starttls"):
                        client.starttls(context=context)
                        client.ehlo()
                    if settings.smtp_user and settings.smtp_password:
                        client.login(settings.smtp_user, settings.smtp_password)
                    client.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            NOTIFICATION_FAILURE_COUNTER.inc()
            logger.warning("email delivery to %s failed: %s", mask_email(to), exc)
            return False
        logger.info("email '%s' sent to %s", subject, mask_email(to))
        return True


@dataclass(slots=True, frozen=True)
class SentMessage:
    to: str
    subject: str
    html: str


class MemoryNotifier:
    """Collects messages in ``outbox`` instead of sending them."""

    def __init__(self) -> None:
        self.outbox: list[SentMessage] = []

    def send(self, to: str, subject: str, html: str) -> bool:
        self.outbox.append(SentMessage(to=to, subject=subject, html=html))
        logger.info("email '%s' queued in memory for %s", subject, mask_email(to))
        return True

    def messages_to(self, address: str) -> list[SentMessage]:
        return [message for message in self.outbox if message.to == address]


def build_notifier(settings: Settings) -> Notifier:
    if settings.email_backend == "memory":
        return MemoryNotifier()
    return SmtpNotifier(settings)


__all__ = ["MemoryNotifier", "Notifier", "SentMessage", "SmtpNotifier", "build_notifier"]
