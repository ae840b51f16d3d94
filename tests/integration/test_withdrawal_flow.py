from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from elections.models import Nomination, NominationEvent, utcnow
from elections.services.notifier import MemoryNotifier


def _verify(client: TestClient, otp_for: Callable[[str], str], nomination: Nomination) -> None:
    response = client.post("/api/withdrawal/request-otp", json={"token": nomination.withdrawal_token})
    assert response.status_code == 200, response.text
    short_code = response.json()["shortCode"]

    response = client.post(
        "/api/withdrawal/verify-otp", json={"shortCode": short_code, "otp": otp_for(nomination.email)}
    )
    assert response.status_code == 200, response.text


def test_details_show_current_nomination(
    client: TestClient,
    otp_for: Callable[[str], str],
    nomination_event: NominationEvent,
    nomination_factory: Callable[..., Nomination],
) -> None:
    nomination = nomination_factory(nomination_event)
    _verify(client, otp_for, nomination)

    response = client.get("/api/withdrawal/details")

    assert response.status_code == 200
    details = response.json()["nomination"]
    assert details["positions"] == ["President", "Treasurer"]
    assert details["eventName"] == "Student Council 2025"


def test_complete_withdrawal(
    client: TestClient,
    db_session: Session,
    notifier: MemoryNotifier,
    otp_for: Callable[[str], str],
    nomination_event: NominationEvent,
    nomination_factory: Callable[..., Nomination],
) -> None:
    nomination = nomination_factory(nomination_event)
    _verify(client, otp_for, nomination)

    response = client.post("/api/withdrawal/submit", json={"positions": []})
    assert response.status_code == 200, response.text
    assert response.json() == {"message": "Withdrawal processed successfully"}

    db_session.refresh(nomination)
    assert nomination.is_withdrawn is True
    assert nomination.withdrawn_positions == ["President", "Treasurer"]
    assert nomination.withdrawn_at is not None

    confirmation = notifier.messages_to("alice@unb.ca")[-1]
    assert confirmation.subject == "Withdrawal Confirmation - Student Council 2025"
    assert "complete withdrawal" in confirmation.html

    # The withdrawal link no longer resolves once the nomination is withdrawn.
    again = client.post("/api/withdrawal/request-otp", json={"token": nomination.withdrawal_token})
    assert again.status_code == 404


def test_partial_withdrawal_is_one_shot(
    client: TestClient,
    db_session: Session,
    otp_for: Callable[[str], str],
    nomination_event: NominationEvent,
    nomination_factory: Callable[..., Nomination],
) -> None:
    nomination = nomination_factory(nomination_event)
    _verify(client, otp_for, nomination)

    response = client.post("/api/withdrawal/submit", json={"positions": ["President"]})
    assert response.status_code == 200, response.text

    db_session.refresh(nomination)
    assert nomination.is_withdrawn is False
    assert nomination.positions == ["President"]
    assert nomination.withdrawn_positions == ["Treasurer"]

    _verify(client, otp_for, nomination)
    second = client.post("/api/withdrawal/submit", json={"positions": []})
    assert second.status_code == 400
    assert second.json()["error"] == "Nomination has already been withdrawn or partially withdrawn"


def test_partial_withdrawal_blocks_new_nomination(
    client: TestClient,
    nomination_event: NominationEvent,
    nomination_factory: Callable[..., Nomination],
) -> None:
    nomination_factory(nomination_event, positions=["President"], withdrawn_positions=["Treasurer"])

    response = client.post(
        "/api/nomination/request-otp", json={"email": "alice@unb.ca", "slug": nomination_event.slug}
    )
    assert response.status_code == 400


def test_kept_positions_must_be_original(
    client: TestClient,
    db_session: Session,
    otp_for: Callable[[str], str],
    nomination_event: NominationEvent,
    nomination_factory: Callable[..., Nomination],
) -> None:
    nomination = nomination_factory(nomination_event)
    _verify(client, otp_for, nomination)

    response = client.post("/api/withdrawal/submit", json={"positions": ["Webmaster"]})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid input"
    db_session.refresh(nomination)
    assert nomination.withdrawn_positions == []


def test_unknown_token_is_not_found(client: TestClient, db_session: Session) -> None:
    response = client.post("/api/withdrawal/request-otp", json={"token": "f" * 64})
    assert response.status_code == 404
    assert response.json() == {"error": "Nomination not found or already withdrawn"}


def test_closed_withdrawal_window_is_forbidden(
    client: TestClient,
    nomination_event_factory: Callable[..., NominationEvent],
    nomination_factory: Callable[..., Nomination],
) -> None:
    now = utcnow()
    event = nomination_event_factory(
        withdrawal_start_time=now - timedelta(days=3),
        withdrawal_end_time=now - timedelta(days=1),
    )
    nomination = nomination_factory(event)

    response = client.post("/api/withdrawal/request-otp", json={"token": nomination.withdrawal_token})
    assert response.status_code == 403
    assert response.json()["error"] == "Withdrawal period is not active"


def test_details_require_withdrawal_session(client: TestClient, db_session: Session) -> None:
    response = client.get("/api/withdrawal/details")
    assert response.status_code == 401


def test_submit_after_withdrawal_window_closes_is_forbidden(
    client: TestClient,
    db_session: Session,
    otp_for: Callable[[str], str],
    nomination_event: NominationEvent,
    nomination_factory: Callable[..., Nomination],
) -> None:
    nomination = nomination_factory(nomination_event)
    _verify(client, otp_for, nomination)
    nomination_event.withdrawal_end_time = utcnow() - timedelta(minutes=1)
    db_session.commit()

    response = client.post("/api/withdrawal/submit", json={"positions": []})

    assert response.status_code == 403
    assert response.json() == {"error": "Withdrawal period is not active"}
    db_session.refresh(nomination)
    assert nomination.is_withdrawn is False
    assert nomination.withdrawn_positions == []
