from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from elections.core.config import get_settings
from elections.models import Nomination, NominationEvent, OtpRecord, Purpose, utcnow
from elections.services import event_store
from elections.services.notifier import MemoryNotifier
from elections.services.verification import issue_session_token

FORM = {
    "firstName": "Alice",
    "lastName": "Martin",
    "studentId": "3712345",
    "faculty": "Computer Science",
    "year": "3rd Year",
    "positions": ["President", "Treasurer"],
}


def _verify(client: TestClient, otp_for: Callable[[str], str], email: str, slug: str) -> None:
    response = client.post("/api/nomination/request-otp", json={"email": email, "slug": slug})
    assert response.status_code == 200, response.text
    short_code = response.json()["shortCode"]
    assert len(short_code) == 16

    response = client.post(
        "/api/nomination/verify-otp", json={"shortCode": short_code, "otp": otp_for(email.lower())}
    )
    assert response.status_code == 200, response.text


def test_public_event_details(client: TestClient, nomination_event: NominationEvent) -> None:
    response = client.get(f"/api/nomination/event/{nomination_event.slug}")

    assert response.status_code == 200
    event = response.json()["event"]
    assert event["name"] == "Student Council 2025"
    assert event["isOpen"] is True
    assert "eligibleEmails" not in event


def test_unknown_event_is_not_found(client: TestClient, db_session: Session) -> None:
    response = client.get("/api/nomination/event/missing")
    assert response.status_code == 404
    assert response.json() == {"error": "Nomination event not found"}


def test_nomination_end_to_end(
    client: TestClient,
    db_session: Session,
    notifier: MemoryNotifier,
    otp_for: Callable[[str], str],
    nomination_event: NominationEvent,
) -> None:
    _verify(client, otp_for, "Alice@UNB.ca", nomination_event.slug)

    session_info = client.get("/api/nomination/session")
    assert session_info.status_code == 200
    assert session_info.json() == {"email": "alice@unb.ca", "eventName": "Student Council 2025"}

    response = client.post("/api/nomination/submit", json=FORM)
    assert response.status_code == 200, response.text
    assert response.json() == {"message": "Nomination submitted successfully!"}

    nomination = db_session.scalars(select(Nomination)).one()
    assert nomination.email == "alice@unb.ca"
    assert nomination.positions == ["President", "Treasurer"]
    assert len(nomination.withdrawal_token) == 64

    confirmation = notifier.messages_to("alice@unb.ca")[-1]
    assert confirmation.subject == "Nomination Submitted - Student Council 2025"
    assert nomination.withdrawal_token in confirmation.html

    # Session cookie is cleared after a successful submission.
    assert client.get("/api/nomination/session").status_code == 401

    duplicate = client.post(
        "/api/nomination/request-otp", json={"email": "alice@unb.ca", "slug": nomination_event.slug}
    )
    assert duplicate.status_code == 400
    assert duplicate.json()["error"] == "You have already submitted a nomination for this event"


def test_repeat_request_keeps_one_live_code(
    client: TestClient,
    db_session: Session,
    otp_for: Callable[[str], str],
    nomination_event: NominationEvent,
) -> None:
    body = {"email": "bob@unb.ca", "slug": nomination_event.slug}
    first = client.post("/api/nomination/request-otp", json=body).json()["shortCode"]
    first_otp = otp_for("bob@unb.ca")
    second = client.post("/api/nomination/request-otp", json=body).json()["shortCode"]

    assert db_session.scalar(select(func.count(OtpRecord.id))) == 1
    stale = client.post("/api/nomination/verify-otp", json={"shortCode": first, "otp": first_otp})
    assert stale.status_code == 401

    fresh = client.post("/api/nomination/verify-otp", json={"shortCode": second, "otp": otp_for("bob@unb.ca")})
    assert fresh.status_code == 200
    assert fresh.json()["redirectTo"] == f"/nominate/{nomination_event.slug}/form"


def test_wrong_otp_reports_remaining_attempts_then_locks(
    client: TestClient,
    otp_for: Callable[[str], str],
    nomination_event: NominationEvent,
) -> None:
    short_code = client.post(
        "/api/nomination/request-otp", json={"email": "carol@unb.ca", "slug": nomination_event.slug}
    ).json()["shortCode"]

    for remaining in (4, 3, 2, 1, 0):
        response = client.post("/api/nomination/verify-otp", json={"shortCode": short_code, "otp": "000000"})
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid OTP", "remainingAttempts": remaining}

    locked = client.post(
        "/api/nomination/verify-otp", json={"shortCode": short_code, "otp": otp_for("carol@unb.ca")}
    )
    assert locked.status_code == 429


def test_ineligible_and_closed_requests_are_forbidden(
    client: TestClient,
    nomination_event_factory: Callable[..., NominationEvent],
) -> None:
    open_event = nomination_event_factory()
    now = utcnow()
    closed_event = nomination_event_factory(
        name="Closed Round",
        slug="closed-round",
        nomination_start_time=now - timedelta(days=3),
        nomination_end_time=now - timedelta(days=2),
    )

    stranger = client.post("/api/nomination/request-otp", json={"email": "zed@unb.ca", "slug": open_event.slug})
    assert stranger.status_code == 403
    assert stranger.json()["error"] == "Your email is not eligible for this event"

    closed = client.post("/api/nomination/request-otp", json={"email": "alice@unb.ca", "slug": closed_event.slug})
    assert closed.status_code == 403
    assert closed.json()["error"] == "Nomination period is not active"


def test_disabled_time_check_keeps_window_open(
    client: TestClient,
    nomination_event_factory: Callable[..., NominationEvent],
) -> None:
    now = utcnow()
    event = nomination_event_factory(
        nomination_start_time=now - timedelta(days=3),
        nomination_end_time=now - timedelta(days=2),
        enable_time_check=False,
    )

    response = client.post("/api/nomination/request-otp", json={"email": "alice@unb.ca", "slug": event.slug})
    assert response.status_code == 200


def test_non_institutional_email_is_invalid(client: TestClient, nomination_event: NominationEvent) -> None:
    response = client.post(
        "/api/nomination/request-otp", json={"email": "alice@gmail.com", "slug": nomination_event.slug}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid input"


def test_submit_requires_session(client: TestClient, nomination_event: NominationEvent) -> None:
    response = client.post("/api/nomination/submit", json=FORM)
    assert response.status_code == 401
    assert response.json()["error"] == "Session required. Please verify your email first."


def test_submit_rejects_invalid_form_and_keeps_session(
    client: TestClient,
    db_session: Session,
    otp_for: Callable[[str], str],
    nomination_event: NominationEvent,
) -> None:
    _verify(client, otp_for, "alice@unb.ca", nomination_event.slug)

    response = client.post("/api/nomination/submit", json={**FORM, "studentId": "3000000"})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid input"
    assert any(item["path"] == ["studentId"] for item in body["details"])
    assert db_session.scalar(select(func.count(Nomination.id))) == 0

    retry = client.post("/api/nomination/submit", json=FORM)
    assert retry.status_code == 200


def test_withdrawn_nominee_can_nominate_again(
    client: TestClient,
    db_session: Session,
    otp_for: Callable[[str], str],
    nomination_event: NominationEvent,
    nomination_factory: Callable[..., Nomination],
) -> None:
    previous = nomination_factory(
        nomination_event, is_withdrawn=True, withdrawn_positions=["President", "Treasurer"], withdrawn_at=utcnow()
    )
    old_token = previous.withdrawal_token

    _verify(client, otp_for, "alice@unb.ca", nomination_event.slug)
    response = client.post("/api/nomination/submit", json={**FORM, "positions": ["Webmaster"]})
    assert response.status_code == 200

    nomination = db_session.scalars(select(Nomination)).one()
    assert nomination.id == previous.id
    assert nomination.is_withdrawn is False
    assert nomination.positions == ["Webmaster"]
    assert nomination.withdrawn_positions == []
    assert nomination.withdrawal_token != old_token


def _session_cookie(event: NominationEvent, email: str) -> dict[str, str]:
    token = issue_session_token(
        get_settings(), email=email, event_id=event.id, purpose=Purpose.NOMINATION, minutes=30
    )
    return {"Cookie": f"sessionToken={token}"}


def test_second_session_cannot_submit_again(
    client: TestClient,
    db_session: Session,
    otp_for: Callable[[str], str],
    nomination_event: NominationEvent,
) -> None:
    _verify(client, otp_for, "alice@unb.ca", nomination_event.slug)
    assert client.post("/api/nomination/submit", json=FORM).status_code == 200

    response = client.post(
        "/api/nomination/submit", json=FORM, headers=_session_cookie(nomination_event, "alice@unb.ca")
    )

    assert response.status_code == 400
    assert response.json() == {"error": "You have already submitted a nomination for this event"}
    assert db_session.scalar(select(func.count(Nomination.id))) == 1


def test_unique_violation_maps_to_duplicate_error(
    client: TestClient,
    db_session: Session,
    monkeypatch: pytest.MonkeyPatch,
    nomination_event: NominationEvent,
    nomination_factory: Callable[..., Nomination],
) -> None:
    nomination_factory(nomination_event)
    monkeypatch.setattr(event_store, "find_nomination", lambda *args, **kwargs: None)

    response = client.post(
        "/api/nomination/submit", json=FORM, headers=_session_cookie(nomination_event, "alice@unb.ca")
    )

    assert response.status_code == 400
    assert response.json() == {"error": "You have already submitted a nomination for this event"}
    assert db_session.scalar(select(func.count(Nomination.id))) == 1


def test_submit_after_window_closes_is_forbidden(
    client: TestClient,
    db_session: Session,
    otp_for: Callable[[str], str],
    nomination_event: NominationEvent,
) -> None:
    _verify(client, otp_for, "alice@unb.ca", nomination_event.slug)
    nomination_event.nomination_end_time = utcnow() - timedelta(minutes=1)
    db_session.commit()

    response = client.post("/api/nomination/submit", json=FORM)

    assert response.status_code == 403
    assert response.json() == {"error": "Nomination period is not active"}
    assert db_session.scalar(select(func.count(Nomination.id))) == 0


def test_submit_after_eligibility_revoked_is_forbidden(
    client: TestClient,
    db_session: Session,
    otp_for: Callable[[str], str],
    nomination_event: NominationEvent,
) -> None:
    _verify(client, otp_for, "alice@unb.ca", nomination_event.slug)
    nomination_event.eligible_emails = ["bob@unb.ca"]
    db_session.commit()

    response = client.post("/api/nomination/submit", json=FORM)

    assert response.status_code == 403
    assert response.json() == {"error": "Your email is not eligible for this event"}
    assert db_session.scalar(select(func.count(Nomination.id))) == 0


def test_submit_to_deactivated_event_is_not_found(
    client: TestClient,
    db_session: Session,
    otp_for: Callable[[str], str],
    nomination_event: NominationEvent,
) -> None:
    _verify(client, otp_for, "alice@unb.ca", nomination_event.slug)
    nomination_event.is_active = False
    db_session.commit()

    response = client.post("/api/nomination/submit", json=FORM)

    assert response.status_code == 404
    assert db_session.scalar(select(func.count(Nomination.id))) == 0


def test_rate_limit_ignores_spoofed_forwarded_for(
    client: TestClient,
    nomination_event: NominationEvent,
) -> None:
    body = {"email": "zed@unb.ca", "slug": nomination_event.slug}
    statuses = [
        client.post(
            "/api/nomination/request-otp", json=body, headers={"X-Forwarded-For": f"10.0.0.{i}"}
        ).status_code
        for i in range(11)
    ]

    assert statuses[:10] == [403] * 10
    assert statuses[10] == 429
