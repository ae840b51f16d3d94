from __future__ import annotations

import csv
import io
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from elections.models import Admin, Nomination, NominationEvent, Vote, VotingEvent, utcnow
from elections.services.admin_events import slugify

ADMIN_EMAIL = "admin@unb.ca"
ADMIN_PASSWORD = "correct-horse-battery"


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


def _nomination_event_body(name: str = "Spring Council Election") -> dict[str, object]:
    now = utcnow()
    return {
        "name": name,
        "description": "Spring term",
        "nominationStartTime": _iso(now - timedelta(hours=1)),
        "nominationEndTime": _iso(now + timedelta(days=3)),
        "withdrawalStartTime": _iso(now),
        "withdrawalEndTime": _iso(now + timedelta(days=5)),
        "eligibleEmails": ["Alice@UNB.ca", "bob@unb.ca", "alice@unb.ca"],
    }


def test_slugify() -> None:
    assert slugify("Spring Council Election!") == "spring-council-election"
    assert slugify("  Faculty  of Arts 2025 ") == "faculty-of-arts-2025"


def test_login_profile_logout(client: TestClient, admin: Admin) -> None:
    response = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    body = response.json()
    assert body["admin"]["email"] == ADMIN_EMAIL
    headers = {"Authorization": f"Bearer {body['token']}"}

    profile = client.get("/api/admin/profile", headers=headers)
    assert profile.status_code == 200
    assert profile.json()["role"] == "ADMIN"

    assert client.post("/api/admin/logout", headers=headers).status_code == 200
    assert client.get("/api/admin/profile", headers=headers).status_code == 401


def test_admin_routes_require_token(client: TestClient, db_session: Session) -> None:
    response = client.get("/api/admin/nomination-events")
    assert response.status_code == 401
    assert response.json() == {"error": "Access token required"}

    forged = client.get("/api/admin/nomination-events", headers={"Authorization": "Bearer not-a-jwt"})
    assert forged.status_code == 401


def test_repeated_bad_passwords_lock_account(client: TestClient, db_session: Session, admin: Admin) -> None:
    for _ in range(5):
        response = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": "wrong"})
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials"}

    locked = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert locked.status_code == 423

    db_session.refresh(admin)
    assert admin.is_locked is True
    assert admin.locked_until is not None


def test_expired_lock_allows_login(client: TestClient, db_session: Session, admin: Admin) -> None:
    admin.is_locked = True
    admin.failed_attempts = 5
    admin.locked_until = utcnow() - timedelta(minutes=1)
    db_session.commit()

    response = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200

    db_session.refresh(admin)
    assert admin.failed_attempts == 0
    assert admin.is_locked is False


def test_create_and_manage_nomination_event(
    client: TestClient, db_session: Session, admin_headers: dict[str, str]
) -> None:
    response = client.post("/api/admin/nomination-events", json=_nomination_event_body(), headers=admin_headers)
    assert response.status_code == 201, response.text
    event = response.json()["event"]
    assert event["slug"] == "spring-council-election"
    assert event["eligibleEmails"] == ["alice@unb.ca", "bob@unb.ca"]
    assert event["nominationLink"].endswith("/nominate/spring-council-election")

    duplicate = client.post("/api/admin/nomination-events", json=_nomination_event_body(), headers=admin_headers)
    assert duplicate.status_code == 400
    assert duplicate.json()["error"] == "Event name already exists"

    listing = client.get("/api/admin/nomination-events", headers=admin_headers)
    assert [item["nominationCount"] for item in listing.json()["events"]] == [0]

    updated = client.patch(
        f"/api/admin/nomination-events/{event['id']}",
        json={"description": "Updated", "eligibleEmails": ["carol@unb.ca"]},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["event"]["description"] == "Updated"
    assert updated.json()["event"]["eligibleEmails"] == ["carol@unb.ca"]
    assert updated.json()["event"]["slug"] == "spring-council-election"

    toggled = client.patch(
        f"/api/admin/nomination-events/{event['id']}/time-settings",
        json={"enableTimeCheck": False},
        headers=admin_headers,
    )
    assert toggled.status_code == 200
    assert toggled.json()["event"]["enableTimeCheck"] is False


def test_event_windows_must_be_ordered(client: TestClient, admin_headers: dict[str, str]) -> None:
    body = _nomination_event_body()
    body["nominationEndTime"], body["nominationStartTime"] = body["nominationStartTime"], body["nominationEndTime"]

    response = client.post("/api/admin/nomination-events", json=body, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Nomination end time must be after start time"


def test_unknown_event_returns_not_found(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.get("/api/admin/nomination-events/missing/submissions", headers=admin_headers)
    assert response.status_code == 404


def test_submissions_and_export(
    client: TestClient,
    admin_headers: dict[str, str],
    nomination_event: NominationEvent,
    nomination_factory: Callable[..., Nomination],
) -> None:
    nomination_factory(nomination_event)
    nomination_factory(nomination_event, email="bob@unb.ca", first_name="Bob", positions=["Webmaster"])

    submissions = client.get(f"/api/admin/nomination-events/{nomination_event.id}/submissions", headers=admin_headers)
    assert submissions.status_code == 200
    assert {item["email"] for item in submissions.json()} == {"alice@unb.ca", "bob@unb.ca"}
    assert submissions.json()[0]["eventName"] == "Student Council 2025"

    exported = client.get(
        f"/api/admin/nomination-events/{nomination_event.id}/export",
        params={"format": "csv"},
        headers=admin_headers,
    )
    assert exported.status_code == 200
    assert exported.headers["content-type"].startswith("text/csv")
    assert "attachment;" in exported.headers["content-disposition"]
    rows = list(csv.reader(io.StringIO(exported.text)))
    assert rows[0][:3] == ["Email", "First Name", "Last Name"]
    assert len(rows) == 3

    as_json = client.get(f"/api/admin/nomination-events/{nomination_event.id}/export", headers=admin_headers)
    assert as_json.status_code == 200
    assert len(as_json.json()["submissions"]) == 2

    bad_format = client.get(
        f"/api/admin/nomination-events/{nomination_event.id}/export",
        params={"format": "xml"},
        headers=admin_headers,
    )
    assert bad_format.status_code == 400


def test_nomination_suggestions_skip_withdrawn(
    client: TestClient,
    admin_headers: dict[str, str],
    nomination_event: NominationEvent,
    nomination_factory: Callable[..., Nomination],
) -> None:
    nomination_factory(nomination_event)
    nomination_factory(nomination_event, email="bob@unb.ca", first_name="Bob", is_withdrawn=True)

    response = client.get("/api/admin/nomination-suggestions", headers=admin_headers)

    assert response.status_code == 200
    assert [item["firstName"] for item in response.json()] == ["Alice"]
    assert response.json()[0]["eventName"] == "Student Council 2025"


def test_create_voting_event_with_candidates(client: TestClient, admin_headers: dict[str, str]) -> None:
    now = utcnow()
    body = {
        "name": "Spring Ballot",
        "votingStartTime": _iso(now - timedelta(hours=1)),
        "votingEndTime": _iso(now + timedelta(days=1)),
        "eligibleEmails": ["alice@unb.ca"],
        "candidates": [
            {
                "firstName": "Dana",
                "lastName": "Smith",
                "studentId": "3500001",
                "faculty": "Science",
                "year": "3rd Year",
                "positions": ["President"],
            }
        ],
    }

    response = client.post("/api/admin/voting-events", json=body, headers=admin_headers)

    assert response.status_code == 201, response.text
    event = response.json()["event"]
    assert event["votingLink"].endswith("/vote/spring-ballot")
    assert [c["firstName"] for c in event["candidates"]] == ["Dana"]

    public = client.get("/api/voting/event/spring-ballot")
    assert public.status_code == 200


def test_extend_and_delete_voting_event(
    client: TestClient,
    db_session: Session,
    admin_headers: dict[str, str],
    voting_event: VotingEvent,
) -> None:
    original_end = voting_event.voting_end_time

    extended = client.post(
        f"/api/admin/voting-events/{voting_event.id}/extend",
        json={"additionalMinutes": 90},
        headers=admin_headers,
    )
    assert extended.status_code == 200
    db_session.refresh(voting_event)
    delta = voting_event.voting_end_time.replace(tzinfo=None) - original_end.replace(tzinfo=None)
    assert delta == timedelta(minutes=90)

    invalid = client.post(
        f"/api/admin/voting-events/{voting_event.id}/extend",
        json={"additionalMinutes": 0},
        headers=admin_headers,
    )
    assert invalid.status_code == 400

    deleted = client.delete(f"/api/admin/voting-events/{voting_event.id}", headers=admin_headers)
    assert deleted.status_code == 200
    db_session.refresh(voting_event)
    assert voting_event.is_active is False
    assert client.get(f"/api/voting/event/{voting_event.slug}").status_code == 404


def test_voting_results(
    client: TestClient,
    db_session: Session,
    admin_headers: dict[str, str],
    voting_event: VotingEvent,
) -> None:
    dana = next(c for c in voting_event.candidates if c.first_name == "Dana")
    for email, first in (("alice@unb.ca", "Alice"), ("bob@unb.ca", "Bob")):
        db_session.add(
            Vote(
                event_id=voting_event.id,
                voter_email=email,
                voter_first_name=first,
                voter_last_name="Voter",
                voter_student_id="3600001",
                voter_faculty="Arts",
                voter_year="1st Year",
                ballot={"President": dana.id},
            )
        )
    db_session.commit()

    response = client.get(f"/api/admin/voting-events/{voting_event.id}/results", headers=admin_headers)

    assert response.status_code == 200, response.text
    body = response.json()
    president = {c["name"]: c["votes"] for c in body["results"]["President"]["candidates"]}
    assert president == {"Dana Smith": 2, "Evan Jones": 0}
    assert body["voterStats"] == {
        "totalEligible": 3,
        "totalVoted": 2,
        "turnoutPercentage": "66.7",
        "notVoted": ["carol@unb.ca"],
    }
    assert {vote["voterName"] for vote in body["votes"]} == {"Alice Voter", "Bob Voter"}
