from __future__ import annotations

import os
import re
import sys
from collections.abc import Callable, Iterator
from datetime import timedelta
from pathlib import Path
from typing import Any

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("EMAIL_BACKEND", "memory")
os.environ.setdefault("ENABLE_TRACING", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from elections.api.deps import get_db_session, get_location_service, get_notifier
from elections.main import app
from elections.models import (
    Admin,
    AdminRole,
    Base,
    Candidate,
    Nomination,
    NominationEvent,
    VotingEvent,
    utcnow,
)
from elections.services.admin_auth import create_admin
from elections.services.location import LocationService
from elections.services.notifier import MemoryNotifier
from elections.services.rate_limit import limiter
from elections.services.verification import generate_hex_token

DATABASE_URL = "sqlite+pysqlite:///:memory:"

ELIGIBLE = ["alice@unb.ca", "bob@unb.ca", "carol@unb.ca"]
ADMIN_EMAIL = "admin@unb.ca"
ADMIN_PASSWORD = "correct-horse-battery"

_OTP_RE = re.compile(r">(\d{6})<")

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture(autouse=True)
def _reset_rate_limiter() -> Iterator[None]:
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture()
def db_session() -> Iterator[Session]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture()
def notifier() -> MemoryNotifier:
    return MemoryNotifier()


@pytest.fixture()
def client(db_session: Session, notifier: MemoryNotifier) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        try:
            yield db_session
        finally:
            db_session.rollback()

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_location_service] = lambda: LocationService(None)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def otp_for(notifier: MemoryNotifier) -> Callable[[str], str]:
    """Return the most recent OTP mailed to ``address``."""

    def _latest(address: str) -> str:
        for message in reversed(notifier.messages_to(address)):
            match = _OTP_RE.search(message.html)
            if match:
                return match.group(1)
        raise AssertionError(f"no OTP sent to {address}")

    return _latest


@pytest.fixture()
def nomination_event_factory(db_session: Session) -> Callable[..., NominationEvent]:
    def _create(**overrides: Any) -> NominationEvent:
        now = utcnow()
        values: dict[str, Any] = {
            "name": "Student Council 2025",
            "slug": "student-council-2025",
            "nomination_start_time": now - timedelta(hours=1),
            "nomination_end_time": now + timedelta(days=1),
            "withdrawal_start_time": now - timedelta(hours=1),
            "withdrawal_end_time": now + timedelta(days=2),
            "eligible_emails": list(ELIGIBLE),
        }
        values.update(overrides)
        event = NominationEvent(**values)
        db_session.add(event)
        db_session.commit()
        db_session.refresh(event)
        return event

    return _create


@pytest.fixture()
def nomination_event(nomination_event_factory: Callable[..., NominationEvent]) -> NominationEvent:
    return nomination_event_factory()


@pytest.fixture()
def voting_event_factory(db_session: Session) -> Callable[..., VotingEvent]:
    def _create(**overrides: Any) -> VotingEvent:
        now = utcnow()
        values: dict[str, Any] = {
            "name": "General Election 2025",
            "slug": "general-election-2025",
            "voting_start_time": now - timedelta(hours=1),
            "voting_end_time": now + timedelta(days=1),
            "eligible_emails": list(ELIGIBLE),
        }
        values.update(overrides)
        candidates = values.pop(
            "candidates",
            [
                Candidate(
                    first_name="Dana",
                    last_name="Smith",
                    student_id="3500001",
                    faculty="Science",
                    year="3rd Year",
                    positions=["President"],
                ),
                Candidate(
                    first_name="Evan",
                    last_name="Jones",
                    student_id="3500002",
                    faculty="Engineering",
                    year="2nd Year",
                    positions=["President", "Treasurer"],
                ),
            ],
        )
        event = VotingEvent(candidates=candidates, **values)
        db_session.add(event)
        db_session.commit()
        db_session.refresh(event)
        return event

    return _create


@pytest.fixture()
def voting_event(voting_event_factory: Callable[..., VotingEvent]) -> VotingEvent:
    return voting_event_factory()


@pytest.fixture()
def nomination_factory(db_session: Session) -> Callable[..., Nomination]:
    def _create(event: NominationEvent, **overrides: Any) -> Nomination:
        values: dict[str, Any] = {
            "event_id": event.id,
            "email": "alice@unb.ca",
            "first_name": "Alice",
            "last_name": "Martin",
            "student_id": "3712345",
            "faculty": "Computer Science",
            "year": "3rd Year",
            "positions": ["President", "Treasurer"],
            "withdrawal_token": generate_hex_token(),
        }
        values.update(overrides)
        nomination = Nomination(**values)
        db_session.add(nomination)
        db_session.commit()
        db_session.refresh(nomination)
        return nomination

    return _create


@pytest.fixture()
def admin(db_session: Session) -> Admin:
    return create_admin(
        db_session,
        email=ADMIN_EMAIL,
        name="Election Officer",
        password=ADMIN_PASSWORD,
        role=AdminRole.ADMIN,
    )


@pytest.fixture()
def admin_headers(client: TestClient, admin: Admin) -> dict[str, str]:
    response = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}
