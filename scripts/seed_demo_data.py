"""Seed script for a demo administrator and demo election events."""
from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from elections.core.config import get_settings
from elections.db.session import engine, get_session
from elections.models import Admin, AdminRole, Base, Candidate, NominationEvent, VotingEvent, utcnow
from elections.services.admin_auth import create_admin

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_VOTERS = ["student1@unb.ca", "student2@unb.ca", "student3@unb.ca"]


def seed(session: Session) -> None:
    """Seed the demo admin, one open nomination event and one open voting event."""

    settings = get_settings()
    now = utcnow()

    admin = session.scalars(select(Admin).where(Admin.email == settings.seed_admin_email.lower())).one_or_none()
    if admin is None:
        admin = create_admin(
            session,
            email=settings.seed_admin_email,
            name="System Administrator",
            password=settings.seed_admin_password,
            role=AdminRole.SUPER_ADMIN,
        )
        logger.info("Created admin %s", admin.email)
    else:
        logger.info("Admin %s already exists", admin.email)

    if session.scalars(select(NominationEvent).where(NominationEvent.slug == "demo-nominations")).first() is None:
        session.add(
            NominationEvent(
                name="Demo Nominations",
                slug="demo-nominations",
                description="Nominations for the demo student council election.",
                nomination_start_time=now - timedelta(hours=1),
                nomination_end_time=now + timedelta(days=7),
                withdrawal_start_time=now - timedelta(hours=1),
                withdrawal_end_time=now + timedelta(days=10),
                eligible_emails=DEMO_VOTERS,
                created_by_id=admin.id,
            )
        )
        logger.info("Added nomination event demo-nominations")

    if session.scalars(select(VotingEvent).where(VotingEvent.slug == "demo-election")).first() is None:
        session.add(
            VotingEvent(
                name="Demo Election",
                slug="demo-election",
                description="Demo student council election.",
                voting_start_time=now - timedelta(hours=1),
                voting_end_time=now + timedelta(days=2),
                eligible_emails=DEMO_VOTERS,
                created_by_id=admin.id,
                candidates=[
                    Candidate(
                        first_name="Alice",
                        last_name="Martin",
                        student_id="3712345",
                        faculty="Computer Science",
                        year="3rd Year",
                        positions=["President"],
                    ),
                    Candidate(
                        first_name="Bob",
                        last_name="Nguyen",
                        student_id="3723456",
                        faculty="Engineering",
                        year="2nd Year",
                        positions=["President", "Treasurer"],
                    ),
                ],
            )
        )
        logger.info("Added voting event demo-election")


def main() -> None:
    Base.metadata.create_all(bind=engine)
    with get_session() as session:
        seed(session)


if __name__ == "__main__":
    main()
