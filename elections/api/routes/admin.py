"""Administrator endpoints: authentication, event management and results."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from elections.api.deps import get_client_info, get_current_admin, get_db_session, require_admin
from elections.core.config import Settings, get_settings
from elections.models import Nomination, NominationEvent, Vote, VotingEvent
from elections.schemas import (
    AdminRead,
    ExtendVotingRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    NominationEventCreate,
    NominationEventEnvelope,
    NominationEventList,
    NominationEventRead,
    NominationEventUpdate,
    NominationRead,
    NominationSuggestion,
    TimeSettingsUpdate,
    VoteRead,
    VotingEventCreate,
    VotingEventEnvelope,
    VotingEventList,
    VotingEventRead,
    VotingEventUpdate,
    VotingResultsResponse,
)
from elections.schemas import admin as admin_schemas
from elections.services import admin_auth, admin_events
from elections.services.admin_auth import AuthenticatedAdmin
from elections.services.location import ClientInfo
from elections.services.rate_limit import enforce_rate_limit

router = APIRouter()


def _nomination_event_read(
    event: NominationEvent, *, count: int = 0, link: str | None = None
) -> NominationEventRead:
    return NominationEventRead.model_validate(event).model_copy(
        update={"nomination_count": count, "nomination_link": link}
    )


def _voting_event_read(event: VotingEvent, *, count: int = 0, link: str | None = None) -> VotingEventRead:
    return VotingEventRead.model_validate(event).model_copy(update={"vote_count": count, "voting_link": link})


def _nomination_read(nomination: Nomination) -> NominationRead:
    return NominationRead.model_validate(nomination).model_copy(
        update={"event_name": nomination.event.name if nomination.event else None}
    )


def _vote_read(vote: Vote) -> VoteRead:
    return VoteRead(
        id=vote.id,
        voter_name=f"{vote.voter_first_name} {vote.voter_last_name}",
        voter_email=vote.voter_email,
        voter_student_id=vote.voter_student_id,
        voter_faculty=vote.voter_faculty,
        voter_year=vote.voter_year,
        submitted_at=vote.submitted_at,
        ip_address=vote.ip_address,
        location=vote.location,
    )


# Authentication


@router.post("/login", response_model=LoginResponse, dependencies=[Depends(enforce_rate_limit)])
def login(
    payload: LoginRequest,
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
    client: ClientInfo = Depends(get_client_info),
) -> LoginResponse:
    token, admin = admin_auth.login(
        session, settings, email=payload.email, password=payload.password, client=client
    )
    return LoginResponse(token=token, admin=AdminRead.model_validate(admin))


@router.get("/profile", response_model=AdminRead)
def profile(current: AuthenticatedAdmin = Depends(get_current_admin)) -> AdminRead:
    return AdminRead.model_validate(current.admin)


@router.post("/logout", response_model=MessageResponse)
def logout(
    current: AuthenticatedAdmin = Depends(get_current_admin),
    session: Session = Depends(get_db_session),
    client: ClientInfo = Depends(get_client_info),
) -> MessageResponse:
    admin_auth.logout(session, current, client)
    return MessageResponse(message="Logged out successfully")


# Nomination events


@router.post(
    "/nomination-events",
    response_model=NominationEventEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def create_nomination_event(
    payload: NominationEventCreate,
    current: AuthenticatedAdmin = Depends(require_admin),
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> NominationEventEnvelope:
    event, link = admin_events.create_nomination_event(session, settings, payload, admin=current.admin)
    return NominationEventEnvelope(
        message="Nomination event created successfully",
        event=_nomination_event_read(event, link=link),
    )


@router.get("/nomination-events", response_model=NominationEventList)
def list_nomination_events(
    _: AuthenticatedAdmin = Depends(require_admin),
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> NominationEventList:
    return NominationEventList(
        events=[
            _nomination_event_read(
                event,
                count=count,
                link=f"{settings.frontend_url.rstrip('/')}/nominate/{event.slug}",
            )
            for event, count in admin_events.list_nomination_events(session)
        ]
    )


@router.patch("/nomination-events/{event_id}", response_model=NominationEventEnvelope)
def update_nomination_event(
    event_id: str,
    payload: NominationEventUpdate,
    _: AuthenticatedAdmin = Depends(require_admin),
    session: Session = Depends(get_db_session),
) -> NominationEventEnvelope:
    event = admin_events.update_nomination_event(session, event_id, payload)
    return NominationEventEnvelope(
        message="Nomination event updated successfully", event=_nomination_event_read(event)
    )


@router.patch("/nomination-events/{event_id}/time-settings", response_model=NominationEventEnvelope)
def update_time_settings(
    event_id: str,
    payload: TimeSettingsUpdate,
    _: AuthenticatedAdmin = Depends(require_admin),
    session: Session = Depends(get_db_session),
) -> NominationEventEnvelope:
    event = admin_events.update_time_settings(session, event_id, payload)
    return NominationEventEnvelope(
        message="Time settings updated successfully", event=_nomination_event_read(event)
    )


@router.get("/nomination-events/{event_id}/submissions", response_model=list[NominationRead])
def list_submissions(
    event_id: str,
    _: AuthenticatedAdmin = Depends(require_admin),
    session: Session = Depends(get_db_session),
) -> list[NominationRead]:
    return [_nomination_read(nomination) for nomination in admin_events.list_submissions(session, event_id)]


@router.get("/nomination-events/{event_id}/export")
def export_submissions(
    event_id: str,
    fmt: admin_events.ExportFormat = Query(default="json", alias="format"),
    _: AuthenticatedAdmin = Depends(require_admin),
    session: Session = Depends(get_db_session),
) -> Response:
    export = admin_events.export_submissions(session, event_id, fmt)
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@router.get("/nomination-suggestions", response_model=list[NominationSuggestion])
def nomination_suggestions(
    _: AuthenticatedAdmin = Depends(require_admin),
    session: Session = Depends(get_db_session),
) -> list[NominationSuggestion]:
    return [
        NominationSuggestion(
            first_name=nomination.first_name,
            last_name=nomination.last_name,
            student_id=nomination.student_id,
            faculty=nomination.faculty,
            year=nomination.year,
            positions=list(nomination.positions),
            event_name=nomination.event.name,
        )
        for nomination in admin_events.nomination_suggestions(session)
    ]


# Voting events


@router.post(
    "/voting-events",
    response_model=VotingEventEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def create_voting_event(
    payload: VotingEventCreate,
    current: AuthenticatedAdmin = Depends(require_admin),
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> VotingEventEnvelope:
    event, link = admin_events.create_voting_event(session, settings, payload, admin=current.admin)
    return VotingEventEnvelope(
        message="Voting event created successfully", event=_voting_event_read(event, link=link)
    )


@router.get("/voting-events", response_model=VotingEventList)
def list_voting_events(
    _: AuthenticatedAdmin = Depends(require_admin),
    session: Session = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> VotingEventList:
    return VotingEventList(
        events=[
            _voting_event_read(
                event, count=count, link=f"{settings.frontend_url.rstrip('/')}/vote/{event.slug}"
            )
            for event, count in admin_events.list_voting_events(session)
        ]
    )


@router.patch("/voting-events/{event_id}", response_model=VotingEventEnvelope)
def update_voting_event(
    event_id: str,
    payload: VotingEventUpdate,
    _: AuthenticatedAdmin = Depends(require_admin),
    session: Session = Depends(get_db_session),
) -> VotingEventEnvelope:
    event = admin_events.update_voting_event(session, event_id, payload)
    return VotingEventEnvelope(message="Voting event updated successfully", event=_voting_event_read(event))


@router.delete("/voting-events/{event_id}", response_model=MessageResponse)
def delete_voting_event(
    event_id: str,
    _: AuthenticatedAdmin = Depends(require_admin),
    session: Session = Depends(get_db_session),
) -> MessageResponse:
    admin_events.deactivate_voting_event(session, event_id)
    return MessageResponse(message="Voting event deleted successfully")


@router.post("/voting-events/{event_id}/extend", response_model=VotingEventEnvelope)
def extend_voting_period(
    event_id: str,
    payload: ExtendVotingRequest,
    _: AuthenticatedAdmin = Depends(require_admin),
    session: Session = Depends(get_db_session),
) -> VotingEventEnvelope:
    event = admin_events.extend_voting_period(session, event_id, payload.additional_minutes)
    return VotingEventEnvelope(
        message="Voting period extended successfully", event=_voting_event_read(event)
    )


@router.get("/voting-events/{event_id}/results", response_model=VotingResultsResponse)
def voting_results(
    event_id: str,
    _: AuthenticatedAdmin = Depends(require_admin),
    session: Session = Depends(get_db_session),
) -> VotingResultsResponse:
    event, votes, summary = admin_events.voting_results(session, event_id)
    return VotingResultsResponse(
        event=admin_schemas.ResultsEventSummary.model_validate(event),
        results={
            position: admin_schemas.PositionResult.model_validate(result)
            for position, result in summary.results.items()
        },
        voter_stats=admin_schemas.VoterStats.model_validate(summary.voter_stats),
        votes=[_vote_read(vote) for vote in votes],
    )


__all__ = ["router"]
