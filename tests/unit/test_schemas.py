from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from elections.core.errors import ValidationError
from elections.schemas import BallotForm, CodeRequest, NominationForm, WithdrawalForm, parse_payload


def _nomination(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "firstName": "Alice",
        "lastName": "O'Neil",
        "studentId": "3712345",
        "faculty": "Computer Science",
        "year": "3rd Year",
        "positions": ["President"],
    }
    payload.update(overrides)
    return payload


@pytest.mark.parametrize("student_id", ["3000000", "2999999", "300000", "30000001", "abcdefg"])
def test_student_id_rejected(student_id: str) -> None:
    with pytest.raises(PydanticValidationError):
        NominationForm.model_validate(_nomination(studentId=student_id))


@pytest.mark.parametrize("student_id", ["3000001", "9999999"])
def test_student_id_accepted(student_id: str) -> None:
    form = NominationForm.model_validate(_nomination(studentId=student_id))
    assert form.student_id == student_id


def test_positions_are_deduplicated_in_order() -> None:
    form = NominationForm.model_validate(_nomination(positions=["Treasurer", "President", "Treasurer"]))
    assert form.positions == ["Treasurer", "President"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"positions": []},
        {"positions": ["Mascot"]},
        {"year": "6th Year"},
        {"firstName": "Al1ce"},
        {"faculty": ""},
    ],
)
def test_nomination_form_rejects_invalid_fields(overrides: dict[str, object]) -> None:
    with pytest.raises(PydanticValidationError):
        NominationForm.model_validate(_nomination(**overrides))


def test_code_request_normalises_institutional_email() -> None:
    request = CodeRequest.model_validate({"email": "  Alice@UNB.ca ", "slug": "council"})
    assert request.email == "alice@unb.ca"


@pytest.mark.parametrize("email", ["alice@gmail.com", "not-an-email", "alice@unb.ca.evil.com"])
def test_code_request_rejects_other_domains(email: str) -> None:
    with pytest.raises(PydanticValidationError):
        CodeRequest.model_validate({"email": email, "slug": "council"})


def test_parse_payload_reports_field_details() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_payload(BallotForm, {"voterFirstName": "Bob"})

    assert excinfo.value.status_code == 400
    assert excinfo.value.message == "Invalid input"
    paths = {tuple(item["path"]) for item in excinfo.value.details or []}
    assert ("voterStudentId",) in paths
    assert ("ballot",) in paths


def test_parse_payload_rejects_missing_body() -> None:
    with pytest.raises(ValidationError):
        parse_payload(NominationForm, None)


def test_withdrawal_form_defaults_to_complete_withdrawal() -> None:
    assert WithdrawalForm.model_validate({}).positions == []
