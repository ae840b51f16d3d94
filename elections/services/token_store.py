"""Persistence for one-time passcode records."""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from elections.models import OtpRecord, Purpose, as_utc, new_id


@dataclass(slots=True, frozen=True)
class TokenRecord:
    """Snapshot of an OTP record as seen by the verification workflow."""

    id: str
    purpose: Purpose
    event_id: str
    email: str
    otp: str
    code: str
    expires_at: datetime
    is_used: bool
    attempts: int
    max_attempts: int
    used_at: datetime | None = None
    ip_address: str | None = None


class TokenStore(Protocol):
    def upsert(
        self,
        *,
        purpose: Purpose,
        event_id: str,
        email: str,
        otp: str,
        code: str,
        expires_at: datetime,
        max_attempts: int,
        ip_address: str | None,
    ) -> TokenRecord: ...

    def find_live_by_code(self, code: str, purpose: Purpose, now: datetime) -> TokenRecord | None: ...

    def increment_attempts(self, record_id: str) -> int: ...

    def mark_used(self, record_id: str, used_at: datetime) -> bool: ...


def _snapshot(row: OtpRecord) -> TokenRecord:
    return TokenRecord(
        id=row.id,
        purpose=row.purpose,
        event_id=row.event_id,
        email=row.email,
        otp=row.otp,
        code=row.code,
        expires_at=as_utc(row.expires_at),
        is_used=row.is_used,
        attempts=row.attempts,
        max_attempts=row.max_attempts,
        used_at=as_utc(row.used_at) if row.used_at else None,
        ip_address=row.ip_address,
    )


class SqlAlchemyTokenStore:
    """Token store backed by the ``otp_records`` table.

    Every write commits immediately so a failed verification still records
    its attempt when the request ends in an error response.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def upsert(
        self,
        *,
        purpose: Purpose,
        event_id: str,
        email: str,
        otp: str,
        code: str,
        expires_at: datetime,
        max_attempts: int,
        ip_address: str | None,
    ) -> TokenRecord:
        row = self._session.scalars(
            select(OtpRecord).where(
                OtpRecord.purpose == purpose,
                OtpRecord.event_id == event_id,
                OtpRecord.email == email,
            )
        ).one_or_none()
        if row is None:
            row = OtpRecord(purpose=purpose, event_id=event_id, email=email)
            self._session.add(row)
        row.otp = otp
        row.code = code
        row.expires_at = expires_at
        row.is_used = False
        row.used_at = None
        row.attempts = 0
        row.max_attempts = max_attempts
        row.ip_address = ip_address
        self._session.commit()
        self._session.refresh(row)
        return _snapshot(row)

    def find_live_by_code(self, code: str, purpose: Purpose, now: datetime) -> TokenRecord | None:
        row = self._session.scalars(
            select(OtpRecord).where(
                OtpRecord.code == code,
                OtpRecord.purpose == purpose,
                OtpRecord.is_used.is_(False),
                OtpRecord.expires_at > now,
            )
        ).one_or_none()
        return _snapshot(row) if row is not None else None

    def increment_attempts(self, record_id: str) -> int:
        self._session.execute(
            update(OtpRecord)
            .where(OtpRecord.id == record_id)
            .values(attempts=OtpRecord.attempts + 1)
            .execution_options(synchronize_session=False)
        )
        self._session.commit()
        attempts = self._session.scalar(select(OtpRecord.attempts).where(OtpRecord.id == record_id))
        return int(attempts or 0)

    def mark_used(self, record_id: str, used_at: datetime) -> bool:
        result = self._session.execute(
            update(OtpRecord)
            .where(OtpRecord.id == record_id, OtpRecord.is_used.is_(False))
            .values(is_used=True, used_at=used_at)
            .execution_options(synchronize_session=False)
        )
        self._session.commit()
        return result.rowcount == 1


class InMemoryTokenStore:
    """Dictionary-backed token store for unit tests."""

    def __init__(self) -> None:
        self.records: dict[tuple[Purpose, str, str], TokenRecord] = {}

    def upsert(
        self,
        *,
        purpose: Purpose,
        event_id: str,
        email: str,
        otp: str,
        code: str,
        expires_at: datetime,
        max_attempts: int,
        ip_address: str | None,
    ) -> TokenRecord:
        key = (purpose, event_id, email)
        existing = self.records.get(key)
        record = TokenRecord(
            id=existing.id if existing else new_id(),
            purpose=purpose,
            event_id=event_id,
            email=email,
            otp=otp,
            code=code,
            expires_at=expires_at,
            is_used=False,
            attempts=0,
            max_attempts=max_attempts,
            ip_address=ip_address,
        )
        self.records[key] = record
        return record

    def find_live_by_code(self, code: str, purpose: Purpose, now: datetime) -> TokenRecord | None:
        for record in self.records.values():
            if (
                record.code == code
                and record.purpose == purpose
                and not record.is_used
                and record.expires_at > now
            ):
                return record
        return None

    def _find_key(self, record_id: str) -> tuple[Purpose, str, str] | None:
        for key, record in self.records.items():
            if record.id == record_id:
                return key
        return None

    def increment_attempts(self, record_id: str) -> int:
        key = self._find_key(record_id)
        if key is None:
            return 0
        record = replace(self.records[key], attempts=self.records[key].attempts + 1)
        self.records[key] = record
        return record.attempts

    def mark_used(self, record_id: str, used_at: datetime) -> bool:
        key = self._find_key(record_id)
        if key is None or self.records[key].is_used:
            return False
        self.records[key] = replace(self.records[key], is_used=True, used_at=used_at)
        return True


__all__ = ["InMemoryTokenStore", "SqlAlchemyTokenStore", "TokenRecord", "TokenStore"]
