from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from jobfilter.db.models import ClaimRecord, ImportSessionRecord
from jobfilter.types import Claim, ClaimType, ImportSession, VerificationStatus

logger = logging.getLogger(__name__)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def claim_from_record(record: ClaimRecord) -> Claim:
    return Claim(
        id=record.id,
        type=ClaimType(record.type),
        text=record.text,
        normalized_text=record.normalized_text,
        confidence=record.confidence,
        verification_status=VerificationStatus(record.verification_status),
        experience_id=record.experience_id,
        role=record.role,
        company=record.company,
        start_date=record.start_date,
        end_date=record.end_date,
        location=record.location,
        responsibilities=record.responsibilities_json,
        metric=record.metric,
        is_numeric=record.is_numeric,
        source=record.source,
        evidence_snippet=record.evidence_snippet,
        created_at=_aware(record.created_at),
        updated_at=_aware(record.updated_at),
    )


def _apply(record: ClaimRecord, claim: Claim) -> None:
    record.type = claim.type.value
    record.text = claim.text
    record.normalized_text = claim.normalized_text
    record.confidence = claim.confidence
    record.verification_status = claim.verification_status.value
    record.experience_id = claim.experience_id
    record.role = claim.role
    record.company = claim.company
    record.start_date = claim.start_date
    record.end_date = claim.end_date
    record.location = claim.location
    record.responsibilities_json = list(claim.responsibilities) if claim.responsibilities is not None else None
    record.metric = claim.metric
    record.is_numeric = claim.is_numeric
    record.source = claim.source
    record.evidence_snippet = claim.evidence_snippet
    record.created_at = claim.created_at
    record.updated_at = claim.updated_at


class SqlClaimStore:
    """ClaimStore backed by the claims table.

    Writes are flushed immediately and committed when the outermost
    ``transaction()`` block exits cleanly; any exception rolls the whole block back.
    """

    def __init__(self, session: Session):
        self.session = session
        self._depth = 0

    def get(self, claim_id: str) -> Claim | None:
        record = self.session.get(ClaimRecord, claim_id)
        return claim_from_record(record) if record else None

    def list_all(self) -> list[Claim]:
        rows = self.session.scalars(select(ClaimRecord).order_by(ClaimRecord.created_at, ClaimRecord.id)).all()
        return [claim_from_record(row) for row in rows]

    def find_by_key(self, claim_type: ClaimType, normalized_text: str) -> list[Claim]:
        rows = self.session.scalars(
            select(ClaimRecord)
            .where(ClaimRecord.type == claim_type.value, ClaimRecord.normalized_text == normalized_text)
            .order_by(ClaimRecord.created_at, ClaimRecord.id)
        ).all()
        return [claim_from_record(row) for row in rows]

    def dependents_of(self, experience_id: str) -> list[Claim]:
        rows = self.session.scalars(
            select(ClaimRecord)
            .where(ClaimRecord.experience_id == experience_id)
            .order_by(ClaimRecord.created_at, ClaimRecord.id)
        ).all()
        return [claim_from_record(row) for row in rows]

    def count_by_type(self, claim_type: ClaimType, exclude_id: str | None = None) -> int:
        stmt = select(func.count()).select_from(ClaimRecord).where(ClaimRecord.type == claim_type.value)
        if exclude_id:
            stmt = stmt.where(ClaimRecord.id != exclude_id)
        return int(self.session.scalar(stmt) or 0)

    def insert(self, claim: Claim) -> None:
        if self.session.get(ClaimRecord, claim.id) is not None:
            raise ValueError(f"claim '{claim.id}' already exists")
        record = ClaimRecord(id=claim.id)
        _apply(record, claim)
        self.session.add(record)
        self.session.flush()

    def save(self, claim: Claim) -> None:
        record = self.session.get(ClaimRecord, claim.id)
        if record is None:
            raise ValueError(f"claim '{claim.id}' not found")
        _apply(record, claim)
        self.session.flush()

    def delete(self, claim_id: str) -> None:
        record = self.session.get(ClaimRecord, claim_id)
        if record is not None:
            self.session.delete(record)
            self.session.flush()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        self._depth += 1
        try:
            yield
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self.session.rollback()
                logger.debug("Rolled back claim transaction")
            raise
        else:
            self._depth -= 1
            if self._depth == 0:
                self.session.commit()


class ImportSessionRepository:
    def __init__(self, session: Session):
        self.session = session

    def upsert(self, import_session: ImportSession) -> ImportSession:
        record = self.session.get(ImportSessionRecord, import_session.id)
        if record is None:
            record = ImportSessionRecord(id=import_session.id)
            self.session.add(record)
        record.state = import_session.state.value
        record.revision = import_session.revision
        record.source_kind = import_session.source.kind
        record.payload_json = import_session.model_dump(mode="json")
        self.session.commit()
        return import_session

    def get(self, session_id: str) -> ImportSession | None:
        record = self.session.get(ImportSessionRecord, session_id)
        if record is None:
            return None
        return ImportSession.model_validate(record.payload_json)

    def delete(self, session_id: str) -> bool:
        record = self.session.get(ImportSessionRecord, session_id)
        if record is None:
            return False
        self.session.delete(record)
        self.session.commit()
        return True
