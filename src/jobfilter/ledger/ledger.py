"""Claim ledger: canonicalizes, deduplicates and validates claims before they reach the store.

Every mutation runs under the ledger lock and inside a store transaction, so a
duplicate check and the write that follows it are never interleaved with
another mutation, and a rejected write leaves the store untouched.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from jobfilter.errors import ClaimNotFoundError, ClaimValidationError
from jobfilter.ledger.inference import (
    experience_text,
    infer_claim_type,
    normalize_claim_text,
    normalize_token,
    sanitize_for_type,
)
from jobfilter.ledger.store import ClaimStore
from jobfilter.ledger.validation import ClaimValidator, ValidationContext, validate_claim_context
from jobfilter.types import Claim, ClaimInput, ClaimPatch, ClaimType, VerificationStatus

if TYPE_CHECKING:
    from jobfilter.config import Settings

logger = logging.getLogger(__name__)

_CLAIM_FIELDS = (
    "text",
    "confidence",
    "verification_status",
    "experience_id",
    "role",
    "company",
    "start_date",
    "end_date",
    "location",
    "responsibilities",
    "metric",
    "is_numeric",
    "source",
    "evidence_snippet",
)


@dataclass(slots=True, frozen=True)
class LedgerConfig:
    auto_approve_confidence: float = 0.9
    default_confidence: float = 0.75

    @classmethod
    def from_settings(cls, settings: Settings) -> LedgerConfig:
        return cls(auto_approve_confidence=settings.claim_auto_approve_confidence)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def is_same_claim(existing: Claim, candidate: Claim) -> bool:
    if existing.type != candidate.type or existing.normalized_text != candidate.normalized_text:
        return False
    if candidate.type == ClaimType.EXPERIENCE:
        return all(
            normalize_token(getattr(existing, name)) == normalize_token(getattr(candidate, name))
            for name in ("role", "company", "start_date", "end_date")
        )
    return (existing.experience_id or "") == (candidate.experience_id or "")


class ClaimLedger:
    def __init__(
        self,
        store: ClaimStore,
        validator: ClaimValidator = validate_claim_context,
        config: LedgerConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.validator = validator
        self.config = config or LedgerConfig()
        self.clock = clock
        self._lock = threading.RLock()

    def get(self, claim_id: str) -> Claim:
        claim = self.store.get(claim_id)
        if claim is None:
            raise ClaimNotFoundError(claim_id)
        return claim

    def claims(self) -> list[Claim]:
        return self.store.list_all()

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Group several mutations into one store transaction."""
        with self._lock, self.store.transaction():
            yield

    def add(self, data: ClaimInput) -> Claim:
        claim_type = infer_claim_type(data)
        values = sanitize_for_type(claim_type, data.model_dump(include=set(_CLAIM_FIELDS)))
        text = (values["text"] or experience_text(values["role"], values["company"])).strip()
        requested_status = values["verification_status"]

        with self._lock, self.store.transaction():
            self._validate(
                ValidationContext(
                    type=claim_type,
                    text=text,
                    role=values["role"],
                    company=values["company"],
                    metric=values["metric"],
                    verification_status=requested_status,
                    experience_id=values["experience_id"],
                )
            )

            incoming_confidence = values["confidence"]
            confidence = incoming_confidence if incoming_confidence is not None else self.config.default_confidence
            auto_approve = (
                requested_status == VerificationStatus.APPROVED
                and (incoming_confidence or 0.0) >= self.config.auto_approve_confidence
            )
            now = self.clock()
            text = text or f"Imported {claim_type.value.lower()}"
            candidate = Claim(
                id=uuid.uuid4().hex,
                type=claim_type,
                text=text,
                normalized_text=normalize_claim_text(text),
                confidence=confidence,
                verification_status=VerificationStatus.APPROVED if auto_approve else VerificationStatus.REVIEW_NEEDED,
                experience_id=values["experience_id"],
                role=values["role"],
                company=values["company"],
                start_date=values["start_date"],
                end_date=values["end_date"],
                location=values["location"],
                responsibilities=values["responsibilities"],
                metric=values["metric"],
                is_numeric=values["is_numeric"],
                source=values["source"] or "Manual",
                evidence_snippet=values["evidence_snippet"],
                created_at=now,
                updated_at=now,
            )

            duplicate = self._find_duplicate(candidate)
            if duplicate is not None:
                merged = self._absorb(duplicate, incoming_confidence or 0.0, auto_approve)
                logger.info("Claim add collapsed into existing claim %s", merged.id)
                return merged

            self.store.insert(candidate)
            logger.info("Added %s claim %s", claim_type.value, candidate.id)
            return candidate

    def update(self, claim_id: str, patch: ClaimPatch) -> Claim:
        with self._lock, self.store.transaction():
            existing = self.get(claim_id)
            changes = patch.model_dump(exclude_unset=True)
            next_type = changes.get("type") or existing.type
            values: dict[str, Any] = existing.model_dump(include=set(_CLAIM_FIELDS))
            values.update({key: value for key, value in changes.items() if key in _CLAIM_FIELDS})
            values = sanitize_for_type(next_type, values)
            text = (values["text"] or "").strip()
            if not text and next_type == ClaimType.EXPERIENCE:
                text = experience_text(values["role"], values["company"])

            self._validate(
                ValidationContext(
                    type=next_type,
                    text=text,
                    role=values["role"],
                    company=values["company"],
                    metric=values["metric"],
                    verification_status=values["verification_status"],
                    experience_id=values["experience_id"],
                    current_claim_id=claim_id,
                )
            )
            if existing.type == ClaimType.EXPERIENCE and next_type != ClaimType.EXPERIENCE:
                if self.store.dependents_of(claim_id):
                    self._reject(
                        ClaimValidationError(
                            "experience-has-dependents",
                            "This Experience still has linked claims. Move or delete them first.",
                            field="type",
                        )
                    )

            values["text"] = text or existing.text
            values["confidence"] = values["confidence"] if values["confidence"] is not None else existing.confidence
            values["verification_status"] = values["verification_status"] or existing.verification_status
            values["source"] = values["source"] or existing.source
            updated = existing.model_copy(
                update={
                    **values,
                    "type": next_type,
                    "normalized_text": normalize_claim_text(values["text"]),
                    "updated_at": self.clock(),
                }
            )

            duplicate = self._find_duplicate(updated, exclude_id=claim_id)
            if duplicate is not None:
                for dependent in self.store.dependents_of(claim_id):
                    self.store.save(dependent.model_copy(update={"experience_id": duplicate.id}))
                self.store.delete(claim_id)
                merged = self._absorb(
                    duplicate,
                    updated.confidence,
                    updated.verification_status == VerificationStatus.APPROVED,
                )
                logger.info("Claim %s folded into duplicate %s on update", claim_id, merged.id)
                return merged

            self.store.save(updated)
            logger.info("Updated claim %s", claim_id)
            return updated

    def delete(self, claim_id: str) -> list[str]:
        """Delete a claim and, for an Experience, every claim linked to it. Returns the removed ids."""
        with self._lock, self.store.transaction():
            self.get(claim_id)
            removed = [dependent.id for dependent in self.store.dependents_of(claim_id)]
            for dependent_id in removed:
                self.store.delete(dependent_id)
            self.store.delete(claim_id)
        logger.info("Deleted claim %s (cascaded=%s)", claim_id, len(removed))
        return [claim_id, *removed]

    def merge(self, target_id: str, source_id: str) -> Claim:
        with self._lock, self.store.transaction():
            target = self.get(target_id)
            if target_id == source_id:
                return target
            source = self.get(source_id)
            if target.type != source.type:
                self._reject(
                    ClaimValidationError(
                        "merge-type-mismatch",
                        f"Cannot merge a {source.type.value} claim into a {target.type.value} claim.",
                        field="type",
                    )
                )

            dependents = self.store.dependents_of(source_id)
            for dependent in dependents:
                self.store.save(dependent.model_copy(update={"experience_id": target_id}))
            self.store.delete(source_id)
            merged = target.model_copy(
                update={
                    "confidence": max(target.confidence, source.confidence),
                    "updated_at": self.clock(),
                }
            )
            self.store.save(merged)
        logger.info(
            "Merged claim %s into %s (reassigned=%s)", source_id, target_id, len(dependents)
        )
        return merged

    def approve(self, ids: list[str] | None = None) -> int:
        """Approve the given claims (or every claim awaiting review); returns how many changed."""
        with self._lock, self.store.transaction():
            if ids:
                targets = [self.get(claim_id) for claim_id in dict.fromkeys(ids)]
            else:
                targets = [
                    claim
                    for claim in self.store.list_all()
                    if claim.verification_status == VerificationStatus.REVIEW_NEEDED
                ]

            changed = 0
            now = self.clock()
            for claim in targets:
                if claim.verification_status == VerificationStatus.APPROVED:
                    continue
                self._validate(
                    ValidationContext(
                        type=claim.type,
                        text=claim.text,
                        role=claim.role,
                        company=claim.company,
                        metric=claim.metric,
                        verification_status=VerificationStatus.APPROVED,
                        experience_id=claim.experience_id,
                        current_claim_id=claim.id,
                    )
                )
                self.store.save(
                    claim.model_copy(
                        update={"verification_status": VerificationStatus.APPROVED, "updated_at": now}
                    )
                )
                changed += 1
        logger.info("Approved %s claims", changed)
        return changed

    def _validate(self, context: ValidationContext) -> None:
        try:
            self.validator(context, self.store)
        except ClaimValidationError as exc:
            logger.warning("Rejected %s claim write: %s (%s)", context.type.value, exc.code, exc.field)
            raise

    def _reject(self, error: ClaimValidationError) -> None:
        logger.warning("Rejected claim write: %s (%s)", error.code, error.field)
        raise error

    def _find_duplicate(self, candidate: Claim, exclude_id: str | None = None) -> Claim | None:
        for existing in self.store.find_by_key(candidate.type, candidate.normalized_text):
            if existing.id != exclude_id and is_same_claim(existing, candidate):
                return existing
        return None

    def _absorb(self, existing: Claim, incoming_confidence: float, approve: bool) -> Claim:
        approved = existing.verification_status == VerificationStatus.APPROVED or approve
        merged = existing.model_copy(
            update={
                "confidence": max(existing.confidence, incoming_confidence),
                "verification_status": VerificationStatus.APPROVED if approved else existing.verification_status,
                "updated_at": self.clock(),
            }
        )
        self.store.save(merged)
        return merged
