from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from jobfilter.errors import ClaimValidationError
from jobfilter.ledger.store import ClaimStore
from jobfilter.types import ClaimType, VerificationStatus


@dataclass(slots=True, frozen=True)
class ValidationContext:
    type: ClaimType
    text: str = ""
    role: str | None = None
    company: str | None = None
    metric: str | None = None
    verification_status: VerificationStatus | None = None
    experience_id: str | None = None
    current_claim_id: str | None = None


class ClaimValidator(Protocol):
    def __call__(self, context: ValidationContext, store: ClaimStore) -> None: ...


def validate_claim_context(context: ValidationContext, store: ClaimStore) -> None:
    """Default validator; raises ClaimValidationError naming the broken invariant."""
    role = (context.role or "").strip()
    company = (context.company or "").strip()
    text = context.text.strip()

    if context.type == ClaimType.EXPERIENCE:
        if not role or not company:
            raise ClaimValidationError(
                "missing-experience-identity",
                "Experience claims must include both role and company.",
                field="company" if role else "role",
            )
        return

    if not text:
        raise ClaimValidationError(
            "missing-claim-text",
            "Claim text is required for Skills, Tools, and Outcomes.",
            field="text",
        )

    if store.count_by_type(ClaimType.EXPERIENCE, exclude_id=context.current_claim_id) == 0:
        raise ClaimValidationError(
            "missing-experience-anchor",
            "Add at least one Experience claim before adding Skills, Tools, or Outcomes.",
            field="experience_id",
        )

    if not context.experience_id:
        raise ClaimValidationError(
            "missing-experience-link",
            "Link this claim to an Experience entry so evidence stays coherent.",
            field="experience_id",
        )

    anchor = store.get(context.experience_id)
    if anchor is None or anchor.type != ClaimType.EXPERIENCE or anchor.id == context.current_claim_id:
        raise ClaimValidationError(
            "invalid-experience-link",
            "The selected Experience link no longer exists. Select a valid Experience entry.",
            field="experience_id",
        )

    if (
        context.type == ClaimType.OUTCOME
        and context.verification_status == VerificationStatus.APPROVED
        and not (context.metric or "").strip()
    ):
        raise ClaimValidationError(
            "missing-approved-outcome-metric",
            "Approved outcome claims must include a metric for traceability.",
            field="metric",
        )
