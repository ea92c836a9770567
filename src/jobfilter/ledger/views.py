"""Read-only views over the ledger: duplicate groups, the review queue and experience bundles."""

from __future__ import annotations

from pydantic import BaseModel, Field

from jobfilter.ledger.inference import normalize_claim_text
from jobfilter.types import Claim, ClaimType, VerificationStatus


class BundleOutcome(BaseModel):
    description: str
    metric: str | None = None
    is_numeric: bool = False
    verified: bool = False


class ExperienceBundle(BaseModel):
    id: str
    company: str
    role: str
    start_date: str | None = None
    end_date: str | None = None
    location: str | None = None
    responsibilities: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    tools: list[str] = Field(default_factory=list)
    outcomes: list[BundleOutcome] = Field(default_factory=list)
    confidence: float
    verification_status: VerificationStatus


class DuplicateClaimGroup(BaseModel):
    key: str
    type: ClaimType
    target_id: str
    source_ids: list[str]
    label: str


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(value.strip() for value in values if value.strip()))


def build_experience_bundles(claims: list[Claim]) -> list[ExperienceBundle]:
    bundles = {
        claim.id: ExperienceBundle(
            id=claim.id,
            company=claim.company or "Unknown Company",
            role=claim.role or claim.text or "Unknown Role",
            start_date=claim.start_date,
            end_date=claim.end_date,
            location=claim.location,
            responsibilities=list(claim.responsibilities or []),
            confidence=claim.confidence,
            verification_status=claim.verification_status,
        )
        for claim in claims
        if claim.type == ClaimType.EXPERIENCE
    }

    for claim in claims:
        if claim.type == ClaimType.EXPERIENCE or not claim.experience_id or not claim.text:
            continue
        bundle = bundles.get(claim.experience_id)
        if bundle is None:
            continue
        if claim.type == ClaimType.SKILL:
            bundle.skills.append(claim.text)
        elif claim.type == ClaimType.TOOL:
            bundle.tools.append(claim.text)
        elif claim.type == ClaimType.OUTCOME:
            bundle.outcomes.append(
                BundleOutcome(
                    description=claim.text,
                    metric=claim.metric,
                    is_numeric=bool(claim.is_numeric),
                    verified=claim.verification_status == VerificationStatus.APPROVED,
                )
            )

    for bundle in bundles.values():
        bundle.responsibilities = _unique(bundle.responsibilities)
        bundle.skills = _unique(bundle.skills)
        bundle.tools = _unique(bundle.tools)
        seen: set[tuple[str, str]] = set()
        outcomes: list[BundleOutcome] = []
        for outcome in bundle.outcomes:
            key = (outcome.description.lower().strip(), (outcome.metric or "").lower().strip())
            if key not in seen:
                seen.add(key)
                outcomes.append(outcome)
        bundle.outcomes = outcomes

    return list(bundles.values())


def claim_review_queue(claims: list[Claim]) -> list[Claim]:
    pending = [claim for claim in claims if claim.verification_status == VerificationStatus.REVIEW_NEEDED]
    return sorted(pending, key=lambda claim: (claim.confidence, claim.updated_at))


def group_claims_by_type(claims: list[Claim]) -> dict[ClaimType, list[Claim]]:
    groups: dict[ClaimType, list[Claim]] = {claim_type: [] for claim_type in ClaimType}
    for claim in claims:
        groups[claim.type].append(claim)
    return groups


def duplicate_key(claim: Claim) -> str:
    if claim.type == ClaimType.EXPERIENCE:
        role = normalize_claim_text(claim.role or claim.text or "")
        company = normalize_claim_text(claim.company or "")
        if not role or not company:
            return ""
        start = normalize_claim_text(claim.start_date or "")
        end = normalize_claim_text(claim.end_date or "")
        return f"Experience|{role}|{company}|{start}|{end}"
    if not claim.normalized_text:
        return ""
    return f"{claim.type.value}|{claim.normalized_text}|{claim.experience_id or 'unlinked'}"


def _label(claim: Claim) -> str:
    if claim.type == ClaimType.EXPERIENCE:
        role = claim.role or claim.text or "Experience"
        return f"{role} @ {claim.company}" if claim.company else role
    return claim.text or claim.type.value


def find_duplicate_groups(claims: list[Claim]) -> list[DuplicateClaimGroup]:
    """Group claims sharing a duplicate key; the oldest claim of each group is the merge target."""
    grouped: dict[str, list[Claim]] = {}
    for claim in claims:
        key = duplicate_key(claim)
        if key:
            grouped.setdefault(key, []).append(claim)

    groups: list[DuplicateClaimGroup] = []
    for key, members in grouped.items():
        if len(members) < 2:
            continue
        target, *sources = sorted(members, key=lambda claim: (claim.created_at, claim.id))
        groups.append(
            DuplicateClaimGroup(
                key=key,
                type=target.type,
                target_id=target.id,
                source_ids=[source.id for source in sources],
                label=_label(target),
            )
        )
    return sorted(groups, key=lambda group: -len(group.source_ids))
