from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from jobfilter.ledger.inference import outcome_is_numeric
from jobfilter.ledger.ledger import ClaimLedger
from jobfilter.types import (
    ClaimInput,
    ClaimType,
    ImportDraft,
    ImportDraftCompany,
    ImportDraftItem,
    ImportDraftRole,
    ItemStatus,
    is_unassigned,
)

logger = logging.getLogger(__name__)

IMPORT_SOURCE = "Resume Import"


class DraftSaveSummary(BaseModel):
    experience_ids: list[str] = Field(default_factory=list)
    claim_ids: list[str] = Field(default_factory=list)
    skipped_role_ids: list[str] = Field(default_factory=list)


def _accepted(items: list[ImportDraftItem]) -> list[ImportDraftItem]:
    return [item for item in items if item.status == ItemStatus.ACCEPTED and item.text.strip()]


def role_is_saveable(role: ImportDraftRole) -> bool:
    if is_unassigned(role.title) or not role.title.strip() or role.status == ItemStatus.REJECTED:
        return False
    return bool(_accepted(role.items()))


def _save_role(company: ImportDraftCompany, role: ImportDraftRole, ledger: ClaimLedger) -> list[str]:
    experience = ledger.add(
        ClaimInput(
            type=ClaimType.EXPERIENCE,
            role=role.title.strip(),
            company=company.name.strip(),
            start_date=role.start_date or None,
            end_date=role.end_date or None,
            responsibilities=[item.text.strip() for item in _accepted(role.highlights)],
            confidence=role.confidence,
            source=IMPORT_SOURCE,
        )
    )
    claim_ids = [experience.id]

    for item in _accepted(role.outcomes):
        claim = ledger.add(
            ClaimInput(
                type=ClaimType.OUTCOME,
                text=item.text.strip(),
                metric=item.metric,
                is_numeric=outcome_is_numeric(item.text, item.metric),
                experience_id=experience.id,
                confidence=item.confidence,
                source=IMPORT_SOURCE,
                evidence_snippet=item.text.strip(),
            )
        )
        claim_ids.append(claim.id)

    for claim_type, items in ((ClaimType.TOOL, role.tools), (ClaimType.SKILL, role.skills)):
        for item in _accepted(items):
            claim = ledger.add(
                ClaimInput(
                    type=claim_type,
                    text=item.text.strip(),
                    experience_id=experience.id,
                    confidence=item.confidence,
                    source=IMPORT_SOURCE,
                )
            )
            claim_ids.append(claim.id)
    return claim_ids


def save_draft_to_ledger(draft: ImportDraft, ledger: ClaimLedger) -> DraftSaveSummary:
    """Turn every saveable role into an Experience claim plus one linked claim per accepted item.

    The whole draft is written in one ledger batch, so a rejected claim leaves
    the ledger as it was before the save.
    """
    summary = DraftSaveSummary()
    with ledger.batch():
        for company in draft.companies:
            for role in company.roles:
                if company.is_unassigned or not company.name.strip() or not role_is_saveable(role):
                    summary.skipped_role_ids.append(role.id)
                    continue
                claim_ids = _save_role(company, role, ledger)
                summary.experience_ids.append(claim_ids[0])
                summary.claim_ids.extend(claim_ids)

    logger.info(
        "Saved draft to ledger: experiences=%s claims=%s skipped_roles=%s",
        len(summary.experience_ids),
        len(summary.claim_ids),
        len(summary.skipped_role_ids),
    )
    return summary
