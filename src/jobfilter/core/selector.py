from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from jobfilter.types import (
    COLLAPSE_REASON_CODES,
    ImportDraft,
    ParseReasonCode,
    SegmentationMode,
    is_unassigned,
)

if TYPE_CHECKING:
    from jobfilter.config import Settings

DEFAULT_STRATEGY_PRIORITY = (
    SegmentationMode.DEFAULT,
    SegmentationMode.HEADINGS,
    SegmentationMode.BULLETS,
    SegmentationMode.NEWLINES,
)

STRUCTURED_ITEM_WEIGHT = 1.0
ENTITY_WEIGHT = 0.5
COLLAPSE_PENALTY = 10.0
SOFT_PENALTY = 1.0


@dataclass(slots=True, frozen=True)
class SelectionConfig:
    low_quality_item_floor: int = 20
    strategy_priority: tuple[SegmentationMode, ...] = field(default=DEFAULT_STRATEGY_PRIORITY)
    preview_max_lines: int = 40

    @classmethod
    def from_settings(cls, settings: Settings) -> SelectionConfig:
        return cls(
            low_quality_item_floor=settings.import_low_quality_item_floor,
            strategy_priority=tuple(SegmentationMode(mode) for mode in settings.strategy_priority_list),
            preview_max_lines=settings.import_preview_max_lines,
        )

    def priority_of(self, mode: SegmentationMode) -> int:
        if mode in self.strategy_priority:
            return self.strategy_priority.index(mode)
        return len(self.strategy_priority)


def score_candidate(draft: ImportDraft, reason_codes: list[ParseReasonCode]) -> float:
    """Structured items first, distinct real roles/companies second, minus reason-code penalties."""
    real_companies = [company for company in draft.companies if not company.is_unassigned]
    real_roles = [role for role in draft.roles() if not is_unassigned(role.title)]
    score = STRUCTURED_ITEM_WEIGHT * draft.structured_item_count
    score += ENTITY_WEIGHT * (len(real_roles) + len(real_companies))
    for code in reason_codes:
        score -= COLLAPSE_PENALTY if code in COLLAPSE_REASON_CODES else SOFT_PENALTY
    return round(score, 2)


def is_low_quality(structured_items: int, reason_codes: list[ParseReasonCode], config: SelectionConfig) -> bool:
    if structured_items < config.low_quality_item_floor:
        return True
    return any(code in COLLAPSE_REASON_CODES for code in reason_codes)


def pick_best(scores: dict[SegmentationMode, float], config: SelectionConfig) -> SegmentationMode:
    """Highest score wins; ties go to the earlier mode in the configured priority."""
    if not scores:
        raise ValueError("no candidates to select from")
    return min(scores, key=lambda mode: (-scores[mode], config.priority_of(mode)))
