"""Resume text → import draft.

``parse`` runs one forced segmentation strategy; ``parse_best`` runs all of
them, scores each candidate and keeps the winner. Neither raises for sparse or
malformed text: shortfalls are reported as reason codes on the diagnostics.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from jobfilter.core.diagnostics import (
    collect_reason_codes,
    numbered_preview,
    segmentation_stage,
    summarize_text,
)
from jobfilter.core.entity_mapper import map_entities
from jobfilter.core.segmentation import segment
from jobfilter.core.selector import SelectionConfig, is_low_quality, pick_best, score_candidate
from jobfilter.core.text_lines import non_blank, to_source_lines
from jobfilter.types import (
    CandidateSummary,
    ExtractionDiagnostics,
    ImportDraft,
    MappingStage,
    ParseDiagnostics,
    ParseReasonCode,
    ParseResult,
    SegmentationMode,
    SegmentationStage,
    SourceLine,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Candidate:
    mode: SegmentationMode
    draft: ImportDraft
    segmentation: SegmentationStage
    mapping: MappingStage
    reason_codes: list[ParseReasonCode]
    score: float

    def summary(self) -> CandidateSummary:
        return CandidateSummary(
            mode=self.mode,
            score=self.score,
            reason_codes=list(self.reason_codes),
            counts=self.mapping.model_copy(),
        )


def _run_strategy(
    mode: SegmentationMode,
    lines: list[SourceLine],
    extraction: ExtractionDiagnostics,
) -> _Candidate:
    segmentation = segment(lines, mode)
    mapping = map_entities(segmentation)
    stage = segmentation_stage(lines, segmentation)
    reason_codes = collect_reason_codes(extraction, stage, mapping)
    score = score_candidate(mapping.draft, reason_codes)
    logger.debug(
        "Strategy %s: score=%s structured_items=%s reasons=%s",
        mode,
        score,
        mapping.stage.structured_items_count,
        [code.value for code in reason_codes],
    )
    return _Candidate(
        mode=mode,
        draft=mapping.draft,
        segmentation=stage,
        mapping=mapping.stage,
        reason_codes=reason_codes,
        score=score,
    )


def _empty_result(
    mode: SegmentationMode,
    extraction: ExtractionDiagnostics,
) -> ParseResult:
    diagnostics = ParseDiagnostics(
        mode=mode,
        extraction_stage=extraction,
        segmentation_stage=SegmentationStage(),
        mapping_stage=MappingStage(),
        reason_codes=[ParseReasonCode.TEXT_EMPTY],
        low_quality=True,
    )
    return ParseResult(draft=ImportDraft(), diagnostics=diagnostics)


def _result(
    chosen: _Candidate,
    lines: list[SourceLine],
    extraction: ExtractionDiagnostics,
    config: SelectionConfig,
    candidates: list[_Candidate],
) -> ParseResult:
    diagnostics = ParseDiagnostics(
        mode=chosen.mode,
        extraction_stage=extraction,
        segmentation_stage=chosen.segmentation,
        mapping_stage=chosen.mapping,
        reason_codes=list(chosen.reason_codes),
        preview_lines=numbered_preview(lines, config.preview_max_lines),
        candidates=[candidate.summary() for candidate in candidates],
        score=chosen.score,
        low_quality=is_low_quality(chosen.mapping.structured_items_count, chosen.reason_codes, config),
    )
    return ParseResult(draft=chosen.draft, diagnostics=diagnostics)


def _prepare(
    text: str, extraction: ExtractionDiagnostics | None
) -> tuple[list[SourceLine], ExtractionDiagnostics]:
    lines = to_source_lines(text or "")
    return lines, extraction or summarize_text(text or "", lines)


def parse(
    text: str,
    mode: SegmentationMode = SegmentationMode.DEFAULT,
    extraction: ExtractionDiagnostics | None = None,
    config: SelectionConfig | None = None,
) -> ParseResult:
    config = config or SelectionConfig()
    lines, extraction = _prepare(text, extraction)
    if not non_blank(lines):
        logger.info("Import text is empty; returning empty draft")
        return _empty_result(mode, extraction)

    candidate = _run_strategy(mode, lines, extraction)
    logger.info("Parsed import with forced mode %s (score=%s)", mode, candidate.score)
    return _result(candidate, lines, extraction, config, candidates=[])


def parse_best(
    text: str,
    extraction: ExtractionDiagnostics | None = None,
    config: SelectionConfig | None = None,
) -> ParseResult:
    config = config or SelectionConfig()
    lines, extraction = _prepare(text, extraction)
    if not non_blank(lines):
        logger.info("Import text is empty; returning empty draft")
        return _empty_result(config.strategy_priority[0], extraction)

    candidates = [_run_strategy(mode, lines, extraction) for mode in config.strategy_priority]
    by_mode = {candidate.mode: candidate for candidate in candidates}
    best = pick_best({candidate.mode: candidate.score for candidate in candidates}, config)
    chosen = by_mode[best]
    logger.info(
        "Selected %s strategy (score=%s) out of %s candidates",
        best,
        chosen.score,
        len(candidates),
    )
    return _result(chosen, lines, extraction, config, candidates=candidates)
