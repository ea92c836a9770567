from __future__ import annotations

from collections import Counter

from jobfilter.core.entity_mapper import MappingOutcome
from jobfilter.core.segmentation import Segmentation
from jobfilter.core.text_lines import non_blank
from jobfilter.core.vocabulary import BULLET_GLYPH_RE, is_bullet_line, is_bullet_only
from jobfilter.types import (
    BulletGlyphCount,
    ExtractionDiagnostics,
    NumberedLine,
    ParseReasonCode,
    SegmentationStage,
    SourceLine,
    is_unassigned,
)

TOP_GLYPH_LIMIT = 8
COLLAPSE_LINES_PER_PAGE = 3
COLLAPSE_MAX_LINES = 3
COLLAPSE_MIN_CHARS = 600


def count_top_bullet_glyphs(lines: list[SourceLine], limit: int = TOP_GLYPH_LIMIT) -> list[BulletGlyphCount]:
    counts: Counter[str] = Counter()
    for line in lines:
        if not (is_bullet_line(line.text) or is_bullet_only(line.text)):
            continue
        match = BULLET_GLYPH_RE.match(line.text)
        if match:
            counts[match.group(1)] += 1
    ranked = sorted(counts.items(), key=lambda pair: (-pair[1], pair[0]))
    return [BulletGlyphCount(glyph=glyph, count=count) for glyph, count in ranked[:limit]]


def summarize_text(text: str, lines: list[SourceLine], page_count: int | None = None) -> ExtractionDiagnostics:
    """Extraction statistics for text that did not come with its own."""
    content = non_blank(lines)
    return ExtractionDiagnostics(
        page_count=page_count,
        extracted_chars=len(text),
        detected_lines_count=len(content),
        bullet_candidates_count=sum(1 for line in content if is_bullet_line(line.text)),
        bullet_only_line_count=sum(1 for line in content if is_bullet_only(line.text)),
        top_bullet_glyphs=count_top_bullet_glyphs(content),
    )


def segmentation_stage(lines: list[SourceLine], segmentation: Segmentation) -> SegmentationStage:
    content = non_blank(lines)
    return SegmentationStage(
        detected_lines_count=segmentation.prepared_lines_count,
        bullet_candidates_count=segmentation.bullet_candidates_count,
        bullet_only_line_count=sum(1 for line in content if is_bullet_only(line.text)),
        top_bullet_glyphs=count_top_bullet_glyphs(content),
        section_headers_detected=segmentation.section_headers_detected,
        header_candidates_count=segmentation.header_candidates_count,
        item_candidates_count=segmentation.item_candidates_count,
    )


def is_layout_collapse(extraction: ExtractionDiagnostics, detected_lines: int) -> bool:
    if extraction.page_count and detected_lines <= extraction.page_count * COLLAPSE_LINES_PER_PAGE:
        return True
    return detected_lines <= COLLAPSE_MAX_LINES and extraction.extracted_chars >= COLLAPSE_MIN_CHARS


def collect_reason_codes(
    extraction: ExtractionDiagnostics,
    segmentation: SegmentationStage,
    mapping: MappingOutcome,
) -> list[ParseReasonCode]:
    codes: list[ParseReasonCode] = []
    if segmentation.bullet_candidates_count == 0:
        codes.append(ParseReasonCode.BULLET_DETECT_FAIL)
    if is_layout_collapse(extraction, segmentation.detected_lines_count):
        codes.append(ParseReasonCode.LAYOUT_COLLAPSE)
    if segmentation.item_candidates_count > 0 and mapping.stage.final_items_count == 0:
        codes.append(ParseReasonCode.FILTERED_ALL)

    companies = mapping.draft.companies
    real_roles = [
        role
        for company in companies
        for role in company.roles
        if not is_unassigned(role.title)
    ]
    if not real_roles:
        codes.append(ParseReasonCode.ROLE_DETECT_FAIL)
    if not any(not company.is_unassigned for company in companies):
        codes.append(ParseReasonCode.COMPANY_DETECT_FAIL)
    return codes


def numbered_preview(lines: list[SourceLine], max_lines: int) -> list[NumberedLine]:
    return [NumberedLine(line=line.index + 1, text=line.text) for line in non_blank(lines)[:max_lines]]
