from __future__ import annotations

from typing import assert_never

from jobfilter.types import ParseDiagnostics, ParseReasonCode, SegmentationMode

LOW_QUALITY_MESSAGE = (
    "We found less than we expected in this resume. Review what we captured, "
    "or try another import method to pull out more."
)


def message_for(code: ParseReasonCode) -> str:
    if code == ParseReasonCode.TEXT_EMPTY:
        return "We couldn't read any text from this file. Try pasting your resume text instead."
    if code == ParseReasonCode.BULLET_DETECT_FAIL:
        return "We didn't find bullet points. Try the line-by-line import method."
    if code == ParseReasonCode.LAYOUT_COLLAPSE:
        return (
            "This file's layout looks like columns or a table, which can scramble text. "
            "Try uploading a single-column version or pasting the text."
        )
    if code == ParseReasonCode.FILTERED_ALL:
        return "We found lines but couldn't turn any into accomplishments. Add a few manually."
    if code == ParseReasonCode.ROLE_DETECT_FAIL:
        return "We couldn't tell which roles you held. Add at least one role manually."
    if code == ParseReasonCode.COMPANY_DETECT_FAIL:
        return "We couldn't find company names. Add the companies you worked for."
    assert_never(code)


def suggested_modes(diagnostics: ParseDiagnostics) -> list[SegmentationMode]:
    """Other import methods worth offering, best-scoring first."""
    ranked = sorted(diagnostics.candidates, key=lambda candidate: -candidate.score)
    modes = [candidate.mode for candidate in ranked if candidate.mode != diagnostics.mode]
    if modes:
        return modes
    return [mode for mode in SegmentationMode if mode != diagnostics.mode]


def guidance_for(diagnostics: ParseDiagnostics) -> list[str]:
    messages = [message_for(code) for code in diagnostics.reason_codes]
    if diagnostics.low_quality and ParseReasonCode.TEXT_EMPTY not in diagnostics.reason_codes:
        messages.insert(0, LOW_QUALITY_MESSAGE)
    return messages
