from __future__ import annotations

import re
from typing import Any, assert_never

from jobfilter.core.vocabulary import TOOL_HINTS, is_quantified_outcome
from jobfilter.types import ClaimInput, ClaimType

EXPERIENCE_ONLY_FIELDS = ("role", "company", "start_date", "end_date", "location", "responsibilities")
OUTCOME_ONLY_FIELDS = ("metric", "is_numeric")

_DIGIT_RE = re.compile(r"\d")


def normalize_claim_text(text: str) -> str:
    return " ".join(text.lower().split())


def normalize_token(value: str | None) -> str:
    return (value or "").strip().lower()


def looks_like_outcome(text: str) -> bool:
    return bool(text) and is_quantified_outcome(text)


def looks_like_tool(text: str) -> bool:
    normalized = normalize_claim_text(text)
    if not normalized:
        return False
    return any(normalized == hint or hint in normalized for hint in TOOL_HINTS)


def infer_claim_type(data: ClaimInput) -> ClaimType:
    if data.type is not None:
        return data.type
    if data.role or data.company or data.start_date or data.end_date or data.responsibilities:
        return ClaimType.EXPERIENCE
    if data.metric or data.is_numeric or looks_like_outcome(data.text or ""):
        return ClaimType.OUTCOME
    if looks_like_tool(data.text or ""):
        return ClaimType.TOOL
    return ClaimType.SKILL


def sanitize_for_type(claim_type: ClaimType, values: dict[str, Any]) -> dict[str, Any]:
    """Drop the fields that do not belong to ``claim_type``."""
    sanitized = dict(values)
    if claim_type == ClaimType.EXPERIENCE:
        dropped: tuple[str, ...] = ("experience_id", *OUTCOME_ONLY_FIELDS)
    elif claim_type == ClaimType.OUTCOME:
        dropped = EXPERIENCE_ONLY_FIELDS
    elif claim_type == ClaimType.TOOL or claim_type == ClaimType.SKILL:
        dropped = (*EXPERIENCE_ONLY_FIELDS, *OUTCOME_ONLY_FIELDS)
    else:
        assert_never(claim_type)
    for name in dropped:
        sanitized[name] = None
    return sanitized


def experience_text(role: str | None, company: str | None) -> str:
    role = (role or "").strip()
    company = (company or "").strip()
    if role and company:
        return f"{role} at {company}"
    return role or company


def outcome_is_numeric(text: str, metric: str | None) -> bool:
    return bool(metric) or bool(_DIGIT_RE.search(text))
