from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

UNASSIGNED = "Unassigned"


class SegmentationMode(StrEnum):
    DEFAULT = "default"
    NEWLINES = "newlines"
    BULLETS = "bullets"
    HEADINGS = "headings"


class ItemType(StrEnum):
    HIGHLIGHT = "highlight"
    OUTCOME = "outcome"
    TOOL = "tool"
    SKILL = "skill"


class ItemStatus(StrEnum):
    ACCEPTED = "accepted"
    NEEDS_ATTENTION = "needs_attention"
    REJECTED = "rejected"


class ParseReasonCode(StrEnum):
    TEXT_EMPTY = "TEXT_EMPTY"
    BULLET_DETECT_FAIL = "BULLET_DETECT_FAIL"
    LAYOUT_COLLAPSE = "LAYOUT_COLLAPSE"
    FILTERED_ALL = "FILTERED_ALL"
    ROLE_DETECT_FAIL = "ROLE_DETECT_FAIL"
    COMPANY_DETECT_FAIL = "COMPANY_DETECT_FAIL"


COLLAPSE_REASON_CODES = frozenset(
    {
        ParseReasonCode.FILTERED_ALL,
        ParseReasonCode.LAYOUT_COLLAPSE,
        ParseReasonCode.ROLE_DETECT_FAIL,
        ParseReasonCode.COMPANY_DETECT_FAIL,
    }
)


class SessionState(StrEnum):
    PARSED = "parsed"
    SAVED = "saved"
    SKIPPED = "skipped"


class ClaimType(StrEnum):
    EXPERIENCE = "Experience"
    OUTCOME = "Outcome"
    TOOL = "Tool"
    SKILL = "Skill"


class VerificationStatus(StrEnum):
    REVIEW_NEEDED = "Review Needed"
    APPROVED = "Approved"


def is_unassigned(name: str) -> bool:
    return name.strip().lower() == UNASSIGNED.lower()


def _check_confidence(value: float) -> float:
    if value < 0 or value > 1:
        raise ValueError("confidence must be between 0 and 1")
    return value


Confidence = Annotated[float, AfterValidator(_check_confidence)]


class SourceLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    text: str


class ImportDraftItem(BaseModel):
    id: str
    type: ItemType
    text: str
    metric: str | None = None
    confidence: Confidence = 0.0
    status: ItemStatus = ItemStatus.NEEDS_ATTENTION
    status_locked: bool = False
    source_refs: list[int] = Field(default_factory=list)


class ImportDraftRole(BaseModel):
    id: str
    title: str
    start_date: str = ""
    end_date: str = ""
    confidence: Confidence = 0.0
    status: ItemStatus = ItemStatus.NEEDS_ATTENTION
    status_locked: bool = False
    source_refs: list[int] = Field(default_factory=list)
    highlights: list[ImportDraftItem] = Field(default_factory=list)
    outcomes: list[ImportDraftItem] = Field(default_factory=list)
    tools: list[ImportDraftItem] = Field(default_factory=list)
    skills: list[ImportDraftItem] = Field(default_factory=list)

    def items(self) -> list[ImportDraftItem]:
        return [*self.highlights, *self.outcomes, *self.tools, *self.skills]

    @property
    def structured_item_count(self) -> int:
        return len(self.highlights) + len(self.outcomes)


class ImportDraftCompany(BaseModel):
    id: str
    name: str
    confidence: Confidence = 0.0
    status: ItemStatus = ItemStatus.NEEDS_ATTENTION
    status_locked: bool = False
    source_refs: list[int] = Field(default_factory=list)
    roles: list[ImportDraftRole] = Field(default_factory=list)

    @property
    def is_unassigned(self) -> bool:
        return is_unassigned(self.name)


class ImportDraft(BaseModel):
    companies: list[ImportDraftCompany] = Field(default_factory=list)

    def roles(self) -> list[ImportDraftRole]:
        return [role for company in self.companies for role in company.roles]

    @property
    def item_count(self) -> int:
        return sum(len(role.items()) for role in self.roles())

    @property
    def structured_item_count(self) -> int:
        return sum(role.structured_item_count for role in self.roles())


class BulletGlyphCount(BaseModel):
    glyph: str
    count: int


class ExtractionDiagnostics(BaseModel):
    """Statistics reported by the text extractor that produced the input."""

    page_count: int | None = None
    extracted_chars: int = 0
    detected_lines_count: int = 0
    bullet_candidates_count: int = 0
    bullet_only_line_count: int = 0
    top_bullet_glyphs: list[BulletGlyphCount] = Field(default_factory=list)


class ExtractedText(BaseModel):
    text: str
    diagnostics: ExtractionDiagnostics = Field(default_factory=ExtractionDiagnostics)


class SegmentationStage(BaseModel):
    detected_lines_count: int = 0
    bullet_candidates_count: int = 0
    bullet_only_line_count: int = 0
    top_bullet_glyphs: list[BulletGlyphCount] = Field(default_factory=list)
    section_headers_detected: int = 0
    header_candidates_count: int = 0
    item_candidates_count: int = 0


class MappingStage(BaseModel):
    company_candidates_count: int = 0
    role_candidates_count: int = 0
    timeframe_candidates_count: int = 0
    final_companies_count: int = 0
    final_roles_count: int = 0
    final_items_count: int = 0
    structured_items_count: int = 0


class NumberedLine(BaseModel):
    line: int
    text: str


class CandidateSummary(BaseModel):
    mode: SegmentationMode
    score: float
    reason_codes: list[ParseReasonCode] = Field(default_factory=list)
    counts: MappingStage = Field(default_factory=MappingStage)


class ParseDiagnostics(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: SegmentationMode
    extraction_stage: ExtractionDiagnostics
    segmentation_stage: SegmentationStage
    mapping_stage: MappingStage
    reason_codes: list[ParseReasonCode] = Field(default_factory=list)
    preview_lines: list[NumberedLine] = Field(default_factory=list)
    candidates: list[CandidateSummary] = Field(default_factory=list)
    score: float = 0.0
    low_quality: bool = False


class ParseResult(BaseModel):
    draft: ImportDraft
    diagnostics: ParseDiagnostics


class CompensationHint(BaseModel):
    floor: int
    target: int


class ProfilePrefillSuggestion(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    target_roles: list[str] = Field(default_factory=list)
    skill_hints: list[str] = Field(default_factory=list)
    tool_hints: list[str] = Field(default_factory=list)
    location_hints: list[str] = Field(default_factory=list)
    compensation: CompensationHint | None = None


class ImportSource(BaseModel):
    kind: str = "text"
    file_name: str | None = None
    file_size: int | None = None


class ImportSession(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    source_text: str = ""
    source: ImportSource = Field(default_factory=ImportSource)
    revision: int = 1
    mode: SegmentationMode | None = None
    state: SessionState = SessionState.PARSED
    draft: ImportDraft
    diagnostics: ParseDiagnostics
    profile_suggestion: ProfilePrefillSuggestion
    updated_at: datetime


class Claim(BaseModel):
    id: str
    type: ClaimType
    text: str
    normalized_text: str
    confidence: Confidence = 0.75
    verification_status: VerificationStatus = VerificationStatus.REVIEW_NEEDED
    experience_id: str | None = None
    role: str | None = None
    company: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    location: str | None = None
    responsibilities: list[str] | None = None
    metric: str | None = None
    is_numeric: bool | None = None
    source: str = "Manual"
    evidence_snippet: str | None = None
    created_at: datetime
    updated_at: datetime


class ClaimInput(BaseModel):
    """Caller-supplied fields for a new claim; unset fields are inferred or defaulted."""

    type: ClaimType | None = None
    text: str | None = None
    confidence: float | None = None
    verification_status: VerificationStatus | None = None
    experience_id: str | None = None
    role: str | None = None
    company: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    location: str | None = None
    responsibilities: list[str] | None = None
    metric: str | None = None
    is_numeric: bool | None = None
    source: str | None = None
    evidence_snippet: str | None = None

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, value: float | None) -> float | None:
        if value is None:
            return value
        return _check_confidence(value)


class ClaimPatch(ClaimInput):
    """Partial update; only fields explicitly set are applied."""
