from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import assert_never

from jobfilter.core.segmentation import LineTag, Segmentation, TaggedLine
from jobfilter.core.vocabulary import (
    DateRange,
    TAG_LABEL_RE,
    canonical_skill,
    canonical_tool,
    detect_tools,
    extract_date_range,
    extract_metric,
    is_quantified_outcome,
    looks_like_company,
    looks_like_role_title,
    match_header_pair,
    split_tag_list,
    strip_date_range,
)
from jobfilter.types import (
    UNASSIGNED,
    ImportDraft,
    ImportDraftCompany,
    ImportDraftItem,
    ImportDraftRole,
    ItemStatus,
    ItemType,
    MappingStage,
    is_unassigned,
)

logger = logging.getLogger(__name__)

ACCEPTED_THRESHOLD = 0.75
NEEDS_ATTENTION_THRESHOLD = 0.4
SENTINEL_CONFIDENCE = 0.2

_PAGE_MARKER_RE = re.compile(r"^page \d+(?: of \d+)?$", re.IGNORECASE)
_SKILL_LABEL_RE = re.compile(r"^(skills|competencies)\b", re.IGNORECASE)


def status_for_confidence(confidence: float, signals: int = 2) -> ItemStatus:
    """Initial review status for a detected entity; one signal or fewer never auto-accepts."""
    if signals <= 1:
        return ItemStatus.NEEDS_ATTENTION
    if confidence >= ACCEPTED_THRESHOLD:
        return ItemStatus.ACCEPTED
    if confidence >= NEEDS_ATTENTION_THRESHOLD:
        return ItemStatus.NEEDS_ATTENTION
    return ItemStatus.REJECTED


def _clamp(value: float) -> float:
    return round(min(1.0, max(0.0, value)), 2)


def _key(text: str) -> str:
    return " ".join(text.lower().split())


@dataclass(slots=True)
class _ItemCandidate:
    type: ItemType
    text: str
    refs: list[int]
    glyph: bool
    dictionary: bool = False
    metric: str | None = None


@dataclass(slots=True)
class _RoleBuilder:
    title: str
    refs: list[int]
    start_date: str = ""
    end_date: str = ""
    items: list[_ItemCandidate] = field(default_factory=list)
    seen: set[tuple[ItemType, str]] = field(default_factory=set)

    def add(self, candidate: _ItemCandidate) -> bool:
        key = (candidate.type, _key(candidate.text))
        if key in self.seen:
            return False
        self.seen.add(key)
        self.items.append(candidate)
        return True


@dataclass(slots=True)
class _CompanyBuilder:
    name: str
    refs: list[int]
    structural: bool = False
    roles: list[_RoleBuilder] = field(default_factory=list)


@dataclass(slots=True)
class _HeaderFrame:
    refs: list[int] = field(default_factory=list)
    company: str | None = None
    role: str | None = None
    date_range: DateRange | None = None
    structural: bool = False

    def is_empty(self) -> bool:
        return self.company is None and self.role is None and self.date_range is None


@dataclass(slots=True)
class MappingOutcome:
    draft: ImportDraft
    stage: MappingStage


def resolve_header_group(lines: list[TaggedLine]) -> list[_HeaderFrame]:
    """Split consecutive header lines into company/role/timeframe frames."""
    frames: list[_HeaderFrame] = []
    frame = _HeaderFrame()

    for line in lines:
        date_range = extract_date_range(line.text)
        residual = strip_date_range(line.text, date_range) if date_range else line.text
        company: str | None = None
        role: str | None = None
        structural = False

        if residual:
            pair = match_header_pair(residual)
            if pair:
                role, company, structural = pair.role, pair.company, True
            elif looks_like_company(residual):
                company, structural = residual, True
            elif looks_like_role_title(residual) or date_range is not None:
                role = residual
            elif frame.company is not None and frame.role is None:
                role = residual
            else:
                company = residual

        collides = (
            (role is not None and frame.role is not None)
            or (company is not None and frame.company is not None)
            or (date_range is not None and frame.date_range is not None)
        )
        if collides and not frame.is_empty():
            frames.append(frame)
            frame = _HeaderFrame()

        frame.refs.extend(line.refs)
        frame.company = company if company is not None else frame.company
        frame.role = role if role is not None else frame.role
        frame.date_range = date_range if date_range is not None else frame.date_range
        frame.structural = frame.structural or structural

    if not frame.is_empty():
        frames.append(frame)
    return frames


def classify_item(line: TaggedLine) -> list[_ItemCandidate]:
    text = line.text.strip()
    if len(text) < 3 or not any(char.isalpha() for char in text) or _PAGE_MARKER_RE.match(text):
        return []

    entries = split_tag_list(text)
    if entries is not None:
        labelled = bool(TAG_LABEL_RE.match(text))
        skill_label = bool(_SKILL_LABEL_RE.match(text))
        tags: list[_ItemCandidate] = []
        for entry in entries:
            tool = canonical_tool(entry)
            skill = canonical_skill(entry)
            if tool is not None:
                tags.append(_ItemCandidate(ItemType.TOOL, tool, line.refs, line.glyph, dictionary=True))
            elif skill is not None:
                tags.append(_ItemCandidate(ItemType.SKILL, skill, line.refs, line.glyph, dictionary=True))
            elif labelled:
                tag_type = ItemType.SKILL if skill_label else ItemType.TOOL
                tags.append(_ItemCandidate(tag_type, entry, line.refs, line.glyph))
            else:
                tags = []
                break
        if tags:
            return tags

    tool = canonical_tool(text)
    if tool is not None:
        return [_ItemCandidate(ItemType.TOOL, tool, line.refs, line.glyph, dictionary=True)]
    skill = canonical_skill(text)
    if skill is not None:
        return [_ItemCandidate(ItemType.SKILL, skill, line.refs, line.glyph, dictionary=True)]

    if is_quantified_outcome(text):
        primary = _ItemCandidate(
            ItemType.OUTCOME, text, line.refs, line.glyph, metric=extract_metric(text)
        )
    else:
        primary = _ItemCandidate(ItemType.HIGHLIGHT, text, line.refs, line.glyph)

    mentioned = [
        _ItemCandidate(ItemType.TOOL, name, line.refs, line.glyph, dictionary=True)
        for name in detect_tools(text)
    ]
    return [primary, *mentioned]


class EntityMapper:
    def __init__(self) -> None:
        self.companies: list[_CompanyBuilder] = []
        self.current_company: _CompanyBuilder | None = None
        self.current_role: _RoleBuilder | None = None
        self.stage = MappingStage()

    def map(self, segmentation: Segmentation) -> MappingOutcome:
        pending: list[TaggedLine] = []
        for line in segmentation.lines:
            if line.tag == LineTag.HEADER:
                pending.append(line)
                continue
            if pending:
                self._apply_headers(pending)
                pending = []
            if line.tag == LineTag.ITEM:
                self._add_item(line)
            elif line.tag == LineTag.SECTION or line.tag == LineTag.SKIP:
                continue
            else:
                assert_never(line.tag)
        if pending:
            self._apply_headers(pending)

        draft = self._build()
        logger.debug(
            "Mapped %s mode: companies=%s roles=%s items=%s",
            segmentation.mode,
            self.stage.final_companies_count,
            self.stage.final_roles_count,
            self.stage.final_items_count,
        )
        return MappingOutcome(draft=draft, stage=self.stage)

    def _apply_headers(self, lines: list[TaggedLine]) -> None:
        for frame in resolve_header_group(lines):
            if frame.company is not None:
                self.stage.company_candidates_count += 1
            if frame.role is not None:
                self.stage.role_candidates_count += 1
            if frame.date_range is not None:
                self.stage.timeframe_candidates_count += 1

            if frame.company is not None:
                self.current_company = self._company(frame.company, frame.refs, frame.structural)
                self.current_role = None
            if frame.role is not None or frame.date_range is not None:
                company = self.current_company or self._company(UNASSIGNED, [], False)
                role = _RoleBuilder(title=frame.role or UNASSIGNED, refs=list(frame.refs))
                if frame.date_range is not None:
                    role.start_date = frame.date_range.start
                    role.end_date = frame.date_range.end
                company.roles.append(role)
                self.current_company = company
                self.current_role = role

    def _add_item(self, line: TaggedLine) -> None:
        candidates = classify_item(line)
        if not candidates:
            return
        if self.current_role is None:
            company = self.current_company or self._company(UNASSIGNED, [], False)
            self.current_company = company
            self.current_role = self._unassigned_role(company)
        for candidate in candidates:
            self.current_role.add(candidate)

    def _company(self, name: str, refs: list[int], structural: bool) -> _CompanyBuilder:
        for company in self.companies:
            if _key(company.name) == _key(name):
                company.refs.extend(refs)
                company.structural = company.structural or structural
                return company
        company = _CompanyBuilder(name=name, refs=list(refs), structural=structural)
        self.companies.append(company)
        return company

    def _unassigned_role(self, company: _CompanyBuilder) -> _RoleBuilder:
        for role in company.roles:
            if is_unassigned(role.title):
                return role
        role = _RoleBuilder(title=UNASSIGNED, refs=[])
        company.roles.append(role)
        return role

    def _build(self) -> ImportDraft:
        kept = [company for company in self.companies if company.roles]
        if not kept:
            sentinel = _CompanyBuilder(name=UNASSIGNED, refs=[])
            sentinel.roles.append(_RoleBuilder(title=UNASSIGNED, refs=[]))
            kept = [sentinel]

        companies: list[ImportDraftCompany] = []
        role_index = 0
        for company_index, company in enumerate(kept):
            roles: list[ImportDraftRole] = []
            for role in company.roles:
                roles.append(_build_role(role, role_index, company))
                role_index += 1
            companies.append(_build_company(company, company_index, roles))

        draft = ImportDraft(companies=companies)
        self.stage.final_companies_count = len(draft.companies)
        self.stage.final_roles_count = len(draft.roles())
        self.stage.final_items_count = draft.item_count
        self.stage.structured_items_count = draft.structured_item_count
        return draft


def _build_item(candidate: _ItemCandidate, item_id: str, anchored: bool) -> ImportDraftItem:
    signals = sum((candidate.glyph, anchored, candidate.dictionary, candidate.metric is not None))
    confidence = 0.35
    confidence += 0.2 if candidate.glyph else 0.0
    confidence += 0.2 if anchored else 0.0
    confidence += 0.25 if candidate.dictionary else 0.0
    confidence += 0.2 if candidate.metric is not None else 0.0
    confidence += 0.1 if len(candidate.text) >= 24 else 0.0
    confidence = _clamp(confidence)
    status = status_for_confidence(confidence, signals) if anchored else ItemStatus.NEEDS_ATTENTION
    return ImportDraftItem(
        id=item_id,
        type=candidate.type,
        text=candidate.text,
        metric=candidate.metric,
        confidence=confidence,
        status=status,
        source_refs=list(candidate.refs),
    )


def _build_role(role: _RoleBuilder, role_index: int, company: _CompanyBuilder) -> ImportDraftRole:
    real_title = not is_unassigned(role.title)
    real_company = not is_unassigned(company.name)
    anchored = real_title and real_company

    buckets: dict[ItemType, list[ImportDraftItem]] = {item_type: [] for item_type in ItemType}
    for candidate in role.items:
        bucket = buckets[candidate.type]
        item_id = f"{candidate.type.value}-{role_index}-{len(bucket)}"
        bucket.append(_build_item(candidate, item_id, anchored))

    has_date = bool(role.start_date)
    has_keyword = real_title and looks_like_role_title(role.title)
    if not real_title:
        confidence = SENTINEL_CONFIDENCE
        status = ItemStatus.NEEDS_ATTENTION
    else:
        confidence = 0.3
        confidence += 0.25 if real_company else 0.0
        confidence += 0.2 if has_date else 0.0
        confidence += 0.15 if role.items else 0.0
        confidence += 0.05 if has_keyword else 0.0
        confidence += 0.05 if len(role.items) >= 3 else 0.0
        confidence = _clamp(confidence)
        signals = sum((real_title, real_company, has_date, has_keyword))
        status = status_for_confidence(confidence, signals)

    return ImportDraftRole(
        id=f"role-{role_index}",
        title=role.title,
        start_date=role.start_date,
        end_date=role.end_date,
        confidence=confidence,
        status=status,
        source_refs=sorted(set(role.refs)),
        highlights=buckets[ItemType.HIGHLIGHT],
        outcomes=buckets[ItemType.OUTCOME],
        tools=buckets[ItemType.TOOL],
        skills=buckets[ItemType.SKILL],
    )


def _build_company(
    company: _CompanyBuilder, company_index: int, roles: list[ImportDraftRole]
) -> ImportDraftCompany:
    if is_unassigned(company.name):
        confidence = SENTINEL_CONFIDENCE
        status = ItemStatus.NEEDS_ATTENTION
    else:
        has_real_role = any(not is_unassigned(role.title) for role in roles)
        has_date = any(role.start_date for role in roles)
        confidence = 0.4
        confidence += 0.25 if has_real_role else 0.0
        confidence += 0.15 if has_date else 0.0
        confidence += 0.15 if company.structural else 0.0
        confidence = _clamp(confidence)
        signals = sum((True, has_real_role, has_date, company.structural))
        status = status_for_confidence(confidence, signals)

    return ImportDraftCompany(
        id=f"company-{company_index}",
        name=company.name,
        confidence=confidence,
        status=status,
        source_refs=sorted(set(company.refs)),
        roles=roles,
    )


def map_entities(segmentation: Segmentation) -> MappingOutcome:
    return EntityMapper().map(segmentation)
