"""Line segmentation strategies.

Every strategy turns the same normalized source lines into a flat sequence of
tagged lines (header, item, section marker or skipped context). The entity
mapper then walks that sequence to build the company/role/item tree, so the
strategies only differ in how they prepare lines and where they draw the
header/item boundary.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import assert_never

from jobfilter.core.vocabulary import (
    ACTION_VERB_RE,
    CONTINUATION_PREFIX_RE,
    INLINE_DASH_GLYPH_RE,
    INLINE_ROUND_GLYPH_RE,
    INLINE_SECTION_RE,
    SectionKind,
    extract_date_range,
    is_bullet_line,
    is_bullet_only,
    is_contact_line,
    is_quantified_outcome,
    looks_like_company,
    looks_like_role_title,
    match_header_pair,
    section_kind,
    strip_bullet,
    strip_date_range,
)
from jobfilter.types import SegmentationMode, SourceLine

_LONG_LINE_CHARS = 120
_MAX_HEADER_WORDS = 12
_PAST_TENSE_RE = re.compile(r"^[A-Z][a-z]+ed\b")


class LineTag(StrEnum):
    HEADER = "header"
    ITEM = "item"
    SECTION = "section"
    SKIP = "skip"


@dataclass(slots=True)
class WorkLine:
    text: str
    refs: list[int]
    glyph: bool = False
    blank_before: bool = False


@dataclass(slots=True)
class TaggedLine:
    tag: LineTag
    text: str
    refs: list[int]
    glyph: bool = False


@dataclass(slots=True)
class Segmentation:
    mode: SegmentationMode
    lines: list[TaggedLine] = field(default_factory=list)
    prepared_lines_count: int = 0
    bullet_candidates_count: int = 0

    @property
    def header_candidates_count(self) -> int:
        return sum(1 for line in self.lines if line.tag == LineTag.HEADER)

    @property
    def item_candidates_count(self) -> int:
        return sum(1 for line in self.lines if line.tag == LineTag.ITEM)

    @property
    def section_headers_detected(self) -> int:
        return sum(1 for line in self.lines if line.tag == LineTag.SECTION)


def segment(lines: list[SourceLine], mode: SegmentationMode) -> Segmentation:
    work = _to_work_lines(lines)
    work = _join_glyph_only_lines(work)

    if mode == SegmentationMode.DEFAULT:
        work = _merge_continuations(work)
    elif mode == SegmentationMode.NEWLINES:
        work = _split_inline_glyphs(work)
    elif mode == SegmentationMode.BULLETS:
        work = _merge_continuations(_split_inline_glyphs(work))
    elif mode == SegmentationMode.HEADINGS:
        work = _split_inline_sections(work)
    else:
        assert_never(mode)

    result = Segmentation(
        mode=mode,
        prepared_lines_count=len(work),
        bullet_candidates_count=sum(1 for line in work if line.glyph),
    )
    has_glyphs = result.bullet_candidates_count > 0
    preamble_end = _first_section_index(work)
    section: SectionKind | None = None

    for position, line in enumerate(work):
        if not line.glyph and _is_section_line(line.text):
            section = section_kind(line.text)
            result.lines.append(TaggedLine(LineTag.SECTION, line.text, line.refs))
            continue
        if position < preamble_end or section in (SectionKind.OTHER, SectionKind.SKILLS):
            result.lines.append(TaggedLine(LineTag.SKIP, line.text, line.refs, line.glyph))
            continue
        if not line.glyph and is_contact_line(line.text):
            result.lines.append(TaggedLine(LineTag.SKIP, line.text, line.refs))
            continue
        tag = _tag_line(mode, work, position, has_glyphs)
        result.lines.append(TaggedLine(tag, line.text, line.refs, line.glyph))

    return result


def _tag_line(mode: SegmentationMode, work: list[WorkLine], position: int, has_glyphs: bool) -> LineTag:
    line = work[position]
    if line.glyph:
        return LineTag.ITEM

    if mode == SegmentationMode.DEFAULT:
        if looks_like_header(line.text):
            return LineTag.HEADER
        if not has_glyphs and _opens_block(work, position):
            return LineTag.HEADER
        return LineTag.ITEM
    if mode == SegmentationMode.NEWLINES:
        return LineTag.HEADER if looks_like_header(line.text) else LineTag.ITEM
    if mode == SegmentationMode.BULLETS:
        if has_glyphs and looks_like_header(line.text):
            return LineTag.HEADER
        return LineTag.SKIP
    if mode == SegmentationMode.HEADINGS:
        next_line = work[position + 1] if position + 1 < len(work) else None
        return LineTag.HEADER if _looks_like_heading(line.text, next_line) else LineTag.ITEM
    assert_never(mode)


def reads_as_accomplishment(text: str) -> bool:
    """True for lines that open with an action verb or carry a quantified outcome, dates aside."""
    date_range = extract_date_range(text)
    residual = strip_date_range(text, date_range) if date_range else text
    return bool(
        ACTION_VERB_RE.match(residual) or _PAST_TENSE_RE.match(residual) or is_quantified_outcome(residual)
    )


def looks_like_header(text: str) -> bool:
    words = text.split()
    if not words or len(words) > _MAX_HEADER_WORDS or text.endswith("."):
        return False
    if reads_as_accomplishment(text):
        return False
    if extract_date_range(text):
        return True
    if not text[0].isupper() and not text[0].isdigit():
        return False
    if match_header_pair(text):
        return True
    if len(words) <= 6 and (looks_like_company(text) or looks_like_role_title(text)):
        return True
    return False


def _looks_like_heading(text: str, next_line: WorkLine | None) -> bool:
    letters = [char for char in text if char.isalpha()]
    if len(letters) >= 2 and text.upper() == text and len(text.split()) <= 8:
        return True
    if extract_date_range(text) and len(text.split()) <= _MAX_HEADER_WORDS:
        return not reads_as_accomplishment(text)
    if text.endswith(".") or len(text.split()) > 8:
        return False
    if next_line is None:
        return False
    if next_line.glyph:
        return looks_like_header(text)
    return len(next_line.text) >= len(text) + 20 or looks_like_header(text)


def _opens_block(work: list[WorkLine], position: int) -> bool:
    line = work[position]
    if position > 0 and not line.blank_before:
        return False
    following = work[position + 1] if position + 1 < len(work) else None
    if following is None or following.blank_before:
        return False
    return len(line.text.split()) <= 8 and not line.text.endswith(".")


def _is_section_line(text: str) -> bool:
    return len(text.split()) <= 4 and section_kind(text) is not None


def _first_section_index(work: list[WorkLine]) -> int:
    """Lines before the first section header are the contact preamble, once an experience section exists."""
    positions = [
        position
        for position, line in enumerate(work)
        if not line.glyph and _is_section_line(line.text)
    ]
    if not any(section_kind(work[position].text) == SectionKind.EXPERIENCE for position in positions):
        return 0
    return positions[0]


def _to_work_lines(lines: list[SourceLine]) -> list[WorkLine]:
    work: list[WorkLine] = []
    blank_before = False
    for line in lines:
        if not line.text:
            blank_before = True
            continue
        glyph = is_bullet_line(line.text)
        text = strip_bullet(line.text) if glyph else line.text
        work.append(WorkLine(text=text, refs=[line.index], glyph=glyph, blank_before=blank_before))
        blank_before = False
    return work


def _join_glyph_only_lines(work: list[WorkLine]) -> list[WorkLine]:
    out: list[WorkLine] = []
    pending: WorkLine | None = None
    for line in work:
        if is_bullet_only(line.text):
            pending = line
            continue
        if pending is not None:
            line = WorkLine(
                text=line.text,
                refs=[*pending.refs, *line.refs],
                glyph=True,
                blank_before=pending.blank_before,
            )
            pending = None
        out.append(line)
    return out


def _merge_continuations(work: list[WorkLine]) -> list[WorkLine]:
    out: list[WorkLine] = []
    for line in work:
        previous = out[-1] if out else None
        joinable = (
            previous is not None
            and previous.glyph
            and not line.glyph
            and not line.blank_before
            and (CONTINUATION_PREFIX_RE.match(line.text) or previous.text.endswith(":"))
        )
        if joinable:
            previous.text = f"{previous.text} {line.text}"
            previous.refs.extend(line.refs)
            continue
        out.append(WorkLine(line.text, list(line.refs), line.glyph, line.blank_before))
    return out


def _split_inline_glyphs(work: list[WorkLine]) -> list[WorkLine]:
    out: list[WorkLine] = []
    for line in work:
        text = INLINE_ROUND_GLYPH_RE.sub("\n", line.text)
        if len(line.text) > _LONG_LINE_CHARS:
            text = INLINE_DASH_GLYPH_RE.sub("\n", text)
        pieces = [piece.strip() for piece in text.split("\n") if piece.strip()]
        for offset, piece in enumerate(pieces):
            out.append(
                WorkLine(
                    text=piece,
                    refs=list(line.refs),
                    glyph=line.glyph or offset > 0,
                    blank_before=line.blank_before and offset == 0,
                )
            )
    return out


def _split_inline_sections(work: list[WorkLine]) -> list[WorkLine]:
    out: list[WorkLine] = []
    for line in work:
        pieces = [piece.strip() for piece in INLINE_SECTION_RE.split(line.text) if piece.strip()]
        for offset, piece in enumerate(pieces):
            out.append(
                WorkLine(
                    text=piece,
                    refs=list(line.refs),
                    glyph=line.glyph and offset == 0,
                    blank_before=line.blank_before and offset == 0,
                )
            )
    return out
