from __future__ import annotations

from jobfilter.types import SourceLine


def normalize_import_text(text: str) -> str:
    out = text.replace("\r\n", "\n").replace("\r", "\n")
    out = out.replace("\u0000", "")
    return out.strip()


def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def to_source_lines(text: str) -> list[SourceLine]:
    """Split raw text into trimmed lines keeping each line's original position.

    Blank lines are kept (with empty text) because blank-line grouping is a
    segmentation signal; callers filter them when counting.
    """
    if not normalize_import_text(text):
        return []
    unified = text.replace("\r\n", "\n").replace("\r", "\n").replace("\u0000", "")
    return [
        SourceLine(index=index, text=collapse_whitespace(raw))
        for index, raw in enumerate(unified.split("\n"))
    ]


def non_blank(lines: list[SourceLine]) -> list[SourceLine]:
    return [line for line in lines if line.text]
