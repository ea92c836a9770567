from __future__ import annotations

import re

from jobfilter.core.vocabulary import detect_skills, detect_tools
from jobfilter.types import (
    CompensationHint,
    ImportDraft,
    NumberedLine,
    ProfilePrefillSuggestion,
    is_unassigned,
)

MAX_TARGET_ROLES = 6
MAX_HINTS = 8
MAX_LOCATION_HINTS = 4
NAME_SCAN_LINES = 8

_NAME_LINE_RE = re.compile(r"^[A-Z][a-z]+(?:\s+[A-Z][a-z]+){1,2}$")
_CITY_STATE_RE = re.compile(r"\b([A-Z][a-zA-Z ]+),\s*([A-Z]{2})\b")
_SALARY_RE = re.compile(r"\$\s?(\d[\d,]{4,})")
_PLACEHOLDER_TITLES = {"new role", "untitled role"}


def infer_name(preview: list[NumberedLine]) -> tuple[str | None, str | None]:
    for entry in preview[:NAME_SCAN_LINES]:
        text = entry.text.strip()
        if not text or "@" in text or "http" in text:
            continue
        if not _NAME_LINE_RE.match(text):
            continue
        parts = text.split()
        return parts[0], " ".join(parts[1:])
    return None, None


def infer_target_roles(draft: ImportDraft) -> list[str]:
    roles: list[str] = []
    for role in draft.roles():
        title = role.title.strip()
        if not title or is_unassigned(title) or title.lower() in _PLACEHOLDER_TITLES:
            continue
        if title not in roles:
            roles.append(title)
        if len(roles) >= MAX_TARGET_ROLES:
            break
    return roles


def _merge_hints(first: list[str], second: list[str]) -> list[str]:
    merged: list[str] = []
    for value in [*first, *second]:
        if value and value.lower() not in {entry.lower() for entry in merged}:
            merged.append(value)
    return merged[:MAX_HINTS]


def infer_tag_hints(draft: ImportDraft, preview: list[NumberedLine]) -> tuple[list[str], list[str]]:
    draft_tools = [tool.text.strip() for role in draft.roles() for tool in role.tools]
    draft_skills = [skill.text.strip() for role in draft.roles() for skill in role.skills]
    text_tools: list[str] = []
    text_skills: list[str] = []
    for entry in preview:
        text_tools.extend(detect_tools(entry.text))
        text_skills.extend(detect_skills(entry.text))
    return _merge_hints(draft_tools, text_tools), _merge_hints(draft_skills, text_skills)


def infer_location_hints(preview: list[NumberedLine]) -> list[str]:
    hints: list[str] = []

    def add(value: str) -> None:
        if value not in hints:
            hints.append(value)

    for entry in preview:
        line = entry.text
        if re.search(r"\bremote\b", line, re.IGNORECASE):
            add("Remote")
        if re.search(r"\bhybrid\b", line, re.IGNORECASE):
            add("Hybrid")
        if re.search(r"\bonsite\b|on-site|in office", line, re.IGNORECASE):
            add("Onsite")
        match = _CITY_STATE_RE.search(line)
        if match:
            add(f"{match.group(1).strip()}, {match.group(2)}")
        if len(hints) >= MAX_LOCATION_HINTS:
            break
    return hints[:MAX_LOCATION_HINTS]


def infer_compensation(preview: list[NumberedLine]) -> CompensationHint | None:
    salaries = [
        int(match.group(1).replace(",", ""))
        for entry in preview
        for match in _SALARY_RE.finditer(entry.text)
    ]
    if not salaries:
        return None
    return CompensationHint(floor=min(salaries), target=max(salaries))


def infer_profile_prefill(draft: ImportDraft, preview: list[NumberedLine]) -> ProfilePrefillSuggestion:
    first_name, last_name = infer_name(preview)
    tool_hints, skill_hints = infer_tag_hints(draft, preview)
    return ProfilePrefillSuggestion(
        first_name=first_name,
        last_name=last_name,
        target_roles=infer_target_roles(draft),
        skill_hints=skill_hints,
        tool_hints=tool_hints,
        location_hints=infer_location_hints(preview),
        compensation=infer_compensation(preview),
    )
