from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from jobfilter import __version__
from jobfilter.core.guidance import guidance_for
from jobfilter.types import ImportSession, ItemStatus

if TYPE_CHECKING:
    from jobfilter.config import Settings

REPORT_VERSION = 1
SCHEMA_VERSION = 1


@dataclass(slots=True, frozen=True)
class BuildInfo:
    version: str = __version__
    build_sha: str = "local"
    app_env: str = "development"
    schema_version: int = SCHEMA_VERSION

    @classmethod
    def from_settings(cls, settings: Settings) -> BuildInfo:
        return cls(build_sha=settings.build_sha, app_env=settings.app_env)

    @property
    def label(self) -> str:
        return f"build:{self.build_sha} env:{self.app_env} schema:v{self.schema_version}"


def draft_counts(session: ImportSession) -> dict[str, int]:
    roles = session.draft.roles()
    items = [item for role in roles for item in role.items()]
    counts = {
        "companies": len(session.draft.companies),
        "roles": len(roles),
        "highlights": sum(len(role.highlights) for role in roles),
        "outcomes": sum(len(role.outcomes) for role in roles),
        "tools": sum(len(role.tools) for role in roles),
        "skills": sum(len(role.skills) for role in roles),
    }
    for status in ItemStatus:
        counts[f"items_{status.value}"] = sum(1 for item in items if item.status == status)
    return counts


def build_debug_report(session: ImportSession, build: BuildInfo | None = None) -> dict[str, Any]:
    build = build or BuildInfo()
    return {
        "report_version": REPORT_VERSION,
        "build": asdict(build),
        "source": {
            **session.source.model_dump(mode="json"),
            "text_chars": len(session.source_text),
        },
        "session": {
            "id": session.id,
            "revision": session.revision,
            "state": session.state.value,
            "requested_mode": session.mode.value if session.mode else "auto",
            "updated_at": session.updated_at.isoformat(),
        },
        "diagnostics": session.diagnostics.model_dump(mode="json"),
        "counts": draft_counts(session),
        "guidance": guidance_for(session.diagnostics),
    }


def serialize_debug_report(report: dict[str, Any]) -> str:
    return json.dumps(report, indent=2, sort_keys=True, ensure_ascii=False)
