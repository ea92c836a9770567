"""Import session lifecycle.

Sessions are immutable snapshots: every parse, re-parse or draft edit yields a
new session object with a bumped revision and a recomputed profile suggestion.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime

from jobfilter.core.import_pipeline import parse, parse_best
from jobfilter.core.profile_prefill import infer_profile_prefill
from jobfilter.core.selector import SelectionConfig
from jobfilter.types import (
    ExtractionDiagnostics,
    ImportDraft,
    ImportSession,
    ImportSource,
    ParseResult,
    SegmentationMode,
    SessionState,
)

logger = logging.getLogger(__name__)


def _run(
    text: str,
    mode: SegmentationMode | None,
    extraction: ExtractionDiagnostics | None,
    config: SelectionConfig | None,
) -> ParseResult:
    if mode is None:
        return parse_best(text, extraction=extraction, config=config)
    return parse(text, mode=mode, extraction=extraction, config=config)


def start_session(
    text: str,
    mode: SegmentationMode | None = None,
    extraction: ExtractionDiagnostics | None = None,
    source: ImportSource | None = None,
    config: SelectionConfig | None = None,
) -> ImportSession:
    result = _run(text, mode, extraction, config)
    session = ImportSession(
        id=uuid.uuid4().hex,
        source_text=text,
        source=source or ImportSource(),
        mode=mode,
        draft=result.draft,
        diagnostics=result.diagnostics,
        profile_suggestion=infer_profile_prefill(result.draft, result.diagnostics.preview_lines),
        updated_at=datetime.now(UTC),
    )
    logger.info(
        "Started import session %s (mode=%s, low_quality=%s)",
        session.id,
        result.diagnostics.mode,
        result.diagnostics.low_quality,
    )
    return session


def reparse(
    session: ImportSession,
    mode: SegmentationMode | None,
    config: SelectionConfig | None = None,
) -> ImportSession:
    """Re-run parsing on the session's source text, replacing draft and diagnostics wholesale."""
    result = _run(session.source_text, mode, session.diagnostics.extraction_stage, config)
    logger.info("Re-parsed import session %s with mode=%s", session.id, mode or "auto")
    return session.model_copy(
        update={
            "revision": session.revision + 1,
            "mode": mode,
            "state": SessionState.PARSED,
            "draft": result.draft,
            "diagnostics": result.diagnostics,
            "profile_suggestion": infer_profile_prefill(result.draft, result.diagnostics.preview_lines),
            "updated_at": datetime.now(UTC),
        }
    )


def replace_draft(session: ImportSession, draft: ImportDraft) -> ImportSession:
    return session.model_copy(
        update={
            "revision": session.revision + 1,
            "draft": draft,
            "profile_suggestion": infer_profile_prefill(draft, session.diagnostics.preview_lines),
            "updated_at": datetime.now(UTC),
        }
    )


def _with_state(session: ImportSession, state: SessionState) -> ImportSession:
    return session.model_copy(
        update={
            "revision": session.revision + 1,
            "state": state,
            "updated_at": datetime.now(UTC),
        }
    )


def mark_saved(session: ImportSession) -> ImportSession:
    return _with_state(session, SessionState.SAVED)


def mark_skipped(session: ImportSession) -> ImportSession:
    return _with_state(session, SessionState.SKIPPED)
