from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
import uvicorn
from sqlalchemy.orm import Session

from jobfilter.api.app import create_app
from jobfilter.config import get_settings
from jobfilter.core.debug_report import BuildInfo, build_debug_report, serialize_debug_report
from jobfilter.core.draft_mutations import has_usable_draft
from jobfilter.core.extraction import ExtractionError, extract_text, source_for_upload
from jobfilter.core.guidance import guidance_for, suggested_modes
from jobfilter.core.import_session import mark_saved, mark_skipped, reparse, start_session
from jobfilter.core.selector import SelectionConfig
from jobfilter.db.init import init_database
from jobfilter.db.repositories import ImportSessionRepository, SqlClaimStore
from jobfilter.db.session import SessionLocal
from jobfilter.errors import ClaimNotFoundError, ClaimValidationError
from jobfilter.ledger.draft_import import save_draft_to_ledger
from jobfilter.ledger.ledger import ClaimLedger, LedgerConfig
from jobfilter.ledger.views import build_experience_bundles, claim_review_queue, find_duplicate_groups
from jobfilter.logging_config import configure_logging
from jobfilter.types import ClaimType, ImportSession, SegmentationMode, SessionState

app = typer.Typer(help="Job Filter CLI")
imports_app = typer.Typer(help="Resume import sessions")
claims_app = typer.Typer(help="Evidence ledger claims")

app.add_typer(imports_app, name="imports")
app.add_typer(claims_app, name="claims")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


def _echo(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2))


def _session_summary(session: ImportSession) -> dict[str, Any]:
    diagnostics = session.diagnostics
    return {
        "id": session.id,
        "revision": session.revision,
        "state": session.state.value,
        "mode": diagnostics.mode.value,
        "score": diagnostics.score,
        "low_quality": diagnostics.low_quality,
        "reason_codes": [code.value for code in diagnostics.reason_codes],
        "companies": [
            {
                "name": company.name,
                "roles": [
                    {"title": role.title, "items": len(role.items()), "status": role.status.value}
                    for role in company.roles
                ],
            }
            for company in session.draft.companies
        ],
        "guidance": guidance_for(diagnostics),
        "suggested_modes": [mode.value for mode in suggested_modes(diagnostics)],
    }


def _ledger(db: Session) -> ClaimLedger:
    return ClaimLedger(SqlClaimStore(db), config=LedgerConfig.from_settings(get_settings()))


def _load(repo: ImportSessionRepository, session_id: str) -> ImportSession:
    session = repo.get(session_id)
    if session is None:
        raise typer.BadParameter(f"import session {session_id} not found")
    return session


@app.command("init")
def init_cmd() -> None:
    """Initialize database and data directories."""
    configure_logging()
    result = init_database()
    _echo({"ok": True, **result})


@imports_app.command("parse")
def imports_parse(
    file: Path = typer.Option(..., "--file", exists=True, readable=True),
    mode: SegmentationMode | None = typer.Option(None, "--mode"),
) -> None:
    """Extract a resume file and parse it into a new import session."""
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    data = file.read_bytes()
    try:
        extracted = extract_text(file.name, data, max_bytes=settings.import_max_file_size_bytes)
    except ExtractionError as exc:
        raise typer.BadParameter(str(exc)) from exc

    session = start_session(
        extracted.text,
        mode=mode,
        extraction=extracted.diagnostics,
        source=source_for_upload(file.name, data),
        config=SelectionConfig.from_settings(settings),
    )
    with SessionLocal() as db:
        ImportSessionRepository(db).upsert(session)
    _echo(_session_summary(session))


@imports_app.command("show")
def imports_show(session_id: str = typer.Option(..., "--session-id")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        session = _load(ImportSessionRepository(db), session_id)
    _echo(session.model_dump(mode="json", exclude={"source_text"}))


@imports_app.command("reparse")
def imports_reparse(
    session_id: str = typer.Option(..., "--session-id"),
    mode: SegmentationMode | None = typer.Option(None, "--mode"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        repo = ImportSessionRepository(db)
        session = reparse(_load(repo, session_id), mode, config=SelectionConfig.from_settings(get_settings()))
        repo.upsert(session)
    _echo(_session_summary(session))


@imports_app.command("report")
def imports_report(
    session_id: str = typer.Option(..., "--session-id"),
    output: Path | None = typer.Option(None, "--output"),
) -> None:
    """Print (or write) the parse debug report for an import session."""
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        session = _load(ImportSessionRepository(db), session_id)
    text = serialize_debug_report(build_debug_report(session, BuildInfo.from_settings(get_settings())))
    if output is None:
        typer.echo(text)
        return
    output.write_text(text, encoding="utf-8")
    _echo({"written": str(output)})


@imports_app.command("save")
def imports_save(session_id: str = typer.Option(..., "--session-id")) -> None:
    """Save accepted draft entries into the claim ledger."""
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        repo = ImportSessionRepository(db)
        session = _load(repo, session_id)
        if session.state != SessionState.PARSED:
            raise typer.BadParameter(f"import session {session_id} is already {session.state.value}")
        if not has_usable_draft(session.draft):
            raise typer.BadParameter("import draft has no items to save")
        try:
            summary = save_draft_to_ledger(session.draft, _ledger(db))
        except ClaimValidationError as exc:
            raise typer.BadParameter(f"{exc.code}: {exc.message}") from exc
        repo.upsert(mark_saved(session))
    _echo(summary.model_dump())


@imports_app.command("skip")
def imports_skip(session_id: str = typer.Option(..., "--session-id")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        repo = ImportSessionRepository(db)
        session = repo.upsert(mark_skipped(_load(repo, session_id)))
    _echo({"id": session.id, "state": session.state.value})


@claims_app.command("list")
def claims_list(
    claim_type: ClaimType | None = typer.Option(None, "--type"),
    review: bool = typer.Option(False, "--review", help="Only claims awaiting review, lowest confidence first"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        claims = _ledger(db).claims()
    if review:
        claims = claim_review_queue(claims)
    if claim_type is not None:
        claims = [claim for claim in claims if claim.type == claim_type]
    _echo([claim.model_dump(mode="json") for claim in claims])


@claims_app.command("approve")
def claims_approve(ids: list[str] | None = typer.Option(None, "--id")) -> None:
    """Approve the given claims, or every claim awaiting review when no --id is passed."""
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            approved = _ledger(db).approve(ids or None)
        except ClaimNotFoundError as exc:
            raise typer.BadParameter(str(exc)) from exc
        except ClaimValidationError as exc:
            raise typer.BadParameter(f"{exc.code}: {exc.message}") from exc
    _echo({"approved": approved})


@claims_app.command("merge")
def claims_merge(
    target_id: str = typer.Option(..., "--target"),
    source_id: str = typer.Option(..., "--source"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            merged = _ledger(db).merge(target_id, source_id)
        except ClaimNotFoundError as exc:
            raise typer.BadParameter(str(exc)) from exc
        except ClaimValidationError as exc:
            raise typer.BadParameter(f"{exc.code}: {exc.message}") from exc
    _echo(merged.model_dump(mode="json"))


@claims_app.command("delete")
def claims_delete(claim_id: str = typer.Option(..., "--id")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            removed = _ledger(db).delete(claim_id)
        except ClaimNotFoundError as exc:
            raise typer.BadParameter(str(exc)) from exc
    _echo({"deleted_ids": removed})


@claims_app.command("duplicates")
def claims_duplicates() -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        groups = find_duplicate_groups(_ledger(db).claims())
    _echo([group.model_dump(mode="json") for group in groups])


@claims_app.command("experiences")
def claims_experiences() -> None:
    """Experience bundles as consumed by fit scoring."""
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        bundles = build_experience_bundles(_ledger(db).claims())
    _echo([bundle.model_dump(mode="json") for bundle in bundles])


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    app_instance = create_app()
    uvicorn.run(app_instance, host=host or settings.app_host, port=port or settings.app_port)
