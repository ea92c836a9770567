from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import PlainTextResponse

from jobfilter.api.deps import get_app_settings, get_import_repo, get_ledger
from jobfilter.api.schemas import (
    ClaimApproveRequest,
    ClaimApproveResponse,
    ClaimDeleteResponse,
    ClaimMergeRequest,
    DraftOperationRequest,
    ImportParseRequest,
    ImportReparseRequest,
    ImportSaveResponse,
    ImportSessionResponse,
    RoleDestinationResponse,
)
from jobfilter.config import Settings
from jobfilter.core import draft_mutations as mutations
from jobfilter.core.debug_report import BuildInfo, build_debug_report, serialize_debug_report
from jobfilter.core.guidance import guidance_for, suggested_modes
from jobfilter.core.import_session import mark_saved, mark_skipped, replace_draft, reparse, start_session
from jobfilter.core.selector import SelectionConfig
from jobfilter.db.repositories import ImportSessionRepository
from jobfilter.errors import ClaimNotFoundError, ClaimValidationError, DraftTargetNotFoundError
from jobfilter.ledger.draft_import import save_draft_to_ledger
from jobfilter.ledger.ledger import ClaimLedger
from jobfilter.ledger.views import (
    DuplicateClaimGroup,
    ExperienceBundle,
    build_experience_bundles,
    claim_review_queue,
    find_duplicate_groups,
)
from jobfilter.types import Claim, ClaimInput, ClaimPatch, ClaimType, ImportDraft, ImportSession, SessionState

router = APIRouter(prefix="/api", tags=["api"])


def _session_response(session: ImportSession) -> ImportSessionResponse:
    return ImportSessionResponse(
        **session.model_dump(),
        guidance=guidance_for(session.diagnostics),
        suggested_modes=suggested_modes(session.diagnostics),
        has_usable_draft=mutations.has_usable_draft(session.draft),
        destinations=[
            RoleDestinationResponse(company_id=option.company_id, role_id=option.role_id, label=option.label)
            for option in mutations.role_destination_options(session.draft)
        ],
    )


def _load_session(repo: ImportSessionRepository, session_id: str) -> ImportSession:
    session = repo.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Import session not found")
    return session


def _require(value: str | None, name: str) -> str:
    if not value:
        raise HTTPException(status_code=400, detail=f"'{name}' is required for this operation")
    return value


def _role_ref(payload: DraftOperationRequest) -> mutations.RoleRef:
    return mutations.RoleRef(_require(payload.company_id, "company_id"), _require(payload.role_id, "role_id"))


def _item_ref(payload: DraftOperationRequest) -> mutations.ItemRef:
    return mutations.ItemRef(
        _require(payload.company_id, "company_id"),
        _require(payload.role_id, "role_id"),
        _require(payload.item_id, "item_id"),
    )


def apply_draft_operation(draft: ImportDraft, payload: DraftOperationRequest) -> ImportDraft:
    op = payload.op
    if op == "add_company":
        return mutations.add_company(draft, payload.name or "New Company")
    if op == "update_company":
        return mutations.update_company(draft, _require(payload.company_id, "company_id"), payload.name or "")
    if op == "delete_company":
        return mutations.delete_company(draft, _require(payload.company_id, "company_id"))
    if op == "add_role":
        return mutations.add_role(draft, _require(payload.company_id, "company_id"), payload.title or "New Role")
    if op == "update_role":
        return mutations.update_role(
            draft,
            _role_ref(payload),
            title=payload.title,
            start_date=payload.start_date,
            end_date=payload.end_date,
            status=payload.status,
        )
    if op == "delete_role":
        return mutations.delete_role(draft, _role_ref(payload))
    if op == "add_item" or op == "add_tag":
        if payload.item_type is None:
            raise HTTPException(status_code=400, detail="'item_type' is required for this operation")
        if op == "add_tag":
            return mutations.add_tag(draft, _role_ref(payload), payload.item_type, payload.text or "")
        return mutations.add_item(draft, _role_ref(payload), payload.item_type, payload.text or "")
    if op == "update_item":
        return mutations.update_item(
            draft, _item_ref(payload), text=payload.text, metric=payload.metric, status=payload.status
        )
    if op == "delete_item":
        return mutations.delete_item(draft, _item_ref(payload))
    if op == "delete_tag":
        return mutations.delete_tag(draft, _item_ref(payload))
    if op == "move_item":
        destination = mutations.RoleRef(
            _require(payload.destination_company_id, "destination_company_id"),
            _require(payload.destination_role_id, "destination_role_id"),
        )
        return mutations.move_item(draft, _item_ref(payload), destination)
    return mutations.remove_empty_containers(draft)


@router.post("/imports/parse", response_model=ImportSessionResponse)
def parse_import(
    payload: ImportParseRequest,
    repo: ImportSessionRepository = Depends(get_import_repo),
    settings: Settings = Depends(get_app_settings),
) -> ImportSessionResponse:
    session = start_session(
        payload.text,
        mode=payload.mode,
        extraction=payload.extraction,
        source=payload.source,
        config=SelectionConfig.from_settings(settings),
    )
    repo.upsert(session)
    return _session_response(session)


@router.get("/imports/{session_id}", response_model=ImportSessionResponse)
def get_import(session_id: str, repo: ImportSessionRepository = Depends(get_import_repo)) -> ImportSessionResponse:
    return _session_response(_load_session(repo, session_id))


@router.post("/imports/{session_id}/reparse", response_model=ImportSessionResponse)
def reparse_import(
    session_id: str,
    payload: ImportReparseRequest,
    repo: ImportSessionRepository = Depends(get_import_repo),
    settings: Settings = Depends(get_app_settings),
) -> ImportSessionResponse:
    session = reparse(
        _load_session(repo, session_id), payload.mode, config=SelectionConfig.from_settings(settings)
    )
    repo.upsert(session)
    return _session_response(session)


@router.post("/imports/{session_id}/draft", response_model=ImportSessionResponse)
def edit_import_draft(
    session_id: str,
    payload: DraftOperationRequest,
    repo: ImportSessionRepository = Depends(get_import_repo),
) -> ImportSessionResponse:
    session = _load_session(repo, session_id)
    if session.state != SessionState.PARSED:
        raise HTTPException(status_code=409, detail=f"Import session is already {session.state.value}")
    try:
        draft = apply_draft_operation(session.draft, payload)
    except DraftTargetNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    session = replace_draft(session, draft)
    repo.upsert(session)
    return _session_response(session)


@router.post("/imports/{session_id}/save", response_model=ImportSaveResponse)
def save_import(
    session_id: str,
    repo: ImportSessionRepository = Depends(get_import_repo),
    ledger: ClaimLedger = Depends(get_ledger),
) -> ImportSaveResponse:
    session = _load_session(repo, session_id)
    if session.state != SessionState.PARSED:
        raise HTTPException(status_code=409, detail=f"Import session is already {session.state.value}")
    if not mutations.has_usable_draft(session.draft):
        raise HTTPException(status_code=400, detail="Import draft has no items to save")
    try:
        summary = save_draft_to_ledger(session.draft, ledger)
    except ClaimValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.to_dict()) from exc

    session = mark_saved(session)
    repo.upsert(session)
    return ImportSaveResponse(session_id=session.id, state=session.state.value, summary=summary)


@router.post("/imports/{session_id}/skip", response_model=ImportSessionResponse)
def skip_import(session_id: str, repo: ImportSessionRepository = Depends(get_import_repo)) -> ImportSessionResponse:
    session = mark_skipped(_load_session(repo, session_id))
    repo.upsert(session)
    return _session_response(session)


@router.delete("/imports/{session_id}", status_code=204)
def delete_import(session_id: str, repo: ImportSessionRepository = Depends(get_import_repo)) -> Response:
    if not repo.delete(session_id):
        raise HTTPException(status_code=404, detail="Import session not found")
    return Response(status_code=204)


@router.get("/imports/{session_id}/debug-report", response_class=PlainTextResponse)
def import_debug_report(
    session_id: str,
    repo: ImportSessionRepository = Depends(get_import_repo),
    settings: Settings = Depends(get_app_settings),
) -> PlainTextResponse:
    report = build_debug_report(_load_session(repo, session_id), BuildInfo.from_settings(settings))
    return PlainTextResponse(serialize_debug_report(report), media_type="application/json")


@router.get("/claims", response_model=list[Claim])
def list_claims(claim_type: ClaimType | None = None, ledger: ClaimLedger = Depends(get_ledger)) -> list[Claim]:
    claims = ledger.claims()
    if claim_type is not None:
        claims = [claim for claim in claims if claim.type == claim_type]
    return claims


@router.post("/claims", response_model=Claim)
def create_claim(payload: ClaimInput, ledger: ClaimLedger = Depends(get_ledger)) -> Claim:
    try:
        return ledger.add(payload)
    except ClaimValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.to_dict()) from exc


@router.get("/claims/duplicates", response_model=list[DuplicateClaimGroup])
def claim_duplicates(ledger: ClaimLedger = Depends(get_ledger)) -> list[DuplicateClaimGroup]:
    return find_duplicate_groups(ledger.claims())


@router.get("/claims/review-queue", response_model=list[Claim])
def claim_queue(ledger: ClaimLedger = Depends(get_ledger)) -> list[Claim]:
    return claim_review_queue(ledger.claims())


@router.get("/claims/experiences", response_model=list[ExperienceBundle])
def claim_experiences(ledger: ClaimLedger = Depends(get_ledger)) -> list[ExperienceBundle]:
    return build_experience_bundles(ledger.claims())


@router.post("/claims/merge", response_model=Claim)
def merge_claims(payload: ClaimMergeRequest, ledger: ClaimLedger = Depends(get_ledger)) -> Claim:
    try:
        return ledger.merge(payload.target_id, payload.source_id)
    except ClaimNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ClaimValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.to_dict()) from exc


@router.post("/claims/approve", response_model=ClaimApproveResponse)
def approve_claims(payload: ClaimApproveRequest, ledger: ClaimLedger = Depends(get_ledger)) -> ClaimApproveResponse:
    try:
        return ClaimApproveResponse(approved=ledger.approve(payload.ids))
    except ClaimNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ClaimValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.to_dict()) from exc


@router.get("/claims/{claim_id}", response_model=Claim)
def get_claim(claim_id: str, ledger: ClaimLedger = Depends(get_ledger)) -> Claim:
    try:
        return ledger.get(claim_id)
    except ClaimNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.patch("/claims/{claim_id}", response_model=Claim)
def update_claim(claim_id: str, payload: ClaimPatch, ledger: ClaimLedger = Depends(get_ledger)) -> Claim:
    try:
        return ledger.update(claim_id, payload)
    except ClaimNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ClaimValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.to_dict()) from exc


@router.delete("/claims/{claim_id}", response_model=ClaimDeleteResponse)
def delete_claim(claim_id: str, ledger: ClaimLedger = Depends(get_ledger)) -> ClaimDeleteResponse:
    try:
        return ClaimDeleteResponse(deleted_ids=ledger.delete(claim_id))
    except ClaimNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
