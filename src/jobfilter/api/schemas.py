from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from jobfilter.ledger.draft_import import DraftSaveSummary
from jobfilter.types import (
    ExtractionDiagnostics,
    ImportSession,
    ImportSource,
    ItemStatus,
    ItemType,
    SegmentationMode,
)


class ImportParseRequest(BaseModel):
    text: str
    mode: SegmentationMode | None = None
    extraction: ExtractionDiagnostics | None = None
    source: ImportSource | None = None


class ImportReparseRequest(BaseModel):
    mode: SegmentationMode | None = None


class RoleDestinationResponse(BaseModel):
    company_id: str
    role_id: str
    label: str


class ImportSessionResponse(ImportSession):
    guidance: list[str] = Field(default_factory=list)
    suggested_modes: list[SegmentationMode] = Field(default_factory=list)
    has_usable_draft: bool = False
    destinations: list[RoleDestinationResponse] = Field(default_factory=list)


DraftOperation = Literal[
    "add_company",
    "update_company",
    "delete_company",
    "add_role",
    "update_role",
    "delete_role",
    "add_item",
    "update_item",
    "delete_item",
    "move_item",
    "add_tag",
    "delete_tag",
    "remove_empty",
]


class DraftOperationRequest(BaseModel):
    op: DraftOperation
    company_id: str | None = None
    role_id: str | None = None
    item_id: str | None = None
    name: str | None = None
    title: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    text: str | None = None
    metric: str | None = None
    status: ItemStatus | None = None
    item_type: ItemType | None = None
    destination_company_id: str | None = None
    destination_role_id: str | None = None


class ImportSaveResponse(BaseModel):
    session_id: str
    state: str
    summary: DraftSaveSummary


class ClaimMergeRequest(BaseModel):
    target_id: str
    source_id: str


class ClaimApproveRequest(BaseModel):
    ids: list[str] | None = None


class ClaimApproveResponse(BaseModel):
    approved: int


class ClaimDeleteResponse(BaseModel):
    deleted_ids: list[str]
