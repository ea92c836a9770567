"""Pure edit operations over an import draft.

Every function takes a draft and returns a new one; the input is never touched.
Entity ids survive every edit and move so that selections and undo snapshots
taken by callers stay valid.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import assert_never

from jobfilter.errors import DraftTargetNotFoundError
from jobfilter.types import (
    ImportDraft,
    ImportDraftCompany,
    ImportDraftItem,
    ImportDraftRole,
    ItemStatus,
    ItemType,
    is_unassigned,
)

MANUAL_CONFIDENCE = 0.92
TAG_TYPES = frozenset({ItemType.TOOL, ItemType.SKILL})


@dataclass(slots=True, frozen=True)
class RoleRef:
    company_id: str
    role_id: str


@dataclass(slots=True, frozen=True)
class ItemRef:
    company_id: str
    role_id: str
    item_id: str

    @property
    def role(self) -> RoleRef:
        return RoleRef(self.company_id, self.role_id)


@dataclass(slots=True, frozen=True)
class RoleDestination:
    company_id: str
    role_id: str
    label: str


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4()}"


def collection_for(role: ImportDraftRole, item_type: ItemType) -> list[ImportDraftItem]:
    if item_type == ItemType.HIGHLIGHT:
        return role.highlights
    if item_type == ItemType.OUTCOME:
        return role.outcomes
    if item_type == ItemType.TOOL:
        return role.tools
    if item_type == ItemType.SKILL:
        return role.skills
    assert_never(item_type)


def new_item(item_type: ItemType, text: str = "") -> ImportDraftItem:
    value = text.strip()
    return ImportDraftItem(
        id=_new_id(item_type.value),
        type=item_type,
        text=value,
        confidence=MANUAL_CONFIDENCE,
        status=ItemStatus.ACCEPTED if value else ItemStatus.NEEDS_ATTENTION,
    )


def new_role(title: str = "New Role") -> ImportDraftRole:
    return ImportDraftRole(
        id=_new_id("role"),
        title=title,
        confidence=MANUAL_CONFIDENCE,
        status=ItemStatus.ACCEPTED,
    )


def new_company(name: str = "New Company") -> ImportDraftCompany:
    return ImportDraftCompany(
        id=_new_id("company"),
        name=name,
        confidence=MANUAL_CONFIDENCE,
        status=ItemStatus.NEEDS_ATTENTION if is_unassigned(name) else ItemStatus.ACCEPTED,
        roles=[new_role()],
    )


def _find_company(draft: ImportDraft, company_id: str) -> ImportDraftCompany:
    for company in draft.companies:
        if company.id == company_id:
            return company
    raise DraftTargetNotFoundError("company", company_id)


def _find_role(draft: ImportDraft, ref: RoleRef) -> ImportDraftRole:
    company = _find_company(draft, ref.company_id)
    for role in company.roles:
        if role.id == ref.role_id:
            return role
    raise DraftTargetNotFoundError("role", ref.role_id)


def _find_item(draft: ImportDraft, ref: ItemRef) -> tuple[ImportDraftRole, ImportDraftItem]:
    role = _find_role(draft, ref.role)
    for item in role.items():
        if item.id == ref.item_id:
            return role, item
    raise DraftTargetNotFoundError("item", ref.item_id)


def _copy(draft: ImportDraft) -> ImportDraft:
    return draft.model_copy(deep=True)


def add_company(draft: ImportDraft, name: str = "New Company") -> ImportDraft:
    updated = _copy(draft)
    updated.companies.append(new_company(name))
    return updated


def update_company(draft: ImportDraft, company_id: str, name: str) -> ImportDraft:
    updated = _copy(draft)
    company = _find_company(updated, company_id)
    company.name = name
    if is_unassigned(name):
        company.status = ItemStatus.NEEDS_ATTENTION
    elif name.strip():
        company.confidence = max(company.confidence, MANUAL_CONFIDENCE)
        if company.status == ItemStatus.NEEDS_ATTENTION and not company.status_locked:
            company.status = ItemStatus.ACCEPTED
    return updated


def delete_company(draft: ImportDraft, company_id: str) -> ImportDraft:
    _find_company(draft, company_id)
    updated = _copy(draft)
    updated.companies = [company for company in updated.companies if company.id != company_id]
    return updated


def add_role(draft: ImportDraft, company_id: str, title: str = "New Role") -> ImportDraft:
    updated = _copy(draft)
    _find_company(updated, company_id).roles.append(new_role(title))
    return updated


def update_role(
    draft: ImportDraft,
    ref: RoleRef,
    *,
    title: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    status: ItemStatus | None = None,
) -> ImportDraft:
    updated = _copy(draft)
    role = _find_role(updated, ref)
    if title is not None:
        role.title = title
    if start_date is not None:
        role.start_date = start_date
    if end_date is not None:
        role.end_date = end_date

    if (title and title.strip()) or start_date or end_date:
        role.confidence = max(role.confidence, MANUAL_CONFIDENCE)
        if title and title.strip() and role.status == ItemStatus.NEEDS_ATTENTION and not role.status_locked:
            role.status = ItemStatus.ACCEPTED
    if status is not None:
        role.status = status
        role.status_locked = True
    return updated


def delete_role(draft: ImportDraft, ref: RoleRef) -> ImportDraft:
    _find_role(draft, ref)
    updated = _copy(draft)
    company = _find_company(updated, ref.company_id)
    company.roles = [role for role in company.roles if role.id != ref.role_id]
    return updated


def add_item(draft: ImportDraft, ref: RoleRef, item_type: ItemType, text: str = "") -> ImportDraft:
    updated = _copy(draft)
    role = _find_role(updated, ref)
    collection_for(role, item_type).append(new_item(item_type, text))
    return updated


def update_item(
    draft: ImportDraft,
    ref: ItemRef,
    *,
    text: str | None = None,
    metric: str | None = None,
    status: ItemStatus | None = None,
) -> ImportDraft:
    updated = _copy(draft)
    _, item = _find_item(updated, ref)
    if text is not None:
        item.text = text
        if text.strip():
            item.confidence = max(item.confidence, MANUAL_CONFIDENCE)
            if item.status == ItemStatus.NEEDS_ATTENTION and not item.status_locked:
                item.status = ItemStatus.ACCEPTED
    if metric is not None:
        item.metric = metric or None
    if status is not None:
        item.status = status
        item.status_locked = True
    return updated


def delete_item(draft: ImportDraft, ref: ItemRef) -> ImportDraft:
    updated = _copy(draft)
    role, item = _find_item(updated, ref)
    collection = collection_for(role, item.type)
    collection[:] = [entry for entry in collection if entry.id != item.id]
    return updated


def move_item(draft: ImportDraft, source: ItemRef, destination: RoleRef) -> ImportDraft:
    """Append the item to the destination role's collection of the same type, unchanged."""
    _find_role(draft, destination)
    updated = _copy(draft)
    role, item = _find_item(updated, source)
    collection = collection_for(role, item.type)
    collection[:] = [entry for entry in collection if entry.id != item.id]
    collection_for(_find_role(updated, destination), item.type).append(item)
    return updated


def add_tag(draft: ImportDraft, ref: RoleRef, item_type: ItemType, text: str) -> ImportDraft:
    if item_type not in TAG_TYPES:
        raise ValueError(f"'{item_type}' is not a tag type")
    value = text.strip()
    role = _find_role(draft, ref)
    if not value:
        return draft
    if any(tag.text.lower() == value.lower() for tag in collection_for(role, item_type)):
        return draft

    updated = _copy(draft)
    collection_for(_find_role(updated, ref), item_type).append(new_item(item_type, value))
    return updated


def delete_tag(draft: ImportDraft, ref: ItemRef) -> ImportDraft:
    _, item = _find_item(draft, ref)
    if item.type not in TAG_TYPES:
        raise ValueError(f"item '{ref.item_id}' is not a tag")
    return delete_item(draft, ref)


def role_has_content(role: ImportDraftRole) -> bool:
    return bool(role.items())


def remove_empty_containers(draft: ImportDraft) -> ImportDraft:
    updated = _copy(draft)
    for company in updated.companies:
        company.roles = [
            role
            for role in company.roles
            if role_has_content(role) or role.title.strip() or role.start_date or role.end_date
        ]
    updated.companies = [
        company for company in updated.companies if company.roles or company.name.strip()
    ]
    return updated


def role_destination_options(draft: ImportDraft, include_unassigned: bool = True) -> list[RoleDestination]:
    options: list[RoleDestination] = []
    for company in draft.companies:
        if not include_unassigned and company.is_unassigned:
            continue
        for role in company.roles:
            if not include_unassigned and is_unassigned(role.title):
                continue
            options.append(
                RoleDestination(
                    company_id=company.id,
                    role_id=role.id,
                    label=f"{company.name} • {role.title or 'Untitled role'}",
                )
            )
    return options


def has_usable_draft(draft: ImportDraft) -> bool:
    return any(role_has_content(role) for role in draft.roles())
