import pytest

from jobfilter.core import draft_mutations as mutations
from jobfilter.core.draft_mutations import ItemRef, RoleRef
from jobfilter.core.import_pipeline import parse
from jobfilter.errors import DraftTargetNotFoundError
from jobfilter.types import ImportDraft, ItemStatus, ItemType, SegmentationMode

GROWTH_LEAD = """Acme Inc
Growth Lead, Jan 2022 - Present
- Grew signups 40% via lifecycle email
- Owned HubSpot instance
"""

ROLE = RoleRef("company-0", "role-0")


@pytest.fixture
def draft() -> ImportDraft:
    return parse(GROWTH_LEAD, mode=SegmentationMode.DEFAULT).draft


def test_move_item_relocates_unchanged_and_leaves_input_untouched(draft: ImportDraft) -> None:
    with_role = mutations.add_role(draft, "company-0", "Lifecycle Manager")
    destination = RoleRef("company-0", with_role.companies[0].roles[1].id)
    original = with_role.companies[0].roles[0].highlights[0]

    moved = mutations.move_item(with_role, ItemRef("company-0", "role-0", original.id), destination)

    assert moved.companies[0].roles[0].highlights == []
    assert moved.companies[0].roles[1].highlights == [original]
    assert with_role.companies[0].roles[0].highlights == [original]


def test_move_to_missing_role_raises_and_changes_nothing(draft: ImportDraft) -> None:
    item_id = draft.companies[0].roles[0].highlights[0].id
    with pytest.raises(DraftTargetNotFoundError):
        mutations.move_item(draft, ItemRef("company-0", "role-0", item_id), RoleRef("company-0", "missing"))
    assert len(draft.companies[0].roles[0].highlights) == 1


def test_editing_text_promotes_only_unlocked_items(draft: ImportDraft) -> None:
    added = mutations.add_item(draft, ROLE, ItemType.HIGHLIGHT)
    blank = added.companies[0].roles[0].highlights[-1]
    assert blank.status == ItemStatus.NEEDS_ATTENTION

    ref = ItemRef("company-0", "role-0", blank.id)
    promoted = mutations.update_item(added, ref, text="Ran weekly growth reviews")
    assert promoted.companies[0].roles[0].highlights[-1].status == ItemStatus.ACCEPTED

    rejected = mutations.update_item(added, ref, status=ItemStatus.REJECTED)
    edited = mutations.update_item(rejected, ref, text="Ran weekly growth reviews")
    item = edited.companies[0].roles[0].highlights[-1]
    assert item.status == ItemStatus.REJECTED
    assert item.status_locked
    assert item.confidence == mutations.MANUAL_CONFIDENCE


def test_add_tag_ignores_blank_and_duplicate_values(draft: ImportDraft) -> None:
    assert mutations.add_tag(draft, ROLE, ItemType.TOOL, "  hubspot ") is draft
    assert mutations.add_tag(draft, ROLE, ItemType.TOOL, "   ") is draft

    tagged = mutations.add_tag(draft, ROLE, ItemType.SKILL, "Lifecycle Marketing")
    assert [skill.text for skill in tagged.companies[0].roles[0].skills] == ["Lifecycle Marketing"]

    with pytest.raises(ValueError):
        mutations.add_tag(draft, ROLE, ItemType.HIGHLIGHT, "Owned roadmap")


def test_delete_tag_rejects_non_tag_items(draft: ImportDraft) -> None:
    highlight_id = draft.companies[0].roles[0].highlights[0].id
    with pytest.raises(ValueError):
        mutations.delete_tag(draft, ItemRef("company-0", "role-0", highlight_id))

    tool_id = draft.companies[0].roles[0].tools[0].id
    untagged = mutations.delete_tag(draft, ItemRef("company-0", "role-0", tool_id))
    assert untagged.companies[0].roles[0].tools == []


def test_company_and_role_edits(draft: ImportDraft) -> None:
    renamed = mutations.update_company(draft, "company-0", "Acme Incorporated")
    assert renamed.companies[0].name == "Acme Incorporated"

    retitled = mutations.update_role(renamed, ROLE, title="Head of Growth", end_date="Dec 2024")
    role = retitled.companies[0].roles[0]
    assert (role.title, role.end_date) == ("Head of Growth", "Dec 2024")

    assert mutations.delete_role(retitled, ROLE).companies[0].roles == []
    assert mutations.delete_company(retitled, "company-0").companies == []
    with pytest.raises(DraftTargetNotFoundError):
        mutations.delete_company(retitled, "company-9")


def test_remove_empty_containers_drops_blank_company_and_role(draft: ImportDraft) -> None:
    added = mutations.add_company(draft, "")
    company = added.companies[-1]
    blank = mutations.update_role(added, RoleRef(company.id, company.roles[0].id), title="")

    cleaned = mutations.remove_empty_containers(blank)
    assert [company.name for company in cleaned.companies] == ["Acme Inc"]


def test_destination_options_can_exclude_unassigned() -> None:
    draft = parse("Owned roadmap\nRan planning", mode=SegmentationMode.NEWLINES).draft
    assert draft.companies[0].is_unassigned
    assert mutations.role_destination_options(draft, include_unassigned=False) == []
    assert len(mutations.role_destination_options(draft)) == 1
    assert mutations.has_usable_draft(draft)


def test_unassigned_company_always_needs_attention(draft: ImportDraft) -> None:
    added = mutations.add_company(draft, "Unassigned")
    assert added.companies[-1].status == ItemStatus.NEEDS_ATTENTION

    renamed = mutations.update_company(draft, "company-0", "unassigned")
    assert renamed.companies[0].status == ItemStatus.NEEDS_ATTENTION

    restored = mutations.update_company(renamed, "company-0", "Acme Inc")
    assert restored.companies[0].status == ItemStatus.ACCEPTED


def test_delete_item_keeps_sibling_ids_and_order(draft: ImportDraft) -> None:
    grown = mutations.add_item(draft, ROLE, ItemType.HIGHLIGHT, "Ran weekly growth experiments")
    grown = mutations.add_item(grown, ROLE, ItemType.HIGHLIGHT, "Hired two analysts")
    first, middle, last = grown.companies[0].roles[0].highlights

    trimmed = mutations.delete_item(grown, ItemRef("company-0", "role-0", middle.id))

    assert trimmed.companies[0].roles[0].highlights == [first, last]
    assert len(grown.companies[0].roles[0].highlights) == 3


def test_moving_an_outcome_away_and_back_preserves_it(draft: ImportDraft) -> None:
    with_company = mutations.add_company(draft, "Globex Corp")
    globex = with_company.companies[1]
    elsewhere = RoleRef(globex.id, globex.roles[0].id)
    outcome = draft.companies[0].roles[0].outcomes[0]

    away = mutations.move_item(with_company, ItemRef("company-0", "role-0", outcome.id), elsewhere)
    assert away.companies[0].roles[0].outcomes == []
    back = mutations.move_item(away, ItemRef(globex.id, globex.roles[0].id, outcome.id), ROLE)

    returned = back.companies[0].roles[0].outcomes
    assert returned == [outcome]
    assert returned[0].metric == "40%"
    assert back.companies[1].roles[0].outcomes == []
