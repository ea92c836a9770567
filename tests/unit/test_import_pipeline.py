from jobfilter.core.import_pipeline import parse, parse_best
from jobfilter.core.selector import DEFAULT_STRATEGY_PRIORITY, SelectionConfig, is_low_quality, pick_best
from jobfilter.types import ExtractionDiagnostics, ItemStatus, ParseReasonCode, SegmentationMode

GROWTH_LEAD = """Acme Inc
Growth Lead, Jan 2022 - Present
- Grew signups 40% via lifecycle email
- Owned HubSpot instance
"""


def _resume_with_items(count: int) -> str:
    bullets = "\n".join(f"- Coordinated planning workstream number {index}" for index in range(count))
    return f"Acme Inc\nOperations Manager, 2018 - 2020\n{bullets}\n"


def test_default_mode_maps_company_role_and_typed_items() -> None:
    result = parse(GROWTH_LEAD, mode=SegmentationMode.DEFAULT)
    draft = result.draft

    assert [company.name for company in draft.companies] == ["Acme Inc"]
    company = draft.companies[0]
    assert company.status == ItemStatus.ACCEPTED

    role = company.roles[0]
    assert role.title == "Growth Lead"
    assert (role.start_date, role.end_date) == ("Jan 2022", "Present")
    assert role.status == ItemStatus.ACCEPTED

    assert [item.text for item in role.outcomes] == ["Grew signups 40% via lifecycle email"]
    assert role.outcomes[0].metric == "40%"
    assert role.outcomes[0].status == ItemStatus.ACCEPTED
    assert [item.text for item in role.highlights] == ["Owned HubSpot instance"]
    assert [item.text for item in role.tools] == ["HubSpot"]
    assert all(0 <= item.confidence <= 1 for item in role.items())
    assert role.outcomes[0].source_refs == [2]

    assert result.diagnostics.mode == SegmentationMode.DEFAULT
    assert result.diagnostics.candidates == []
    assert result.diagnostics.reason_codes == []


def test_bullets_mode_without_glyphs_routes_to_unassigned() -> None:
    result = parse("Acme Inc\nGrowth Lead, 2020 - 2022\nOwned roadmap", mode=SegmentationMode.BULLETS)

    assert [company.name for company in result.draft.companies] == ["Unassigned"]
    sentinel = result.draft.companies[0]
    assert sentinel.status == ItemStatus.NEEDS_ATTENTION
    assert result.draft.item_count == 0
    assert ParseReasonCode.BULLET_DETECT_FAIL in result.diagnostics.reason_codes
    assert result.diagnostics.low_quality


def test_empty_text_yields_empty_draft_and_text_empty_code() -> None:
    result = parse_best("  \n \n")
    assert result.draft.companies == []
    assert result.diagnostics.reason_codes == [ParseReasonCode.TEXT_EMPTY]
    assert result.diagnostics.low_quality


def test_parse_best_scores_every_strategy_and_prefers_default_on_ties(sample_resume: str) -> None:
    result = parse_best(sample_resume)
    diagnostics = result.diagnostics

    assert [candidate.mode for candidate in diagnostics.candidates] == list(DEFAULT_STRATEGY_PRIORITY)
    assert diagnostics.mode == SegmentationMode.DEFAULT
    assert diagnostics.score == max(candidate.score for candidate in diagnostics.candidates)
    assert [company.name for company in result.draft.companies] == ["Acme Inc", "Globex Corp"]
    assert [role.title for role in result.draft.roles()] == ["Growth Lead", "Marketing Manager"]
    assert result.draft.roles()[1].outcomes[0].metric == "5,000 users"
    assert diagnostics.preview_lines[0].line == 1
    assert diagnostics.preview_lines[0].text == "Jordan Rivera"


def test_low_quality_boundary_is_twenty_structured_items() -> None:
    below = parse(_resume_with_items(19), mode=SegmentationMode.DEFAULT)
    at_floor = parse(_resume_with_items(20), mode=SegmentationMode.DEFAULT)

    assert below.draft.structured_item_count == 19
    assert below.diagnostics.low_quality
    assert at_floor.draft.structured_item_count == 20
    assert not at_floor.diagnostics.low_quality


def test_collapse_codes_force_low_quality_regardless_of_volume() -> None:
    config = SelectionConfig()
    assert is_low_quality(25, [ParseReasonCode.LAYOUT_COLLAPSE], config)
    assert not is_low_quality(25, [ParseReasonCode.BULLET_DETECT_FAIL], config)


def test_ties_break_by_strategy_priority() -> None:
    scores = {
        SegmentationMode.NEWLINES: 5.0,
        SegmentationMode.HEADINGS: 5.0,
        SegmentationMode.BULLETS: 3.0,
    }
    assert pick_best(scores, SelectionConfig()) == SegmentationMode.HEADINGS

    newlines_first = SelectionConfig(
        strategy_priority=(
            SegmentationMode.NEWLINES,
            SegmentationMode.DEFAULT,
            SegmentationMode.HEADINGS,
            SegmentationMode.BULLETS,
        )
    )
    assert pick_best(scores, newlines_first) == SegmentationMode.NEWLINES


def test_dated_outcome_line_is_not_promoted_to_a_role() -> None:
    text = (
        "Acme Inc\nGrowth Lead, Jan 2022 - Present\n"
        "Grew revenue 40% from 2019 to 2021\n- Owned HubSpot instance\n"
    )
    result = parse(text, mode=SegmentationMode.DEFAULT)

    assert [role.title for role in result.draft.roles()] == ["Growth Lead"]
    role = result.draft.roles()[0]
    assert [item.text for item in role.outcomes] == ["Grew revenue 40% from 2019 to 2021"]
    assert role.outcomes[0].metric == "40%"
    assert [item.text for item in role.highlights] == ["Owned HubSpot instance"]


def test_single_collapsed_page_reports_layout_collapse() -> None:
    text = "Acme Inc Growth Lead Jan 2022 Present " + " ".join(
        f"Owned campaign {index} across paid and lifecycle channels" for index in range(12)
    )
    extraction = ExtractionDiagnostics(page_count=1, extracted_chars=len(text), detected_lines_count=1)

    result = parse(text, mode=SegmentationMode.DEFAULT, extraction=extraction)

    assert ParseReasonCode.LAYOUT_COLLAPSE in result.diagnostics.reason_codes
    assert result.diagnostics.low_quality


def test_number_and_page_marker_bullets_are_filtered_out() -> None:
    result = parse("Acme Inc\nGrowth Lead, 2020 - 2022\n- 12\n- Page 2 of 3\n", mode=SegmentationMode.DEFAULT)

    assert result.draft.item_count == 0
    assert ParseReasonCode.FILTERED_ALL in result.diagnostics.reason_codes
