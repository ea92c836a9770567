from jobfilter.core.vocabulary import (
    canonical_tool,
    detect_tools,
    extract_date_range,
    is_contact_line,
    is_quantified_outcome,
    match_header_pair,
    split_tag_list,
)


def test_date_range_extraction_normalizes_open_ended_ranges() -> None:
    date_range = extract_date_range("Growth Lead, Jan 2022 - Present")
    assert date_range is not None
    assert (date_range.start, date_range.end) == ("Jan 2022", "Present")

    open_ended = extract_date_range("2019 to current")
    assert open_ended is not None
    assert open_ended.end == "Present"


def test_header_pairs_split_role_and_company() -> None:
    at_pair = match_header_pair("Product Manager at Stripe")
    assert at_pair is not None
    assert (at_pair.role, at_pair.company) == ("Product Manager", "Stripe")

    piped = match_header_pair("Acme Inc | Senior Engineer")
    assert piped is not None
    assert (piped.role, piped.company) == ("Senior Engineer", "Acme Inc")

    assert match_header_pair("Austin, TX") is None


def test_contact_lines_do_not_swallow_date_lines() -> None:
    assert is_contact_line("jordan@example.com")
    assert is_contact_line("+1 512 555 0100")
    assert not is_contact_line("2019 - 2021")


def test_tool_detection_uses_aliases_and_word_boundaries() -> None:
    assert detect_tools("Built dashboards in Looker and postgres") == ["Looker", "PostgreSQL"]
    assert detect_tools("make sure the segment grows") == []
    assert canonical_tool("hubspot crm") == "HubSpot"


def test_tag_lists_and_outcomes() -> None:
    assert split_tag_list("Tools: Figma, Notion, Jira") == ["Figma", "Notion", "Jira"]
    assert split_tag_list("Owned the product roadmap") is None
    assert is_quantified_outcome("Reduced churn by 12%")
    assert not is_quantified_outcome("Managed a team of designers")
