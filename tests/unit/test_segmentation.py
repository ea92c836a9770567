from jobfilter.core.segmentation import LineTag, segment
from jobfilter.core.text_lines import to_source_lines
from jobfilter.types import SegmentationMode


def _tags(text: str, mode: SegmentationMode) -> list[LineTag]:
    return [line.tag for line in segment(to_source_lines(text), mode).lines]


def test_default_mode_tags_headers_and_bullets() -> None:
    text = "Acme Inc\nGrowth Lead, Jan 2022 - Present\n- Grew signups 40% via lifecycle email\n- Owned HubSpot instance"
    assert _tags(text, SegmentationMode.DEFAULT) == [LineTag.HEADER, LineTag.HEADER, LineTag.ITEM, LineTag.ITEM]


def test_default_mode_merges_wrapped_bullets() -> None:
    result = segment(to_source_lines("- Led migration of billing\nplatform to Stripe"), SegmentationMode.DEFAULT)
    assert len(result.lines) == 1
    assert result.lines[0].text == "Led migration of billing platform to Stripe"
    assert result.lines[0].refs == [0, 1]


def test_glyph_only_lines_join_the_following_line() -> None:
    result = segment(to_source_lines("•\nShipped onboarding revamp"), SegmentationMode.DEFAULT)
    assert len(result.lines) == 1
    assert result.lines[0].glyph
    assert result.lines[0].refs == [0, 1]
    assert result.bullet_candidates_count == 1


def test_bullets_mode_without_glyphs_skips_everything() -> None:
    text = "Acme Inc\nGrowth Lead, 2020 - 2022\nOwned roadmap"
    assert _tags(text, SegmentationMode.BULLETS) == [LineTag.SKIP, LineTag.SKIP, LineTag.SKIP]


def test_newlines_mode_splits_inline_glyphs() -> None:
    result = segment(to_source_lines("Cut CAC 20% • Hired 4 engineers"), SegmentationMode.NEWLINES)
    assert [line.text for line in result.lines] == ["Cut CAC 20%", "Hired 4 engineers"]
    assert [line.tag for line in result.lines] == [LineTag.ITEM, LineTag.ITEM]
    assert result.lines[1].glyph


def test_headings_mode_splits_inline_section_headers() -> None:
    result = segment(to_source_lines("Jane Doe EXPERIENCE Acme Inc"), SegmentationMode.HEADINGS)
    assert [line.text for line in result.lines] == ["Jane Doe", "EXPERIENCE", "Acme Inc"]
    assert [line.tag for line in result.lines] == [LineTag.SKIP, LineTag.SECTION, LineTag.ITEM]


def test_non_experience_sections_are_skipped_without_dropping_earlier_content() -> None:
    text = "Acme Inc\nGrowth Lead, 2020 - 2022\nEDUCATION\nState University"
    assert _tags(text, SegmentationMode.DEFAULT) == [
        LineTag.HEADER,
        LineTag.HEADER,
        LineTag.SECTION,
        LineTag.SKIP,
    ]


def test_dated_accomplishments_stay_items_in_header_modes() -> None:
    text = (
        "Acme Inc\nGrowth Lead, Jan 2022 - Present\n"
        "Grew revenue 40% from 2019 to 2021\n- Owned HubSpot instance"
    )
    expected = [LineTag.HEADER, LineTag.HEADER, LineTag.ITEM, LineTag.ITEM]
    assert _tags(text, SegmentationMode.DEFAULT) == expected
    assert _tags(text, SegmentationMode.HEADINGS) == expected
