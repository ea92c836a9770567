from jobfilter.core.text_lines import non_blank, normalize_import_text, to_source_lines
from jobfilter.types import SourceLine


def test_source_lines_keep_original_positions_and_blank_lines() -> None:
    lines = to_source_lines("  Acme   Inc \r\n\r\n- Owned   roadmap")
    assert lines == [
        SourceLine(index=0, text="Acme Inc"),
        SourceLine(index=1, text=""),
        SourceLine(index=2, text="- Owned roadmap"),
    ]
    assert [line.index for line in non_blank(lines)] == [0, 2]


def test_whitespace_only_text_has_no_lines() -> None:
    assert to_source_lines(" \n\t\n ") == []
    assert normalize_import_text("\u0000 Acme\r\n") == "Acme"
