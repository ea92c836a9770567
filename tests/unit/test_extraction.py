import io

import docx
import pytest
from pypdf import PdfWriter

from jobfilter.core.extraction import (
    ExtractionError,
    ImportFileKind,
    detect_file_kind,
    extract_text,
    source_for_upload,
)


def test_plain_text_upload(sample_resume: str) -> None:
    extracted = extract_text("resume.txt", sample_resume.encode("utf-8"))
    assert extracted.text == sample_resume
    assert extracted.diagnostics.extracted_chars == len(sample_resume)
    assert extracted.diagnostics.page_count is None


def test_non_utf8_text_falls_back_to_detected_encoding() -> None:
    data = "Résumé: Jordan Rivera, Marketing Manager at Café Acme in Montréal".encode("latin-1")
    extracted = extract_text("resume.txt", data)
    assert "Manager" in extracted.text


def test_docx_upload_reads_paragraphs() -> None:
    document = docx.Document()
    document.add_paragraph("Acme Inc")
    document.add_paragraph("Growth Lead, Jan 2022 - Present")
    buffer = io.BytesIO()
    document.save(buffer)

    extracted = extract_text("resume.docx", buffer.getvalue())

    assert "Growth Lead, Jan 2022 - Present" in extracted.text.splitlines()


@pytest.mark.parametrize(
    ("name", "data", "message"),
    [
        ("resume.rtf", b"{\\rtf1}", "Unsupported file type"),
        ("resume.txt", b"", "empty"),
        ("resume.docx", b"not a zip archive", "could not be read"),
        ("resume.pdf", b"not a pdf document", "could not be read"),
    ],
)
def test_rejected_uploads(name: str, data: bytes, message: str) -> None:
    with pytest.raises(ExtractionError, match=message):
        extract_text(name, data)


def test_size_limit() -> None:
    with pytest.raises(ExtractionError, match="too large"):
        extract_text("resume.txt", b"x" * 2048, max_bytes=1024)


def test_kind_detection_falls_back_to_content_type() -> None:
    assert detect_file_kind("Resume.PDF") == ImportFileKind.PDF
    assert detect_file_kind("upload", "application/pdf; charset=binary") == ImportFileKind.PDF
    assert detect_file_kind("upload") is None
    source = source_for_upload("upload", b"abc")
    assert (source.kind, source.file_size) == ("unknown", 3)


def test_pdf_upload_reports_page_count() -> None:
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)

    extracted = extract_text("resume.pdf", buffer.getvalue())

    assert extracted.diagnostics.page_count == 2
    assert extracted.text.strip() == ""
