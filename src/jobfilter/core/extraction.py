"""Upload validation and text extraction for resume files (pdf, docx, txt)."""

from __future__ import annotations

import io
import logging
import zipfile
from enum import StrEnum
from pathlib import Path

import chardet

from jobfilter.core.diagnostics import summarize_text
from jobfilter.core.text_lines import to_source_lines
from jobfilter.types import ExtractedText, ImportSource

logger = logging.getLogger(__name__)

MAX_IMPORT_FILE_SIZE_BYTES = 5 * 1024 * 1024
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class ImportFileKind(StrEnum):
    PDF = "pdf"
    DOCX = "docx"
    TXT = "txt"


_KIND_BY_EXTENSION = {
    ".pdf": ImportFileKind.PDF,
    ".docx": ImportFileKind.DOCX,
    ".txt": ImportFileKind.TXT,
}
_KIND_BY_MIME = {
    "application/pdf": ImportFileKind.PDF,
    DOCX_MIME: ImportFileKind.DOCX,
    "text/plain": ImportFileKind.TXT,
}


class ExtractionError(ValueError):
    """The uploaded file could not be turned into text."""


def detect_file_kind(file_name: str, content_type: str | None = None) -> ImportFileKind | None:
    kind = _KIND_BY_EXTENSION.get(Path(file_name).suffix.lower())
    if kind is not None:
        return kind
    if content_type:
        return _KIND_BY_MIME.get(content_type.split(";")[0].strip().lower())
    return None


def validate_import_file(
    file_name: str,
    data: bytes,
    content_type: str | None = None,
    max_bytes: int = MAX_IMPORT_FILE_SIZE_BYTES,
) -> ImportFileKind:
    kind = detect_file_kind(file_name, content_type)
    if kind is None:
        raise ExtractionError("Unsupported file type. Upload a PDF, DOCX, or TXT resume.")
    if not data:
        raise ExtractionError("The selected file is empty.")
    if len(data) > max_bytes:
        limit_mb = max_bytes / (1024 * 1024)
        raise ExtractionError(f"File is too large. Maximum size is {limit_mb:g} MB.")
    return kind


def _decode_text(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        detected = chardet.detect(data)
        encoding = detected["encoding"] or "utf-8"
        logger.debug("Falling back to %s for text upload", encoding)
        return data.decode(encoding, errors="ignore")


def _extract_pdf(data: bytes) -> tuple[str, int]:
    from pypdf import PdfReader
    from pypdf.errors import PdfReadError

    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PdfReadError, ValueError, KeyError) as exc:
        raise ExtractionError("This PDF could not be read.") from exc
    return "\n".join(pages), len(pages)


def _extract_docx(data: bytes) -> str:
    from docx import Document
    from docx.opc.exceptions import PackageNotFoundError

    try:
        document = Document(io.BytesIO(data))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as exc:
        raise ExtractionError("This DOCX file could not be read.") from exc

    lines = [paragraph.text for paragraph in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            lines.extend(cell.text for cell in row.cells)
    return "\n".join(lines)


def extract_text(
    file_name: str,
    data: bytes,
    content_type: str | None = None,
    max_bytes: int = MAX_IMPORT_FILE_SIZE_BYTES,
) -> ExtractedText:
    kind = validate_import_file(file_name, data, content_type, max_bytes)
    page_count: int | None = None
    if kind == ImportFileKind.PDF:
        text, page_count = _extract_pdf(data)
    elif kind == ImportFileKind.DOCX:
        text = _extract_docx(data)
    else:
        text = _decode_text(data)

    diagnostics = summarize_text(text, to_source_lines(text), page_count=page_count)
    logger.info(
        "Extracted %s chars from %s (%s, pages=%s)",
        diagnostics.extracted_chars,
        file_name,
        kind,
        page_count,
    )
    return ExtractedText(text=text, diagnostics=diagnostics)


def source_for_upload(file_name: str, data: bytes, content_type: str | None = None) -> ImportSource:
    kind = detect_file_kind(file_name, content_type)
    return ImportSource(
        kind=kind.value if kind is not None else "unknown",
        file_name=file_name,
        file_size=len(data),
    )
