"""
Text extraction for course materials: PDF (PyPDF2 text layer), DOCX (python-docx), plain text (UTF-8).
Format is chosen from the declared MIME type, falling back to the file extension.
Output is normalized; empty output is a failure, never an empty success.
"""
import logging
import re
from pathlib import Path
from typing import NamedTuple

from app.errors import EmptyContentError, ExtractionError, UnsupportedFormatError

logger = logging.getLogger(__name__)

METHOD_PDF = "pdf"
METHOD_DOCX = "docx"
METHOD_PLAIN_TEXT = "plain-text"
# Backfilled rows whose original extraction method is unknown
METHOD_MIGRATION = "migration"
EXTRACTION_METHODS = (METHOD_PDF, METHOD_DOCX, METHOD_PLAIN_TEXT, METHOD_MIGRATION)

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

_METHOD_BY_MIME = {
    "application/pdf": METHOD_PDF,
    "text/plain": METHOD_PLAIN_TEXT,
    DOCX_MIME_TYPE: METHOD_DOCX,
}
_METHOD_BY_EXTENSION = {
    ".pdf": METHOD_PDF,
    ".txt": METHOD_PLAIN_TEXT,
    ".docx": METHOD_DOCX,
}

UNSUPPORTED_FORMAT_MESSAGE = "Unsupported file type. Only PDF, TXT, and DOCX files are supported."
EMPTY_CONTENT_MESSAGE = "No text content could be extracted from the file."

_WHITESPACE_RUN_RE = re.compile(r"\s+")


class ExtractionResult(NamedTuple):
    text: str
    method: str  # pdf | docx | plain-text


def normalize_text(text: str) -> str:
    """
    Collapse each whitespace run to one space; a run holding 3+ newlines becomes one paragraph break.
    Leading/trailing whitespace is trimmed.
    """
    if not text:
        return ""

    def _collapse(match: re.Match) -> str:
        return "\n\n" if match.group(0).count("\n") >= 3 else " "

    return _WHITESPACE_RUN_RE.sub(_collapse, text).strip()


def count_words(text: str) -> int:
    return len(text.split()) if text else 0


def detect_method(file_path: str | Path, mime_type: str | None) -> str | None:
    """Return extraction method for MIME type, else by extension; None when unsupported."""
    mime = (mime_type or "").split(";")[0].strip().lower()
    method = _METHOD_BY_MIME.get(mime)
    if method:
        return method
    return _METHOD_BY_EXTENSION.get(Path(file_path).suffix.lower())


def _extract_pdf(path: Path) -> str:
    from PyPDF2 import PdfReader

    try:
        reader = PdfReader(str(path))
        parts = []
        for page in reader.pages:
            text = page.extract_text()
            if text:
                parts.append(text)
    except Exception as e:
        raise ExtractionError(f"PDF parsing failed: {e}") from e
    return "\n\n".join(parts)


def _extract_docx(path: Path) -> str:
    import docx

    try:
        document = docx.Document(str(path))
    except Exception as e:
        raise ExtractionError(f"DOCX parsing failed: {e}") from e
    parts = [p.text for p in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            parts.extend(cell.text for cell in row.cells)
    return "\n\n".join(parts)


def _extract_plain_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise ExtractionError(f"TXT file reading failed: {e}") from e


_EXTRACTORS = {
    METHOD_PDF: _extract_pdf,
    METHOD_DOCX: _extract_docx,
    METHOD_PLAIN_TEXT: _extract_plain_text,
}


def extract_text(file_path: str | Path, mime_type: str | None = None) -> ExtractionResult:
    """
    Extract and normalize text from a local file.
    Raises UnsupportedFormatError before reading anything if neither MIME type nor extension is supported,
    ExtractionError when the parser fails, EmptyContentError when nothing but whitespace comes out.
    """
    path = Path(file_path)
    method = detect_method(path, mime_type)
    if method is None:
        raise UnsupportedFormatError(UNSUPPORTED_FORMAT_MESSAGE)
    if not path.exists():
        raise ExtractionError(f"File not found: {path.name}")
    raw = _EXTRACTORS[method](path)
    text = normalize_text(raw)
    if not text:
        raise EmptyContentError(EMPTY_CONTENT_MESSAGE)
    logger.debug("extract_text: %s via %s -> %s chars", path.name, method, len(text))
    return ExtractionResult(text=text, method=method)
