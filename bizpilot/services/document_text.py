"""
Document text extraction for uploads.

PDF pages are read with PyMuPDF, DOCX paragraphs and tables with python-docx. The
extracted text is trimmed and capped before it reaches the conversation.
"""

from io import BytesIO
from zipfile import BadZipFile
import logging

from bizpilot.errors import InputValidationError

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
MAX_EXTRACTED_CHARS = 15000

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _extract_pdf(file_bytes: bytes) -> str:
    import fitz

    try:
        with fitz.open(stream=file_bytes, filetype="pdf") as doc:
            return "\n".join(page.get_text() for page in doc)
    except (RuntimeError, ValueError) as e:
        raise InputValidationError(f"Failed to parse PDF: {e}") from e


def _extract_docx(file_bytes: bytes) -> str:
    from docx import Document
    from docx.opc.exceptions import PackageNotFoundError

    try:
        doc = Document(BytesIO(file_bytes))
    except (PackageNotFoundError, BadZipFile, ValueError, KeyError) as e:
        raise InputValidationError(f"Failed to parse DOCX: {e}") from e
    parts = [para.text for para in doc.paragraphs]

    # Tables follow the body text, one " | "-joined line per row
    for table in doc.tables:
        rows = [" | ".join(cell.text.strip() for cell in row.cells) for row in table.rows]
        table_text = "\n".join(rows)
        if table_text.strip():
            parts.append(table_text)
    return "\n".join(parts)


def extract_text(file_bytes: bytes, filename: str, mime_type: str = "") -> str:
    """
    Extract plain text from an uploaded PDF or DOCX.

    Raises:
        InputValidationError: file too large, unsupported type, or unparseable
    """
    if len(file_bytes) > MAX_UPLOAD_BYTES:
        raise InputValidationError("File too large (max 10 MB)")

    name = (filename or "").lower()
    if name.endswith(".pdf") or mime_type == PDF_MIME:
        text = _extract_pdf(file_bytes)
    elif name.endswith(".docx") or mime_type == DOCX_MIME:
        text = _extract_docx(file_bytes)
    else:
        raise InputValidationError("Unsupported file type. Use PDF or DOCX.")

    text = text.strip()[:MAX_EXTRACTED_CHARS]
    logger.info(f"Extracted {len(text)} chars from {filename}")
    return text
