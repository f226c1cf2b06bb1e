"""Tests for upload text extraction."""

import io

import fitz
import pytest
from docx import Document

from bizpilot.errors import InputValidationError
from bizpilot.services.document_text import MAX_EXTRACTED_CHARS, MAX_UPLOAD_BYTES, extract_text


def make_pdf(*pages) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def make_docx(*paragraphs) -> bytes:
    document = Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def test_pdf_pages_joined():
    text = extract_text(make_pdf("Quarterly revenue", "Hiring plan"), "report.pdf")
    assert "Quarterly revenue" in text
    assert "Hiring plan" in text
    assert text.index("Quarterly revenue") < text.index("Hiring plan")


def test_pdf_detected_by_mime_type():
    text = extract_text(make_pdf("Budget"), "upload", "application/pdf")
    assert "Budget" in text


def test_docx_paragraphs_joined():
    assert extract_text(make_docx("First point", "Second point"), "Notes.DOCX") == "First point\nSecond point"


def test_docx_table_rows_included():
    document = Document()
    document.add_paragraph("Quarterly report")
    table = document.add_table(rows=2, cols=2)
    for row_index, values in enumerate([("Metric", "Value"), ("Revenue", "42000")]):
        for col_index, value in enumerate(values):
            table.cell(row_index, col_index).text = value
    buffer = io.BytesIO()
    document.save(buffer)

    text = extract_text(buffer.getvalue(), "report.docx")
    assert text == "Quarterly report\nMetric | Value\nRevenue | 42000"


def test_text_capped():
    text = extract_text(make_docx("a" * (MAX_EXTRACTED_CHARS + 500)), "long.docx")
    assert len(text) == MAX_EXTRACTED_CHARS


def test_unsupported_type():
    with pytest.raises(InputValidationError, match="Unsupported file type"):
        extract_text(b"hello", "notes.txt", "text/plain")


def test_too_large():
    with pytest.raises(InputValidationError, match="too large"):
        extract_text(b"0" * (MAX_UPLOAD_BYTES + 1), "big.pdf")


def test_corrupt_docx():
    with pytest.raises(InputValidationError, match="Failed to parse DOCX"):
        extract_text(b"not a zip archive", "broken.docx")
