"""Tests for upload text extraction."""

import pymupdf
import pytest

from app.errors import ClientInputError
from app.services.document_parser import UNSUPPORTED_TYPE, document_parser


def _pdf_bytes(text: str) -> bytes:
    doc = pymupdf.open()
    page = doc.new_page()
    page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def test_text_file_is_decoded_and_cleaned():
    text = document_parser.extract_text(b"Cells\x00 divide.\n", "bio.txt", None)
    assert text == "Cells divide.\n"


def test_pdf_text_is_extracted():
    text = document_parser.extract_text(_pdf_bytes("Mitosis has four phases."), "bio.pdf", "application/pdf")
    assert "Mitosis has four phases." in text


def test_invalid_pdf_is_client_error():
    with pytest.raises(ClientInputError):
        document_parser.extract_text(b"not a pdf", "broken.pdf", "application/pdf")


def test_unsupported_type():
    with pytest.raises(ClientInputError, match="Unsupported file type"):
        document_parser.extract_text(b"\x89PNG", "diagram.png", "image/png")
    assert UNSUPPORTED_TYPE.startswith("Unsupported")
