"""Text extraction for uploaded note files (PDF via PyMuPDF, plain text)."""

import logging
import re

import pymupdf  # PyMuPDF

from app.errors import ClientInputError

logger = logging.getLogger(__name__)

# Control characters that Postgres TEXT/VARCHAR cannot store (NUL, etc.)
_ILLEGAL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")

UNSUPPORTED_TYPE = "Unsupported file type. Please upload a PDF or TXT file."


class DocumentParser:
    """Turns uploaded bytes into note text."""

    @staticmethod
    def extract_pdf_text(pdf_bytes: bytes) -> str:
        """Join the text of every page with a blank line."""
        try:
            doc = pymupdf.open(stream=pdf_bytes, filetype="pdf")
        except Exception as e:
            raise ClientInputError("The uploaded file is not a valid PDF.") from e
        try:
            return "\n\n".join(page.get_text() for page in doc)
        finally:
            doc.close()

    @staticmethod
    def is_pdf(filename: str, content_type: str | None) -> bool:
        return content_type == "application/pdf" or filename.lower().endswith(".pdf")

    @staticmethod
    def is_text(filename: str, content_type: str | None) -> bool:
        return content_type == "text/plain" or filename.lower().endswith(".txt")

    def extract_text(self, data: bytes, filename: str, content_type: str | None) -> str:
        """
        Extract text from an uploaded file.

        Raises:
            ClientInputError: unsupported type or unreadable PDF.
        """
        if self.is_pdf(filename, content_type):
            text = self.extract_pdf_text(data)
        elif self.is_text(filename, content_type):
            text = data.decode("utf-8", errors="replace")
        else:
            raise ClientInputError(UNSUPPORTED_TYPE)

        text = _ILLEGAL_CHARS.sub("", text)
        logger.info("Extracted %d chars from %s", len(text), filename)
        return text


# Singleton instance
document_parser = DocumentParser()
