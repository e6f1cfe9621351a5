"""
Text extraction for uploaded PDFs.

Only the embedded text layer is read. Scanned PDFs without a text layer
yield an empty string; there is no OCR fallback.
"""

import io
import logging

import pdfplumber

logger = logging.getLogger(__name__)


def extract_text_from_pdf(pdf_bytes: bytes) -> str:
    """
    Extract all text content from an in-memory PDF.

    Args:
        pdf_bytes: Raw PDF bytes

    Returns:
        Concatenated text from all pages, or "" if the PDF has no text layer
        or cannot be parsed.
    """
    text_parts = []

    try:
        with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
            for page in pdf.pages:
                page_text = page.extract_text()
                if page_text:
                    text_parts.append(page_text)
    except Exception as e:
        logger.error(f"Error extracting text from PDF ({len(pdf_bytes)} bytes): {e}")
        return ""

    return "\n".join(text_parts).strip()
