"""
Pytest configuration for docflow backend tests.

Sets up test environment and global fixtures.
"""
import io
import os

import pytest
from PIL import Image

# Disable config validation during tests
# This allows tests to run without requiring real environment variables
os.environ["VALIDATE_CONFIG"] = "false"

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("GOOGLE_API_KEY", "test-google-api-key")
# Route tests inject their own artifact store; nothing is written to the CWD
os.environ.setdefault("SAVE_UPLOADS", "false")
os.environ.setdefault("ARTIFACT_BACKEND", "local")


def _image_bytes(fmt: str, mode: str = "RGB", size=(32, 32)) -> bytes:
    img = Image.new(mode, size, color="red" if mode == "RGB" else 128)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    """A small valid PNG image."""
    return _image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    """A small valid JPEG image."""
    return _image_bytes("JPEG")


@pytest.fixture
def bmp_bytes() -> bytes:
    """A valid BMP image (readable by Pillow, not accepted by the model)."""
    return _image_bytes("BMP")


@pytest.fixture
def text_pdf_bytes() -> bytes:
    """A one-page PDF with a real text layer."""
    from reportlab.pdfgen import canvas

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer)
    pdf.drawString(72, 720, "Recibo de honorarios 123")
    pdf.drawString(72, 700, "Total: $1,160.00")
    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


@pytest.fixture
def blank_pdf_bytes() -> bytes:
    """A valid PDF whose only page has no text (like a scan without OCR)."""
    from reportlab.pdfgen import canvas

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer)
    pdf.rect(72, 72, 200, 200)
    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
