"""
Tests for POST /generate-pdf.

- Orchestrator and legacy payloads render a real PDF
- Missing cliente / items -> 400 before the renderer runs
- Renderer failures -> 500
"""

import base64
import io
import re
from unittest.mock import AsyncMock, MagicMock

import pdfplumber
import pytest
from fastapi.testclient import TestClient

from docflow.dependencies import get_pdf_renderer
from docflow.main import app


@pytest.fixture
def client():
    """Create test client for FastAPI app."""
    return TestClient(app)


@pytest.fixture
def failing_renderer():
    renderer = MagicMock()
    renderer.render = AsyncMock(side_effect=RuntimeError("reportlab exploded"))
    app.dependency_overrides[get_pdf_renderer] = lambda: renderer

    yield renderer

    app.dependency_overrides.clear()


def _decoded_text(response) -> str:
    pdf_bytes = base64.b64decode(response.json()["pdfBase64"])
    assert pdf_bytes.startswith(b"%PDF-")
    with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
        return "\n".join(page.extract_text() or "" for page in pdf.pages)


class TestGeneratePdf:
    """Tests for POST /generate-pdf."""

    def test_orchestrator_payload(self, client):
        payload = {
            "Receiver": {"Name": "CLIENTE SA", "Rfc": "CSA010101AAA"},
            "Items": [
                {
                    "Quantity": 1,
                    "UnitPrice": 100,
                    "Subtotal": 100,
                    "Description": "Servicio",
                    "Taxes": [{"Name": "IVA", "Total": 16, "IsRetention": False}],
                }
            ],
        }

        response = client.post("/generate-pdf", json=payload)

        assert response.status_code == 200
        data = response.json()
        assert re.fullmatch(r"prefactura_\d+\.pdf", data["nombreArchivo"])
        text = _decoded_text(response)
        assert "CLIENTE SA" in text
        assert "Subtotal: $100.00" in text
        assert "IVA (16%): $16.00" in text
        assert "Total: $116.00" in text

    def test_legacy_payload_with_flat_vat(self, client):
        payload = {"cliente": "JUAN PEREZ", "items": [{"cantidad": 2, "precio_unitario": 50}]}

        response = client.post("/generate-pdf", json=payload)

        assert response.status_code == 200
        text = _decoded_text(response)
        assert "JUAN PEREZ" in text
        assert "PUBLICO EN GENERAL" not in text
        assert "Total: $116.00" in text

    def test_missing_receiver_and_items_returns_400(self, client, failing_renderer):
        response = client.post("/generate-pdf", json={"items": []})

        assert response.status_code == 400
        data = response.json()
        assert data["ok"] is False
        assert data["code"] == "validation_error"
        assert "cliente" in data["error"]
        failing_renderer.render.assert_not_called()

    def test_orchestrator_without_items_returns_400(self, client):
        response = client.post("/generate-pdf", json={"Receiver": {"Name": "X"}, "Items": []})

        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"

    def test_renderer_failure_returns_500(self, client, failing_renderer):
        response = client.post(
            "/generate-pdf",
            json={"cliente": "X", "items": [{"cantidad": 1, "precio_unitario": 10}]},
        )

        assert response.status_code == 500
        assert response.json() == {
            "ok": False,
            "error": "Error generando la prefactura",
            "code": "rendering_failure",
        }

    def test_non_object_body_returns_400(self, client, failing_renderer):
        response = client.post("/generate-pdf", json=[1, 2, 3])

        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"
        failing_renderer.render.assert_not_called()

    def test_amount_out_of_range_returns_400(self, client):
        response = client.post(
            "/generate-pdf",
            content=b'{"cliente": "X", "items": [{"cantidad": 1' + b"0" * 400 + b', "precio_unitario": 1}]}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"
