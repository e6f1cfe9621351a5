"""
Tests for the document analysis endpoints.

- POST /process-file: PDF and image branches, unsupported types, decode errors
- POST /process-image and /process-image/nota: structured image readings

The dispatcher is real; only the analysis capability is mocked.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from docflow.dependencies import get_dispatcher
from docflow.main import app
from docflow.services.artifacts import LocalArtifactStore
from docflow.services.codec import encode, to_data_url
from docflow.services.dispatch import DocumentDispatcher


@pytest.fixture
def analyzer():
    mock = MagicMock()
    mock.analyze_image = AsyncMock(
        return_value={"ok": True, "structured": None, "summary": "Nota de venta", "mime": "image/png"}
    )
    mock.analyze_pdf_text = AsyncMock(
        return_value={"ok": True, "structured": None, "summary": "Recibo de honorarios"}
    )
    return mock


@pytest.fixture
def uploads_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def client(analyzer, uploads_dir):
    """Test client with a dispatcher wired to the mocked analyzer."""
    dispatcher = DocumentDispatcher(
        analyzer=analyzer,
        artifact_store=LocalArtifactStore(uploads_dir),
        max_upload_bytes=5 * 1024 * 1024,
    )
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    yield TestClient(app)

    app.dependency_overrides.clear()


def _no_artifacts_left(uploads_dir) -> bool:
    return not uploads_dir.exists() or not any(uploads_dir.iterdir())


class TestProcessFile:
    """Tests for POST /process-file."""

    def test_image_happy_path(self, client, analyzer, uploads_dir, png_bytes):
        response = client.post(
            "/process-file",
            json={"base64": to_data_url(png_bytes, "image/png"), "filename": "nota.png"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["kind"] == "image"
        assert data["summary"] == "Nota de venta"
        assert "structuredJSON" not in data
        assert "error" not in data
        assert data["details"] == {"mime": "image/png", "size_bytes": len(png_bytes), "filename": "nota.png"}
        assert _no_artifacts_left(uploads_dir)

    def test_pdf_happy_path(self, client, analyzer, text_pdf_bytes):
        response = client.post(
            "/process-file",
            json={"base64": encode(text_pdf_bytes), "mimeType": "application/pdf"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["kind"] == "pdf"
        assert data["summary"] == "Recibo de honorarios"
        assert data["details"]["filename"].startswith("archivo_")
        analyzer.analyze_image.assert_not_called()

    def test_structured_result_uses_camel_case_key(self, client, analyzer, png_bytes):
        analyzer.analyze_image.return_value = {
            "ok": True, "structured": {"total": 116.0}, "summary": None, "mime": "image/png"
        }

        response = client.post("/process-file", json={"base64": encode(png_bytes)})

        data = response.json()
        assert data["structuredJSON"] == {"total": 116.0}
        assert "summary" not in data

    def test_scanned_pdf_returns_ok_false_with_200(self, client, analyzer, blank_pdf_bytes):
        response = client.post("/process-file", json={"base64": encode(blank_pdf_bytes)})

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is False
        assert data["code"] == "pdf_without_text"
        assert "OCR" in data["error"]
        analyzer.analyze_pdf_text.assert_not_called()

    def test_unsupported_type_returns_ok_false_with_200(self, client, uploads_dir):
        response = client.post(
            "/process-file",
            json={"base64": encode(b"PK\x03\x04 this is a zip archive"), "filename": "docs.zip"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is False
        assert data["code"] == "unsupported_type"
        assert data["error"] == "Tipo de archivo no soportado: application/zip"
        assert _no_artifacts_left(uploads_dir)

    def test_invalid_base64_returns_400(self, client, analyzer):
        response = client.post("/process-file", json={"base64": "not-base64-!!!"})

        assert response.status_code == 400
        assert response.json() == {
            "ok": False,
            "error": "El contenido no es base64 válido.",
            "code": "decode_error",
        }
        analyzer.analyze_image.assert_not_called()

    def test_missing_base64_returns_400(self, client):
        response = client.post("/process-file", json={"filename": "x.png"})

        assert response.status_code == 400
        assert response.json()["error"] == "Se requiere 'base64' en el body."

    def test_non_string_base64_returns_400(self, client):
        response = client.post("/process-file", json={"base64": 123})

        assert response.status_code == 400
        assert response.json()["code"] == "decode_error"

    def test_oversized_upload_returns_400(self, analyzer, png_bytes):
        dispatcher = DocumentDispatcher(analyzer=analyzer, max_upload_bytes=16)
        app.dependency_overrides[get_dispatcher] = lambda: dispatcher
        try:
            response = TestClient(app).post("/process-file", json={"base64": encode(png_bytes)})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 400
        assert response.json()["code"] == "upload_too_large"

    def test_capability_rejection_returns_400(self, client, analyzer, png_bytes):
        analyzer.analyze_image.return_value = {"ok": False, "error": "Imagen ilegible"}

        response = client.post("/process-file", json={"base64": encode(png_bytes)})

        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Imagen ilegible", "code": "analysis_rejected"}

    def test_capability_failure_returns_500(self, client, analyzer, uploads_dir, png_bytes):
        analyzer.analyze_image.side_effect = TimeoutError("Gemini timeout")

        response = client.post("/process-file", json={"base64": encode(png_bytes)})

        assert response.status_code == 500
        assert response.json() == {"ok": False, "error": "Gemini timeout", "code": "analysis_failure"}
        assert _no_artifacts_left(uploads_dir)

    def test_non_json_body_returns_422(self, client):
        response = client.post(
            "/process-file", content=b"not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 422
        assert response.json()["ok"] is False


class TestProcessImage:
    """Tests for POST /process-image and /process-image/nota."""

    def test_medical_profile(self, client, analyzer, jpeg_bytes):
        analyzer.analyze_image.return_value = {
            "ok": True, "structured": {"tipo_documento": "receta"}, "summary": None, "mime": "image/jpeg"
        }

        response = client.post(
            "/process-image",
            json={"base64": encode(jpeg_bytes), "filename": "receta.jpg"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "ok": True,
            "structuredJSON": {"tipo_documento": "receta"},
            "file": "receta.jpg",
        }
        assert analyzer.analyze_image.await_args.args[2] == "medical"

    def test_nota_profile(self, client, analyzer, png_bytes):
        analyzer.analyze_image.return_value = {
            "ok": True, "structured": {"total": 58.0}, "summary": None, "mime": "image/png"
        }

        response = client.post("/process-image/nota", json={"base64": encode(png_bytes)})

        data = response.json()
        assert data["structuredJSON"] == {"total": 58.0}
        assert data["file"].startswith("imagen_")
        assert analyzer.analyze_image.await_args.args[2] == "nota"

    def test_pdf_bytes_are_sent_as_image(self, client, analyzer, text_pdf_bytes):
        client.post("/process-image", json={"base64": encode(text_pdf_bytes)})

        analyzer.analyze_image.assert_awaited_once()
        analyzer.analyze_pdf_text.assert_not_called()

    def test_invalid_base64_returns_400(self, client):
        response = client.post("/process-image", json={"base64": "%%%"})

        assert response.status_code == 400
        assert response.json()["code"] == "decode_error"
