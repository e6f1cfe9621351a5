"""
FastAPI dependencies for the docflow backend.

Collaborators (analysis capability, artifact store, normalizer, renderer) are
created once per process and handed to routes through Depends(). Tests swap
them with app.dependency_overrides.
"""

from functools import lru_cache

from docflow.agents.document import GeminiDocumentAnalyzer
from docflow.config import settings
from docflow.services.artifacts import build_artifact_store
from docflow.services.dispatch import DocumentDispatcher
from docflow.services.invoice_normalizer import InvoiceNormalizer, NormalizerConfig
from docflow.services.rendering import PdfRenderer, ReportLabInvoiceRenderer


@lru_cache
def get_document_analyzer() -> GeminiDocumentAnalyzer:
    """Gemini-backed analysis capability (client created on first use)."""
    return GeminiDocumentAnalyzer(
        api_key=settings.GOOGLE_API_KEY,
        vision_model=settings.GEMINI_VISION_MODEL,
        text_model=settings.GEMINI_TEXT_MODEL,
    )


@lru_cache
def get_dispatcher() -> DocumentDispatcher:
    """Dispatcher wired with the configured analyzer and artifact store."""
    return DocumentDispatcher(
        analyzer=get_document_analyzer(),
        artifact_store=build_artifact_store(settings),
        max_upload_bytes=settings.MAX_UPLOAD_BYTES,
    )


@lru_cache
def get_invoice_normalizer() -> InvoiceNormalizer:
    """Normalizer with issuer defaults taken from settings."""
    return InvoiceNormalizer(NormalizerConfig.from_settings(settings))


@lru_cache
def get_pdf_renderer() -> PdfRenderer:
    return ReportLabInvoiceRenderer()
