"""
Service layer for the docflow backend.

Contains the document pipeline and invoice logic that routes call:
- codec / sniffer / classifier: decode uploads and decide their real type
- dispatch: route a classified upload to the PDF-text or image-vision branch
- artifacts: temporary per-request copies of decoded uploads
- invoice_normalizer / totals: canonical invoice model and its totals
- rendering: prefactura PDF generation

Services act as the glue between routes (HTTP layer) and agents.
"""

from .artifacts import (
    LocalArtifactStore,
    SupabaseArtifactStore,
    TemporaryArtifact,
    build_artifact_store,
    temporary_artifact,
)
from .classifier import ClassifiedDocument, Resolution, classify, resolve
from .codec import decode, encode, extract_envelope_mime, to_data_url
from .dispatch import DocumentDispatcher, RawUpload
from .invoice_normalizer import InvoiceNormalizer, NormalizerConfig, detect_schema
from .pdf_text import extract_text_from_pdf
from .rendering import ReportLabInvoiceRenderer, invoice_filename, render_to_base64
from .sniffer import sniff
from .totals import compute_totals

__all__ = [
    "decode",
    "encode",
    "extract_envelope_mime",
    "to_data_url",
    "sniff",
    "resolve",
    "classify",
    "Resolution",
    "ClassifiedDocument",
    "DocumentDispatcher",
    "RawUpload",
    "LocalArtifactStore",
    "SupabaseArtifactStore",
    "TemporaryArtifact",
    "build_artifact_store",
    "temporary_artifact",
    "extract_text_from_pdf",
    "InvoiceNormalizer",
    "NormalizerConfig",
    "detect_schema",
    "compute_totals",
    "ReportLabInvoiceRenderer",
    "invoice_filename",
    "render_to_base64",
]
