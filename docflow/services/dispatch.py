"""
Dispatch router for uploaded documents.

One call to DocumentDispatcher.handle() walks a single upload through:

    RECEIVED -> DECODED -> CLASSIFIED -> PDF_BRANCH | IMAGE_BRANCH | REJECTED -> RESPONDED

The decoded bytes are kept as a temporary artifact while the request runs and
released on every exit path, including exceptions.

Outcome mapping:
- bad base64 / oversized upload      -> DecodeError (400)
- unsupported type                   -> ok=False, HTTP 200
- PDF without a text layer           -> ok=False, HTTP 200
- capability says input is unusable  -> AnalysisCapabilityError (400)
- capability fault                   -> AnalysisCapabilityFailure (500)
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from docflow.agents.document.types import AnalysisCapability, AnalysisProfile, AnalysisResult
from docflow.errors import (
    AnalysisCapabilityError,
    AnalysisCapabilityFailure,
    ClassificationUnsupported,
    DecodeError,
    DocflowError,
)
from docflow.schemas.documents import DocumentAnalysisResponse, DocumentDetails
from docflow.services.artifacts import ArtifactStore, artifact_name, temporary_artifact
from docflow.services.classifier import (
    ClassifiedDocument,
    classify,
    filename_extension,
    resolve,
)
from docflow.services.codec import decode, extract_envelope_mime
from docflow.services.pdf_text import extract_text_from_pdf
from docflow.services.sniffer import sniff

logger = logging.getLogger(__name__)

PDF_WITHOUT_TEXT_CODE = "pdf_without_text"
PDF_WITHOUT_TEXT_MESSAGE = (
    "El PDF no contiene texto extraíble (posiblemente es un documento escaneado). "
    "No se aplica OCR a PDFs; envía una imagen de la página o un PDF con texto."
)

_IMAGE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


class DispatchState(str, Enum):
    RECEIVED = "received"
    DECODED = "decoded"
    CLASSIFIED = "classified"
    PDF_BRANCH = "pdf_branch"
    IMAGE_BRANCH = "image_branch"
    REJECTED = "rejected"
    RESPONDED = "responded"


@dataclass(frozen=True)
class RawUpload:
    """One upload as received from the client. Lives for a single request."""
    base64: Optional[str]
    declared_mime: Optional[str] = None
    filename: Optional[str] = None
    kind_hint: Optional[str] = None
    profile: AnalysisProfile = "general"


class DocumentDispatcher:
    """
    Routes a decoded upload to the PDF-text or image-vision branch.

    Holds no per-request state: the analyzer and the artifact store are
    shared, everything else lives in local variables of handle().
    """

    def __init__(
        self,
        analyzer: AnalysisCapability,
        artifact_store: Optional[ArtifactStore] = None,
        max_upload_bytes: Optional[int] = None,
        text_extractor: Callable[[bytes], str] = extract_text_from_pdf,
    ):
        self.analyzer = analyzer
        self.artifact_store = artifact_store
        self.max_upload_bytes = max_upload_bytes
        self.text_extractor = text_extractor

    async def handle(self, upload: RawUpload) -> DocumentAnalysisResponse:
        """
        Process one upload end to end.

        Returns:
            DocumentAnalysisResponse for every 200 outcome (including ok=False)

        Raises:
            DecodeError: Empty, malformed or oversized payload
            AnalysisCapabilityError: The capability rejected the input
            AnalysisCapabilityFailure: The capability failed
        """
        state = DispatchState.RECEIVED
        try:
            data = decode(upload.base64)
            if self.max_upload_bytes and len(data) > self.max_upload_bytes:
                raise DecodeError(
                    f"El archivo excede el tamaño máximo permitido "
                    f"({self.max_upload_bytes // (1024 * 1024)} MB).",
                    code="upload_too_large",
                )
            state = DispatchState.DECODED

            sniffed = sniff(data)
            resolution = resolve(
                hinted_mime=upload.declared_mime,
                envelope_mime=extract_envelope_mime(upload.base64),
                sniffed_mime=sniffed,
                filename_ext=filename_extension(upload.filename),
                kind_hint=upload.kind_hint,
            )
            state = DispatchState.CLASSIFIED
            logger.info(
                f"Upload classified: size={len(data)} bytes, sniffed={sniffed}, "
                f"resolved={resolution.mime} (source={resolution.source})"
            )

            name = artifact_name(
                upload.filename,
                resolution.kind,
                _IMAGE_EXTENSIONS.get(resolution.mime, "bin"),
            )
            details = DocumentDetails(mime=resolution.mime, size_bytes=len(data), filename=name)

            with temporary_artifact(self.artifact_store, data, name, resolution.mime):
                try:
                    document = classify(data, resolution)
                except ClassificationUnsupported as e:
                    state = DispatchState.REJECTED
                    return DocumentAnalysisResponse(
                        ok=False,
                        error=e.message,
                        code=e.code,
                        details=details,
                    )

                if document.is_pdf:
                    state = DispatchState.PDF_BRANCH
                    return await self._handle_pdf(document, upload, details)

                state = DispatchState.IMAGE_BRANCH
                return await self._handle_image(document, upload, details)
        finally:
            logger.info(f"Dispatch finished after state={state.value} -> {DispatchState.RESPONDED.value}")

    async def _handle_pdf(
        self,
        document: ClassifiedDocument,
        upload: RawUpload,
        details: DocumentDetails,
    ) -> DocumentAnalysisResponse:
        text = await asyncio.to_thread(self.text_extractor, document.data)
        if not text:
            logger.info("PDF has no extractable text; returning capability boundary response")
            return DocumentAnalysisResponse(
                ok=False,
                kind=document.kind,
                error=PDF_WITHOUT_TEXT_MESSAGE,
                code=PDF_WITHOUT_TEXT_CODE,
                details=details,
            )

        logger.info(f"PDF text extracted: {len(text)} chars")
        result = await _run_capability(
            lambda: self.analyzer.analyze_pdf_text(text, upload.filename, upload.profile)
        )
        return _success_response(document, result, details)

    async def _handle_image(
        self,
        document: ClassifiedDocument,
        upload: RawUpload,
        details: DocumentDetails,
    ) -> DocumentAnalysisResponse:
        result = await _run_capability(
            lambda: self.analyzer.analyze_image(document.data, document.resolved_mime, upload.profile)
        )
        if result.get("mime"):
            details = details.model_copy(update={"mime": result["mime"]})
        return _success_response(document, result, details)


async def _run_capability(call: Callable[[], Awaitable[AnalysisResult]]) -> AnalysisResult:
    """
    Await one capability call and translate its outcome.

    ok=False becomes AnalysisCapabilityError (client error); any exception
    becomes AnalysisCapabilityFailure with the original message.
    """
    try:
        result = await call()
    except DocflowError:
        raise
    except Exception as e:
        logger.error(f"Analysis capability failed: {e}", exc_info=True)
        raise AnalysisCapabilityFailure(str(e) or "Error analizando el documento.") from e

    if not result.get("ok"):
        error = result.get("error") or "El documento no pudo ser analizado."
        logger.info(f"Analysis capability rejected input: {error}")
        raise AnalysisCapabilityError(error)

    return result


def _success_response(
    document: ClassifiedDocument,
    result: AnalysisResult,
    details: DocumentDetails,
) -> DocumentAnalysisResponse:
    structured = result.get("structured")
    return DocumentAnalysisResponse(
        ok=True,
        kind=document.kind,
        structured_json=structured,
        summary=None if structured is not None else result.get("summary"),
        details=details,
    )
