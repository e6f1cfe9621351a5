"""
Document analysis API endpoints.

Flow:
1. POST /process-file         - image or PDF in base64 -> summary / structured result
2. POST /process-image        - image only, structured reading of a medical document
3. POST /process-image/nota   - image only, structured reading of a sales note / ticket

Nothing is persisted: the decoded upload exists as a temporary artifact only
while the request runs.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from docflow.dependencies import get_dispatcher
from docflow.schemas.documents import (
    DocumentAnalysisResponse,
    ImageAnalysisResponse,
    ProcessFileRequest,
    ProcessImageRequest,
)
from docflow.services.dispatch import DocumentDispatcher, RawUpload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["documents"])


@router.post(
    "/process-file",
    response_model=DocumentAnalysisResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Analyze an image (JPG/PNG/WEBP/GIF) or a PDF sent as base64",
    description="""
    Send a JSON body with the file in **base64** (bare or as a data URL).

    The real type is resolved from, in order: `kind`, `mimeType`, the data URL
    prefix, the file's magic bytes, and the filename extension.

    - **PDF**: the text layer is extracted and summarized. Scanned PDFs without
      text return `ok: false` with code `pdf_without_text` (no OCR).
    - **Image**: validated, normalized and analyzed by the vision model.
    - **Other types**: `ok: false` with code `unsupported_type`.

    Errors:
    - 400: invalid/empty base64, oversized file, or input rejected by the model
    - 500: analysis service failure
    """
)
async def process_file(
    request: ProcessFileRequest,
    dispatcher: Annotated[DocumentDispatcher, Depends(get_dispatcher)],
) -> DocumentAnalysisResponse:
    """
    Decode, classify and analyze one uploaded file.

    Parse/Validate Request
    - FastAPI validates the JSON body; base64 presence is checked by the codec

    Call Service
    - DocumentDispatcher.handle() runs the full pipeline and releases the
      temporary artifact

    Map Output -> ResponseModel
    - The dispatcher already returns DocumentAnalysisResponse; domain errors
      propagate to the DocflowError handler in main.py
    """
    logger.info(
        f"Processing file: filename={request.filename}, "
        f"mimeType={request.mime_type}, kind={request.kind}"
    )

    upload = RawUpload(
        base64=request.base64,
        declared_mime=request.mime_type,
        filename=request.filename,
        kind_hint=request.kind,
    )
    return await dispatcher.handle(upload)


async def _process_image(
    request: ProcessImageRequest,
    dispatcher: DocumentDispatcher,
    profile: str,
) -> ImageAnalysisResponse:
    upload = RawUpload(
        base64=request.base64,
        declared_mime=request.mime_type,
        filename=request.filename,
        kind_hint="image",
        profile=profile,
    )
    result = await dispatcher.handle(upload)

    return ImageAnalysisResponse(
        ok=result.ok,
        structured_json=result.structured_json,
        summary=result.summary,
        file=result.details.filename if result.details else None,
        error=result.error,
        code=result.code,
    )


@router.post(
    "/process-image",
    response_model=ImageAnalysisResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Structured reading of a medical document image",
    description="""
    Receives an image in base64 and returns the model's structured JSON reading
    of a medical document (prescription, lab result, medical note).

    The body is always treated as an image; the real format is detected from
    the bytes and unsupported formats are converted to PNG.
    """
)
async def process_medical_image(
    request: ProcessImageRequest,
    dispatcher: Annotated[DocumentDispatcher, Depends(get_dispatcher)],
) -> ImageAnalysisResponse:
    logger.info(f"Processing medical image: filename={request.filename}")
    return await _process_image(request, dispatcher, profile="medical")


@router.post(
    "/process-image/nota",
    response_model=ImageAnalysisResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Structured reading of a sales note / ticket image",
    description="""
    Receives an image of a sales note or ticket in base64 and returns the
    model's structured JSON reading (merchant, items, totals).
    """
)
async def process_nota_image(
    request: ProcessImageRequest,
    dispatcher: Annotated[DocumentDispatcher, Depends(get_dispatcher)],
) -> ImageAnalysisResponse:
    logger.info(f"Processing sales note image: filename={request.filename}")
    return await _process_image(request, dispatcher, profile="nota")
