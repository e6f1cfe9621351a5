"""
Pydantic schemas for the document analysis endpoints.

These models define the request/response contracts of /process-file and
/process-image. Field names follow the public API (camelCase aliases such as
mimeType and structuredJSON) while Python code uses snake_case.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProcessFileRequest(BaseModel):
    """
    Body of POST /process-file.

    base64 is untyped and optional at the schema level so that a missing or
    non-string payload is reported as a decode error (400) by the codec
    instead of a schema error (422).
    """
    model_config = ConfigDict(populate_by_name=True)

    base64: Any = Field(
        None,
        description="File content in base64, with or without a data URL prefix",
        examples=["data:image/jpeg;base64,/9j/4AAQSkZJRgABAQAAAQABAAD..."]
    )
    filename: Optional[str] = Field(
        None,
        description="Suggested file name (optional)",
        examples=["ticket.jpg"]
    )
    mime_type: Optional[str] = Field(
        None,
        alias="mimeType",
        description="Expected MIME type (optional, overrides byte sniffing)",
        examples=["image/jpeg"]
    )
    kind: Optional[str] = Field(
        None,
        description="Forces the branch when known: 'image' or 'pdf'",
        examples=["image"]
    )


class ProcessImageRequest(BaseModel):
    """Body of POST /process-image and /process-image/nota."""
    model_config = ConfigDict(populate_by_name=True)

    base64: Any = Field(
        None,
        description="Image in base64, with or without a data URL prefix"
    )
    filename: Optional[str] = Field(None, description="Suggested file name (optional)")
    mime_type: Optional[str] = Field(None, alias="mimeType", description="Expected MIME type")


class DocumentDetails(BaseModel):
    """Non-sensitive metadata about the processed upload."""
    mime: str = Field(..., description="Resolved MIME type")
    size_bytes: int = Field(..., description="Decoded size in bytes")
    filename: Optional[str] = Field(None, description="Artifact name used while processing")


class DocumentAnalysisResponse(BaseModel):
    """
    Response of POST /process-file.

    ok=False with HTTP 200 means the request was fine but the document is
    outside what the service handles (unsupported type, PDF without text).
    """
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = Field(..., description="Whether an analysis result is included")
    kind: Optional[str] = Field(None, description="Detected branch: 'image' or 'pdf'")
    summary: Optional[str] = Field(None, description="Free-text result")
    structured_json: Optional[Dict[str, Any]] = Field(
        None,
        alias="structuredJSON",
        description="Structured result parsed from the model output"
    )
    error: Optional[str] = Field(None, description="Human-readable reason when ok is false")
    code: Optional[str] = Field(None, description="Machine-readable reason when ok is false")
    details: Optional[DocumentDetails] = Field(None, description="Upload metadata")


class ImageAnalysisResponse(BaseModel):
    """Response of POST /process-image and /process-image/nota."""
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = Field(..., description="Whether an analysis result is included")
    structured_json: Optional[Dict[str, Any]] = Field(
        None,
        alias="structuredJSON",
        description="Structured reading of the image"
    )
    summary: Optional[str] = Field(
        None,
        description="Raw model text when it could not be parsed as JSON"
    )
    file: Optional[str] = Field(None, description="Temporary artifact name used while processing")
    error: Optional[str] = Field(None, description="Human-readable reason when ok is false")
    code: Optional[str] = Field(None, description="Machine-readable reason when ok is false")
