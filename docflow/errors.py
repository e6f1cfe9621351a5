"""
Domain error taxonomy for the docflow service.

Every error carries the HTTP status it maps to and a short machine-readable
code. The exception handler registered in docflow.main renders them as:

    {"ok": false, "error": "<message>", "code": "<code>"}

Routes never build error bodies by hand for these cases; they raise.
"""

from fastapi import status


class DocflowError(Exception):
    """Base class for errors that map directly to an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class DecodeError(DocflowError):
    """Empty, malformed, or implausibly short base64 input."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "decode_error"


class ClassificationUnsupported(DocflowError):
    """
    The bytes were decoded but no handler exists for the resolved type.

    Not a failure of the request: the dispatcher turns it into a 200
    response with ok=false.
    """

    status_code = status.HTTP_200_OK
    code = "unsupported_type"

    def __init__(self, resolved_mime: str):
        super().__init__(f"Tipo de archivo no soportado: {resolved_mime}")
        self.resolved_mime = resolved_mime


class ValidationError(DocflowError):
    """Required invoice fields are missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class AnalysisCapabilityError(DocflowError):
    """The analysis capability rejected the input as unusable."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "analysis_rejected"


class AnalysisCapabilityFailure(DocflowError):
    """The analysis capability is unreachable or failed internally."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "analysis_failure"


class RenderingFailure(DocflowError):
    """The PDF renderer could not produce a document."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "rendering_failure"
