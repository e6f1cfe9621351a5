"""
Classifier resolver: merges every available type signal into one final type.

Precedence, highest first:
1. explicit kind hint ("pdf" / "image")
2. client-declared mimeType field
3. MIME embedded in a data URL envelope
4. magic-byte sniff result
5. filename extension

A higher-ranked signal wins even when it contradicts the bytes (a declared
image/png over real PDF bytes resolves to image/png). Callers that label
fixtures on purpose rely on that override.
"""

import logging
import mimetypes
from dataclasses import dataclass
from typing import Optional

from docflow.errors import ClassificationUnsupported
from docflow.services.sniffer import OCTET_STREAM, PDF_MIME, PNG_MIME

logger = logging.getLogger(__name__)

KIND_PDF = "pdf"
KIND_IMAGE = "image"

_EXTENSION_MIME = {
    "pdf": PDF_MIME,
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
}


@dataclass(frozen=True)
class Resolution:
    """Final declared type plus the signal that decided it."""
    mime: str
    source: str

    @property
    def is_pdf(self) -> bool:
        return self.mime == PDF_MIME

    @property
    def is_image(self) -> bool:
        return self.mime.startswith("image/")

    @property
    def kind(self) -> Optional[str]:
        if self.is_pdf:
            return KIND_PDF
        if self.is_image:
            return KIND_IMAGE
        return None


@dataclass(frozen=True)
class ClassifiedDocument:
    """A decoded upload with exactly one handler (PDF or image)."""
    data: bytes
    resolved_mime: str
    is_pdf: bool
    is_image: bool

    @property
    def kind(self) -> str:
        return KIND_PDF if self.is_pdf else KIND_IMAGE


def normalize_mime(value: Optional[str]) -> Optional[str]:
    """
    Lowercase a MIME string and drop parameters after the first ';'.

    Returns None for empty values and for application/octet-stream, which
    carries no type information.
    """
    if not value or not isinstance(value, str):
        return None
    token = value.split(";", 1)[0].strip().lower()
    if not token or token == OCTET_STREAM:
        return None
    return token


def filename_extension(filename: Optional[str]) -> Optional[str]:
    """Return the lowercase extension of a filename without the dot."""
    if not filename or "." not in filename:
        return None
    ext = filename.rsplit(".", 1)[1].strip().lower()
    return ext or None


def extension_mime(ext: Optional[str]) -> Optional[str]:
    """Map a filename extension to a MIME type."""
    if not ext:
        return None
    ext = ext.lstrip(".").lower()
    if ext in _EXTENSION_MIME:
        return _EXTENSION_MIME[ext]
    guessed, _ = mimetypes.guess_type(f"file.{ext}")
    return normalize_mime(guessed)


def normalize_kind(kind_hint: Optional[str]) -> Optional[str]:
    """Accept only the two unambiguous kind hints."""
    if not kind_hint or not isinstance(kind_hint, str):
        return None
    kind = kind_hint.strip().lower()
    return kind if kind in (KIND_PDF, KIND_IMAGE) else None


def resolve(
    hinted_mime: Optional[str],
    envelope_mime: Optional[str],
    sniffed_mime: Optional[str],
    filename_ext: Optional[str],
    kind_hint: Optional[str],
) -> Resolution:
    """
    Resolve the final declared type of an upload.

    Args:
        hinted_mime: mimeType field sent by the client
        envelope_mime: MIME token from a data URL envelope
        sniffed_mime: Result of sniffer.sniff() on the decoded bytes
        filename_ext: Extension of the client filename (with or without dot)
        kind_hint: "pdf" or "image" when the client forces the branch

    Returns:
        Resolution with the winning MIME and the name of the signal that won.
        application/octet-stream with source "none" when no signal is usable.
    """
    candidates = [
        ("declared", normalize_mime(hinted_mime)),
        ("envelope", normalize_mime(envelope_mime)),
        ("sniff", normalize_mime(sniffed_mime)),
        ("extension", extension_mime(filename_ext)),
    ]

    kind = normalize_kind(kind_hint)
    if kind == KIND_PDF:
        return Resolution(mime=PDF_MIME, source="kind")
    if kind == KIND_IMAGE:
        # Keep the most trusted concrete image type; the vision capability
        # detects the real format anyway
        for _, mime in candidates:
            if mime and mime.startswith("image/"):
                return Resolution(mime=mime, source="kind")
        return Resolution(mime=PNG_MIME, source="kind")

    for source, mime in candidates:
        if mime:
            return Resolution(mime=mime, source=source)

    return Resolution(mime=OCTET_STREAM, source="none")


def classify(data: bytes, resolution: Resolution) -> ClassifiedDocument:
    """
    Build a ClassifiedDocument for a supported resolution.

    Raises:
        ClassificationUnsupported: If the resolved type is neither PDF nor image.
    """
    if not (resolution.is_pdf or resolution.is_image):
        logger.info(
            f"Unsupported upload type: mime={resolution.mime}, source={resolution.source}"
        )
        raise ClassificationUnsupported(resolution.mime)

    return ClassifiedDocument(
        data=data,
        resolved_mime=resolution.mime,
        is_pdf=resolution.is_pdf,
        is_image=resolution.is_image,
    )
