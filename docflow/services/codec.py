"""
Base64 codec for uploaded documents.

Clients send either a bare base64 string or a data URL
(data:<mime>;base64,<payload>). Both are accepted; the payload may contain
line breaks or other whitespace.
"""

import base64
import binascii
import re
from typing import Optional

from docflow.errors import DecodeError

# Anything shorter cannot be a real image or PDF; treat it as corrupted input
MIN_DECODED_BYTES = 10

_DATA_URL_RE = re.compile(
    r"^data:(?P<mime>[^;,]+)(?:;[^,]*)?;base64,(?P<payload>.*)$",
    re.IGNORECASE | re.DOTALL,
)
_WHITESPACE_RE = re.compile(r"\s+")


def extract_envelope_mime(value: Optional[str]) -> Optional[str]:
    """Return the MIME token of a data URL envelope without decoding the payload."""
    if not value:
        return None
    match = _DATA_URL_RE.match(value.strip())
    if not match:
        return None
    return match.group("mime").strip() or None


def strip_envelope(value: str) -> str:
    """Drop a data URL envelope if present and return the raw base64 payload."""
    stripped = value.strip()
    match = _DATA_URL_RE.match(stripped)
    if match:
        return match.group("payload")
    return stripped


def decode(value: Optional[str]) -> bytes:
    """
    Decode a (possibly enveloped) base64 string into raw bytes.

    Args:
        value: Bare base64 or data URL string from the client

    Returns:
        The decoded byte buffer

    Raises:
        DecodeError: If the input is empty, is not valid base64, or decodes to
            fewer than MIN_DECODED_BYTES bytes.
    """
    if not value or not isinstance(value, str):
        raise DecodeError("Se requiere 'base64' en el body.")

    payload = _WHITESPACE_RE.sub("", strip_envelope(value))
    if not payload:
        raise DecodeError("El contenido base64 está vacío.")

    # Some clients drop the trailing padding
    payload += "=" * (-len(payload) % 4)

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError("El contenido no es base64 válido.") from e

    if len(data) < MIN_DECODED_BYTES:
        raise DecodeError(
            f"El archivo decodificado es demasiado corto ({len(data)} bytes); "
            "probablemente está corrupto."
        )

    return data


def encode(data: bytes) -> str:
    """Encode raw bytes as a bare base64 string."""
    return base64.b64encode(data).decode("utf-8")


def to_data_url(data: bytes, mime: str) -> str:
    """Wrap raw bytes in a data URL envelope."""
    return f"data:{mime};base64,{encode(data)}"
