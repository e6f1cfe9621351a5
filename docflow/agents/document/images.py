"""
Image validation and normalization before a vision call.

The model accepts JPEG, PNG, WEBP and GIF. Anything else Pillow can read
(BMP, TIFF, ICO, ...) is re-encoded to PNG. The format Pillow detects always
wins over the MIME type the caller resolved.
"""

import io
import logging
from dataclasses import dataclass

from PIL import Image

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "GIF": "image/gif",
}


class InvalidImageError(ValueError):
    """The buffer is not an image Pillow can read."""


@dataclass(frozen=True)
class PreparedImage:
    data: bytes
    mime: str
    converted: bool = False


def prepare_image(data: bytes) -> PreparedImage:
    """
    Validate an image buffer and make sure its format is model-compatible.

    Raises:
        InvalidImageError: If the buffer does not hold a readable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
    except Exception as e:
        raise InvalidImageError("El buffer no corresponde a una imagen válida.") from e

    # verify() leaves the image unusable, reopen for the real work
    with Image.open(io.BytesIO(data)) as img:
        image_format = (img.format or "").upper()
        if image_format in SUPPORTED_FORMATS:
            return PreparedImage(data=data, mime=SUPPORTED_FORMATS[image_format])

        logger.info(f"Re-encoding unsupported image format {image_format or 'unknown'} to PNG")
        if img.mode not in ("RGB", "RGBA", "L", "LA", "P"):
            img = img.convert("RGBA" if "A" in img.getbands() else "RGB")
        out = io.BytesIO()
        img.save(out, format="PNG")
        return PreparedImage(data=out.getvalue(), mime="image/png", converted=True)
