"""
Magic-byte content sniffing.

The client-declared MIME type and the filename are untrusted input; the first
bytes of the buffer are not. sniff() never looks past the first 12 bytes and
never touches the network or the filesystem.
"""

OCTET_STREAM = "application/octet-stream"

PDF_MIME = "application/pdf"
JPEG_MIME = "image/jpeg"
PNG_MIME = "image/png"
GIF_MIME = "image/gif"
WEBP_MIME = "image/webp"

_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def sniff(data: bytes) -> str:
    """
    Classify a buffer by its magic-byte prefix.

    Rules are checked in order, first match wins. Returns
    application/octet-stream for anything unrecognized.
    """
    head = bytes(data[:12])

    if head.startswith(b"%PDF-"):
        return PDF_MIME
    if head.startswith(b"\xff\xd8\xff"):
        return JPEG_MIME
    if head.startswith(_PNG_SIGNATURE):
        return PNG_MIME
    if head[:6] in (b"GIF87a", b"GIF89a"):
        return GIF_MIME
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return WEBP_MIME

    return OCTET_STREAM
