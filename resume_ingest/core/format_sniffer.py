"""
Classify an upload from its leading bytes. Declared content types are ignored.
"""

import logging
import zipfile
from io import BytesIO

from resume_ingest.core.schemas import FormatTag

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"
ZIP_MAGIC = b"PK\x03\x04"
OFFICE_MANIFEST = "[Content_Types].xml"

IMAGE_SIGNATURES = (
    b"\x89PNG\r\n\x1a\n",
    b"\xff\xd8\xff",  # JPEG
    b"GIF87a",
    b"GIF89a",
)


def _is_webp(data: bytes) -> bool:
    return len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP"


def _is_office_archive(data: bytes) -> bool:
    try:
        with zipfile.ZipFile(BytesIO(data)) as zf:
            return OFFICE_MANIFEST in zf.namelist()
    except (zipfile.BadZipFile, ValueError, OSError) as e:
        logger.debug(f"ZIP signature present but archive unreadable: {e}")
        return False


def sniff_format(data: bytes) -> FormatTag:
    """Return the format tag for a buffer. Never raises; UNKNOWN is a valid answer."""
    if not data:
        return FormatTag.UNKNOWN
    if data.startswith(PDF_MAGIC):
        return FormatTag.PDF
    if data.startswith(ZIP_MAGIC):
        return FormatTag.OFFICE if _is_office_archive(data) else FormatTag.UNKNOWN
    if any(data.startswith(sig) for sig in IMAGE_SIGNATURES) or _is_webp(data):
        return FormatTag.IMAGE
    return FormatTag.UNKNOWN


def image_mime_type(data: bytes) -> str:
    """MIME type for an image buffer already classified as IMAGE."""
    if data.startswith(b"\x89PNG"):
        return "image/png"
    if data.startswith(b"\xff\xd8"):
        return "image/jpeg"
    if data.startswith(b"GIF8"):
        return "image/gif"
    if _is_webp(data):
        return "image/webp"
    return "application/octet-stream"
