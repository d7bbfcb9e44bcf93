"""
MIME type detection for harvested media files.

Detection priority:
1. Extension-based detection (mimetypes plus the custom table below)
2. Content-based detection (python-magic), for files without a known extension
3. Generic application/octet-stream fallback
"""

import logging
import mimetypes
from pathlib import Path
from typing import Optional

# python-magic needs the libmagic system library, which slim images lack
try:
    import magic
    MAGIC_AVAILABLE = True
except ImportError:
    magic = None
    MAGIC_AVAILABLE = False

from ..config import DEFAULT_MIME_TYPE

logger = logging.getLogger(__name__)

# Extensions pandoc commonly extracts that mimetypes misses on some platforms
MIME_TYPE_MAPPINGS = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
    "tif": "image/tiff",
    "svg": "image/svg+xml",
    "webp": "image/webp",
    "emf": "image/emf",
    "wmf": "image/wmf",
    "eps": "application/postscript",
    "pdf": "application/pdf",
    "md": "text/markdown",
    "tex": "application/x-tex",
    "latex": "application/x-latex",
}


class MimeTypeDetector:
    """MIME type detector with extension, content and generic fallbacks."""

    def __init__(self):
        mimetypes.init()
        for ext, mime_type in MIME_TYPE_MAPPINGS.items():
            mimetypes.add_type(mime_type, f".{ext}")

    def detect_from_extension(self, filename: str) -> Optional[str]:
        """
        Detect MIME type from a file name's extension.

        Args:
            filename: File name or path

        Returns:
            Detected MIME type string or None
        """
        if not filename:
            return None

        extension = Path(filename).suffix[1:].lower()
        if not extension:
            return None

        mime_type = MIME_TYPE_MAPPINGS.get(extension)
        if not mime_type:
            mime_type, _ = mimetypes.guess_type(f"file.{extension}")

        if mime_type:
            logger.debug(f"Extension-based detection: {extension} -> {mime_type}")
        return mime_type

    def detect_from_content(self, content: bytes) -> Optional[str]:
        """Detect MIME type from raw bytes with python-magic, when available."""
        if not MAGIC_AVAILABLE or not content:
            return None

        try:
            detected_mime = magic.from_buffer(content, mime=True)
        except Exception as e:
            logger.debug(f"Content-based detection failed: {e}")
            return None

        # libmagic reports unknown binary data as octet-stream already
        if detected_mime:
            logger.debug(f"Content-based detection: {detected_mime}")
        return detected_mime or None

    def get_mime_type(self, filename: Optional[str] = None, content: Optional[bytes] = None) -> str:
        """
        Get MIME type for a file using the detection priority above.

        Args:
            filename: Optional file name for extension-based detection
            content: Optional raw bytes for content-based detection

        Returns:
            MIME type string, application/octet-stream when nothing matched
        """
        detected_mime = None

        if filename:
            detected_mime = self.detect_from_extension(filename)

        if not detected_mime and content:
            detected_mime = self.detect_from_content(content)

        return detected_mime or DEFAULT_MIME_TYPE


_detector_instance = None


def get_mime_detector() -> MimeTypeDetector:
    """Get the global MIME type detector instance."""
    global _detector_instance
    if _detector_instance is None:
        _detector_instance = MimeTypeDetector()
    return _detector_instance


def get_mime_type(filename: Optional[str] = None, content: Optional[bytes] = None) -> str:
    """Convenience function to get MIME type using the global detector."""
    return get_mime_detector().get_mime_type(filename=filename, content=content)
