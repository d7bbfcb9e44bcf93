"""
Conversion configuration for pandoc-batch.

This module defines the closed format enumeration with its MIME types and
canonical file extensions, and the environment driven engine settings.
"""

import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Dict, Optional


class DocumentFormat(str, Enum):
    """Formats with known MIME types and file extensions."""
    MARKDOWN = "markdown"
    HTML = "html"
    DOCX = "docx"
    PDF = "pdf"
    LATEX = "latex"
    PLAIN = "plain"


# Format -> MIME type. Formats outside this table are passed to pandoc as-is.
FORMAT_MIME_TYPES: Dict[str, str] = {
    DocumentFormat.MARKDOWN.value: "text/markdown",
    DocumentFormat.HTML.value: "text/html",
    DocumentFormat.DOCX.value: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    DocumentFormat.PDF.value: "application/pdf",
    DocumentFormat.LATEX.value: "application/x-latex",
    DocumentFormat.PLAIN.value: "text/plain",
}

# Format -> canonical file extension (without the dot)
FORMAT_EXTENSIONS: Dict[str, str] = {
    DocumentFormat.MARKDOWN.value: "md",
    DocumentFormat.HTML.value: "html",
    DocumentFormat.DOCX.value: "docx",
    DocumentFormat.PDF.value: "pdf",
    DocumentFormat.LATEX.value: "tex",
    DocumentFormat.PLAIN.value: "txt",
}

DEFAULT_MIME_TYPE = "application/octet-stream"

DEFAULT_DOCUMENT_NAME = "document"

DEFAULT_BINARY_PROPERTY = "data"

# Engine flags the pipeline manages itself; free-form options may not override them
RESERVED_ENGINE_FLAGS = {"-o", "--output", "--extract-media"}


def get_mime_type(format_name: str) -> str:
    """Return the MIME type for a format, or the generic binary type."""
    return FORMAT_MIME_TYPES.get(format_name, DEFAULT_MIME_TYPE)


def get_file_extension(format_name: str) -> str:
    """Return the canonical extension for a format, or the format itself."""
    return FORMAT_EXTENSIONS.get(format_name, format_name)


def get_output_filename(original_name: Optional[str], format_name: str) -> str:
    """
    Replace the extension of ``original_name`` with the one for ``format_name``.

    ``report.v2.docx`` converted to markdown becomes ``report.v2.md``. A name
    without an extension keeps its full stem.
    """
    name = original_name or DEFAULT_DOCUMENT_NAME
    stem = name.rsplit(".", 1)[0] if "." in name else name
    return f"{stem}.{get_file_extension(format_name)}"


class EngineConfig:
    """Environment driven settings for the conversion engine and workspaces."""

    DEFAULT_ENGINE_PATH = "pandoc"

    @staticmethod
    def get_engine_path() -> str:
        return os.getenv("PANDOC_PATH", EngineConfig.DEFAULT_ENGINE_PATH)

    @staticmethod
    def get_timeout() -> Optional[float]:
        """Engine timeout in seconds. Unset, empty or non-positive means no limit."""
        value = os.getenv("PANDOC_TIMEOUT", "").strip()
        if not value:
            return None
        try:
            timeout = float(value)
        except ValueError:
            return None
        return timeout if timeout > 0 else None

    @staticmethod
    def get_temp_root() -> Path:
        temp_dir = os.getenv("PANDOC_BATCH_TEMP_DIR")
        if temp_dir:
            return Path(temp_dir)
        return Path(tempfile.gettempdir()) / "pandoc-batch"

    @staticmethod
    def get_binary_property() -> str:
        return os.getenv("PANDOC_BINARY_PROPERTY", DEFAULT_BINARY_PROPERTY)
