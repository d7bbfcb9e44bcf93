"""Reads back the converted document once the engine has finished."""

import os
from typing import Optional

from ..config import get_mime_type, get_output_filename
from ..models import BinaryPayload
from ..utils.error_handling import WorkspaceIOError
from ..utils.logging_config import get_logger

logger = get_logger()


def collect(output_path: str, original_file_name: Optional[str], target_format: str) -> BinaryPayload:
    """
    Package the engine's output file as a payload.

    The MIME type and file extension come from the closed format tables in
    ``pandoc_batch.config``; unknown formats use application/octet-stream and
    the format string itself as extension.

    Raises:
        WorkspaceIOError: If the output file is missing or unreadable
    """
    if not os.path.exists(output_path):
        raise WorkspaceIOError(
            f"Conversion produced no output file at {output_path}",
            path=output_path
        )

    try:
        with open(output_path, 'rb') as f:
            content = f.read()
    except OSError as e:
        raise WorkspaceIOError(f"Failed to read output file: {e}", path=output_path)

    payload = BinaryPayload(
        data=content,
        mime_type=get_mime_type(target_format),
        file_name=get_output_filename(original_file_name, target_format)
    )
    logger.debug(f"Collected {len(content)} bytes as {payload.file_name}")
    return payload
