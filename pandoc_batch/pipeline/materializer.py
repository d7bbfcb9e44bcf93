"""Writes an item's document payload into its job workspace."""

from pathlib import Path
from typing import Optional, Union

from ..models import BinaryPayload
from ..utils.error_handling import ErrorCode, ValidationError, WorkspaceIOError
from ..utils.logging_config import get_logger

logger = get_logger()


def materialize(payload: Optional[BinaryPayload], input_path: Union[str, Path]) -> Path:
    """
    Write a payload's raw bytes to ``input_path``.

    Raises:
        ValidationError: If no payload was supplied
        WorkspaceIOError: If the file cannot be written
    """
    if payload is None:
        raise ValidationError("missing required document payload", error_code=ErrorCode.MISSING_PARAMETER)

    input_path = Path(input_path)
    try:
        with open(input_path, 'wb') as f:
            f.write(payload.data)
    except OSError as e:
        logger.error(f"Failed to write input file {input_path}: {e}")
        raise WorkspaceIOError(f"Failed to write input file: {e}", path=str(input_path))

    logger.debug(f"Materialized {len(payload.data)} bytes to {input_path}")
    return input_path
