"""
Centralized error handling for pandoc-batch.

This module defines the pipeline's exception taxonomy, the standardized error
codes attached to it, and the JSON error response used by the HTTP host.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Standardized error codes for consistent error handling."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Validation errors
    MISSING_PARAMETER = "MISSING_PARAMETER"
    INVALID_PARAMETER = "INVALID_PARAMETER"

    # Pipeline errors
    WORKSPACE_IO_ERROR = "WORKSPACE_IO_ERROR"
    CONVERSION_FAILED = "CONVERSION_FAILED"
    ENGINE_UNAVAILABLE = "ENGINE_UNAVAILABLE"
    ENGINE_TIMEOUT = "ENGINE_TIMEOUT"
    CLEANUP_FAILED = "CLEANUP_FAILED"
    BATCH_ABORTED = "BATCH_ABORTED"


class ErrorSeverity(str, Enum):
    """Error severity levels for logging and response handling."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


ERROR_STATUS_MAP: Dict[ErrorCode, int] = {
    # 4xx Client Errors
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.MISSING_PARAMETER: 422,
    ErrorCode.INVALID_PARAMETER: 422,

    # 5xx Server Errors
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.WORKSPACE_IO_ERROR: 500,
    ErrorCode.CONVERSION_FAILED: 500,
    ErrorCode.ENGINE_UNAVAILABLE: 503,
    ErrorCode.ENGINE_TIMEOUT: 504,
    ErrorCode.CLEANUP_FAILED: 500,
    ErrorCode.BATCH_ABORTED: 500,
}

ERROR_SEVERITY_MAP: Dict[ErrorCode, ErrorSeverity] = {
    ErrorCode.INTERNAL_ERROR: ErrorSeverity.CRITICAL,
    ErrorCode.ENGINE_UNAVAILABLE: ErrorSeverity.HIGH,
    ErrorCode.WORKSPACE_IO_ERROR: ErrorSeverity.HIGH,
    ErrorCode.BATCH_ABORTED: ErrorSeverity.MEDIUM,
    ErrorCode.CONVERSION_FAILED: ErrorSeverity.MEDIUM,
    ErrorCode.ENGINE_TIMEOUT: ErrorSeverity.MEDIUM,
    ErrorCode.CLEANUP_FAILED: ErrorSeverity.LOW,
    ErrorCode.INVALID_REQUEST: ErrorSeverity.LOW,
    ErrorCode.MISSING_PARAMETER: ErrorSeverity.LOW,
    ErrorCode.INVALID_PARAMETER: ErrorSeverity.LOW,
}


# ===== EXCEPTION TAXONOMY =====

class PipelineError(Exception):
    """Base class for failures of a single conversion item."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, error_code: Optional[ErrorCode] = None):
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "code": self.error_code.value}


class ValidationError(PipelineError):
    """Raised when an item is missing its payload or carries invalid options."""

    error_code = ErrorCode.INVALID_PARAMETER


class WorkspaceIOError(PipelineError):
    """Raised when a workspace file cannot be written or read back."""

    error_code = ErrorCode.WORKSPACE_IO_ERROR

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ConversionError(PipelineError):
    """Raised when the conversion engine reports a failure."""

    error_code = ErrorCode.CONVERSION_FAILED

    def __init__(
        self,
        message: str,
        stdout: Optional[str] = None,
        stderr: Optional[str] = None,
        exit_code: Optional[int] = None,
        error_code: Optional[ErrorCode] = None
    ):
        super().__init__(message, error_code=error_code)
        self.stdout = stdout
        self.stderr = stderr
        self.exit_code = exit_code

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "exit_code": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
        })
        return data


class CleanupError(PipelineError):
    """Workspace deletion failure. Logged, never raised to callers."""

    error_code = ErrorCode.CLEANUP_FAILED

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class BatchAbortedError(PipelineError):
    """Raised when an item fails and the batch is not allowed to continue."""

    error_code = ErrorCode.BATCH_ABORTED

    def __init__(self, item_index: int, cause: PipelineError):
        message = f"Item {item_index} failed: {cause.message}"
        stderr = getattr(cause, "stderr", None)
        if stderr:
            message += f". stderr: {stderr.strip()}"
        super().__init__(message)
        self.item_index = item_index
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "item_index": self.item_index,
            "cause": self.cause.to_dict(),
        })
        return data


# ===== HTTP RESPONSES =====

def create_error_response(
    error_code: Union[ErrorCode, str],
    service: Optional[str] = None,
    details: Optional[str] = None,
    status_code: Optional[int] = None,
    **kwargs
) -> JSONResponse:
    """
    Create a consistent JSON error response.

    Args:
        error_code: Error code from ErrorCode enum or custom string
        service: Service name that generated the error
        details: Additional error details (truncated to 1000 chars)
        status_code: Override the default HTTP status code
        **kwargs: Additional fields to include in the error response

    Returns:
        JSONResponse with standardized error format
    """
    if isinstance(error_code, ErrorCode):
        error_type = error_code.value
        if status_code is None:
            status_code = ERROR_STATUS_MAP.get(error_code, 500)
        severity = ERROR_SEVERITY_MAP.get(error_code, ErrorSeverity.MEDIUM)
    else:
        error_type = str(error_code)
        if status_code is None:
            status_code = 500
        severity = ErrorSeverity.MEDIUM

    error_data = {
        "error": error_type,
        "timestamp": datetime.now().isoformat() + "Z",
        "status_code": status_code,
        "severity": severity.value
    }

    if service:
        error_data["service"] = service

    if details:
        error_data["details"] = str(details)[:1000]

    error_data.update(kwargs)

    log_message = f"Error response: {error_data}"
    if severity == ErrorSeverity.CRITICAL:
        logger.critical(log_message)
    elif severity == ErrorSeverity.HIGH:
        logger.error(log_message)
    elif severity == ErrorSeverity.MEDIUM:
        logger.warning(log_message)
    else:
        logger.info(log_message)

    return JSONResponse(status_code=status_code, content=error_data)


def create_batch_error_response(error: BatchAbortedError) -> JSONResponse:
    """Render an aborted batch using the status of the failing item's error."""
    cause_code = error.cause.error_code
    return create_error_response(
        ErrorCode.BATCH_ABORTED,
        service="pandoc",
        details=error.message,
        status_code=ERROR_STATUS_MAP.get(cause_code, 500),
        item_index=error.item_index,
        cause=error.cause.to_dict()
    )
