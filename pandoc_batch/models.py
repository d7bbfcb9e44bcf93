"""
Data types passed between the pipeline stages and the batch host.

Payloads travel base64 encoded outside the pipeline and as raw bytes inside.
"""

import base64
import binascii
from typing import Any, Dict, List, Mapping, Optional, Union

from .config import DEFAULT_MIME_TYPE
from .utils.error_handling import ConversionError, ErrorCode, PipelineError, ValidationError


def _optional_text(payload: Mapping[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{key} must be a string, got {type(value).__name__}")
    return value


class BinaryPayload:
    """A document or media file: raw bytes plus MIME type and file name."""

    def __init__(self, data: bytes, mime_type: str = DEFAULT_MIME_TYPE, file_name: Optional[str] = None):
        self.data = data
        self.mime_type = mime_type
        self.file_name = file_name

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "BinaryPayload":
        """
        Build a payload from its external form.

        Args:
            payload: Mapping with base64 ``data`` and optional ``mimeType``
                and ``fileName`` keys

        Raises:
            ValidationError: If the payload is not a mapping, or ``data`` is
                missing or not valid base64
        """
        if not isinstance(payload, Mapping):
            raise ValidationError(f"document payload must be an object, got {type(payload).__name__}")
        encoded = payload.get("data")
        if encoded is None:
            raise ValidationError("missing required document payload", error_code=ErrorCode.MISSING_PARAMETER)
        try:
            raw = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            raise ValidationError(f"document payload is not valid base64: {e}")
        return cls(
            data=raw,
            mime_type=_optional_text(payload, "mimeType") or DEFAULT_MIME_TYPE,
            file_name=_optional_text(payload, "fileName")
        )

    def encoded(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": self.encoded(),
            "mimeType": self.mime_type,
            "fileName": self.file_name,
        }

    def __repr__(self):
        return f"BinaryPayload(file_name={self.file_name}, mime_type={self.mime_type}, size={len(self.data)})"


class ConversionJob:
    """Everything needed to convert one item inside its own workspace."""

    def __init__(
        self,
        job_id: str,
        input_path: str,
        output_path: str,
        media_dir: str,
        source_format: str,
        target_format: str,
        option_tokens: Optional[List[str]] = None
    ):
        self.id = job_id
        self.input_path = input_path
        self.output_path = output_path
        self.media_dir = media_dir
        self.source_format = source_format
        self.target_format = target_format
        self.option_tokens = list(option_tokens or [])

    def __repr__(self):
        return f"ConversionJob(id={self.id}, {self.source_format} -> {self.target_format})"


class BatchItem:
    """One input item: arbitrary JSON plus named binary payloads."""

    def __init__(
        self,
        json: Optional[Dict[str, Any]] = None,
        binary: Optional[Dict[str, BinaryPayload]] = None,
        decode_errors: Optional[Dict[str, ValidationError]] = None,
        item_error: Optional[ValidationError] = None
    ):
        self.json = json or {}
        self.binary = binary or {}
        self.decode_errors = decode_errors or {}
        self.item_error = item_error

    @classmethod
    def from_dict(cls, item: Mapping[str, Any]) -> "BatchItem":
        """Build an item from its external form.

        Payloads that fail to decode are left out, and a malformed ``json`` or
        ``binary`` member leaves the item empty, so the failure surfaces as a
        per-item error when the orchestrator reaches the item.
        """
        json = item.get("json")
        if json is not None and not isinstance(json, Mapping):
            return cls(item_error=ValidationError(f"item json must be an object, got {type(json).__name__}"))

        entries = item.get("binary")
        if entries is not None and not isinstance(entries, Mapping):
            return cls(
                json=json,
                item_error=ValidationError(f"item binary must be an object, got {type(entries).__name__}")
            )

        binary = {}
        decode_errors = {}
        for name, payload in (entries or {}).items():
            try:
                binary[name] = BinaryPayload.from_dict(payload)
            except ValidationError as e:
                decode_errors[name] = e
        return cls(json=json, binary=binary, decode_errors=decode_errors)

    def check(self) -> None:
        """
        Raises:
            ValidationError: If the item's own structure is malformed
        """
        if self.item_error is not None:
            raise self.item_error
        if not isinstance(self.json, Mapping):
            raise ValidationError(f"item json must be an object, got {type(self.json).__name__}")

    def get_payload(self, property_name: str) -> Optional[BinaryPayload]:
        """Return the payload under ``property_name``.

        Raises:
            ValidationError: If the payload was supplied but could not be decoded
        """
        error = self.decode_errors.get(property_name)
        if error is not None:
            raise error
        return self.binary.get(property_name)


class ConversionResult:
    """Successful conversion of one item."""

    def __init__(self, primary_document: BinaryPayload, json: Optional[Dict[str, Any]] = None,
                 binary_property_name: str = "data"):
        self.primary_document = primary_document
        self.json = json or {}
        self.binary_property_name = binary_property_name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "json": self.json,
            "binary": {self.binary_property_name: self.primary_document.to_dict()},
        }


class MediaItem:
    """A media file extracted by the engine while converting a document."""

    def __init__(self, source_file_name: Optional[str], image_name: str, payload: BinaryPayload):
        self.source_file_name = source_file_name
        self.image_name = image_name
        self.payload = payload

    def to_dict(self) -> Dict[str, Any]:
        return {
            "json": {
                "sourceDocument": self.source_file_name,
                "imageName": self.image_name,
            },
            "binary": {"image": self.payload.to_dict()},
        }

    def __repr__(self):
        return f"MediaItem(source={self.source_file_name}, image={self.image_name})"


class ErrorRecord:
    """Stands in for a ConversionResult when an item fails and the batch continues.

    ``json`` is the failed item's input JSON, echoed under ``item`` so callers
    can tell which input the error belongs to.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        exit_code: Optional[int] = None,
        stdout: Optional[str] = None,
        stderr: Optional[str] = None,
        json: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.json = json or {}

    @classmethod
    def from_exception(cls, error: PipelineError, json: Optional[Dict[str, Any]] = None) -> "ErrorRecord":
        if isinstance(error, ConversionError):
            return cls(
                message=error.message,
                code=error.error_code.value,
                exit_code=error.exit_code,
                stdout=error.stdout,
                stderr=error.stderr,
                json=json
            )
        return cls(message=error.message, code=error.error_code.value, json=json)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "json": {
                "error": self.message,
                "code": self.code,
                "exitCode": self.exit_code,
                "stdout": self.stdout,
                "stderr": self.stderr,
                "item": self.json,
            },
            "binary": {},
        }


class BatchOutput:
    """The two output channels of a batch run."""

    def __init__(self):
        self.results: List[Union[ConversionResult, ErrorRecord]] = []
        self.media: List[MediaItem] = []

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if isinstance(r, ErrorRecord))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "media": [m.to_dict() for m in self.media],
        }
