"""
Batch orchestration for pandoc conversions.

Items are converted strictly one after another, each in its own workspace.
A failing item either becomes an ErrorRecord (continue-on-fail) or aborts the
batch with a BatchAbortedError naming the item's index.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..config import EngineConfig
from ..models import (
    BatchItem,
    BatchOutput,
    ConversionJob,
    ConversionResult,
    ErrorRecord,
    MediaItem,
)
from ..utils.error_handling import BatchAbortedError, PipelineError, ValidationError
from ..utils.logging_config import get_logger, log_performance
from ..utils.workspace_manager import WorkspaceManager
from .collector import collect
from .harvester import harvest
from .invoker import PandocInvoker, parse_option_tokens
from .materializer import materialize

logger = get_logger()


def _item_parameter(item: BatchItem, key: str, default: str) -> str:
    """Per-item override of a batch parameter; missing, null or empty keeps the default."""
    value = item.json.get(key)
    if value is None or value == "":
        return default
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string, got {type(value).__name__}")
    return value


def _item_json(item: BatchItem) -> Optional[Dict[str, Any]]:
    return item.json if isinstance(item.json, Mapping) else None


class BatchOrchestrator:
    """Drives the per-item pipeline over a batch and assembles both output channels."""

    def __init__(
        self,
        invoker: Optional[PandocInvoker] = None,
        workspace_manager: Optional[WorkspaceManager] = None,
        binary_property_name: Optional[str] = None
    ):
        self.invoker = invoker or PandocInvoker()
        self.workspace_manager = workspace_manager or WorkspaceManager()
        self.binary_property_name = binary_property_name or EngineConfig.get_binary_property()

    @log_performance(logger)
    def run(
        self,
        items: Iterable[BatchItem],
        source_format: str,
        target_format: str,
        options: str = "",
        continue_on_fail: bool = False
    ) -> BatchOutput:
        """
        Convert every item of a batch.

        Args:
            items: Input items, in order
            source_format: Default pandoc input format
            target_format: Default pandoc output format
            options: Default free-form pandoc options
            continue_on_fail: Record failures per item instead of aborting

        Returns:
            BatchOutput with one result per item and the media of successful items

        Raises:
            BatchAbortedError: On the first failing item when continue_on_fail is off
        """
        output = BatchOutput()

        for index, item in enumerate(items):
            try:
                result, media = self.process_item(item, source_format, target_format, options)
            except PipelineError as e:
                if not continue_on_fail:
                    logger.error(f"Aborting batch at item {index}: {e.message}")
                    raise BatchAbortedError(index, e) from e
                logger.warning(f"Item {index} failed, continuing: {e.message}")
                output.results.append(ErrorRecord.from_exception(e, json=_item_json(item)))
                continue

            output.results.append(result)
            output.media.extend(media)

        logger.info(
            f"Batch finished: {len(output.results)} items, "
            f"{output.failed_count} failed, {len(output.media)} media files"
        )
        return output

    def process_item(
        self,
        item: BatchItem,
        source_format: str,
        target_format: str,
        options: str = ""
    ) -> Tuple[ConversionResult, List[MediaItem]]:
        """
        Convert a single item inside a fresh workspace.

        ``fromFormat``, ``toFormat`` and ``options`` in the item's JSON
        override the batch defaults for that item.

        Raises:
            PipelineError: ValidationError, WorkspaceIOError or ConversionError
                from whichever stage failed. The workspace is released first.
        """
        item.check()
        source_format = _item_parameter(item, "fromFormat", source_format)
        target_format = _item_parameter(item, "toFormat", target_format)
        option_tokens = parse_option_tokens(_item_parameter(item, "options", options))

        with self.workspace_manager.workspace() as paths:
            job = ConversionJob(
                job_id=paths.job_id,
                input_path=paths.input_path,
                output_path=paths.output_path,
                media_dir=paths.media_dir,
                source_format=source_format,
                target_format=target_format,
                option_tokens=option_tokens
            )
            logger.debug(f"Processing {job}")

            payload = item.get_payload(self.binary_property_name)
            materialize(payload, job.input_path)

            self.invoker.invoke(
                job.input_path,
                job.output_path,
                job.media_dir,
                job.source_format,
                job.target_format,
                job.option_tokens
            )

            document = collect(job.output_path, payload.file_name, job.target_format)
            media = list(harvest(job.media_dir, payload.file_name))

        result = ConversionResult(
            primary_document=document,
            json=item.json,
            binary_property_name=self.binary_property_name
        )
        return result, media
