import asyncio
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI
from pydantic import BaseModel, Field

from pandoc_batch import __version__
from pandoc_batch.models import BatchItem
from pandoc_batch.pipeline import BatchOrchestrator, PandocInvoker
from pandoc_batch.utils.error_handling import BatchAbortedError, create_batch_error_response
from pandoc_batch.utils.logging_config import LogLevel, get_logger, setup_logging

logger = get_logger("pandoc_batch.app")

app = FastAPI(title="pandoc-batch", version=__version__)


class BatchRequest(BaseModel):
    """A batch of items to convert with shared default parameters."""
    items: List[Dict[str, Any]]
    from_format: str = Field("markdown", alias="fromFormat")
    to_format: str = Field("html", alias="toFormat")
    options: str = ""
    binary_property_name: Optional[str] = Field(None, alias="binaryPropertyName")
    continue_on_fail: bool = Field(False, alias="continueOnFail")


def get_invoker() -> PandocInvoker:
    return PandocInvoker()


def get_orchestrator(invoker: PandocInvoker = Depends(get_invoker)) -> BatchOrchestrator:
    return BatchOrchestrator(invoker=invoker)


@app.get("/ping")
async def ping(invoker: PandocInvoker = Depends(get_invoker)):
    engine = await asyncio.to_thread(invoker.engine_version)
    return {"success": True, "data": "PONG!", "engine": engine}


@app.post("/convert/batch")
async def convert_batch(
    request: BatchRequest,
    orchestrator: BatchOrchestrator = Depends(get_orchestrator)
):
    if request.binary_property_name:
        orchestrator.binary_property_name = request.binary_property_name

    items = [BatchItem.from_dict(item) for item in request.items]
    logger.info(f"Converting batch of {len(items)} items: {request.from_format} -> {request.to_format}")

    try:
        # pandoc blocks until it exits; keep the event loop free meanwhile
        output = await asyncio.to_thread(
            orchestrator.run,
            items,
            request.from_format,
            request.to_format,
            request.options,
            request.continue_on_fail
        )
    except BatchAbortedError as e:
        return create_batch_error_response(e)

    return output.to_dict()


if __name__ == "__main__":
    import logging
    import os

    import uvicorn

    log_level = LogLevel.from_string(os.getenv("LOG_LEVEL", "INFO"))
    setup_logging(level=log_level, format_type=os.getenv("LOG_FORMAT"))
    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
        log_level=logging.getLevelName(log_level).lower()
    )
