"""
Conversion pipeline stages and the batch orchestrator that drives them.
"""

from .collector import collect
from .harvester import harvest
from .invoker import PandocInvoker, parse_option_tokens
from .materializer import materialize
from .orchestrator import BatchOrchestrator

__all__ = [
    "BatchOrchestrator",
    "PandocInvoker",
    "collect",
    "harvest",
    "materialize",
    "parse_option_tokens",
]
