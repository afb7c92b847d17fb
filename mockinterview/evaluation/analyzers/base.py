"""
Common analyzer interface and the timeout wrapper for external calls.
"""
import asyncio
import logging
from typing import Any, Callable, Optional

from ..models import AnalyzerKind, AnalyzerResult, Utterance
from ...errors import TransientServiceError

logger = logging.getLogger("analyzers")


class Analyzer:
    """
    One scoring component. Subclasses set `kind` and implement `analyze`,
    returning an AnalyzerResult on the 0-100 scale.
    """
    kind: AnalyzerKind

    async def analyze(self, utterance: Utterance, audio: Optional[bytes] = None) -> AnalyzerResult:
        raise NotImplementedError


async def call_service(func: Callable[..., Any], *args, timeout: float, service: str, **kwargs) -> Any:
    """
    Run a blocking client call off the event loop with a bounded timeout.
    A timeout is reported as TransientServiceError like any other failed call.
    """
    try:
        return await asyncio.wait_for(asyncio.to_thread(func, *args, **kwargs), timeout)
    except asyncio.TimeoutError as e:
        logger.warning("%s call timed out after %.1fs", service, timeout)
        raise TransientServiceError(f"{service} timed out after {timeout}s", service=service) from e


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))
