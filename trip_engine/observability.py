"""
Lightweight observability utilities.

Every model call and every chat turn produces a structured latency record
so slow providers and oversized generations can be told apart in the logs.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager

logger = logging.getLogger("trip_engine.trace")


@contextmanager
def trace_span(name: str, **metadata):
    """
    Measure execution duration of a critical operation.

    Yields the metadata dict so the wrapped code can attach values that are
    only known at the end (token counts, resulting state).

    Example log:
    [TRACE] chat_turn duration_ms=1843.20 session=chat_1700000000000_ab12cd3 new_state=refining

    Guarantees
    ----------
    - Always logs completion (even if exception occurs)
    - Never suppresses exceptions
    - Produces structured key=value logs
    """
    start = time.perf_counter()
    try:
        yield metadata
    finally:
        duration_ms = (time.perf_counter() - start) * 1000

        meta = " ".join(f"{k}={v}" for k, v in metadata.items())
        logger.info("[TRACE] %s duration_ms=%.2f %s", name, duration_ms, meta)
