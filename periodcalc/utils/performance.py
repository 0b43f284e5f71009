"""Timing helpers for period fetches and resolution runs."""

import logging
import time
from functools import wraps
from typing import Callable

logger = logging.getLogger(__name__)


def _report(operation: str, duration_ms: float, threshold_ms: float) -> None:
    if duration_ms > threshold_ms:
        logger.warning(
            f"Slow operation: {operation} took {duration_ms:.2f}ms (threshold: {threshold_ms}ms)"
        )
    else:
        logger.debug(f"{operation} completed in {duration_ms:.2f}ms")


def log_slow_queries(threshold_ms: float = 500):
    """Decorate a coroutine so its duration is logged, warning above threshold.

    Used on ``fetch_periods``, where a period query can scan a whole price table.
    """

    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                _report(func.__name__, (time.perf_counter() - start) * 1000, threshold_ms)

        return wrapper

    return decorator


class OperationTimer:
    """Times a synchronous block and keeps the result in ``duration_ms``.

    The CLI wraps resolution in it and prints the elapsed time in its summary.
    """

    def __init__(self, operation_name: str, threshold_ms: float = 500):
        self.operation_name = operation_name
        self.threshold_ms = threshold_ms
        self.start_time: float | None = None
        self.duration_ms: float = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000
        _report(self.operation_name, self.duration_ms, self.threshold_ms)
