"""Per-product partitioned resolution.

Periods of different products never interact, so the collection can be split
by product number, each chunk resolved on its own, and the results
concatenated without any merge step.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from concurrent.futures import ProcessPoolExecutor

from periodcalc.models import Period, ResolutionStats
from periodcalc.resolution.engine import PeriodResolver

logger = logging.getLogger(__name__)


def partition_by_product(periods: Iterable[Period]) -> dict[int, list[Period]]:
    """Group periods by product number.

    Returns:
        Dict of product number -> periods, keys in ascending order
    """
    chunks: dict[int, list[Period]] = defaultdict(list)
    for period in periods:
        chunks[period.product_number].append(period)
    return {product: chunks[product] for product in sorted(chunks)}


def _resolve_chunk(chunk: list[Period]) -> tuple[list[Period], ResolutionStats]:
    resolver = PeriodResolver()
    resolved = resolver.resolve(chunk)
    return resolved, resolver.stats


def resolve_partitioned(
    periods: Iterable[Period],
    max_workers: int | None = None,
    stats: ResolutionStats | None = None,
) -> list[Period]:
    """Resolve each product independently and concatenate the results.

    Args:
        periods: Periods in any order
        max_workers: Worker processes to use; None or 1 resolves in-process
        stats: Optional accumulator for the per-product counters

    Returns:
        Same result as ``resolve_periods`` on the full collection
    """
    chunks = list(partition_by_product(periods).values())
    logger.info(f"Resolving {len(chunks)} products (workers={max_workers or 1})")

    if max_workers is None or max_workers <= 1 or len(chunks) <= 1:
        results = [_resolve_chunk(chunk) for chunk in chunks]
    else:
        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            results = list(executor.map(_resolve_chunk, chunks))

    resolved: list[Period] = []
    for chunk_periods, chunk_stats in results:
        resolved.extend(chunk_periods)
        if stats is not None:
            stats.merge(chunk_stats)

    return resolved
