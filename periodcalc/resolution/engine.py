"""Fixpoint overlap resolution for price validity periods.

Flattens overlapping periods of the same product so that, for every product,
each day is covered by at most one period and stronger priorities (lower
numbers) always win.

The engine scans adjacent pairs of the ordered collection. On the first
overlap it trims, splits or removes one period, re-sorts the whole
collection and restarts the scan from the top. It stops when a full pass
makes no change.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import timedelta

from periodcalc.models import Period, ResolutionStats
from periodcalc.resolution.ordering import sort_periods

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


class PeriodResolver:
    """Resolves overlapping periods into a non-overlapping set per product.

    The resolver never mutates the periods it is given: it works on copies and
    returns a new list. Counters for the most recent run are kept in
    ``stats``.

    Callers must guarantee ``period_start <= period_end`` for every period
    (see ``periodcalc.validation``); the engine does not check it.
    """

    def __init__(self) -> None:
        self.stats = ResolutionStats()

    def resolve(self, periods: Iterable[Period]) -> list[Period]:
        """Resolve overlaps and return the flattened, ordered periods.

        Args:
            periods: Periods in any order, possibly for several products

        Returns:
            New list of periods, sorted by (product, start, priority), with no
            two periods of the same product sharing a day
        """
        working = [period.model_copy() for period in periods]
        self.stats = ResolutionStats(input_count=len(working), passes=1)

        sort_periods(working)
        i = 0

        while i < len(working) - 1:
            current = working[i]
            following = working[i + 1]
            self.stats.comparisons += 1

            if not self._overlaps(current, following):
                i += 1
                continue

            logger.debug(
                "Overlap on product %s: [%s..%s p%s] vs [%s..%s p%s]",
                current.product_number,
                current.period_start,
                current.period_end,
                current.priority,
                following.period_start,
                following.period_end,
                following.priority,
            )

            if current.priority > following.priority:
                self._current_loses(working, current, following)
            else:
                self._current_wins(working, i, current, following)

            sort_periods(working)
            self.stats.passes += 1
            i = 0

        self.stats.output_count = len(working)
        logger.info(
            f"Period resolution: {self.stats.input_count} -> {self.stats.output_count} periods "
            f"({self.stats.trims} trimmed, {self.stats.splits} split, "
            f"{self.stats.removals} removed)"
        )
        return working

    @staticmethod
    def _overlaps(current: Period, following: Period) -> bool:
        """Adjacent-pair overlap test.

        Periods of different products never interact. Bounds are inclusive,
        so ending on the day the next period starts is an overlap.
        """
        if current.product_number != following.product_number:
            return False
        return current.period_end >= following.period_start

    def _current_loses(
        self, working: list[Period], current: Period, following: Period
    ) -> None:
        """Current has the weaker priority: cut it back before ``following``."""
        if current.period_end > following.period_end:
            # Following sits inside current: keep the tail as a new fragment.
            fragment = current.model_copy(
                update={"period_start": following.period_end + ONE_DAY}
            )
            working.append(fragment)
            self.stats.splits += 1
            logger.debug(
                "  Split: fragment %s..%s (priority %s)",
                fragment.period_start,
                fragment.period_end,
                fragment.priority,
            )
        else:
            self.stats.trims += 1

        current.period_end = following.period_start - ONE_DAY
        logger.debug("  Current now ends %s", current.period_end)

    def _current_wins(
        self, working: list[Period], i: int, current: Period, following: Period
    ) -> None:
        """Current has equal or stronger priority: shrink or drop ``following``."""
        if current.period_end >= following.period_end:
            del working[i + 1]
            self.stats.removals += 1
            logger.debug(
                "  Removed %s..%s (priority %s), fully covered",
                following.period_start,
                following.period_end,
                following.priority,
            )
        else:
            following.period_start = current.period_end + ONE_DAY
            self.stats.trims += 1
            logger.debug("  Next now starts %s", following.period_start)


def resolve_periods(periods: Iterable[Period]) -> list[Period]:
    """Convenience function: resolve overlaps with a fresh PeriodResolver.

    Args:
        periods: Periods in any order

    Returns:
        Ordered, non-overlapping periods per product
    """
    return PeriodResolver().resolve(periods)
