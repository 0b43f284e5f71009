"""Deterministic ordering of periods.

Periods are ordered by product number, then start date, then priority
(stronger first). Within one product this makes overlap detectable by looking
at adjacent elements only.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from periodcalc.models import Period


def period_sort_key(period: Period) -> tuple[int, date, int]:
    return (period.product_number, period.period_start, period.priority)


def sort_periods(periods: list[Period]) -> None:
    """Sort periods in place.

    list.sort is stable, so periods equal on all three keys keep their
    relative order.
    """
    periods.sort(key=period_sort_key)


def sorted_periods(periods: Iterable[Period]) -> list[Period]:
    """Return a new ordered list, leaving the input untouched."""
    return sorted(periods, key=period_sort_key)
