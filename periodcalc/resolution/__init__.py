"""Overlap resolution for price validity periods."""

from periodcalc.resolution.engine import PeriodResolver, resolve_periods
from periodcalc.resolution.ordering import period_sort_key, sort_periods, sorted_periods
from periodcalc.resolution.partition import partition_by_product, resolve_partitioned

__all__ = [
    "PeriodResolver",
    "resolve_periods",
    "period_sort_key",
    "sort_periods",
    "sorted_periods",
    "partition_by_product",
    "resolve_partitioned",
]
