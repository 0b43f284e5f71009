"""Input validation for period batches.

The resolution engine assumes every period has ``period_start <= period_end``.
This module checks that before a run, either rejecting the whole batch or
dropping the offending records.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from periodcalc.models import Period

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeriodValidationError:
    """One invalid period in a batch."""

    index: int
    period_id: int
    product_number: int
    period_start: date
    period_end: date

    @property
    def message(self) -> str:
        return (
            f"Row {self.index}: period {self.period_id} (product {self.product_number}) "
            f"starts {self.period_start} after it ends {self.period_end}"
        )


class InvalidPeriodsError(ValueError):
    """Raised when a batch contains periods that end before they start."""

    def __init__(self, errors: Sequence[PeriodValidationError]):
        self.errors = list(errors)
        summary = "; ".join(e.message for e in self.errors[:5])
        more = len(self.errors) - 5
        if more > 0:
            summary += f" (and {more} more)"
        super().__init__(f"{len(self.errors)} invalid period(s): {summary}")


def find_invalid_periods(periods: Sequence[Period]) -> list[PeriodValidationError]:
    """Return one error per period whose start is after its end."""
    return [
        PeriodValidationError(
            index=idx,
            period_id=period.id,
            product_number=period.product_number,
            period_start=period.period_start,
            period_end=period.period_end,
        )
        for idx, period in enumerate(periods)
        if period.period_start > period.period_end
    ]


def validate_periods(periods: Sequence[Period]) -> None:
    """Reject the batch if any period is invalid.

    Raises:
        InvalidPeriodsError: Listing every offending period
    """
    errors = find_invalid_periods(periods)
    if errors:
        raise InvalidPeriodsError(errors)


def drop_invalid_periods(
    periods: Sequence[Period],
) -> tuple[list[Period], list[PeriodValidationError]]:
    """Keep only valid periods.

    Returns:
        Tuple of (valid periods, errors for the dropped ones)
    """
    errors = find_invalid_periods(periods)
    rejected = {e.index for e in errors}
    for error in errors:
        logger.warning(f"Dropping invalid period: {error.message}")
    valid = [p for idx, p in enumerate(periods) if idx not in rejected]
    return valid, errors
