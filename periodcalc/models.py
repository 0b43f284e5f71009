"""PeriodCalc Pydantic models for price validity periods.

A Period is mutated in place during resolution (bounds are trimmed), so the
model keeps pydantic's default non-validating assignment.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, field_validator


class Period(BaseModel):
    """Price validity interval for one product.

    Both bounds are inclusive. Lower ``priority`` values take precedence.
    """

    id: int
    period_start: date
    period_end: date
    price: Decimal
    product_number: int
    priority: int

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("price must be non-negative")
        return v

    @property
    def days(self) -> int:
        """Number of days covered (inclusive)."""
        return (self.period_end - self.period_start).days + 1

    def covers(self, day: date) -> bool:
        return self.period_start <= day <= self.period_end

    def overlaps(self, other: Period) -> bool:
        """True if both periods belong to the same product and share a day."""
        return (
            self.product_number == other.product_number
            and self.period_start <= other.period_end
            and other.period_start <= self.period_end
        )

    class Config:
        json_schema_extra = {
            "example": {
                "id": 1042,
                "period_start": "2024-01-01",
                "period_end": "2024-01-31",
                "price": Decimal("19.90"),
                "product_number": 880114,
                "priority": 1,
            }
        }


@dataclass
class ResolutionStats:
    """Counters collected during one resolution run."""

    input_count: int = 0
    output_count: int = 0
    comparisons: int = 0
    trims: int = 0
    splits: int = 0
    removals: int = 0
    passes: int = 0

    @property
    def mutations(self) -> int:
        return self.trims + self.splits + self.removals

    def merge(self, other: ResolutionStats) -> None:
        """Accumulate counters from another (per-product) run."""
        self.input_count += other.input_count
        self.output_count += other.output_count
        self.comparisons += other.comparisons
        self.trims += other.trims
        self.splits += other.splits
        self.removals += other.removals
        self.passes += other.passes
