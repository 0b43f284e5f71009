"""Pytest configuration and fixtures for PeriodCalc tests.

Provides common fixtures for testing.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from periodcalc.config import reset_config
from periodcalc.models import Period


def make_period(
    period_id: int,
    start: str,
    end: str,
    priority: int,
    product_number: int = 100,
    price: str = "10.00",
) -> Period:
    """Build a Period from ISO date strings."""
    return Period(
        id=period_id,
        period_start=date.fromisoformat(start),
        period_end=date.fromisoformat(end),
        price=Decimal(price),
        product_number=product_number,
        priority=priority,
    )


@pytest.fixture
def period_factory():
    """Factory fixture for building periods."""
    return make_period


@pytest.fixture
def overlapping_periods() -> list[Period]:
    """Mixed batch covering trim, split and removal across two products."""
    return [
        # Product 100: base price with a promotion in the middle
        make_period(1, "2024-01-01", "2024-03-31", priority=3, price="20.00"),
        make_period(2, "2024-02-01", "2024-02-14", priority=1, price="15.00"),
        make_period(3, "2024-03-15", "2024-04-30", priority=2, price="18.00"),
        # Product 200: a stronger period covering a weaker one
        make_period(4, "2024-01-01", "2024-12-31", priority=1, product_number=200),
        make_period(5, "2024-06-01", "2024-06-30", priority=5, product_number=200),
        # Product 300: no overlap at all
        make_period(6, "2024-01-01", "2024-01-31", priority=1, product_number=300),
        make_period(7, "2024-02-01", "2024-02-29", priority=1, product_number=300),
    ]


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    for name in (
        "ENVIRONMENT",
        "JSON_LOGS",
        "LOG_TO_FILE",
        "LOG_FILE_PATH",
        "PERIOD_QUERY_PATH",
        "RESOLUTION_MAX_WORKERS",
        "SKIP_INVALID_PERIODS",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()
