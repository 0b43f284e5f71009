"""Period queries for PeriodCalc.

Periods are fetched with a SQL statement kept in a file so the selection can
change without a release. The statement must return its columns in this
order: id, period start, period end, price, product number, priority.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from periodcalc.db.models import PricePeriodModel, ResolvedPeriodModel
from periodcalc.models import Period
from periodcalc.utils.performance import log_slow_queries

logger = logging.getLogger(__name__)

PERIOD_COLUMNS = (
    "id",
    "period_start",
    "period_end",
    "price",
    "product_number",
    "priority",
)


class PeriodScanError(Exception):
    """Raised when a result row cannot be converted into a Period."""

    pass


def load_period_query(path: Path) -> str:
    """Read the period selection SQL from a file.

    Raises:
        FileNotFoundError: If the query file doesn't exist
        ValueError: If the file is empty
    """
    if not path.exists():
        raise FileNotFoundError(f"Period query not found: {path}")

    query = path.read_text(encoding="utf-8").strip()
    if not query:
        raise ValueError(f"Period query file is empty: {path}")

    logger.debug(f"Query: {query}")
    return query


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    raise TypeError(f"cannot read a date from {type(value).__name__}")


def scan_period(row: Sequence[Any], row_number: int = 0) -> Period:
    """Convert one positional result row into a Period.

    Raises:
        PeriodScanError: If the row has the wrong shape or unreadable values
    """
    if len(row) != len(PERIOD_COLUMNS):
        raise PeriodScanError(
            f"Row {row_number}: expected {len(PERIOD_COLUMNS)} columns "
            f"({', '.join(PERIOD_COLUMNS)}), got {len(row)}"
        )

    period_id, start, end, price, product_number, priority = row
    try:
        return Period(
            id=int(period_id),
            period_start=_as_date(start),
            period_end=_as_date(end),
            price=Decimal(str(price)),
            product_number=int(product_number),
            priority=int(priority),
        )
    except (TypeError, ValueError, InvalidOperation, ValidationError) as e:
        raise PeriodScanError(f"Row {row_number}: error scanning period: {e}") from e


@log_slow_queries(threshold_ms=2000)
async def fetch_periods(session: AsyncSession, query: str) -> list[Period]:
    """Execute the period query and scan every row.

    Args:
        session: Database session
        query: SQL text returning the period columns in order

    Returns:
        Periods in the order the database returned them

    Raises:
        PeriodScanError: If any row cannot be scanned
        SQLAlchemyError: If query execution fails
    """
    result = await session.execute(text(query))
    periods = [scan_period(tuple(row), idx) for idx, row in enumerate(result.all())]

    logger.info(f"Fetched {len(periods)} periods")
    return periods


async def fetch_all_periods(session: AsyncSession) -> list[Period]:
    """Load every row of ``price_periods`` through the ORM."""
    stmt = select(PricePeriodModel).order_by(PricePeriodModel.id)

    result = await session.execute(stmt)
    rows = result.scalars().all()

    return [_row_to_period(row) for row in rows]


async def save_resolved_periods(
    session: AsyncSession, periods: Sequence[Period], run_id: str
) -> int:
    """Persist a resolved period set under a run identifier.

    Args:
        session: Database session
        periods: Resolved periods
        run_id: Identifier grouping the rows of one run

    Returns:
        Number of rows written
    """
    session.add_all(
        ResolvedPeriodModel(
            run_id=run_id,
            period_id=period.id,
            period_start=period.period_start,
            period_end=period.period_end,
            price=period.price,
            product_number=period.product_number,
            priority=period.priority,
        )
        for period in periods
    )
    await session.flush()

    logger.info(f"Saved {len(periods)} resolved periods for run {run_id}")
    return len(periods)


def _row_to_period(row: PricePeriodModel) -> Period:
    """Convert database row to Pydantic model."""
    return Period(
        id=row.id,
        period_start=row.period_start,
        period_end=row.period_end,
        price=row.price,
        product_number=row.product_number,
        priority=row.priority,
    )
