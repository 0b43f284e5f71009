"""SQLAlchemy database models for PeriodCalc.

``price_periods`` holds the raw, possibly overlapping validity periods.
``resolved_price_periods`` receives the flattened output of a run.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, DateTime, Index, Integer, Numeric, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class PricePeriodModel(Base):
    """Source price validity period for a product."""

    __tablename__ = "price_periods"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    product_number: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("price >= 0", name="check_period_price_non_negative"),
        Index("idx_price_periods_product_start", "product_number", "period_start"),
    )


class ResolvedPeriodModel(Base):
    """Flattened period produced by a resolution run.

    Split fragments share ``period_id`` with their source period, so the
    surrogate ``row_id`` is the primary key.
    """

    __tablename__ = "resolved_price_periods"

    row_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    run_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    period_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    product_number: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint("period_start <= period_end", name="check_resolved_period_bounds"),
    )
