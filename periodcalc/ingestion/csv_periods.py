"""Period file ingestion for PeriodCalc.

Reads period exports (CSV/XLSX) into Period models so a run can be made
without a database connection.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path

import pandas as pd
from pydantic import ValidationError

from periodcalc.models import Period

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {
    "ID",
    "Period Start",
    "Period End",
    "Price",
    "Product Number",
    "Priority",
}


def _parse_date(value: str) -> date:
    value = str(value).strip()
    if not value:
        raise ValueError("missing date")
    return pd.Timestamp(value).date()


def read_periods_csv(file_path: Path) -> list[Period]:
    """Read periods from a CSV or XLSX file (legacy .xls is not supported).

    Expected columns:
    - ID (integer)
    - Period Start / Period End (ISO dates, inclusive)
    - Price (decimal, non-negative)
    - Product Number (integer)
    - Priority (integer, lower wins)

    Args:
        file_path: Path to CSV or XLSX file

    Returns:
        Periods in file order

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the format, columns or any row is invalid
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Period file not found: {file_path}")

    # Read everything as text; conversion is done per field below
    if file_path.suffix.lower() == ".csv":
        df = pd.read_csv(file_path, dtype=str, keep_default_na=False)
    elif file_path.suffix.lower() == ".xlsx":
        df = pd.read_excel(file_path, dtype=str, keep_default_na=False)
    else:
        raise ValueError(f"Unsupported file format: {file_path.suffix}")

    df.columns = [str(c).strip() for c in df.columns]
    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(f"Missing required columns: {sorted(missing)}")

    periods = []
    for idx, row in df.iterrows():
        try:
            periods.append(
                Period(
                    id=int(str(row["ID"]).strip()),
                    period_start=_parse_date(row["Period Start"]),
                    period_end=_parse_date(row["Period End"]),
                    price=Decimal(str(row["Price"]).strip()),
                    product_number=int(str(row["Product Number"]).strip()),
                    priority=int(str(row["Priority"]).strip()),
                )
            )
        except (TypeError, ValueError, InvalidOperation, ValidationError) as e:
            raise ValueError(f"Row {idx}: invalid period: {e}") from e

    logger.info(f"Read {len(periods)} periods from {file_path}")
    return periods
