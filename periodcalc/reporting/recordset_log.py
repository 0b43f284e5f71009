"""Line-oriented record-set log.

Appends one human-readable line per period to a log file, e.g.::

    2024-03-05 09:12:44 - Period 2024-01-01 to 2024-01-09, Prodnum: 880114, Price 19.90, Priority 2
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from periodcalc.models import Period

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"


def format_period_line(period: Period, timestamp: datetime) -> str:
    return (
        f"{timestamp.strftime(TIMESTAMP_FORMAT)} - "
        f"Period {period.period_start.strftime(DATE_FORMAT)} to "
        f"{period.period_end.strftime(DATE_FORMAT)}, "
        f"Prodnum: {period.product_number}, "
        f"Price {period.price:.2f}, "
        f"Priority {period.priority}"
    )


def log_recordset(
    periods: Iterable[Period], path: Path, label: str | None = None
) -> int:
    """Append every period to the record-set log.

    Args:
        periods: Periods to log
        path: Log file (created with its parent directory if missing)
        label: Optional header line written before the periods

    Returns:
        Number of period lines written

    Raises:
        OSError: If the log file cannot be opened or written
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handle = path.open("a", encoding="utf-8")
    except OSError as e:
        logger.error(f"Error opening log file {path}: {e}")
        raise

    written = 0
    with handle:
        if label:
            handle.write(f"# {datetime.now().strftime(TIMESTAMP_FORMAT)} {label}\n")
        for period in periods:
            handle.write(format_period_line(period, datetime.now()) + "\n")
            written += 1

    logger.info(f"Periods logged: {written} -> {path}")
    return written
