"""Record-set logging for PeriodCalc runs."""

from periodcalc.reporting.recordset_log import format_period_line, log_recordset

__all__ = ["format_period_line", "log_recordset"]
