"""File ingestion for PeriodCalc (CSV/XLSX period exports)."""

from periodcalc.ingestion.csv_periods import read_periods_csv

__all__ = ["read_periods_csv"]
