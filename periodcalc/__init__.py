"""PeriodCalc - flattens overlapping price validity periods per product."""

__version__ = "0.1.0"
