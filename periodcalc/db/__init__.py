"""Database layer for PeriodCalc with async SQLAlchemy."""

from periodcalc.db.connection import get_session, init_db
from periodcalc.db.models import Base, PricePeriodModel, ResolvedPeriodModel

__all__ = [
    "Base",
    "PricePeriodModel",
    "ResolvedPeriodModel",
    "get_session",
    "init_db",
]
