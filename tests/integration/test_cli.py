"""End-to-end tests for the PeriodCalc CLI."""

from __future__ import annotations

import asyncio
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from typer.testing import CliRunner

from periodcalc.cli import app
from periodcalc.db.models import PricePeriodModel, ResolvedPeriodModel

QUERY_FILE = Path(__file__).resolve().parents[2] / "queries" / "periods.sql"

HEADER = "ID,Period Start,Period End,Price,Product Number,Priority\n"

runner = CliRunner()


@pytest.fixture
def periods_csv(tmp_path) -> Path:
    csv_file = tmp_path / "periods.csv"
    csv_file.write_text(
        HEADER
        + "1,2024-01-01,2024-01-31,20.00,880114,2\n"
        + "2,2024-01-10,2024-01-20,15.50,880114,1\n"
        + "3,2024-01-01,2024-06-30,7.25,880200,1\n"
        + "4,2024-02-01,2024-02-28,6.99,880200,4\n"
    )
    return csv_file


@pytest.fixture
def invalid_csv(tmp_path) -> Path:
    csv_file = tmp_path / "invalid.csv"
    csv_file.write_text(
        HEADER
        + "1,2024-01-01,2024-01-31,20.00,880114,2\n"
        + "2,2024-03-01,2024-02-01,15.50,880114,1\n"
    )
    return csv_file


class TestRunFromCsv:
    def test_run_resolves_periods(self, periods_csv):
        result = runner.invoke(app, ["run", "--csv", str(periods_csv)])

        assert result.exit_code == 0, result.output
        assert "Running in production mode" in result.output
        assert "Fetched 4 periods" in result.output
        assert "Periods resolved" in result.output

    def test_run_dev_mode(self, periods_csv):
        result = runner.invoke(app, ["run", "--dev", "--debug", "--csv", str(periods_csv)])

        assert result.exit_code == 0, result.output
        assert "Running in development mode" in result.output

    def test_run_writes_recordset_log(self, periods_csv, tmp_path, monkeypatch):
        log_file = tmp_path / "logs" / "periods.log"
        monkeypatch.setenv("LOG_TO_FILE", "true")
        monkeypatch.setenv("LOG_FILE_PATH", str(log_file))

        result = runner.invoke(app, ["run", "--csv", str(periods_csv)])

        assert result.exit_code == 0, result.output
        lines = log_file.read_text(encoding="utf-8").splitlines()
        period_lines = [line for line in lines if not line.startswith("#")]
        # 4 fetched + 4 resolved (one split, one removal)
        assert len(period_lines) == 8
        assert any("Period 2024-01-21 to 2024-01-31, Prodnum: 880114" in line for line in period_lines)

    def test_run_recordset_log_unwritable(self, periods_csv, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_TO_FILE", "true")
        # A directory cannot be opened for appending
        monkeypatch.setenv("LOG_FILE_PATH", str(tmp_path))

        result = runner.invoke(app, ["run", "--csv", str(periods_csv)])

        assert result.exit_code == 1
        assert "Failed to write record-set log" in result.output
        assert "Periods resolved" not in result.output

    def test_run_rejects_invalid_batch(self, invalid_csv):
        result = runner.invoke(app, ["run", "--csv", str(invalid_csv)])

        assert result.exit_code == 1
        assert "1 invalid periods" in result.output

    def test_run_skip_invalid(self, invalid_csv):
        result = runner.invoke(app, ["run", "--csv", str(invalid_csv), "--skip-invalid"])

        assert result.exit_code == 0, result.output
        assert "Dropped 1 invalid periods" in result.output

    def test_run_missing_file(self, tmp_path):
        result = runner.invoke(app, ["run", "--csv", str(tmp_path / "missing.csv")])

        assert result.exit_code == 1
        assert "Failed to fetch periods" in result.output

    def test_run_without_database_url(self, periods_csv, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)

        result = runner.invoke(app, ["run", "--csv", str(periods_csv)])

        assert result.exit_code == 0, result.output


class TestValidateCommand:
    def test_valid(self, periods_csv):
        result = runner.invoke(app, ["validate", "--csv", str(periods_csv)])

        assert result.exit_code == 0, result.output
        assert "All 4 periods are valid" in result.output

    def test_invalid(self, invalid_csv):
        result = runner.invoke(app, ["validate", "--csv", str(invalid_csv)])

        assert result.exit_code == 1
        assert "1 of 2 periods are invalid" in result.output


class TestDatabaseRun:
    @pytest.fixture
    def database_url(self, tmp_path, monkeypatch) -> str:
        url = f"sqlite+aiosqlite:///{tmp_path / 'periods.db'}"
        monkeypatch.setenv("DATABASE_URL", url)
        monkeypatch.setenv("PERIOD_QUERY_PATH", str(QUERY_FILE))
        return url

    @staticmethod
    async def _seed(url: str) -> None:
        engine = create_async_engine(url)
        SessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        async with SessionLocal() as session:
            session.add_all(
                [
                    PricePeriodModel(
                        id=1,
                        period_start=date(2024, 1, 1),
                        period_end=date(2024, 1, 31),
                        price=Decimal("20.00"),
                        product_number=880114,
                        priority=2,
                    ),
                    PricePeriodModel(
                        id=2,
                        period_start=date(2024, 1, 10),
                        period_end=date(2024, 1, 20),
                        price=Decimal("15.50"),
                        product_number=880114,
                        priority=1,
                    ),
                ]
            )
            await session.commit()
        await engine.dispose()

    @staticmethod
    async def _count_resolved(url: str) -> int:
        engine = create_async_engine(url)
        async with engine.connect() as conn:
            result = await conn.execute(select(func.count()).select_from(ResolvedPeriodModel))
            count = result.scalar_one()
        await engine.dispose()
        return count

    def test_init_run_and_persist(self, database_url):
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0, result.output
        assert "Database initialized" in result.output

        asyncio.run(self._seed(database_url))

        result = runner.invoke(app, ["run", "--persist"])
        assert result.exit_code == 0, result.output
        assert "Fetched 2 periods" in result.output
        assert "Saved 3 periods" in result.output

        assert asyncio.run(self._count_resolved(database_url)) == 3

    def test_run_missing_query_file(self, database_url, monkeypatch, tmp_path):
        monkeypatch.setenv("PERIOD_QUERY_PATH", str(tmp_path / "nope.sql"))

        result = runner.invoke(app, ["run"])

        assert result.exit_code == 1
        assert "Period query not found" in result.output

    def test_run_reads_table_without_query_file(self, database_url, monkeypatch):
        monkeypatch.setenv("PERIOD_QUERY_PATH", "")

        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0, result.output

        asyncio.run(self._seed(database_url))

        result = runner.invoke(app, ["run"])
        assert result.exit_code == 0, result.output
        assert "Fetched 2 periods" in result.output
        assert "Periods resolved" in result.output
