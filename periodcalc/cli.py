"""PeriodCalc CLI.

Commands:
- run: Fetch periods, resolve overlaps, log and optionally persist the result
- validate: Check a period source for periods that end before they start
- init: Initialize database schema
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from uuid import uuid4

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from periodcalc.config import DEVELOPMENT, PRODUCTION, AppConfig, load_config
from periodcalc.core.logging import configure_logging
from periodcalc.db.connection import close_db, get_session, init_db
from periodcalc.db.period_queries import (
    PeriodScanError,
    fetch_all_periods,
    fetch_periods,
    load_period_query,
    save_resolved_periods,
)
from periodcalc.ingestion.csv_periods import read_periods_csv
from periodcalc.models import Period, ResolutionStats
from periodcalc.reporting.recordset_log import log_recordset
from periodcalc.resolution.engine import PeriodResolver
from periodcalc.resolution.partition import resolve_partitioned
from periodcalc.utils.performance import OperationTimer
from periodcalc.validation import InvalidPeriodsError, drop_invalid_periods, validate_periods

app = typer.Typer(
    name="periodcalc",
    help="PeriodCalc - flatten overlapping price validity periods",
    no_args_is_help=True,
)

console = Console()

SOURCE_ERRORS = (FileNotFoundError, ValueError, PeriodScanError, SQLAlchemyError)


def _load_config(dev: bool, debug: bool, require_database: bool) -> AppConfig:
    environment = DEVELOPMENT if dev else PRODUCTION
    console.print(f"Running in {environment} mode")

    try:
        config = load_config(environment, debug=debug, require_database=require_database)
    except (KeyError, ValueError) as e:
        console.print(f"[bold red]✗ Config error:[/bold red] {e}")
        raise typer.Exit(code=1)

    configure_logging(config.logging)
    if config.logging.debug:
        console.print(
            f"[dim]query={config.query_path} log_to_file={config.logging.log_to_file} "
            f"log_file={config.logging.file_path} workers={config.resolution.max_workers}[/dim]"
        )
    return config


async def _fetch(config: AppConfig, csv_path: Path | None) -> list[Period]:
    if csv_path is not None:
        return read_periods_csv(csv_path)

    query = load_period_query(config.query_path) if config.query_path else None
    try:
        async with get_session() as session:
            if query is None:
                return await fetch_all_periods(session)
            return await fetch_periods(session, query)
    finally:
        await close_db()


def _load_periods(config: AppConfig, csv_path: Path | None) -> list[Period]:
    try:
        return asyncio.run(_fetch(config, csv_path))
    except SOURCE_ERRORS as e:
        console.print(f"[bold red]✗ Failed to fetch periods:[/bold red] {e}")
        raise typer.Exit(code=1)


def _log_recordset(periods: list[Period], config: AppConfig, label: str) -> None:
    try:
        log_recordset(periods, config.logging.file_path, label=label)
    except OSError as e:
        console.print(f"[bold red]✗ Failed to write record-set log:[/bold red] {e}")
        raise typer.Exit(code=1)


def _print_issues(errors) -> None:
    for error in errors[:20]:
        console.print(f"  {error.message}", style="dim")
    if len(errors) > 20:
        console.print(f"  ... and {len(errors) - 20} more", style="dim")


@app.command()
def run(
    dev: bool = typer.Option(False, "--dev", help="Use development environment settings"),
    debug: bool = typer.Option(False, "--debug", help="Verbose logging, including resolution trace"),
    csv_path: Path | None = typer.Option(None, "--csv", help="Read periods from CSV/XLSX instead of the database"),
    workers: int | None = typer.Option(None, "--workers", "-w", help="Worker processes (partition by product)"),
    skip_invalid: bool = typer.Option(False, "--skip-invalid", help="Drop invalid periods instead of failing"),
    persist: bool = typer.Option(False, "--persist", help="Save resolved periods to the database"),
):
    """Resolve overlapping periods into a non-overlapping set per product."""
    config = _load_config(dev, debug, require_database=csv_path is None or persist)
    workers = workers or config.resolution.max_workers
    skip_invalid = skip_invalid or config.resolution.skip_invalid

    periods = _load_periods(config, csv_path)
    console.print(f"Fetched {len(periods)} periods")

    if config.logging.log_to_file:
        _log_recordset(periods, config, "fetched periods")

    if skip_invalid:
        periods, errors = drop_invalid_periods(periods)
        if errors:
            console.print(f"[yellow]⚠[/yellow] Dropped {len(errors)} invalid periods")
            _print_issues(errors)
    else:
        try:
            validate_periods(periods)
        except InvalidPeriodsError as e:
            console.print(f"[bold red]✗ {len(e.errors)} invalid periods[/bold red]")
            _print_issues(e.errors)
            raise typer.Exit(code=1)

    with OperationTimer("resolve_periods", threshold_ms=5000) as timer:
        if workers > 1:
            stats = ResolutionStats()
            resolved = resolve_partitioned(periods, max_workers=workers, stats=stats)
        else:
            resolver = PeriodResolver()
            resolved = resolver.resolve(periods)
            stats = resolver.stats

    if config.logging.log_to_file:
        _log_recordset(resolved, config, "resolved periods")

    if persist:
        run_id = str(uuid4())

        async def _persist():
            try:
                async with get_session() as session:
                    return await save_resolved_periods(session, resolved, run_id)
            finally:
                await close_db()

        try:
            saved = asyncio.run(_persist())
        except SQLAlchemyError as e:
            console.print(f"[bold red]✗ Failed to save resolved periods:[/bold red] {e}")
            raise typer.Exit(code=1)
        console.print(f"[green]✓[/green] Saved {saved} periods (run {run_id})")

    table = Table(title="Resolution")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")

    table.add_row("Input periods", str(len(periods)))
    table.add_row("Output periods", str(len(resolved)))
    table.add_row("Trimmed", str(stats.trims))
    table.add_row("Split", str(stats.splits))
    table.add_row("Removed", str(stats.removals))
    table.add_row("Elapsed (ms)", f"{timer.duration_ms:.1f}")

    console.print(table)
    console.print("[bold green]✓[/bold green] Periods resolved")


@app.command()
def validate(
    dev: bool = typer.Option(False, "--dev", help="Use development environment settings"),
    csv_path: Path | None = typer.Option(None, "--csv", help="Read periods from CSV/XLSX instead of the database"),
):
    """Check periods for start dates after end dates."""
    config = _load_config(dev, debug=False, require_database=csv_path is None)
    periods = _load_periods(config, csv_path)

    try:
        validate_periods(periods)
    except InvalidPeriodsError as e:
        console.print(f"[bold red]✗ {len(e.errors)} of {len(periods)} periods are invalid[/bold red]")
        _print_issues(e.errors)
        raise typer.Exit(code=1)

    console.print(f"[bold green]✓[/bold green] All {len(periods)} periods are valid")


@app.command()
def init(
    dev: bool = typer.Option(False, "--dev", help="Use development environment settings"),
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = _load_config(dev, debug=False, require_database=True)
    console.print(f"[bold]Initializing database[/bold] ({config.environment})")

    async def _init():
        try:
            await init_db(drop=drop)
        finally:
            await close_db()

    try:
        asyncio.run(_init())
    except SQLAlchemyError as e:
        console.print(f"[bold red]✗ Database error:[/bold red] {e}")
        raise typer.Exit(code=1)
    console.print("[bold green]✓[/bold green] Database initialized")


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
