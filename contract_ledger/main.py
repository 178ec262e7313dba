from __future__ import annotations

import sys
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Tuple
from uuid import UUID

import typer

from contract_ledger.aggregation import (
    ActiveContractAggregator,
    CachedAggregator,
    available_aggregators,
    build_aggregator,
)
from contract_ledger.config import get_settings
from contract_ledger.domain.clock import SystemClock, ensure_aware
from contract_ledger.infrastructure.db_factory import PoolManager, get_sync_connection
from contract_ledger.projection.postgres import PostgresProjection
from contract_ledger.reporter import (
    contracts_total,
    print_cache_status,
    print_contracts,
    print_refresh_result,
)
from contract_ledger.scheduler import ViewRefreshScheduler
from contract_ledger.service import ContractService
from contract_ledger.store.postgres import PostgresClientLookup, PostgresContractStore
from contract_ledger.utils.logging import configure_logging

app = typer.Typer(help="Contract ledger CLI.")


def _configure() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


def _refresh_interval() -> timedelta:
    return timedelta(minutes=get_settings().refresh_interval_minutes)


def _service(strategy: Optional[str]) -> Tuple[ContractService, ActiveContractAggregator]:
    settings = get_settings()
    store = PostgresContractStore()
    aggregator = build_aggregator(
        strategy or settings.aggregation_strategy,
        store,
        projection=PostgresProjection(),
        staleness_bound=_refresh_interval(),
    )
    return ContractService(store, aggregator, PostgresClientLookup()), aggregator


def _report_cache_status(aggregator: ActiveContractAggregator) -> None:
    if isinstance(aggregator, CachedAggregator):
        print_cache_status(aggregator.as_of, aggregator.is_stale(SystemClock().now()))


def _parse_since(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return ensure_aware(datetime.fromisoformat(value))
    except ValueError as exc:
        raise typer.BadParameter(f"expected an ISO-8601 timestamp with offset: {exc}") from exc


_STRATEGY_OPTION = typer.Option(
    None,
    "--strategy",
    "-s",
    help=f"Aggregator to read through ({', '.join(available_aggregators())}); default from settings.",
)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"strategy={settings.aggregation_strategy} "
        f"refresh_every={settings.refresh_interval_minutes}min "
        f"page_size={settings.default_page_size}/{settings.max_page_size}"
    )


@app.command("init-db")
def init_db(
    schema: Path = typer.Option(Path("db/init.sql"), "--schema", help="Schema file to apply."),
) -> None:
    """
    Create the contract tables and the projection tables.
    """
    _configure()
    if not schema.exists():
        typer.echo(f"Schema file not found: {schema}", err=True)
        raise typer.Exit(code=1)
    with get_sync_connection() as conn:
        conn.execute(schema.read_text(encoding="utf-8"))
    typer.echo(f"Schema applied from {schema}.")


@app.command()
def refresh() -> None:
    """
    Run a single projection refresh cycle.
    """
    _configure()
    scheduler = ViewRefreshScheduler(PostgresProjection(), interval=_refresh_interval())
    result = scheduler.run_cycle()
    print_refresh_result(result)
    if result is None:
        raise typer.Exit(code=1)


@app.command("run-refresher")
def run_refresher() -> None:
    """
    Refresh the projection on the configured cadence until interrupted.
    """
    _configure()
    interval = _refresh_interval()
    typer.echo(f"Refreshing every {interval}. Press Ctrl+C to stop.")
    with ViewRefreshScheduler(PostgresProjection(), interval=interval):
        while True:
            time.sleep(1.0)


@app.command("sum")
def sum_active(
    client: UUID = typer.Option(..., "--client", "-c", help="Client id."),
    strategy: Optional[str] = _STRATEGY_OPTION,
) -> None:
    """
    Print the total cost of a client's active contracts.
    """
    _configure()
    service, aggregator = _service(strategy)
    typer.echo(str(service.sum_active(client)))
    _report_cache_status(aggregator)


@app.command()
def active(
    client: UUID = typer.Option(..., "--client", "-c", help="Client id."),
    updated_since: Optional[str] = typer.Option(
        None, "--updated-since", help="Only contracts modified at or after this instant."
    ),
    strategy: Optional[str] = _STRATEGY_OPTION,
) -> None:
    """
    List a client's active contracts.
    """
    _configure()
    service, aggregator = _service(strategy)
    contracts = service.active_contracts(client, _parse_since(updated_since))
    # Caption is computed from the listed rows, not from a second aggregator read.
    print_contracts(contracts, total=contracts_total(contracts))
    _report_cache_status(aggregator)


@app.command("close-all")
def close_all(
    client: UUID = typer.Option(..., "--client", "-c", help="Client id."),
) -> None:
    """
    Close every active contract of a client now.
    """
    _configure()
    service, _ = _service("direct")
    service.close_all_active(client)
    typer.echo(f"Closed all active contracts of client {client}.")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
    finally:
        PoolManager().close_all()


if __name__ == "__main__":
    main()
