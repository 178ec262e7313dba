"""
Data generation and loading script for the contract ledger.

Implements deterministic pseudo-random client and contract generation, CSV
emission, and Postgres COPY loading. Generated contracts respect the domain
invariants: the end date, when present, is strictly after the start date and
costs are non-negative with two fractional digits.
"""

from __future__ import annotations

import csv
import random
import sys
import tempfile
import time
import uuid
from datetime import UTC, date, datetime, timedelta
from pathlib import Path

import psycopg
import typer

from contract_ledger.infrastructure.db_factory import build_dsn

app = typer.Typer(help="Generate synthetic clients and contracts and load them into Postgres.")

CLIENT_HEADER = ["id", "kind", "name", "email", "phone", "birth_date", "company_identifier"]
CONTRACT_HEADER = ["id", "client_id", "start_date", "end_date", "cost_amount", "last_modified"]


def _build_dsn(dsn_override: str | None) -> str:
    if dsn_override:
        return dsn_override
    return build_dsn()


def _uuid(rng: random.Random) -> uuid.UUID:
    return uuid.UUID(int=rng.getrandbits(128), version=4)


def _generate_clients_csv(csv_path: Path, clients: int, seed: int) -> list[uuid.UUID]:
    rng = random.Random(seed)
    ids: list[uuid.UUID] = []
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CLIENT_HEADER)
        for i in range(clients):
            client_id = _uuid(rng)
            ids.append(client_id)
            phone = f"+4179{rng.randint(1_000_000, 9_999_999)}"
            if rng.random() < 0.5:
                birth = date(1950, 1, 1) + timedelta(days=rng.randint(0, 18_000))
                row = [client_id, "person", f"Person {i}", f"person{i}@example.com", phone,
                       birth.isoformat(), ""]
            else:
                row = [client_id, "company", f"Company {i}", f"company{i}@example.com", phone,
                       "", f"CHE-{rng.randint(100, 999)}.{rng.randint(100, 999)}.{i:03d}"]
            writer.writerow(row)
    return ids


def _generate_contracts_csv(
    csv_path: Path,
    client_ids: list[uuid.UUID],
    rows: int,
    batch_size: int,
    seed: int,
) -> None:
    rng = random.Random(seed + 1)
    now = datetime.now(UTC)

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CONTRACT_HEADER)

        buffer: list[list[object]] = []
        for _ in range(rows):
            start = now - timedelta(days=rng.randint(0, 730), seconds=rng.randint(0, 86_399))
            end = None
            if rng.random() < 0.6:
                end = start + timedelta(days=rng.randint(1, 1_095))
            cost = f"{rng.uniform(0, 10_000):.2f}"
            buffer.append(
                [
                    _uuid(rng),
                    rng.choice(client_ids),
                    start.isoformat(),
                    end.isoformat() if end else "",
                    cost,
                    start.isoformat(),
                ]
            )
            if len(buffer) >= batch_size:
                writer.writerows(buffer)
                buffer.clear()
        if buffer:
            writer.writerows(buffer)


def _copy_into_db(dsn: str, clients_csv: Path, contracts_csv: Path) -> None:
    with psycopg.connect(dsn) as conn:
        with conn.cursor() as cur:
            for table, header, path in (
                ("public.clients", CLIENT_HEADER, clients_csv),
                ("public.contracts", CONTRACT_HEADER, contracts_csv),
            ):
                # Empty CSV fields load as NULL.
                with cur.copy(
                    f"COPY {table} ({', '.join(header)}) FROM STDIN WITH (FORMAT csv, HEADER TRUE)"
                ) as copy:
                    with path.open("r", encoding="utf-8") as f:
                        for line in f:
                            copy.write(line)
        conn.commit()


@app.command()
def main(
    clients: int = typer.Option(
        1_000,
        "--clients",
        "-c",
        help="Number of clients to generate.",
    ),
    rows: int = typer.Option(
        100_000,
        "--rows",
        "-r",
        help="Number of contracts to generate.",
    ),
    batch_size: int = typer.Option(
        10_000,
        "--batch-size",
        "-b",
        help="Batch size for CSV buffering during generation.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Optional directory for the CSV files (if omitted, a temp dir will be used).",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
    no_load: bool = typer.Option(
        False,
        "--no-load",
        help="Only generate CSV; skip loading into Postgres.",
    ),
) -> None:
    """
    Generate synthetic clients and contracts and optionally load them using COPY.
    """
    start = time.perf_counter()
    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)
        target = output_dir
    else:
        target = Path(tempfile.mkdtemp(prefix="contract_ledger_csv_"))
    clients_csv = target / "clients.csv"
    contracts_csv = target / "contracts.csv"

    typer.echo(f"Generating {clients:,} clients and {rows:,} contracts -> {target} (seed={seed})")
    client_ids = _generate_clients_csv(clients_csv, clients=clients, seed=seed)
    _generate_contracts_csv(contracts_csv, client_ids, rows=rows, batch_size=batch_size, seed=seed)
    gen_duration = time.perf_counter() - start
    typer.echo(f"CSV generation completed in {gen_duration:.2f}s")

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    load_start = time.perf_counter()
    typer.echo("Loading CSV into Postgres via COPY...")
    _copy_into_db(_build_dsn(dsn), clients_csv, contracts_csv)
    load_duration = time.perf_counter() - load_start
    typer.echo(f"Load completed in {load_duration:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
