"""CLI commands for storebench."""

import json
import logging
import sys
from pathlib import Path

import click
from pydantic import BaseModel, ValidationError

from storebench.backends import BACKENDS, create_adapter
from storebench.config import CONFIG_FILENAME, Config
from storebench.exceptions import PersistenceError, StoreBenchError
from storebench.models import SeedProgress
from storebench.orchestrator import SeedOrchestrator
from storebench.timer import BenchmarkTimer


def load_config(path: str | None) -> Config:
    """Explicit file, else the nearest storebench.toml, else defaults + env."""
    if path:
        return Config.from_toml(path)
    try:
        return Config.find_and_load()
    except FileNotFoundError:
        return Config()


def apply_overrides(section: BaseModel, overrides: dict) -> BaseModel:
    """
    Return a validated copy of a settings section with CLI flags applied.

    Flags left unset (None) keep the configured value. Invalid values print
    an error and exit with status 1.
    """
    values = {**section.model_dump(), **{k: v for k, v in overrides.items() if v is not None}}
    try:
        return type(section).model_validate(values)
    except ValidationError as e:
        click.echo(f"✗ Invalid options:\n{e}", err=True)
        sys.exit(1)


def echo_failure(progress: SeedProgress) -> None:
    phase = progress.failed_phase.value if progress.failed_phase else progress.phase.value
    click.echo(f"  failed phase: {phase}", err=True)
    click.echo(f"  persisted before failure: {progress.counts()}", err=True)


def echo_progress(progress: SeedProgress) -> None:
    counts = ", ".join(f"{k}={v}" for k, v in progress.counts().items())
    click.echo(f"[{progress.phase.value}] {counts}")


@click.group()
@click.version_option(package_name="storebench")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """storebench - seed and benchmark a document store against a relational store."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--path", default=CONFIG_FILENAME, show_default=True, help="File to write")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init(path: str, force: bool) -> None:
    """Write a default configuration file."""
    target = Path(path)
    if target.exists() and not force:
        click.echo(f"Error: {target} already exists (use --force to overwrite)", err=True)
        sys.exit(1)
    Config().to_toml(target)
    click.echo(f"✓ Wrote {target}")


@cli.command()
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file")
@click.option("--backend", type=click.Choice(BACKENDS), help="Backend to seed")
@click.option("--customers", type=int, help="Customers to seed")
@click.option("--products", type=int, help="Products to seed")
@click.option("--orders", type=int, help="Orders to seed")
@click.option("--batch-size", type=int, help="Customers/products per batch")
@click.option("--order-batch-size", type=int, help="Orders per batch")
@click.option("--workers", type=int, help="Order assembly workers")
@click.option("--seed", "random_seed", type=int, help="Random seed")
def seed(
    config_path: str | None,
    backend: str | None,
    customers: int | None,
    products: int | None,
    orders: int | None,
    batch_size: int | None,
    order_batch_size: int | None,
    workers: int | None,
    random_seed: int | None,
) -> None:
    """Reset the schema and seed customers, products and orders."""
    config = load_config(config_path)
    if backend:
        config.backend = backend

    overrides = {
        "customer_count": customers,
        "product_count": products,
        "order_count": orders,
        "batch_size": batch_size,
        "order_batch_size": order_batch_size,
        "workers": workers,
        "random_seed": random_seed,
    }
    settings = apply_overrides(config.seed, overrides)

    with create_adapter(config) as adapter:
        orchestrator = SeedOrchestrator(adapter, settings, on_progress=echo_progress)
        try:
            progress = orchestrator.run()
        except StoreBenchError as e:
            click.echo(f"✗ Seeding failed: {e}", err=True)
            if not isinstance(e, PersistenceError):
                echo_failure(orchestrator.progress)
            sys.exit(1)

    click.echo(
        f"✓ Seeded {config.backend}: {progress.total_persisted} entities {progress.counts()} "
        f"({progress.order_lines} order lines) in {progress.elapsed_seconds:.2f}s"
    )


@cli.command()
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file")
@click.option("--backend", type=click.Choice(BACKENDS), help="Backend to query")
@click.option("--window-days", type=int, help="Trailing order window in days")
@click.option("--email-suffix", help="Customer email suffix filter")
@click.option("--top", "top_n", type=int, help="Rows to return")
@click.option("--repetitions", type=int, help="Timed repetitions")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def bench(
    config_path: str | None,
    backend: str | None,
    window_days: int | None,
    email_suffix: str | None,
    top_n: int | None,
    repetitions: int | None,
    output_json: bool,
) -> None:
    """Time the customer spend aggregation query."""
    config = load_config(config_path)
    if backend:
        config.backend = backend

    overrides = {
        "window_days": window_days,
        "email_suffix": email_suffix,
        "top_n": top_n,
        "repetitions": repetitions,
    }
    settings = apply_overrides(config.benchmark, overrides)

    try:
        with create_adapter(config) as adapter:
            result = BenchmarkTimer(adapter, settings).run()
    except StoreBenchError as e:
        click.echo(f"✗ Benchmark failed: {e}", err=True)
        sys.exit(1)

    if output_json:
        click.echo(json.dumps(result.to_dict(include_rows=True), indent=2))
        return

    click.echo(f"Backend:  {result.backend}")
    click.echo(f"  runs:   {len(result.timings_ms)}")
    click.echo(f"  best:   {result.best_ms:.1f} ms")
    click.echo(f"  mean:   {result.mean_ms:.1f} ms")
    click.echo(f"  rows:   {len(result.rows)}")


@cli.command()
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file")
@click.option("--backend", type=click.Choice(BACKENDS), help="Backend to seed and query")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def run(config_path: str | None, backend: str | None, output_json: bool) -> None:
    """Seed the backend, then time the aggregation query on the fresh data."""
    config = load_config(config_path)
    if backend:
        config.backend = backend

    with create_adapter(config) as adapter:
        orchestrator = SeedOrchestrator(adapter, config.seed)
        try:
            progress = orchestrator.run()
            result = BenchmarkTimer(adapter, config.benchmark).run()
        except StoreBenchError as e:
            click.echo(f"✗ Run failed: {e}", err=True)
            if not isinstance(e, PersistenceError):
                echo_failure(orchestrator.progress)
            sys.exit(1)

    if output_json:
        click.echo(
            json.dumps({"seed": progress.to_dict(), "benchmark": result.to_dict()}, indent=2)
        )
        return

    click.echo(f"✓ Seeded {config.backend}: {progress.counts()}")
    click.echo(f"  best: {result.best_ms:.1f} ms, mean: {result.mean_ms:.1f} ms")


if __name__ == "__main__":
    cli()
