"""CLI entry point for the storefront scenario suite."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from shopqa.errors import FixtureLoadError
from shopqa.models.config import SUPPORTED_BROWSERS, SuiteConfig
from shopqa.orchestrator import Orchestrator

console = Console()

EXIT_SCENARIO_FAILED = 1
EXIT_SETUP_FAILED = 2


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def load_config(path: str, **overrides) -> SuiteConfig:
    """Load the config file (or defaults if absent) and apply CLI overrides."""
    try:
        if Path(path).exists():
            cfg = SuiteConfig.load(path)
        else:
            logging.getLogger(__name__).debug("No config at %s, using defaults", path)
            cfg = SuiteConfig()
        updates = {k: v for k, v in overrides.items() if v is not None}
        if updates:
            cfg = SuiteConfig.model_validate({**cfg.model_dump(), **updates})
        return cfg
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
        sys.exit(EXIT_SETUP_FAILED)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Storefront UI scenario suite"""
    setup_logging(verbose)


@cli.command()
@click.option("--config", "-c", default="shopqa-config.json", help="Config file path")
@click.option("--grep", "-g", default=None, help="Only scenarios whose id or name contains this")
@click.option("--tag", "-t", "tags", multiple=True, help="Only scenarios carrying this tag")
@click.option("--workers", "-w", type=int, default=None, help="Parallel browser contexts")
@click.option("--headed/--headless", default=None, help="Show the browser window")
@click.option("--browser", type=click.Choice(SUPPORTED_BROWSERS), default=None)
@click.option("--seed", type=int, default=None, help="Seed for sampled products")
@click.option("--base-url", default=None, help="Override the site base URL")
def run(config: str, grep: str | None, tags: tuple[str, ...], workers: int | None,
        headed: bool | None, browser: str | None, seed: int | None,
        base_url: str | None) -> None:
    """Run the scenario suite against the live site."""
    cfg = load_config(
        config,
        max_parallel_contexts=workers,
        headless=None if headed is None else not headed,
        browser=browser,
        sample_seed=seed,
        base_url=base_url,
    )

    orchestrator = Orchestrator(cfg)
    try:
        results = orchestrator.run(grep=grep, tags=tags)
    except FixtureLoadError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(EXIT_SETUP_FAILED)

    console.print("\n[bold green]Run Complete[/bold green]")
    table = Table(title="Results Summary")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Run ID", results["run_id"])
    table.add_row("Duration", f"{results['duration']}s")
    table.add_row("Seed", str(results["seed"]))
    table.add_row("Total Scenarios", str(results["results"]["total"]))
    table.add_row("Passed", f"[green]{results['results']['passed']}[/green]")
    table.add_row("Failed", f"[red]{results['results']['failed']}[/red]")
    table.add_row("Errors", f"[red]{results['results']['errors']}[/red]")
    console.print(table)

    for scenario_id, reason in results["failures"]:
        console.print(f"  [red]✗[/red] {scenario_id}: {reason}")

    for fmt, path in results["reports"].items():
        console.print(f"  {fmt.upper()} report: [blue]{path}[/blue]")

    if results["results"]["failed"] or results["results"]["errors"]:
        sys.exit(EXIT_SCENARIO_FAILED)


@cli.command("list")
@click.option("--config", "-c", default="shopqa-config.json", help="Config file path")
@click.option("--grep", "-g", default=None, help="Only scenarios whose id or name contains this")
@click.option("--tag", "-t", "tags", multiple=True, help="Only scenarios carrying this tag")
@click.option("--seed", type=int, default=None, help="Seed for sampled products")
def list_scenarios(config: str, grep: str | None, tags: tuple[str, ...],
                   seed: int | None) -> None:
    """List the scenarios a run would execute, without opening a browser."""
    cfg = load_config(config, sample_seed=seed)
    orchestrator = Orchestrator(cfg)
    try:
        cases = orchestrator.build_cases(grep=grep, tags=tags)
    except FixtureLoadError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(EXIT_SETUP_FAILED)

    table = Table(title=f"{len(cases)} scenarios (seed {orchestrator.seed})")
    table.add_column("ID", style="bold", no_wrap=True)
    table.add_column("Name")
    table.add_column("Tags")
    table.add_column("Steps", justify="right")
    for case in cases:
        table.add_row(case.scenario_id, case.name, ", ".join(case.tags), str(len(case.steps)))
    console.print(table)


@cli.command()
@click.option("--base-url", default="https://www.saucedemo.com", help="Site base URL")
@click.option("--output", "-o", default="shopqa-config.json", help="Config file path")
def init(base_url: str, output: str) -> None:
    """Create a default configuration file."""
    config_path = Path(output)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    cfg = SuiteConfig(base_url=base_url)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nYou can now customize this file and run:")
    console.print("  [blue]shopqa run[/blue]")


if __name__ == "__main__":
    cli()
