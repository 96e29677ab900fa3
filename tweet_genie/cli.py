import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown

from tweet_genie.analytics.dashboard import DEFAULT_DAYS, build_dashboard
from tweet_genie.analytics.policy import DEFAULT_POLICY, AnalyticsPolicy, load_policy
from tweet_genie.fetchers.metrics import (
    MetricsClient,
    MetricsSourceError,
    ReconnectRequiredError,
    SyncRefusedError,
    effective_days,
)
from tweet_genie.formatter import format_dashboard_report
from tweet_genie.models import AnalyticsDashboard, MetricsSnapshot

load_dotenv()
app = typer.Typer(help="Analytics dashboards and posting recommendations for a Twitter account.")
console = Console()


@app.callback()
def main():
    level = getattr(logging, os.getenv("LOG_LEVEL", "WARNING").upper(), None)
    logging.basicConfig(
        level=level if isinstance(level, int) else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _resolve_policy(path: Optional[Path]) -> AnalyticsPolicy:
    path = path or (Path(os.environ["ANALYTICS_POLICY_PATH"]) if os.getenv("ANALYTICS_POLICY_PATH") else None)
    if path is None:
        return DEFAULT_POLICY
    try:
        return load_policy(path)
    except (OSError, ValueError) as exc:
        console.print(f"[bold red]Error:[/] could not load policy {path}: {exc}")
        raise typer.Exit(1)


def _emit(dashboard: AnalyticsDashboard, output: Optional[Path], as_json: bool) -> None:
    if as_json:
        text = json.dumps(dashboard.model_dump(by_alias=True, mode="json"), indent=2, ensure_ascii=False)
    else:
        text = format_dashboard_report(dashboard)

    if output:
        output.write_text(text)
        console.print(f"[bold green]✓[/] Report saved to [cyan]{output}[/]")
    elif as_json:
        console.print_json(text)
    else:
        console.print(Markdown(text))


@app.command()
def report(
    snapshot: Path = typer.Argument(help="JSON file holding a raw metrics snapshot"),
    days: int = typer.Option(DEFAULT_DAYS, "--days", "-d", help="Timeframe in days (7, 30, 90 or 365)"),
    policy: Optional[Path] = typer.Option(None, "--policy", "-p", help="YAML file overriding analytics thresholds"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Save report to file instead of printing"),
    as_json: bool = typer.Option(False, "--json", help="Emit the dashboard as JSON instead of Markdown"),
):
    """Compute a dashboard from a snapshot file."""
    try:
        data = MetricsSnapshot.model_validate_json(snapshot.read_text())
    except OSError as exc:
        console.print(f"[bold red]Error:[/] could not read {snapshot}: {exc}")
        raise typer.Exit(1)
    except ValidationError as exc:
        console.print(f"[bold red]Error:[/] {snapshot} is not a valid metrics snapshot:\n{exc}")
        raise typer.Exit(1)

    dashboard = build_dashboard(data, effective_days(data, days), _resolve_policy(policy))
    _emit(dashboard, output, as_json)


@app.command()
def fetch(
    days: int = typer.Option(DEFAULT_DAYS, "--days", "-d", help="Timeframe in days (7, 30, 90 or 365)"),
    policy: Optional[Path] = typer.Option(None, "--policy", "-p", help="YAML file overriding analytics thresholds"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Save report to file instead of printing"),
    as_json: bool = typer.Option(False, "--json", help="Emit the dashboard as JSON instead of Markdown"),
):
    """Fetch live metrics from the analytics API and report on them."""
    thresholds = _resolve_policy(policy)
    client = MetricsClient.from_env()

    with console.status("[bold green]Fetching analytics..."):
        try:
            data = asyncio.run(client.fetch_snapshot(days))
        except ReconnectRequiredError as exc:
            console.print(f"[bold red]Error:[/] {exc}")
            raise typer.Exit(1)
        except MetricsSourceError as exc:
            console.print(f"[bold red]Error:[/] {exc}")
            console.print(f"[dim]Is the analytics API running at {client.base_url}?[/]")
            raise typer.Exit(1)

    for warning in data.warnings:
        console.print(f"[yellow]Partial data:[/] {warning}")

    dashboard = build_dashboard(data, effective_days(data, days), thresholds)
    _emit(dashboard, output, as_json)


@app.command()
def sync(
    days: int = typer.Option(DEFAULT_DAYS, "--days", "-d", help="Timeframe in days (7, 30, 90 or 365)"),
):
    """Pull the latest tweet metrics from Twitter into the analytics backend (Pro only)."""
    client = MetricsClient.from_env()

    with console.status("[bold green]Syncing latest metrics..."):
        try:
            outcome = asyncio.run(client.sync(days))
        except SyncRefusedError as exc:
            console.print(f"[bold yellow]Sync skipped:[/] {exc}")
            raise typer.Exit(1)
        except MetricsSourceError as exc:
            console.print(f"[bold red]Error:[/] {exc}")
            raise typer.Exit(1)

    if outcome.rate_limited:
        retry = f" Try again after {outcome.reset_time}." if outcome.reset_time else " Please try again later."
        console.print(f"[yellow]Rate limit reached after syncing {outcome.updated} tweets.[/]{retry}")
    elif outcome.success and outcome.updated == 0:
        console.print("[yellow]Sync completed but updated 0 tweets.[/]")
    else:
        console.print(
            f"[bold green]✓[/] Updated metrics for [cyan]{outcome.updated}[/] tweets "
            f"[dim]({outcome.processed} processed, {outcome.errors} errors)[/]"
        )
