"""CLI entry point for netscore."""

import asyncio
import json
import logging
from pathlib import Path

# Load .env file if it exists
from dotenv import load_dotenv
load_dotenv()

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from netscore.adapters.resolver import IdentifierResolver
from netscore.analyzers.pipeline import ScoringPipeline
from netscore.errors import MissingCredential, NetScoreError
from netscore.models.schemas import FailedScore, ScoreReport

app = typer.Typer(help="Composite trust scoring for npm and GitHub packages.")

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@app.command()
def score(
    url: str = typer.Argument(..., help="npm package or GitHub repository URL"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as one JSON line"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output JSON file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Score a single package URL."""
    _configure_logging(verbose)
    asyncio.run(_score(url, as_json, output))


async def _score(url: str, as_json: bool, output: Path | None) -> None:
    """Async implementation of score."""
    try:
        pipeline = ScoringPipeline()
    except MissingCredential as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    async with pipeline:
        if as_json:
            report = await _run(pipeline, url, as_json)
        else:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
            ) as progress:
                progress.add_task(f"Scoring {url}...", total=None)
                report = await _run(pipeline, url, as_json)

    if as_json:
        print(json.dumps(report.to_output(include_url=True)))
    else:
        _print_report(report)

    if output:
        output.write_text(json.dumps(report.to_output(include_url=True), indent=2))
        console.print(f"\n[green]Saved to {output}[/green]")


async def _run(pipeline: ScoringPipeline, url: str, as_json: bool) -> ScoreReport:
    """Score the URL; a failure is reported (as a NetScore -1 record with --json) and exits 1."""
    result = await pipeline.score_url_safe(url)
    if isinstance(result, FailedScore):
        if as_json:
            print(json.dumps(result.to_output(include_url=True)))
        else:
            console.print(f"[red]Error scoring package: {result.error}[/red]")
        raise typer.Exit(1)
    return result


def _print_report(report: ScoreReport) -> None:
    score_color = "green" if report.net_score >= 0.7 else "yellow" if report.net_score >= 0.4 else "red"
    console.print()
    console.print(
        Panel(
            f"[bold][{score_color}]{report.net_score:.2f}[/{score_color}][/bold] / 1.00",
            title=f"NetScore - {report.url}",
            expand=False,
        )
    )

    table = Table(title="Score Breakdown", show_header=True)
    table.add_column("Metric", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Latency (ms)", justify="right", style="dim")

    rows = [
        ("Bus Factor", report.bus_factor, report.bus_factor_latency),
        ("Correctness", report.correctness, report.correctness_latency),
        ("Ramp Up", report.ramp_up, report.ramp_up_latency),
        ("Responsive Maintainer", report.responsive_maintainer, report.responsive_maintainer_latency),
        ("License", report.license, report.license_latency),
        ("Pinned Dependencies", report.pinned_dependencies, report.pinned_dependencies_latency),
        ("Pull Request Review", report.pull_request_review, report.pull_request_review_latency),
    ]
    for name, value, latency in rows:
        table.add_row(name, f"{value:.2f}", str(latency))
    table.add_row("[bold]Total[/bold]", f"[bold]{report.net_score:.2f}[/bold]", str(report.net_score_latency))

    console.print(table)


@app.command()
def resolve(
    url: str = typer.Argument(..., help="npm package or GitHub repository URL"),
) -> None:
    """Print the GitHub repository a package URL resolves to."""
    asyncio.run(_resolve(url))


async def _resolve(url: str) -> None:
    """Async implementation of resolve."""
    resolver = IdentifierResolver()
    try:
        repository_url = await resolver.resolve_url(url)
    except NetScoreError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    console.print(repository_url)


if __name__ == "__main__":
    app()
