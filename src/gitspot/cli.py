"""Typer CLI for gitspot."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from gitspot.config import CONFIG_ENV_VAR, DEFAULT_CONFIG_TEMPLATE, GitspotConfig
from gitspot.errors import (
    AnalysisCancelled,
    ConfigError,
    InsufficientHistory,
    RepositoryUnavailable,
)
from gitspot.models import HotspotReport

load_dotenv()

EXIT_CONFIG_ERROR = 1
EXIT_REPOSITORY_UNAVAILABLE = 2
EXIT_INSUFFICIENT_HISTORY = 3
EXIT_CANCELLED = 130

app = typer.Typer(
    name="gitspot",
    help="Rank files in a git repository by recency-weighted change activity.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def _setup_logging(repo: Path, debug: bool) -> None:
    import logging

    gitspot_logger = logging.getLogger("gitspot")
    gitspot_logger.setLevel(logging.DEBUG)

    # Always log to file when the repo directory exists
    if repo.is_dir():
        file_handler = logging.FileHandler(repo / ".gitspot.log", mode="w")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s")
        )
        gitspot_logger.addHandler(file_handler)

    if debug:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter("%(name)s %(levelname)s %(message)s"))
        gitspot_logger.addHandler(stream_handler)


@app.command()
def analyze(
    repo: Annotated[
        Path, typer.Option("--repo", "-r", help="Path to git repository")
    ] = Path("."),
    since: Annotated[
        str | None, typer.Option("--since", "-s", help="Lookback period (e.g. 6m, 2w, 90d)")
    ] = None,
    ref: Annotated[
        str | None, typer.Option("--ref", help="Reference to walk history from")
    ] = None,
    baseline: Annotated[
        str | None,
        typer.Option("--baseline", "-b", help="Diff baseline: newest or previous"),
    ] = None,
    limit: Annotated[
        int | None, typer.Option("--limit", "-n", help="Number of hotspots to show", min=0)
    ] = None,
    workers: Annotated[
        int | None, typer.Option("--workers", "-w", help="Parallel diff workers", min=1)
    ] = None,
    formats: Annotated[
        str | None,
        typer.Option("--format", "-f", help="Output formats (comma-separated)"),
    ] = None,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Directory to write reports to")
    ] = None,
    config_path: Annotated[
        Path | None, typer.Option("--config", "-c", help="Path to gitspot.toml")
    ] = None,
    debug: Annotated[
        bool, typer.Option("--debug", help="Log to stderr as well as .gitspot.log")
    ] = False,
) -> None:
    """Score and rank files by recent change activity."""
    _setup_logging(repo, debug)

    from gitspot.pipeline import run_pipeline

    try:
        config = GitspotConfig.load(config_path)
        config.repo_path = str(repo.resolve())
        if since:
            config.analysis.since = since
        if ref:
            config.analysis.ref = ref
        if baseline:
            config.analysis.diff_baseline = baseline
        if workers is not None:
            config.analysis.workers = workers
        if limit is not None:
            config.output.limit = limit
        if formats:
            config.output.formats = [f.strip() for f in formats.split(",") if f.strip()]
        config.validate()
    except ConfigError as exc:
        err_console.print(f"[red]Config error:[/red] {exc}")
        raise typer.Exit(EXIT_CONFIG_ERROR)

    try:
        with console.status("[bold green]Scoring history..."):
            report = run_pipeline(config)
    except RepositoryUnavailable as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(EXIT_REPOSITORY_UNAVAILABLE)
    except InsufficientHistory as exc:
        err_console.print(f"[yellow]{exc}[/yellow]")
        raise typer.Exit(EXIT_INSUFFICIENT_HISTORY)
    except (AnalysisCancelled, KeyboardInterrupt):
        err_console.print("[yellow]Cancelled.[/yellow]")
        raise typer.Exit(EXIT_CANCELLED)

    _print_report(report, config.output.limit)

    if output is not None:
        from gitspot.pipeline import write_outputs

        written = write_outputs(report, config.output.formats, output, config.output.limit)
        console.print(f"\n[bold green]Done![/bold green] Wrote {len(written)} files:")
        for path in written:
            console.print(f"  {path}")


def _printable(path: str) -> str:
    """Show undecodable path bytes as U+FFFD on the terminal."""
    return path.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def _print_report(report: HotspotReport, limit: int | None) -> None:
    table = Table(title=f"Hotspots since {report.since.date().isoformat()}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Score", justify="right")
    table.add_column("File", overflow="fold")
    for rank, spot in enumerate(report.ranking.top(limit), start=1):
        table.add_row(str(rank), f"{spot.score:.6f}", _printable(spot.path))
    console.print(table)
    console.print(
        f"{report.ranking.total} files scored from {report.commits_analyzed} commits"
    )
    if report.skipped:
        console.print(f"[yellow]{report.skipped_summary}[/yellow]")


@app.command()
def init(
    path: Annotated[
        Path, typer.Option("--path", "-p", help="Where to create gitspot.toml")
    ] = Path("."),
) -> None:
    """Create a gitspot.toml config file."""
    target = path / "gitspot.toml"
    if target.exists():
        console.print(f"[yellow]{target} already exists.[/yellow]")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    console.print(f"[green]Created {target}[/green]")
    if CONFIG_ENV_VAR in os.environ:
        console.print(f"[dim]Note: {CONFIG_ENV_VAR} is set and takes precedence.[/dim]")
