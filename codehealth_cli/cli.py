"""Typer-based CLI for CodeHealth."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import Settings, load_settings
from .dead_code import DeadCodeAnalyzer
from .dependency_analyzer import DependencyAnalyzer
from .gitlab import GitLabError
from .models import AnalyzedIssue, DeadCodeFinding, DependencyFinding
from .orchestrator import CodeHealthOptimizer

console = Console()

app = typer.Typer(
    help="🩺 CodeHealth: find dead code, duplicates and unused dependencies in JS/TS repositories.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"CodeHealth CLI v{__version__}")
        raise typer.Exit()


def setup_logging(verbose: bool) -> None:
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if isinstance(handler, RichHandler):
            root_logger.removeHandler(handler)
    root_logger.addHandler(RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
    ))
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """CodeHealth CLI: static code health analysis with optional AI review."""
    setup_logging(verbose)


def _score_color(score: float) -> str:
    if score >= 80:
        return "green"
    elif score >= 60:
        return "yellow"
    return "red"


def _settings_for(repo: Optional[Path]) -> Settings:
    settings = load_settings()
    if repo is not None:
        settings.repo_path = repo
    if not settings.repo_path.is_dir():
        console.print(f"[red]✗[/red] Repository path '{settings.repo_path}' does not exist.")
        raise typer.Exit(1)
    return settings


def _dead_code_table(findings: List[DeadCodeFinding]) -> Table:
    table = Table(title="Dead Code", show_header=True)
    table.add_column("File", style="cyan")
    table.add_column("Lines", justify="right")
    table.add_column("Function", style="bold")
    table.add_column("Confidence", justify="right")
    for f in findings:
        table.add_row(f.file_path, f"{f.line_start}-{f.line_end}", f.function_name, f"{f.confidence:.0%}")
    return table


def _dependency_table(findings: List[DependencyFinding]) -> Table:
    table = Table(title="Dependencies", show_header=True)
    table.add_column("Package", style="cyan")
    table.add_column("Reason")
    table.add_column("Current")
    table.add_column("Latest")
    for f in findings:
        color = "yellow" if f.reason == "unused" else "blue"
        table.add_row(f.package, f"[{color}]{f.reason}[/{color}]", f.current_version or "-", f.latest_version or "-")
    return table


def _findings_table(findings: List[AnalyzedIssue], limit: int) -> Table:
    table = Table(title="Findings", show_header=True)
    table.add_column("Type", style="cyan")
    table.add_column("Severity")
    table.add_column("Location")
    table.add_column("Description", min_width=30)
    severity_colors = {"high": "red", "medium": "yellow", "low": "green"}
    for f in findings[:limit]:
        color = severity_colors.get(f.severity, "white")
        location = f.file_path or "N/A"
        if f.file_path and f.line_start:
            location = f"{f.file_path}:{f.line_start}"
        table.add_row(f.type, f"[{color}]{f.severity}[/{color}]", location, f.description)
    return table


@app.command("analyze")
def analyze(
    repo: Optional[Path] = typer.Argument(None, file_okay=False, help="Repository to analyze (default: $REPO_PATH or cwd)."),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON."),
    publish: bool = typer.Option(True, "--publish/--no-publish", help="Open GitLab issues when GitLab is configured."),
    limit: int = typer.Option(10, "--limit", "-n", min=1, help="Number of findings to display."),
):
    """Run every analyzer and print the health report.

    Example:
      codehealth analyze ./my-app --no-publish
    """
    settings = _settings_for(repo)
    try:
        result = CodeHealthOptimizer(settings, publish=publish).analyze()
    except GitLabError as exc:
        console.print(f"[red]✗[/red] Publishing to GitLab failed: {exc}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    color = _score_color(result.health_score)
    console.print(
        Panel.fit(
            f"[bold {color}]{result.health_score}/100[/bold {color}]\n"
            f"Total issues: {result.total_issues}\n"
            f"Estimated time savings: {result.estimated_savings:g} hours",
            title="[bold]Code Health Score[/bold]",
            border_style=color,
        )
    )
    if not result.findings:
        console.print("[green]✓[/green] No issues found.")
        return

    console.print(_findings_table(result.findings, limit))
    if len(result.findings) > limit:
        console.print(f"  ... and {len(result.findings) - limit} more")


@app.command("dead-code")
def dead_code(
    repo: Optional[Path] = typer.Argument(None, file_okay=False, help="Repository to analyze (default: $REPO_PATH or cwd)."),
    as_json: bool = typer.Option(False, "--json", help="Print findings as JSON."),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Parallel parser threads."),
):
    """Report functions and methods with no internal references."""
    settings = _settings_for(repo)
    analysis = settings.analysis
    findings = DeadCodeAnalyzer(
        settings.repo_path,
        test_markers=analysis.test_markers,
        confidence=analysis.confidence,
        workers=workers or analysis.workers,
    ).analyze()

    if as_json:
        typer.echo(json.dumps([f.to_dict() for f in findings], indent=2))
        return
    if not findings:
        console.print("[green]✓[/green] No dead code found.")
        return
    console.print(_dead_code_table(findings))
    console.print(f"\n[bold]{len(findings)}[/bold] unreferenced declaration(s).")


@app.command("deps")
def deps(
    repo: Optional[Path] = typer.Argument(None, file_okay=False, help="Repository to analyze (default: $REPO_PATH or cwd)."),
):
    """Report unused and outdated npm dependencies."""
    settings = _settings_for(repo)
    findings = DependencyAnalyzer(settings.repo_path).analyze_npm()
    if not findings:
        console.print("[green]✓[/green] No dependency issues found.")
        return
    console.print(_dependency_table(findings))
