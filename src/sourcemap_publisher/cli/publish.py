import asyncio
from collections.abc import Sequence
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sourcemap_publisher.core.pipeline import PublishReport, run_publish
from sourcemap_publisher.errors import PublishError, SourcemapPublisherError
from sourcemap_publisher.log import configure_logging
from sourcemap_publisher.models import ExtractionFailure

console = Console()
err_console = Console(stderr=True)


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


def _render_failures(failures: Sequence[ExtractionFailure]) -> None:
    table = Table(show_lines=False)
    table.add_column("file")
    table.add_column("reason")
    for failure in failures:
        table.add_row(_relativize(failure.source_path), failure.reason.description)
    console.print(table)


def _render_report(report: PublishReport) -> None:
    suffix = " (dry run)" if report.dry_run else ""
    console.print(f"Updated {len(report.updated)} sourcemap URLs, skipped {len(report.skipped)} files{suffix}")
    for skipped in report.skipped:
        console.print(f"[yellow]Skipped[/yellow] {escape(_relativize(skipped))} (could not load file or sourcemap)")
    if report.failures:
        console.print(f"{len(report.failures)} file(s) had no rewritable sourcemap reference:")
        _render_failures(report.failures)


def _print_output(line: str) -> None:
    console.print(line, markup=False, highlight=False)


def publish(
    paths: Annotated[
        list[str] | None,
        typer.Argument(help="Paths to scan for compiled sources (defaults to dist/)."),
    ] = None,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Dry run, do not publish.")] = False,
    provenance: Annotated[bool, typer.Option("--provenance", help="Enable provenance when publishing to npm.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Increase log verbosity.")] = False,
) -> None:
    """Publish sourcemaps externally."""
    configure_logging(verbose=verbose, console=err_console)
    console.print("[bold]Publishing sourcemaps...[/bold]")

    try:
        report = asyncio.run(
            run_publish(
                Path.cwd(),
                paths,
                dry_run=dry_run,
                provenance=provenance,
                on_output=_print_output,
            )
        )
    except PublishError as exc:
        if exc.report is not None and exc.report.publish_command is not None:
            _render_report(exc.report)
        err_console.print(f"[red]{escape(str(exc))}[/red]")
        err_console.print("[red]Failed to publish[/red]")
        raise typer.Exit(1) from exc
    except SourcemapPublisherError as exc:
        err_console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc

    _render_report(report)
    suffix = " (dry run)" if dry_run else ""
    console.print(f"[green]Published sourcemaps successfully![/green]{suffix}")
