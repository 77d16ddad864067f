"""
CLI Interface
=============
Command-line interface for the edital parser engine.

Usage:
    python -m edital_parser parse <path> [options]
    python -m edital_parser batch <directory> [options]
    python -m edital_parser diagnose <path>
    python -m edital_parser info <pdf_path>
    python -m edital_parser serve [--host] [--port]
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from . import __version__
from .classifier import classify
from .engine import ParserConfig, ParserEngine
from .extractor import ExtractionError, PdfTextExtractor
from .models import OkResult, PdfCategory
from .prevalidator import prevalidate

console = Console()

SEVERITY_STYLES = {"high": "red", "medium": "yellow", "low": "cyan"}


@click.group()
@click.version_option(version=__version__, prog_name="edital-parser")
def cli():
    """Edital Parser: syllabus extractor for exam notices."""
    pass


@cli.command()
@click.argument("path", type=click.Path(exists=True))
@click.option(
    "--output", "-o",
    default=None,
    help="Output directory for the JSON report",
)
@click.option(
    "--save-text",
    is_flag=True,
    default=False,
    help="Also save the preprocessed text (requires --output)",
)
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
@click.option(
    "--log-file",
    default=None,
    help="Path to log file",
)
@click.option(
    "--json-output",
    is_flag=True,
    default=False,
    help="Output only JSON result to stdout (for programmatic use)",
)
def parse(
    path: str,
    output: str,
    save_text: bool,
    log_level: str,
    log_file: str,
    json_output: bool,
):
    """Parse one edital (PDF or text file) into subjects and topics."""

    if json_output:
        # Suppress console output for JSON mode
        log_level = "ERROR"

    config = ParserConfig(
        output_dir=output,
        save_processed_text=save_text,
        log_level=log_level,
        log_file=log_file,
    )

    if not json_output:
        console.print()
        console.print(
            Panel.fit(
                f"[bold cyan]Edital Parser v{__version__}[/]\n"
                f"[dim]Parsing: {os.path.basename(path)}[/]",
                border_style="cyan",
            )
        )
        console.print()

    try:
        engine = ParserEngine(config)

        if not json_output:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=console,
            ) as progress:
                task = progress.add_task("Extracting text...", total=None)

                def on_page(current, total):
                    progress.update(task, completed=current, total=total)

                report = engine.process_file(path, progress_callback=on_page)
                progress.update(task, description="Done")

            _display_report(report)
        else:
            report = engine.process_file(path)
            # Output clean JSON to stdout
            print(json.dumps(
                report.model_dump(mode="json"),
                indent=2,
                ensure_ascii=False,
                default=str,
            ))

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)
    except RuntimeError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Unexpected error:[/] {e}")
        if log_level == "DEBUG":
            console.print_exception()
        sys.exit(1)


@cli.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.option("--output", "-o", default=None, help="Output directory")
@click.option("--log-level", default="WARNING", help="Logging level")
def batch(directory: str, output: str, log_level: str):
    """Parse every PDF and .txt file in a directory."""

    files = sorted(
        p for p in Path(directory).iterdir()
        if p.suffix.lower() in (".pdf", ".txt")
    )

    if not files:
        console.print(f"[yellow]No PDF or text files found in: {directory}[/]")
        return

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Batch Edital Parser[/]\n"
            f"[dim]Found {len(files)} files in: {directory}[/]",
            border_style="cyan",
        )
    )
    console.print()

    engine = ParserEngine(ParserConfig(output_dir=output, log_level=log_level))
    results = []
    errors = []

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Processing files...", total=len(files))

        for file in files:
            progress.update(task, description=f"Parsing: {file.name}")
            try:
                results.append((file.name, engine.process_file(str(file))))
            except Exception as e:
                errors.append((file.name, str(e)))
            progress.advance(task)

    _display_batch_summary(results, errors)


@cli.command()
@click.argument("path", type=click.Path(exists=True))
def diagnose(path: str):
    """Classify and pre-validate a document without parsing it."""

    try:
        if Path(path).suffix.lower() == ".pdf":
            text = PdfTextExtractor().extract(path)
        else:
            text = Path(path).read_text(encoding="utf-8", errors="replace")
    except ExtractionError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    classification = classify(text)
    prevalidation = prevalidate(text)

    console.print()
    table = Table(title="Classification", border_style="cyan")
    table.add_column("Property", style="bold")
    table.add_column("Value")

    category_style = {
        PdfCategory.VALID_TEXT: "green",
        PdfCategory.FRAGMENTED: "yellow",
        PdfCategory.SCANNED: "red",
    }[classification.category]
    table.add_row(
        "Category",
        f"[{category_style}]{classification.category.value}[/]",
    )
    table.add_row("Length", str(classification.length))
    table.add_row("Lines", str(classification.line_count))
    table.add_row("Density", f"{classification.density:.1f}")
    table.add_row(
        "Anchor Keyword",
        "[green]✓[/]" if classification.contains_anchor_keyword else "[red]✗[/]",
    )
    console.print(table)
    console.print()

    flags_table = Table(title="Pre-Validation", border_style="green")
    flags_table.add_column("Flag", style="bold")
    flags_table.add_column("Status", justify="center")
    for name, raised in prevalidation.flags.model_dump().items():
        flags_table.add_row(name, "[red]✗ raised[/]" if raised else "[green]✓[/]")
    console.print(flags_table)

    stats = prevalidation.stats
    console.print(
        f"[dim]Short lines: {stats.short_line_count} "
        f"({stats.short_line_percent:.1f}%)[/]"
    )
    console.print()


@cli.command()
@click.option("--host", default="0.0.0.0", help="Server host")
@click.option("--port", default=5000, type=int, help="Server port")
@click.option("--debug", is_flag=True, default=False, help="Debug mode")
def serve(host: str, port: int, debug: bool):
    """Start the HTTP microservice server."""
    from .server import run_server

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Edital Parser Microservice[/]\n"
            f"[dim]Starting on {host}:{port}[/]",
            border_style="cyan",
        )
    )
    console.print()

    run_server(host=host, port=port, debug=debug)


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True))
def info(pdf_path: str):
    """Display PDF file information."""

    try:
        metadata = PdfTextExtractor().get_metadata(pdf_path)
    except ExtractionError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    console.print()
    table = Table(title="PDF Information", border_style="cyan")
    table.add_column("Property", style="bold")
    table.add_column("Value")

    table.add_row("File", os.path.basename(pdf_path))
    table.add_row("Pages", str(metadata.pop("page_count")))
    table.add_row(
        "File Size",
        f"{os.path.getsize(pdf_path) / 1024 / 1024:.2f} MB",
    )

    for key in ["title", "author", "subject", "creator", "producer"]:
        val = metadata.get(key, "")
        if val:
            table.add_row(key.title(), val)

    console.print(table)
    console.print()


# ─── Display Helpers ──────────────────────────────────────────────────────────


def _display_report(report):
    """Display a processing report as rich tables."""
    console.print()
    result = report.result

    if isinstance(result, OkResult):
        _display_disciplines(result)
        _display_parser_stats(result)
    else:
        console.print(f"[red]Status:[/] {result.status.value}")
        console.print(f"[dim]{result.message}[/]")
        console.print()

    _display_decision(report.decision)

    console.print(
        f"[dim]Parser v{report.parser_version} | "
        f"Source: {report.source} | "
        f"Elapsed: {report.elapsed_seconds:.2f}s | "
        f"Timestamp: {report.processed_at}[/]"
    )
    console.print()


def _display_disciplines(result: OkResult):
    weights = result.weight_table.percentages()

    table = Table(title="Disciplines", border_style="cyan")
    table.add_column("Subject", style="bold")
    table.add_column("Topics", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Status", justify="center")

    for discipline in result.disciplines:
        weight = weights.get(discipline.original_name)
        table.add_row(
            discipline.name,
            str(len(discipline.topics)),
            f"{weight:.1f}%" if weight is not None else "-",
            "[green]✓[/]" if discipline.topics else "[red]✗[/]",
        )

    console.print(table)
    console.print()


def _display_parser_stats(result: OkResult):
    debug = result.debug

    table = Table(title="Parser Report", border_style="green")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_column("Status", justify="center")

    table.add_row(
        "Syllabus Section Found",
        "yes" if debug.section_found else "no",
        "[green]✓[/]" if debug.section_found else "[red]✗[/]",
    )
    table.add_row(
        "Subjects Detected",
        f"{debug.detected_subjects}/{len(debug.official_subjects)}",
        "[green]✓[/]" if debug.completeness >= 100 else "[yellow]⚠[/]",
    )
    table.add_row("Total Topics", str(debug.total_topics), "")
    table.add_row("Weighting Table", debug.weight_table.method.value, "")
    table.add_row(
        "Confidence Score",
        str(debug.confidence_score),
        "[green]✓[/]" if debug.confidence_score >= 70 else "[yellow]⚠[/]",
    )

    console.print(table)
    console.print()

    raised = [
        f"{group}.{name}"
        for group, flags in (
            ("classification", result.diagnostic.classification),
            ("prevalidation", result.diagnostic.prevalidation),
            ("parser", result.diagnostic.parser),
        )
        for name, value in flags.model_dump().items()
        if value
    ]
    if raised:
        flags_table = Table(title="Diagnostic Flags", border_style="yellow")
        flags_table.add_column("Flag", style="bold")
        for flag in raised:
            flags_table.add_row(flag)
        console.print(flags_table)
        console.print()


def _display_decision(decision):
    if decision is None:
        return

    style = SEVERITY_STYLES[decision.severity.value]
    buttons = f"[bold]{decision.primary.label}[/]"
    secondary = getattr(decision, "secondary", None)
    if secondary is not None:
        buttons += f"  |  {secondary.label}"

    body = f"{decision.message}\n\n{buttons}"
    for alert in getattr(decision, "other_alerts", []):
        body += f"\n[dim]• {alert.title}[/]"

    console.print(
        Panel(
            body,
            title=f"[bold {style}]{decision.title}[/]",
            subtitle=f"{decision.mode.value} / {decision.reason_key}",
            border_style=style,
        )
    )
    console.print()


def _display_batch_summary(results, errors):
    """Display batch processing summary."""
    console.print()

    table = Table(title="Batch Processing Summary", border_style="cyan")
    table.add_column("File", style="bold")
    table.add_column("Status")
    table.add_column("Subjects", justify="right")
    table.add_column("Topics", justify="right")
    table.add_column("Confidence", justify="right")

    total_topics = 0

    for name, report in results:
        result = report.result
        if isinstance(result, OkResult):
            topics = result.debug.total_topics
            total_topics += topics
            table.add_row(
                name,
                "[green]ok[/]",
                f"{result.debug.detected_subjects}/"
                f"{len(result.debug.official_subjects)}",
                str(topics),
                str(result.debug.confidence_score),
            )
        else:
            table.add_row(name, f"[yellow]{result.status.value}[/]", "-", "-", "-")

    for name, error in errors:
        table.add_row(name, "[red]✗ FAILED[/]", "-", "-", "-")

    console.print(table)
    console.print()
    console.print(
        f"[bold]Total:[/] {total_topics} topics from "
        f"{len(results)} files, {len(errors)} failures"
    )
    console.print()


# ─── Entry point (for python -m edital_parser.cli) ────────────────────────────


if __name__ == "__main__":
    cli()
