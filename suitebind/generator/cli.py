"""Command-line interface for suitebind code generation."""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import TYPE_CHECKING, NoReturn

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from suitebind import __version__
from suitebind.generator import pipeline
from suitebind.generator.classifier import TypeClassifier
from suitebind.generator.config import ConfigError, load_type_map
from suitebind.generator.model import build_suite_model
from suitebind.generator.parser import ExtractionError, parse_file

if TYPE_CHECKING:
    from suitebind.generator.model import SuiteModel
    from suitebind.generator.pipeline import RunReport


def setup_logging(verbose: bool) -> None:
    """Send package logs to stderr through rich."""
    logger = logging.getLogger("suitebind")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False, show_time=False)
        logger.addHandler(handler)


def _fail(message: str) -> NoReturn:
    Console().print(f"[red]Error:[/red] {message}", highlight=False)
    sys.exit(1)


def _load_classifier(config_path: str | None) -> TypeClassifier:
    try:
        config = load_type_map(config_path)
    except ConfigError as e:
        _fail(str(e))
    return TypeClassifier(config)


@click.group()
@click.version_option(__version__, prog_name="suitebind")
def cli() -> None:
    """Suite binding generator: C++ JSON wrappers and TypeScript clients."""


@cli.command()
@click.option("--sdk", "-s", "sdk_path", required=True, help="Directory holding the SDK headers")
@click.option("--output", "-o", "output_path", required=True, help="Output directory")
@click.option("--config", "-c", "config_path", default=None, help="Type map JSON file")
@click.option("--suites", default=None, help="Comma-separated suite names to generate")
@click.option("--cpp-only", is_flag=True, default=False, help="Only generate C++ wrappers")
@click.option("--ts-only", is_flag=True, default=False, help="Only generate TypeScript clients")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Debug logging")
def gen(
    sdk_path: str,
    output_path: str,
    config_path: str | None,
    suites: str | None,
    cpp_only: bool,
    ts_only: bool,
    verbose: bool,
) -> None:
    """Generate wrappers and clients for the suites of an SDK."""
    setup_logging(verbose)

    if cpp_only and ts_only:
        _fail("--cpp-only and --ts-only cannot be combined")
    if not os.path.isdir(sdk_path):
        _fail(f"SDK path not found: {sdk_path}")

    classifier = _load_classifier(config_path)

    headers = pipeline.find_headers(sdk_path)
    if not headers:
        _fail(f"No {pipeline.HEADER_PATTERN} headers found in {sdk_path}")

    suite_names = [s.strip() for s in suites.split(",") if s.strip()] if suites else None

    try:
        report = pipeline.run(
            headers,
            output_path,
            classifier,
            suites=suite_names,
            cpp_enabled=not ts_only,
            ts_enabled=not cpp_only,
        )
    except pipeline.GenerationError as e:
        _fail(str(e))

    _print_report(report)
    if not report.ok:
        sys.exit(1)


def _print_report(report: RunReport) -> None:
    console = Console()

    table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    table.add_column("Suite", style="white")
    table.add_column("Functions", style="green", justify="right")
    table.add_column("Skipped", style="yellow", justify="right")
    for suite in report.suites:
        table.add_row(suite.name, str(suite.functions), str(len(suite.skipped)))
    console.print(table)
    console.print()

    console.print(
        f"[bold cyan]Generated[/bold cyan] {len(report.suites)} suites, "
        f"{report.function_count} functions ({report.skipped_count} skipped) "
        f"from {report.headers} headers",
        highlight=False,
    )
    for name in report.missing:
        console.print(f"[yellow]Not found:[/yellow] {name}", highlight=False)
    for failure in report.failures:
        console.print(f"[red]Failed:[/red] {failure.name}: {failure.error}", highlight=False)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Header file to inspect")
@click.option("--config", "-c", "config_path", default=None, help="Type map JSON file")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(input_file: str, config_path: str | None, output_json: bool) -> None:
    """Show the suites of a header and how each function is marshaled."""
    classifier = _load_classifier(config_path)
    try:
        suites = parse_file(input_file, classifier)
    except ExtractionError as e:
        _fail(str(e))

    models = [build_suite_model(suite, classifier) for suite in suites]
    if output_json:
        _output_json(models)
    else:
        _output_plain(models)


def _output_json(models: list[SuiteModel]) -> None:
    data: dict = {"suites": []}
    for model in models:
        data["suites"].append(
            {
                "name": model.name,
                "short_name": model.short_name,
                "functions": [
                    {
                        "name": func.name,
                        "symbol": func.symbol,
                        "convention": func.convention.value,
                        "shape": func.shape.value,
                        "returns": func.returns.to_dict(),
                        "params": [p.to_dict() for p in func.params],
                    }
                    for func in model.functions
                ],
                "skipped": [{"name": s.name, "reason": s.reason} for s in model.skipped],
            }
        )
    print(json.dumps(data, indent=2))


def _output_plain(models: list[SuiteModel]) -> None:
    console = Console()
    if not models:
        console.print("[yellow]No suites found[/yellow]")
        return

    for model in models:
        console.print(f"[bold cyan]{model.name}[/bold cyan] ({model.short_name})")

        table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
        table.add_column("Function", style="white")
        table.add_column("Convention", style="dim")
        table.add_column("Result", style="green")
        table.add_column("Inputs", style="yellow", justify="right")
        table.add_column("Outputs", style="yellow", justify="right")
        for func in model.functions:
            table.add_row(
                func.name,
                func.convention.value,
                func.shape.value,
                str(len(func.inputs)),
                str(len(func.outputs)),
            )
        console.print(table)

        for skipped in model.skipped:
            console.print(f"  [dim]skipped[/dim] {skipped.name}: {skipped.reason}", highlight=False)
        console.print()


@cli.command()
@click.option("--config", "-c", "config_path", default=None, help="Type map JSON file")
def check(config_path: str | None) -> None:
    """Report base types listed in more than one type map table."""
    try:
        config = load_type_map(config_path)
    except ConfigError as e:
        _fail(str(e))

    conflicts = config.conflicts()
    console = Console()
    if not conflicts:
        console.print("[green]No conflicts[/green]")
        return

    table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    table.add_column("Type", style="white")
    table.add_column("Tables", style="yellow")
    table.add_column("Classified as", style="green")
    for name, categories in conflicts.items():
        table.add_row(name, ", ".join(categories), categories[0])
    console.print(table)
    sys.exit(1)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
