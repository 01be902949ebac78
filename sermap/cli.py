"""Command-line interface for inspecting mapping configuration."""

from __future__ import annotations

import importlib
import inspect
import sys

import click
from rich.console import Console
from rich.table import Table

from sermap.log import configure_logging, parse_log_level
from sermap.mapper import InitializationError, build_mapper
from sermap.metadata import AnnotatedMetadataReader, ChainedMetadataReader, DeclarationTableReader
from sermap.report import MappingReport, build_report
from sermap.settings import MapperSettings, load_settings


@click.group()
def cli() -> None:
    """Sermap mapping configuration tools."""


@cli.command()
@click.option("--module", "-m", "module_name", required=True, help="Module whose classes are inspected")
@click.option("--declarations", "-d", "declarations_file", default=None, help="Declaration table file")
@click.option("--config", "-c", "config_file", default=None, help="Settings JSON file")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.option("--log-level", "log_level", default=None, help="Log level (e.g. DEBUG, INFO)")
def info(
    module_name: str,
    declarations_file: str | None,
    config_file: str | None,
    output_json: bool,
    log_level: str | None,
) -> None:
    """Run discovery over a module's classes and display the resulting mapping."""
    try:
        configure_logging(parse_log_level(log_level) if log_level else None)
    except ValueError as e:
        print(f"Invalid log level: {e}")
        sys.exit(1)

    try:
        settings = load_settings(config_file) if config_file else MapperSettings()
    except (OSError, ValueError, TypeError, KeyError) as e:
        print(f"Cannot load settings {config_file}: {e}")
        sys.exit(1)

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        print(f"Cannot import module {module_name}: {e}")
        sys.exit(1)

    types = [
        obj for _, obj in inspect.getmembers(module, inspect.isclass) if obj.__module__ == module.__name__
    ]

    try:
        reader = AnnotatedMetadataReader()
        if declarations_file:
            reader = ChainedMetadataReader(DeclarationTableReader.from_file(declarations_file), reader)
        mapper = build_mapper(settings, metadata_reader=reader)
        report = build_report(mapper, types)
    except InitializationError as e:
        print(f"Invalid mapping configuration: {e}")
        sys.exit(1)

    if output_json:
        print(report.to_json(indent=2))
    else:
        _output_plain(report)


def _output_plain(report: MappingReport) -> None:
    """Output the mapping report using rich text formatting."""
    console = Console()

    if not report.types:
        console.print("No mapped classes found")
        return

    for type_report in report.types:
        console.print(f"[bold cyan]{type_report.name}[/bold cyan] as [yellow]{type_report.serialized_name}[/yellow]")
        if type_report.default_implementation:
            console.print(f"  default implementation: {type_report.default_implementation}")

        if type_report.fields:
            table = Table(show_header=True, box=None, padding=(0, 2, 0, 2))
            table.add_column("Field", style="white")
            table.add_column("Serialized", style="yellow")
            table.add_column("Role", style="dim")
            table.add_column("Converter", style="green")

            for field_report in type_report.fields:
                role = field_report.role
                if field_report.item_name:
                    role = f"{role} ({field_report.item_name})"
                table.add_row(
                    field_report.name,
                    field_report.serialized_name,
                    role,
                    field_report.converter or "",
                )
            console.print(table)
        console.print()

    if report.ignored_patterns:
        console.print("[bold cyan]Ignored elements[/bold cyan]")
        for pattern in report.ignored_patterns:
            console.print(f"  {pattern}")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
