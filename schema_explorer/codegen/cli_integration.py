"""
CLI integration for code generation functionality.

Provides the argument groups and command handling behind the
``schema-explorer`` command.
"""

import argparse
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich import box

from .adapters import IntrospectionError, create_reader
from .core.config import ConfigManager, ConfigurationError, load_settings
from .core.strategies import Strategies
from .pipeline import GenerationCancelled, run
from .registry import RegistryError, create_registry
from ..logging_config import get_logger

logger = get_logger(__name__)

# Initialize rich console
console = Console()


def add_codegen_args(parser: argparse.ArgumentParser):
    """Add code generation arguments to the CLI parser."""

    source_group = parser.add_argument_group("source")
    source_group.add_argument(
        "--snapshot",
        metavar="FILE_OR_URL",
        help="Read the schema from a saved JSON/YAML snapshot instead of a database",
    )
    source_group.add_argument(
        "--connection-string",
        "-c",
        metavar="URL",
        help="Database connection string (SQLAlchemy URL)",
    )
    source_group.add_argument(
        "--dialect",
        "-d",
        help="Database dialect (sqlserver, mysql, postgresql, oracle, sqlite)",
    )
    source_group.add_argument(
        "--timeout",
        type=float,
        metavar="SECONDS",
        help="Abort generation after this many seconds",
    )

    output_group = parser.add_argument_group("output")
    output_group.add_argument(
        "--output",
        "-o",
        metavar="PATH",
        help="Output directory, or a .json file to write only the JSON model",
    )
    output_group.add_argument(
        "--namespace", "-n", help="Namespace for generated code (default: Models)"
    )
    output_group.add_argument(
        "--language",
        "-l",
        help="Target language (use --list-languages to see options)",
    )
    output_group.add_argument(
        "--templates",
        "-t",
        metavar="DIR",
        help="Template directory rendered against the model",
    )
    output_group.add_argument(
        "--hooks",
        metavar="FILE",
        help="Python file defining custom pluralizer, filters, relationships or overrides",
    )
    output_group.add_argument(
        "--no-models",
        action="store_true",
        help="Don't generate the models source file",
    )
    output_group.add_argument(
        "--json",
        action="store_true",
        help="Also write the normalized model as JSON",
    )

    config_group = parser.add_argument_group("configuration")
    config_group.add_argument(
        "--config", metavar="FILE", help="JSON configuration file for code generation"
    )
    config_group.add_argument(
        "--create-config",
        metavar="FILE",
        help="Write a sample configuration file and exit",
    )

    info_group = parser.add_argument_group("information")
    info_group.add_argument(
        "--list-languages",
        action="store_true",
        help="List supported target languages and exit",
    )
    info_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show generation metadata and informational log messages",
    )


def handle_codegen_command(args: argparse.Namespace) -> int:
    """
    Handle code generation command from CLI arguments.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    try:
        # Handle informational commands first
        if args.list_languages:
            return _list_languages()

        if args.create_config:
            path = ConfigManager().create_sample(args.create_config)
            console.print(f"[green]✓[/green] Sample configuration written to [cyan]{path}[/cyan]")
            return 0

        settings = load_settings(args.config, _build_overrides(args))
        reader = create_reader(settings, args.snapshot)

        strategies = Strategies.from_settings(settings)
        if args.hooks:
            strategies = strategies.with_hooks_file(args.hooks)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task(f"[cyan]Generating from {reader.description}...", total=None)
            artifacts = run(settings, reader, strategies)

        return _report(artifacts, args.verbose)

    except ConfigurationError as e:
        console.print(f"[red]✗ Configuration error:[/red] {e}")
        return 1
    except IntrospectionError as e:
        console.print(f"[red]✗ Introspection failed:[/red] {e}")
        return 1
    except GenerationCancelled as e:
        console.print(f"[red]✗[/red] {e}")
        return 1
    except RegistryError as e:
        console.print(f"[red]✗[/red] {e}")
        return 1


def _build_overrides(args: argparse.Namespace) -> dict:
    """Settings given on the command line; None values leave the file's values alone."""
    overrides = {
        "connection_string": args.connection_string,
        "dialect": args.dialect,
        "timeout": args.timeout,
        "output": args.output,
        "namespace": args.namespace,
        "language": args.language,
        "template_dir": args.templates,
    }
    if args.no_models:
        overrides["generate_models"] = False
    if args.json:
        overrides["generate_json"] = True
    return overrides


def _list_languages() -> int:
    """List supported languages with details."""
    registry = create_registry()

    table = Table(title="📋 Supported Languages", box=box.ROUNDED, title_style="bold cyan")
    table.add_column("Language", style="bold green", no_wrap=True)
    table.add_column("Extension", style="cyan")
    table.add_column("Generator Class", style="dim")
    table.add_column("Aliases", style="blue")

    for language in registry.list_languages():
        info = registry.get_language_info(language)
        aliases = ", ".join(info["aliases"]) if info["aliases"] else "[dim]none[/dim]"
        table.add_row(f"🔧 {language}", info["file_extension"], info["class"], aliases)

    console.print()
    console.print(table)
    console.print()
    console.print(
        Panel(
            "[bold]Usage:[/bold] schema-explorer --snapshot [dim]schema.json[/dim] "
            "--language [cyan]LANGUAGE[/cyan]",
            title="💡 Quick Start",
            border_style="blue",
        )
    )
    return 0


def _report(artifacts, verbose: bool = False) -> int:
    """Print one row per artifact; the exit code is 1 if any failed."""
    table = Table(
        title="📦 Generated Files", box=box.SIMPLE, show_header=True, header_style="bold cyan"
    )
    table.add_column("File", style="bold")
    table.add_column("Kind", style="cyan")
    table.add_column("Status")

    failed = 0
    for artifact in artifacts:
        if artifact.success:
            location = str(artifact.path) if artifact.path else artifact.name
            table.add_row(location, artifact.kind, "[green]✓ written[/green]")
        else:
            failed += 1
            table.add_row(artifact.name, artifact.kind, f"[red]✗ {artifact.error_message}[/red]")

    console.print(table)

    if verbose:
        for artifact in artifacts:
            if not artifact.metadata:
                continue
            metadata_table = Table(
                title=f"📊 {artifact.name}",
                box=box.SIMPLE,
                show_header=True,
                header_style="bold cyan",
            )
            metadata_table.add_column("Property", style="bold")
            metadata_table.add_column("Value", style="green")
            for key, value in artifact.metadata.items():
                metadata_table.add_row(key.replace("_", " ").title(), str(value))
            console.print(metadata_table)

    warnings = [w for artifact in artifacts for w in artifact.warnings]
    if warnings:
        console.print("\n[yellow]⚠️  Warnings:[/yellow]")
        for warning in warnings:
            console.print(f"  [yellow]•[/yellow] {warning}")
        console.print()

    if failed:
        console.print(f"[red]✗ {failed} of {len(artifacts)} file(s) failed[/red]")
        return 1
    return 0
