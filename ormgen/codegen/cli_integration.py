"""
CLI integration for schema generation.

Provides the command-line options and handlers behind the `ormgen`
command.
"""

import argparse
import os
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.syntax import Syntax
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich import box
from rich.markup import escape

from .core.catalog import CatalogError, SchemaCatalog, get_default_catalog, select_tables
from .core.config import ConfigError, GeneratorConfig, load_config
from .core.dialects import Dialect, detect_dialect, parse_dialect
from .core.generator import GenerationResult, generate_code
from .core.packages import package_scripts, runtime_packages
from .core.resolver import resolve
from .registry import (
    RegistryError,
    get_backend_info,
    get_generator,
    get_registry,
    list_all_backend_info,
    list_supported_backends,
)
from ..logging_config import get_logger
from ..utils import (
    ArtifactWriteError,
    DefinitionLoaderError,
    find_database_url,
    load_definitions,
    write_artifacts,
)

logger = get_logger(__name__)


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


# Initialize rich console
console = Console()


def add_generate_args(parser: argparse.ArgumentParser):
    """Add schema generation arguments to a parser."""

    selection_group = parser.add_argument_group("table selection")
    selection_group.add_argument(
        "--preset",
        "-p",
        metavar="PRESET",
        help="Preset table bundle (use --list-presets to see options)",
    )
    selection_group.add_argument(
        "--tables",
        "-t",
        metavar="NAMES",
        help="Comma-separated table names (custom selection)",
    )

    definitions_group = selection_group.add_mutually_exclusive_group()
    definitions_group.add_argument(
        "--definitions",
        metavar="FILE",
        help="JSON file with extra table definitions",
    )
    definitions_group.add_argument(
        "--definitions-url",
        metavar="URL",
        help="URL to fetch extra table definitions from",
    )

    target_group = parser.add_argument_group("target")
    target_group.add_argument(
        "--backend",
        "-b",
        default="drizzle",
        metavar="BACKEND",
        help="Backend to generate for (default: drizzle)",
    )
    target_group.add_argument(
        "--dialect",
        "-d",
        metavar="DIALECT",
        help="Database dialect: postgresql, mysql or sqlite "
        "(default: detected from DATABASE_URL, else postgresql)",
    )

    output_group = parser.add_argument_group("output")
    output_group.add_argument(
        "--output-dir",
        "-o",
        metavar="DIR",
        help="Write artifacts below this directory (default: print to stdout)",
    )
    output_group.add_argument("--config", metavar="FILE", help="JSON configuration file")
    output_group.add_argument(
        "--src-dir", metavar="DIR", help="Project source directory (e.g. src)"
    )
    output_group.add_argument(
        "--output-path",
        metavar="DIR",
        help="Directory for the client and schema files (default: lib)",
    )
    output_group.add_argument(
        "--column-case",
        choices=["original", "snake", "camel", "pascal"],
        help="Case style for storage column names",
    )
    output_group.add_argument(
        "--no-comments",
        action="store_true",
        help="Don't add comments to generated code",
    )
    output_group.add_argument(
        "--no-companions",
        action="store_true",
        help="Only generate the schema artifact",
    )
    output_group.add_argument(
        "--seed",
        action="store_true",
        help="Also generate a seed script (prisma)",
    )
    output_group.add_argument(
        "--verbose",
        action="store_true",
        help="Show generation result metadata",
    )

    info_group = parser.add_argument_group("information")
    info_group.add_argument(
        "--list-backends", action="store_true", help="List supported backends and exit"
    )
    info_group.add_argument(
        "--list-presets", action="store_true", help="List table presets and exit"
    )
    info_group.add_argument(
        "--list-tables", action="store_true", help="List catalog tables and exit"
    )
    info_group.add_argument(
        "--backend-info",
        metavar="BACKEND",
        help="Show detailed info about a backend and exit",
    )


def handle_generate_command(args: argparse.Namespace) -> int:
    """
    Handle schema generation from CLI arguments.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    try:
        if args.list_backends:
            return _list_backends()

        if args.backend_info:
            return _show_backend_info(args.backend_info)

        catalog = _load_catalog(args)

        if args.list_presets:
            return _list_presets(catalog)

        if args.list_tables:
            return _list_tables(catalog)

        backend = _validate_backend(args.backend)
        config = _build_config(args, backend)
        dialect = _resolve_dialect(args, config)

        if not args.preset and not args.tables:
            raise CLIError("Choose tables with --preset or --tables (see --list-presets)")

        requested = select_tables(
            catalog, preset=args.preset, table_names=_split_names(args.tables)
        )
        tables = resolve(requested, catalog)

        return _generate_and_output(tables, backend, dialect, config, args)

    except (CLIError, CatalogError, DefinitionLoaderError, RegistryError) as e:
        logger.error("%s", e)
        console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
        return 1
    except FileNotFoundError as e:
        console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
        return 1


def _split_names(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    return [name.strip() for name in value.split(",") if name.strip()]


def _load_catalog(args: argparse.Namespace) -> SchemaCatalog:
    """Built-in catalog, extended with any definitions passed on the command line."""
    catalog = get_default_catalog()

    if args.definitions:
        source, custom_tables = load_definitions(file_path=args.definitions)
    elif args.definitions_url:
        source, custom_tables = load_definitions(url=args.definitions_url)
    else:
        return catalog

    logger.info("Merging %d custom table(s) from %s", len(custom_tables), source)
    return catalog.with_tables(custom_tables)


def _validate_backend(backend: str) -> str:
    """Validate a backend name and return its primary name."""
    registry = get_registry()
    if not registry.is_supported(backend):
        supported = ", ".join(list_supported_backends())
        raise CLIError(f"Unsupported backend '{backend}'. Supported backends: {supported}")
    return registry.canonical_name(backend)


def _build_config(args: argparse.Namespace, backend: str) -> GeneratorConfig:
    """Build configuration from a config file plus CLI overrides."""
    config_dict = {}

    if args.dialect:
        config_dict["dialect"] = args.dialect
    if args.src_dir:
        config_dict["src_dir"] = args.src_dir
    if args.output_path:
        config_dict["output_path"] = args.output_path
    if args.column_case:
        config_dict["column_case"] = args.column_case
    if args.no_comments:
        config_dict["add_comments"] = False
    if args.no_companions:
        config_dict["include_companions"] = False
    if args.seed:
        config_dict["include_seed"] = True

    try:
        config = load_config(backend, custom_config=config_dict, config_file=args.config)
    except ConfigError as e:
        raise CLIError(f"Configuration error: {e}") from e

    return config


def _resolve_dialect(args: argparse.Namespace, config: GeneratorConfig) -> Dialect:
    """
    Pick the dialect: explicit option, then configuration, then the
    connection string in the environment or the project's .env files.
    """
    try:
        if config.dialect:
            return parse_dialect(config.dialect)
    except ValueError as e:
        raise CLIError(str(e)) from e

    url = os.environ.get(config.database_url_env)
    if not url:
        found = find_database_url(Path(args.output_dir or "."))
        if found:
            url, env_file = found
            logger.info("Using connection string from %s", env_file)

    detected = detect_dialect(url)
    if url and detected is None:
        console.print(
            "[yellow]⚠️  Could not detect the database type from the connection "
            "string, using postgresql[/yellow]"
        )
    return detected or config.resolve_dialect()


def _list_backends() -> int:
    """List supported backends with details."""
    backend_info = list_all_backend_info()

    table = Table(title="📋 Supported Backends", box=box.ROUNDED, title_style="bold cyan")
    table.add_column("Backend", style="bold green", no_wrap=True)
    table.add_column("Schema File", style="cyan")
    table.add_column("Generator Class", style="dim")
    table.add_column("Aliases", style="blue")

    for name, info in sorted(backend_info.items()):
        aliases = ", ".join(info["aliases"]) if info["aliases"] else "[dim]none[/dim]"
        table.add_row(f"🔧 {name}", info["schema_file"], info["class"], aliases)

    console.print()
    console.print(table)
    console.print()
    console.print(
        Panel(
            "[bold]Usage:[/bold] ormgen --backend [cyan]BACKEND[/cyan] --preset [cyan]PRESET[/cyan]\n"
            "[bold]Info:[/bold] ormgen --backend-info [cyan]BACKEND[/cyan]",
            title="💡 Quick Start",
            border_style="blue",
        )
    )
    return 0


def _show_backend_info(backend: str) -> int:
    """Show detailed information about a specific backend."""
    name = _validate_backend(backend)
    info = get_backend_info(name)

    info_text = f"""[bold]Backend:[/bold] {info['name']}
[bold]Schema File:[/bold] {info['schema_file']}
[bold]Generator Class:[/bold] {info['class']}
[bold]Module:[/bold] {info['module']}
[bold]Artifacts:[/bold] {', '.join(info['artifacts'])}"""

    if info["aliases"]:
        info_text += f"\n[bold]Aliases:[/bold] {', '.join(info['aliases'])}"

    console.print()
    console.print(Panel(info_text, title=f"🔧 {name.title()} Generator", border_style="green"))

    generator = get_generator(name)
    config_table = Table(
        title="⚙️  Default Configuration",
        box=box.SIMPLE,
        show_header=True,
        header_style="bold cyan",
    )
    config_table.add_column("Setting", style="bold")
    config_table.add_column("Value", style="green")

    config_table.add_row("Column Case", generator.config.column_case)
    config_table.add_row("Indent Size", str(generator.config.indent_size))
    config_table.add_row("Add Comments", str(generator.config.add_comments))
    config_table.add_row("Companions", str(generator.config.include_companions))
    for key, value in sorted(generator.config.custom.items()):
        config_table.add_row(key.replace("_", " ").title(), str(value))

    console.print()
    console.print(config_table)

    packages_table = Table(
        title="📦 Runtime Packages", box=box.SIMPLE, header_style="bold cyan"
    )
    packages_table.add_column("Dialect", style="bold")
    packages_table.add_column("Dependencies", style="green")
    packages_table.add_column("Dev Dependencies", style="dim")
    for dialect in Dialect:
        packages = runtime_packages(name, dialect)
        packages_table.add_row(
            dialect.value,
            ", ".join(packages.dependencies),
            ", ".join(packages.dev_dependencies) or "-",
        )

    console.print()
    console.print(packages_table)
    return 0


def _list_presets(catalog: SchemaCatalog) -> int:
    """List presets with their tables."""
    table = Table(title="📚 Presets", box=box.ROUNDED, title_style="bold cyan")
    table.add_column("Preset", style="bold green", no_wrap=True)
    table.add_column("Description")
    table.add_column("Tables", style="cyan")

    for preset in catalog.presets():
        if preset.is_custom:
            tables = "[dim]--tables NAMES[/dim]"
        else:
            tables = ", ".join(preset.table_names) or "[dim]none[/dim]"
        table.add_row(f"{preset.icon} {preset.id}", preset.description, tables)

    console.print(table)
    return 0


def _list_tables(catalog: SchemaCatalog) -> int:
    """List catalog tables with their references."""
    table = Table(title="🗂️  Tables", box=box.ROUNDED, title_style="bold cyan")
    table.add_column("Table", style="bold green", no_wrap=True)
    table.add_column("Model", style="cyan")
    table.add_column("Fields", justify="right")
    table.add_column("References", style="blue")

    for definition in catalog.tables():
        references = ", ".join(definition.referenced_tables()) or "[dim]none[/dim]"
        table.add_row(
            definition.name,
            definition.display_name,
            str(len(definition.fields)),
            references,
        )

    console.print(table)
    return 0


def _generate_and_output(
    tables,
    backend: str,
    dialect: Dialect,
    config: GeneratorConfig,
    args: argparse.Namespace,
) -> int:
    """Generate artifacts and write or print them."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(
            f"[green]Generating {backend} schema ({dialect.value})...", total=None
        )
        generator = get_generator(backend, config)
        result = generate_code(generator, tables, dialect)
        progress.remove_task(task)

    if not result.success:
        console.print(f"[red]✗ {escape(result.error_message)}[/red]")
        return 1

    if args.output_dir:
        try:
            written = write_artifacts(result.artifacts, args.output_dir)
        except ArtifactWriteError as e:
            console.print(f"[red]✗ {escape(str(e))}[/red]")
            return 1
        for path in written:
            console.print(f"[green]✓[/green] Wrote [cyan]{path}[/cyan]")
        _print_next_steps(backend, dialect, generator.paths.migrate_file)
    else:
        _print_artifacts(result, generator.syntax_name)

    if args.verbose and result.metadata:
        _print_metadata(result)

    if result.warnings:
        console.print("\n[yellow]⚠️  Warnings:[/yellow]")
        for warning in result.warnings:
            console.print(f"  [yellow]•[/yellow] {warning}")
        console.print()

    return 0


def _print_artifacts(result: GenerationResult, schema_syntax: str):
    border = "═" * 30
    for index, artifact in enumerate(result.artifacts):
        lexer = schema_syntax if index == 0 else "typescript"
        console.print(f"[green]{border} 📄 {artifact.path} {border}[/green]\n")
        console.print(Syntax(artifact.content, lexer, theme="monokai"))
        console.print()


def _print_metadata(result: GenerationResult):
    metadata_table = Table(
        title="📊 Generation Metadata",
        box=box.SIMPLE,
        show_header=True,
        header_style="bold cyan",
    )
    metadata_table.add_column("Property", style="bold")
    metadata_table.add_column("Value", style="green")

    for key, value in result.metadata.items():
        metadata_table.add_row(key.replace("_", " ").title(), str(value))

    console.print()
    console.print(metadata_table)


def _print_next_steps(backend: str, dialect: Dialect, migrate_file: str):
    packages = runtime_packages(backend, dialect)
    lines = [f"[bold]Install:[/bold] npm install {' '.join(packages.dependencies)}"]
    if packages.dev_dependencies:
        lines.append(
            f"[bold]Install (dev):[/bold] npm install -D {' '.join(packages.dev_dependencies)}"
        )
    lines.append("")
    lines.append("[bold]package.json scripts:[/bold]")
    for name, command in package_scripts(backend, migrate_file).items():
        lines.append(f'  "{name}": "{command}"')

    console.print()
    console.print(Panel("\n".join(lines), title="💡 Next Steps", border_style="blue"))
