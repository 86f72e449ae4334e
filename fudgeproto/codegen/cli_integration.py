"""
Command-line interface for the schema compiler.

Provides the ``fudgeproto-gen`` command.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.syntax import Syntax
from rich.table import Table

from ..logging_config import get_logger, setup_logging
from ..utils import SchemaDocumentError, load_schema_document, load_schema_from_stream
from . import (
    ConfigError,
    GeneratorConfig,
    GeneratorError,
    RegistryError,
    SchemaLoadError,
    generate_code,
    get_generator,
    get_language_info,
    list_all_language_info,
    list_supported_languages,
    load_config,
    load_schema,
)
from .core.config import DATETIME_TYPES
from .registry import get_registry, is_language_supported

logger = get_logger(__name__)


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


# Status messages go to stderr so generated code can be piped
console = Console(stderr=True)
output_console = Console()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser of ``fudgeproto-gen``."""
    parser = argparse.ArgumentParser(
        prog="fudgeproto-gen",
        description="Compile message schemas into wire-encodable classes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fudgeproto-gen shapes.json
  fudgeproto-gen -l python -o shapes.py shapes.json
  fudgeproto-gen --url https://example.com/shapes.json --with-context
  fudgeproto-gen --stdin -l manifest < shapes.json
  fudgeproto-gen --list-languages
        """.strip(),
    )

    # Input options (mutually exclusive)
    input_group = parser.add_mutually_exclusive_group(required=False)
    input_group.add_argument("file", nargs="?", help="Schema document (JSON)")
    input_group.add_argument("--url", help="URL to fetch the schema document from")
    input_group.add_argument(
        "--stdin", action="store_true", help="Read the schema document from standard input"
    )

    # Core generation options
    parser.add_argument(
        "--language", "-l", default="python", help="Target language (default: python)"
    )
    parser.add_argument("--output", "-o", help="Output file (default: stdout)")
    parser.add_argument("--config", help="Configuration file path (JSON)")
    parser.add_argument("--package-name", "--package", help="Package the output lives in")

    # Common options
    parser.add_argument(
        "--no-comments",
        action="store_true",
        help="Don't add comments to generated code",
    )
    parser.add_argument(
        "--with-context",
        action="store_true",
        help="Thread a decode context through every message decoder",
    )
    parser.add_argument(
        "--datetime-type",
        choices=list(DATETIME_TYPES),
        help="Stored representation of datetime fields",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show generation metadata and debug logging",
    )

    # Informational commands
    info_group = parser.add_argument_group("information")
    info_group.add_argument(
        "--list-languages",
        action="store_true",
        help="List supported languages and exit",
    )
    info_group.add_argument(
        "--language-info",
        metavar="LANGUAGE",
        help="Show detailed info about a language and exit",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point of ``fudgeproto-gen``."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING, Console(stderr=True))

    try:
        if args.list_languages:
            return _list_languages()

        if args.language_info:
            return _show_language_info(args.language_info)

        if not (args.file or args.url or args.stdin):
            console.print("[red]✗[/red] Input source required (file, --url, or --stdin)")
            return 1

        if not _validate_language(args.language):
            return 1

        source, document = _get_input_document(args)
        config = _build_config(args)
        return _generate_and_output(source, document, args.language, config, args)

    except CLIError as e:
        console.print(f"[red]✗ Error:[/red] {e}")
        return 1


def _list_languages() -> int:
    """List supported languages with details."""
    language_info = list_all_language_info()

    if not language_info:
        output_console.print("[yellow]⚠️ No code generators available[/yellow]")
        return 0

    table = Table(title="📋 Supported Languages", box=box.ROUNDED, title_style="bold cyan")

    table.add_column("Language", style="bold green", no_wrap=True)
    table.add_column("Extension", style="cyan")
    table.add_column("Generator Class", style="dim")
    table.add_column("Aliases", style="blue")

    for lang_name, info in sorted(language_info.items()):
        aliases = ", ".join(info["aliases"]) if info["aliases"] else "[dim]none[/dim]"
        table.add_row(f"🔧 {lang_name}", info["file_extension"], info["class"], aliases)

    output_console.print()
    output_console.print(table)
    output_console.print()

    output_console.print(
        Panel(
            "[bold]Usage:[/bold] fudgeproto-gen [dim]schema.json[/dim] --language [cyan]LANGUAGE[/cyan]\n"
            "[bold]Info:[/bold] fudgeproto-gen --language-info [cyan]LANGUAGE[/cyan]",
            title="💡 Quick Start",
            border_style="blue",
        )
    )
    return 0


def _show_language_info(language: str) -> int:
    """Show detailed information about a specific language."""
    if not _validate_language(language, silent=True):
        console.print(f"[red]✗ Language '{language}' is not supported[/red]")
        console.print("[dim]Use --list-languages to see available options[/dim]")
        return 1

    try:
        info = get_language_info(language)
        generator = get_generator(language)
    except RegistryError as e:
        console.print(f"[red]✗ Error getting language info:[/red] {e}")
        return 1

    info_text = f"""[bold]Language:[/bold] {info['name']}
[bold]File Extension:[/bold] {info['file_extension']}
[bold]Generator Class:[/bold] {info['class']}
[bold]Module:[/bold] {info['module']}
[bold]Nested Types:[/bold] {info['nested_types']}"""

    if info["aliases"]:
        info_text += f"\n[bold]Aliases:[/bold] {', '.join(info['aliases'])}"

    output_console.print()
    output_console.print(
        Panel(info_text, title=f"🔧 {info['name'].title()} Generator", border_style="green")
    )

    config_table = Table(
        title="⚙️  Default Configuration",
        box=box.SIMPLE,
        show_header=True,
        header_style="bold cyan",
    )
    config_table.add_column("Setting", style="bold")
    config_table.add_column("Value", style="green")

    config = generator.config
    config_table.add_row("Package Name", str(config.package_name or "-"))
    config_table.add_row("Indent Size", str(config.indent_size))
    config_table.add_row("Add Comments", str(config.add_comments))
    config_table.add_row("Datetime Type", str(config.datetime_type))
    config_table.add_row("Decode With Context", str(config.to_from_with_context))
    config_table.add_row("Runtime Module", str(config.runtime_module))
    for key, value in sorted(config.custom.items()):
        config_table.add_row(key.replace("_", " ").title(), str(value))

    output_console.print()
    output_console.print(config_table)

    examples_text = f"""Generate to stdout:
[cyan]fudgeproto-gen --language {language} schema.json[/cyan]

Generate to file:
[cyan]fudgeproto-gen -l {language} -o output{info['file_extension']} schema.json[/cyan]

Custom package name:
[cyan]fudgeproto-gen -l {language} --package mypackage schema.json[/cyan]"""

    output_console.print()
    output_console.print(Panel(examples_text, title="💡 Usage Examples", border_style="blue"))
    return 0


def _validate_language(language: str, silent: bool = False) -> bool:
    """Validate that a language is supported."""
    if not is_language_supported(language):
        if not silent:
            supported = list_supported_languages()
            console.print(f"[red]✗ Unsupported language '{language}'[/red]")
            console.print(f"[dim]Supported languages: {', '.join(supported)}[/dim]")
        return False
    return True


def _get_input_document(args: argparse.Namespace):
    """Get the schema document from the selected source."""
    try:
        if args.file:
            return load_schema_document(file_path=args.file)
        if args.url:
            return load_schema_document(url=args.url)
        return load_schema_from_stream(sys.stdin)
    except FileNotFoundError as e:
        raise CLIError(str(e)) from e
    except SchemaDocumentError as e:
        raise CLIError(f"Failed to load input: {e}") from e


def _build_config(args: argparse.Namespace) -> GeneratorConfig:
    """Build configuration from CLI arguments."""
    overrides = {}

    if args.package_name:
        overrides["package_name"] = args.package_name

    if args.no_comments:
        overrides["add_comments"] = False

    if args.with_context:
        overrides["to_from_with_context"] = True

    if args.datetime_type:
        overrides["datetime_type"] = args.datetime_type

    if args.output:
        overrides["output_file"] = Path(args.output).name

    language = get_registry().resolve_name(args.language)
    logger.debug("Building %s configuration with overrides %s", language, overrides)
    try:
        return load_config(language, custom_config=overrides, config_file=args.config)
    except ConfigError as e:
        raise CLIError(f"Configuration error: {e}") from e


def _generate_and_output(
    source: str, document: dict, language: str, config: GeneratorConfig, args: argparse.Namespace
) -> int:
    """Generate code and handle output with rich formatting."""
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            load_task = progress.add_task("[cyan]Loading schema...", total=None)
            model = load_schema(document, document.get("source") or source)
            progress.remove_task(load_task)

            gen_task = progress.add_task(f"[green]Generating {language} code...", total=None)
            generator = get_generator(language, config)
            result = generate_code(generator, model)
            progress.remove_task(gen_task)
    except (SchemaLoadError, RegistryError, GeneratorError) as e:
        console.print(f"[red]✗[/red] {e}")
        return 1

    if not result.success:
        console.print(f"[red]✗ Code generation failed:[/red] {result.error_message}")
        return 1

    if args.output:
        output_path = Path(args.output)
        try:
            output_path.write_text(result.code, encoding="utf-8")
        except OSError as e:
            console.print(f"[red]✗ Failed to write to {output_path}:[/red] {e}")
            return 1
        console.print(
            f"[green]✓[/green] Generated {language} code saved to [cyan]{output_path}[/cyan]"
        )
    elif output_console.is_terminal:
        lexer = "json" if generator.file_extension == ".json" else generator.language_name
        output_console.print(Syntax(result.code, lexer, theme="monokai"))
    else:
        sys.stdout.write(result.code)

    if args.verbose and result.metadata:
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

    if result.warnings:
        console.print("\n[yellow]⚠️  Warnings:[/yellow]")
        for warning in result.warnings:
            console.print(f"  [yellow]•[/yellow] {warning}")
        console.print()

    return 0


if __name__ == "__main__":
    sys.exit(main())
