"""
Main CLI application for threatmd.

Provides a Typer-based command-line interface for turning a directory of
Markdown threat descriptions into JSON.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ..config import ConfigManager, ThreatMDConfig, get_config_manager
from ..core.errors import ParseError
from ..grammar.threat import MetadataError, Threat, parse_threat

# Initialize Typer app
app = typer.Typer(
    name="threatmd",
    help="Extract threat records from Markdown threat descriptions",
    add_completion=False,
    rich_markup_mode="rich"
)

# Diagnostics go to stderr so stdout stays valid JSON
console = Console(stderr=True)

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    """Route log records through Rich on stderr."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path], verbose: bool) -> ThreatMDConfig:
    manager = ConfigManager(config_file) if config_file else get_config_manager()
    config = manager.load_config()
    setup_logging("DEBUG" if verbose else config.log_level)
    return config


def find_documents(threat_dir: Path, extension: str) -> List[Path]:
    """List the threat documents directly inside ``threat_dir``, sorted by name."""
    if not threat_dir.is_dir():
        raise NotADirectoryError("The given path was not a directory")

    suffix = f".{extension.lstrip('.')}"
    return sorted(
        entry for entry in threat_dir.iterdir()
        if entry.is_file() and entry.suffix == suffix
    )


def parse_document(path: Path, config: ThreatMDConfig) -> Threat:
    """Read and parse a single threat document."""
    logger.debug(f"Parsing {path}")
    return parse_threat(
        path.read_text(encoding="utf-8"),
        condition_language=config.condition_language,
        reference_separator=config.reference_separator,
    )


def _documents_or_exit(threat_dir: Path, config: ThreatMDConfig) -> List[Path]:
    try:
        return find_documents(threat_dir, config.file_extension)
    except NotADirectoryError as e:
        console.print(f"[red]Error: {e}: {escape(str(threat_dir))}[/red]")
        raise typer.Exit(1)


@app.command()
def parse(
    threat_dir: Path = typer.Argument(..., help="The directory storing the markdown threats"),
    output_file: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON to this file instead of stdout"),
    skip_invalid: bool = typer.Option(False, "--skip-invalid", help="Skip documents that fail to parse"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file to use"),
) -> None:
    """
    Parse every threat document in a directory and emit them as JSON.

    By default the first document that fails to parse aborts the run.
    """
    config = _load_config(config_file, verbose)
    skip_invalid = skip_invalid or config.skip_invalid

    threats = []
    for path in _documents_or_exit(threat_dir, config):
        try:
            threats.append(parse_document(path, config))
        except (ParseError, MetadataError, OSError, UnicodeDecodeError) as e:
            if skip_invalid:
                logger.warning(f"Skipping {path.name}: {e}")
                continue
            console.print(f"[red]Error parsing {escape(str(path))}: {escape(str(e))}[/red]")
            raise typer.Exit(1)

    output = json.dumps(
        [threat.to_dict() for threat in threats],
        indent=config.json_indent,
        ensure_ascii=False,
    )

    if output_file:
        output_file.write_text(output + "\n", encoding="utf-8")
        console.print(f"[green]Wrote {len(threats)} threats to {output_file}[/green]")
    else:
        typer.echo(output)


@app.command()
def check(
    threat_dir: Path = typer.Argument(..., help="The directory storing the markdown threats"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file to use"),
) -> None:
    """
    Check that every threat document in a directory parses.
    """
    config = _load_config(config_file, verbose)

    # (file, parsed, SID or error message)
    results: List[Tuple[Path, bool, str]] = []
    for path in _documents_or_exit(threat_dir, config):
        try:
            threat = parse_document(path, config)
        except (ParseError, MetadataError, OSError, UnicodeDecodeError) as e:
            results.append((path, False, str(e)))
        else:
            results.append((path, True, threat.sid))

    table = Table(title=f"Threat documents in {threat_dir}")
    table.add_column("File", style="cyan", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Detail", style="white", overflow="fold")

    for path, parsed, detail in results:
        status = "[green]OK[/green]" if parsed else "[red]FAIL[/red]"
        table.add_row(escape(path.name), status, escape(detail))

    console.print(table)

    failures = sum(1 for _, parsed, _ in results if not parsed)

    if failures:
        console.print(f"[red]{failures} of {len(results)} documents failed to parse[/red]")
        raise typer.Exit(1)
    console.print(f"[green]All {len(results)} documents parsed successfully[/green]")


@app.command()
def config(
    init: bool = typer.Option(False, "--init", help="Write a default configuration file"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file to use"),
) -> None:
    """
    Show the current configuration.
    """
    manager = ConfigManager(config_file) if config_file else get_config_manager()

    if init:
        path = manager.create_default_config()
        console.print(f"[green]Created default configuration at {path}[/green]")
        return

    table = Table(title="threatmd configuration", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for key, value in manager.get_config_info().items():
        table.add_row(key, escape(repr(value)))
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
