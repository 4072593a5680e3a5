"""Command-line interface for heimdall-viewer."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from heimdall_viewer import __version__
from heimdall_viewer.config import ViewerConfig, load_config
from heimdall_viewer.errors import DocumentIOError, FormatError
from heimdall_viewer.loader import read_document
from heimdall_viewer.reporter import DocumentSummary, create_reporter

console = Console()


def _configure_logging(config: ViewerConfig) -> None:
    """Set up root logging from the viewer config."""
    logging.basicConfig(
        level=getattr(logging, config.effective_log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _launch_viewer(path: Optional[Path], config: ViewerConfig) -> None:
    """Start the desktop viewer. Blocks until the window closes."""
    from heimdall_viewer.app import run_app

    run_app(path, config)


def _start(path: Optional[str], dev: bool) -> None:
    config = load_config()
    if dev:
        config.dev_mode = True
    _configure_logging(config)
    _launch_viewer(Path(path) if path else None, config)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="heimdall-viewer")
@click.option("--dev", is_flag=True, help="Show the debug overlay and log at DEBUG level")
@click.pass_context
def main(ctx: click.Context, dev: bool) -> None:
    """heimdall-viewer - Visual explorer for CycloneDX SBOM and VEX documents.

    Without a command the desktop viewer is started.
    """
    ctx.ensure_object(dict)
    ctx.obj["dev"] = dev
    if ctx.invoked_subcommand is None:
        _start(None, dev)


@main.command("open")
@click.argument("file", type=click.Path(exists=True, dir_okay=False), required=False)
@click.option("--dev", is_flag=True, help="Show the debug overlay and log at DEBUG level")
@click.pass_context
def open_file(ctx: click.Context, file: Optional[str], dev: bool) -> None:
    """Open the desktop viewer.

    FILE is an SBOM to load on start (JSON or XML).
    """
    _start(file, dev or ctx.obj.get("dev", False))


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format",
    "-f",
    type=click.Choice(["json", "table"]),
    default="table",
    help="Output format",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    help="Write output to file",
)
def summary(file: str, format: str, output: Optional[str]) -> None:
    """Summarize an SBOM: counts, components and orphan VEX.

    FILE is the CycloneDX document (JSON or XML).
    """
    try:
        document = read_document(Path(file))
    except (FormatError, DocumentIOError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    reporter = create_reporter(format)
    report = reporter.generate(DocumentSummary.from_document(document))

    if output:
        Path(output).write_text(report, encoding="utf-8")
        console.print(f"[green]Summary written to {output}[/green]")
    else:
        click.echo(report)


@main.command()
def version() -> None:
    """Show version information."""
    click.echo(f"heimdall-viewer version {__version__}")


if __name__ == "__main__":
    main()
