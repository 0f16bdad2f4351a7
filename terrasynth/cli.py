"""
Command line interface for terrasynth.

A stack module is any Python module (dotted name or ``.py`` path) that
defines ``synthesize(run)``. The CLI creates a fresh run, hands it to the
module and writes the emitted document.
"""

import importlib
import importlib.util
import os
import sys
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, Optional

import click
import structlog
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import load_config
from .config.models import SynthConfig
from .emitters import get_emitter, get_emitter_registry
from .exceptions import TerrasynthError
from .graph import find_unresolved
from .logging_config import configure_logging
from .resources.kind import default_registry
from .run import Run

logger = structlog.get_logger(__name__)

console = Console(stderr=True)


def load_stack_module(target: str) -> ModuleType:
    """Import a stack module from a dotted name or a file path."""
    path = Path(target)
    if path.suffix == ".py":
        if not path.is_file():
            raise click.BadParameter(f"No such file: {target}", param_hint="MODULE")
        spec = importlib.util.spec_from_file_location(f"terrasynth_stack_{path.stem}", path)
        if spec is None or spec.loader is None:
            raise click.BadParameter(f"Cannot load {target}", param_hint="MODULE")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module

    # Resolve dotted names against the working directory, like ``python -m``
    if os.getcwd() not in sys.path:
        sys.path.insert(0, os.getcwd())
    try:
        return importlib.import_module(target)
    except ImportError as e:
        raise click.BadParameter(f"Cannot import {target}: {e}", param_hint="MODULE") from e


def synthesize_module(target: str, run_name: Optional[str] = None) -> Run:
    """Load a stack module and let it populate a fresh run."""
    module = load_stack_module(target)
    synthesize = getattr(module, "synthesize", None)
    if not callable(synthesize):
        raise click.BadParameter(f"{target} does not define synthesize(run)", param_hint="MODULE")
    run = Run(name=run_name or Path(target).stem)
    synthesize(run)
    return run


def _build_config(
    config_path: Optional[str],
    output_dir: Optional[str],
    filename: Optional[str],
    indent: Optional[int],
    log_level: Optional[str],
    json_logs: bool,
) -> SynthConfig:
    cli_args: Dict[str, Any] = {
        "output_dir": output_dir,
        "filename": filename,
        "indent": indent,
        "logging": {"level": log_level, "json_output": True if json_logs else None},
    }
    config = load_config(Path(config_path) if config_path else None, cli_args)
    configure_logging(config.logging.level.value, config.logging.json_output)
    return config


def _fail(error: TerrasynthError) -> None:
    logger.error("synthesis_failed", error_type=type(error).__name__, **error.context)
    console.print(f"[red]❌ {error}[/red]")
    sys.exit(1)


@click.group()
@click.version_option(__version__, prog_name="terrasynth")
def cli() -> None:
    """terrasynth - synthesize Terraform JSON from Python stack modules."""


@cli.command()
@click.argument("module")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Path to terrasynth.yaml")
@click.option("--output-dir", "-o", type=click.Path(file_okay=False), help="Directory to write the document to")
@click.option("--filename", help="Document file name (default: main.tf.json)")
@click.option("--indent", type=click.IntRange(0, 8), help="JSON indentation (0 for compact)")
@click.option("--emitter", default="terraform", show_default=True, help="Registered emitter name")
@click.option("--stdout", "to_stdout", is_flag=True, help="Print the document instead of writing it")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level",
)
@click.option("--json-logs", is_flag=True, help="Emit log events as JSON lines")
def synth(
    module: str,
    config_path: Optional[str],
    output_dir: Optional[str],
    filename: Optional[str],
    indent: Optional[int],
    emitter: str,
    to_stdout: bool,
    log_level: Optional[str],
    json_logs: bool,
) -> None:
    """Run MODULE's synthesize(run) and emit the document."""
    try:
        config = _build_config(config_path, output_dir, filename, indent, log_level, json_logs)
        if emitter.lower() not in get_emitter_registry():
            raise click.BadParameter(
                f"Unknown emitter '{emitter}'. Available: {', '.join(sorted(get_emitter_registry()))}",
                param_hint="--emitter",
            )
        run = synthesize_module(module)
        document_emitter = get_emitter(emitter)(config)
        if to_stdout:
            click.echo(document_emitter.render(run), nl=False)
            return
        path = document_emitter.write(run)
    except TerrasynthError as e:
        _fail(e)
        return

    stats = document_emitter.get_statistics()
    logger.info("document_written", path=str(path), **stats)
    console.print(
        f"[green]✅ Wrote {path}[/green] "
        f"({stats.get('resources', 0)} resources, {stats.get('data_sources', 0)} data sources)"
    )


@cli.command()
@click.argument("module")
@click.option("--log-level", default="WARNING", show_default=True, help="Logging level")
def check(module: str, log_level: str) -> None:
    """Build MODULE's run and report unresolved references without writing."""
    configure_logging(log_level)
    try:
        run = synthesize_module(module)
    except TerrasynthError as e:
        _fail(e)
        return

    unresolved = find_unresolved(run)
    if unresolved:
        for source, field_path, target in unresolved:
            console.print(f"[red]❌ {source}.{field_path} -> {target} (not registered)[/red]")
        sys.exit(1)

    console.print(
        f"[green]✅ {len(run.resources())} resources, {len(run.data_sources())} data sources, "
        f"{len(run.composites)} composites; all references resolve[/green]"
    )


@cli.command()
def kinds() -> None:
    """List the registered resource kinds."""
    registry = default_registry()
    table = Table(title="Registered kinds")
    table.add_column("Kind", style="cyan")
    table.add_column("Fields", justify="right")
    table.add_column("Outputs")
    table.add_column("Computed")
    for kind in registry.kinds():
        entry = registry.get(kind)
        table.add_row(
            kind,
            str(len(entry.schema.fields)),
            ", ".join(entry.schema.outputs),
            ", ".join(sorted(entry.computed)),
        )
    Console().print(table)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
