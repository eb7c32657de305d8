"""Click CLI with analyze, unit, and serve subcommands."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import click

from type_deps import __version__
from type_deps.errors import AnalysisError, CapacityExceeded
from type_deps.models import (
    DEFAULT_EXCLUDED_PREFIXES,
    AnalysisConfig,
    FailurePolicy,
    OverflowStrategy,
)
from type_deps.orchestrator import Orchestrator
from type_deps.report.text import graph_lines, render_tree, render_unit

_FORMATS = ["text", "json", "graph"]
_OVERFLOW_CHOICES = [s.value for s in OverflowStrategy]


def _configure_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _describe(error: AnalysisError) -> str:
    if error.unit is not None:
        return f"{error} (unit: {error.unit})"
    return str(error)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", count=True, help="Log more (-v info, -vv debug)")
def cli(verbose: int):
    """type-deps: Classify and aggregate type dependencies in a Java source tree."""
    _configure_logging(verbose)


@cli.command()
@click.argument("root", type=click.Path(path_type=Path), default=".")
@click.option("--format", "-f", "output_format", type=click.Choice(_FORMATS), default="text", help="Output format")
@click.option("--limit", type=click.IntRange(min=1), default=1000, show_default=True, help="Max units in flight. With --overflow error a run fails once more units than this are pending, so raise it or use --overflow block for large trees")
@click.option("--overflow", type=click.Choice(_OVERFLOW_CHOICES), default="error", show_default=True, help="What to do when the limit is reached")
@click.option("--exclude", "-x", multiple=True, help="Extra excluded type prefix (repeatable)")
@click.option("--no-default-excludes", is_flag=True, help="Do not exclude java.lang, java.util, ...")
@click.option("--include-imports", is_flag=True, help="Emit an edge for every single-type import")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), default=60.0, show_default=True, help="Per-unit timeout in seconds")
@click.option("--workers", type=click.IntRange(min=1), default=None, help="Worker threads")
@click.option("--best-effort", is_flag=True, help="Skip failing units instead of aborting the run")
@click.option("--progress", is_flag=True, help="Print progress to stderr")
def analyze(
    root: Path,
    output_format: str,
    limit: int,
    overflow: str,
    exclude: tuple[str, ...],
    no_default_excludes: bool,
    include_imports: bool,
    timeout: float,
    workers: int | None,
    best_effort: bool,
    progress: bool,
):
    """Analyze every source file below ROOT."""
    prefixes = () if no_default_excludes else DEFAULT_EXCLUDED_PREFIXES
    config = AnalysisConfig(
        excluded_prefixes=prefixes + tuple(exclude),
        include_imports=include_imports,
        backpressure_limit=limit,
        overflow=OverflowStrategy(overflow),
        unit_timeout=timeout,
        max_workers=workers,
        failure_policy=FailurePolicy.BEST_EFFORT if best_effort else FailurePolicy.FAIL_FAST,
    )

    def on_progress(stage: str, current: int, total: int):
        click.echo(f"  {stage}: {current}/{total}", err=True)

    orchestrator = Orchestrator(config, progress=on_progress if progress else None)
    try:
        result = orchestrator.analyze_sync(root)
    except CapacityExceeded as e:
        raise click.ClickException(
            f"{e}. Retry with a larger --limit or with --overflow block."
        )
    except AnalysisError as e:
        raise click.ClickException(_describe(e))

    for failure in result.failures:
        click.echo(
            click.style(f"skipped {failure.path}: {failure.error}", fg="yellow"),
            err=True,
        )

    if output_format == "json":
        click.echo(json.dumps(result.to_dict(), indent=2))
    elif output_format == "graph":
        for line in graph_lines(result.report):
            click.echo(line)
    else:
        click.echo(render_tree(result.report))


@cli.command()
@click.argument("source_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--format", "-f", "output_format", type=click.Choice(["text", "json"]), default="text")
@click.option("--exclude", "-x", multiple=True, help="Extra excluded type prefix (repeatable)")
@click.option("--include-imports", is_flag=True, help="Emit an edge for every single-type import")
def unit(source_file: Path, output_format: str, exclude: tuple[str, ...], include_imports: bool):
    """Analyze a single source file."""
    config = AnalysisConfig(
        excluded_prefixes=DEFAULT_EXCLUDED_PREFIXES + tuple(exclude),
        include_imports=include_imports,
    )
    try:
        report = asyncio.run(Orchestrator(config).analyze_unit(source_file))
    except AnalysisError as e:
        raise click.ClickException(_describe(e))

    if output_format == "json":
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        click.echo(render_unit(report))


@cli.command()
@click.option("--port", "-p", default=8421, help="Port number")
@click.option("--host", default="127.0.0.1", help="Host address")
def serve(port: int, host: str):
    """Start the HTTP API."""
    try:
        import uvicorn
    except ImportError:
        raise click.ClickException(
            "uvicorn is required for the HTTP API. "
            "Install with: pip install 'type-deps[web]'"
        )

    from type_deps.web import create_app

    click.echo(f"Starting type-deps API at http://{host}:{port}")
    uvicorn.run(create_app(), host=host, port=port, log_level="info")


if __name__ == "__main__":
    cli()
