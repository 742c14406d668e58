"""Main CLI for docsearch."""

import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.config import load_config
from ..errors import DocSearchError, ErrorTranslator
from ..indexing import (
    IndexRegistry,
    ItemKind,
    PayloadStore,
    QueryEngine,
    SearchOptions,
    resolve_position,
)
from ..utils.rich_logging import setup_logging


console = Console()
translator = ErrorTranslator()

KIND_CHOICES = sorted({kind.label for kind in ItemKind})


def _fail(error: Exception) -> None:
    console.print(translator.format_for_cli(translator.translate(error)))
    sys.exit(1)


def _build_registry(ctx) -> IndexRegistry:
    config = ctx.obj["config"]
    paths = [*config.index_paths, *ctx.obj["index_paths"]]
    if not paths:
        raise click.UsageError("No index files given. Use --index or set index_paths in the config.")

    registry = IndexRegistry()
    registry.load_payloads(PayloadStore().read_all(paths))
    return registry


@click.group()
@click.option("--config", "-c", "config_path", default="docsearch.yaml", type=click.Path(path_type=Path),
              help="Config file")
@click.option("--index", "-i", "index_paths", multiple=True, type=click.Path(path_type=Path),
              help="Index payload file or directory (repeatable)")
@click.option("--log-level", default=None,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
              help="Override the configured log level")
@click.pass_context
def cli(ctx, config_path, index_paths, log_level):
    """docsearch - search documentation indexes by name or signature."""
    ctx.ensure_object(dict)
    try:
        config = load_config(config_path)
    except ValidationError as e:
        _fail(e)
        return
    setup_logging(log_level or config.log_level, config.log_file)
    ctx.obj["config"] = config
    ctx.obj["index_paths"] = list(index_paths)


@cli.command()
@click.argument("query")
@click.option("--limit", "-n", type=int, default=None, help="Max results (default from config)")
@click.option("--kind", "-k", "kinds", multiple=True, type=click.Choice(KIND_CHOICES),
              help="Restrict to item kinds (repeatable)")
@click.pass_context
def search(ctx, query, limit, kinds):
    """Search loaded crates by name (`esil::parser`) or signature (`str -> vec`)."""
    config = ctx.obj["config"]
    try:
        registry = _build_registry(ctx)
        options = SearchOptions.create(
            limit=limit if limit is not None else config.default_limit,
            kinds=kinds or None,
        )
        engine = QueryEngine(registry, max_edit_distance=config.max_edit_distance)
        hits = engine.search(query, options)
    except DocSearchError as e:
        _fail(e)
        return

    if not hits:
        console.print(f"[yellow]No results for[/] {escape(query)!r}")
        return

    table = Table()
    table.add_column("Kind")
    table.add_column("Path")
    table.add_column("Score", justify="right")
    table.add_column("Summary")

    for hit in hits:
        if hit.ok:
            detail = hit.summary
            if hit.signature is not None:
                detail = f"{hit.signature.render()}  {detail}".strip()
            table.add_row(hit.kind.label, escape(hit.path), f"{hit.score:.0f}", escape(detail))
        else:
            table.add_row(
                f"[red]{hit.kind.label}[/]",
                f"[red]{escape(hit.path)}[/]",
                f"{hit.score:.0f}",
                f"[red]{escape(hit.error)}[/]",
            )

    console.print(table)


@cli.command()
@click.pass_context
def crates(ctx):
    """List loaded crates."""
    try:
        registry = _build_registry(ctx)
    except DocSearchError as e:
        _fail(e)
        return

    table = Table()
    table.add_column("Crate")
    table.add_column("Items", justify="right")
    table.add_column("Paths", justify="right")
    table.add_column("Format", justify="right")

    for name in registry.crate_names():
        crate_index = registry.get(name)
        table.add_row(
            escape(name),
            str(len(crate_index.items)),
            str(len(crate_index.paths)),
            str(crate_index.format_version),
        )

    console.print(table)


@cli.command()
@click.argument("crate")
@click.argument("position", type=int)
@click.pass_context
def resolve(ctx, crate, position):
    """Print the fully qualified path of the item at POSITION in CRATE."""
    try:
        registry = _build_registry(ctx)
        crate_index = registry.get(crate)
        if crate_index is None:
            console.print(f"[red]Crate not loaded:[/] {escape(crate)}")
            sys.exit(1)
        path = resolve_position(crate_index, position)
    except DocSearchError as e:
        _fail(e)
        return
    except IndexError as e:
        console.print(f"[red]{escape(str(e))}[/]")
        sys.exit(1)

    console.print(escape(path))


if __name__ == "__main__":
    cli()
