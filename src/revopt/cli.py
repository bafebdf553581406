"""Command-line interface for the revopt dataset loader."""

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

app = typer.Typer(
    name="revopt",
    help="Resilient dataset loader with last-known-good fallback.",
    no_args_is_help=True,
)
cache_app = typer.Typer(help="Inspect or clear the last-known-good cache.", no_args_is_help=True)
app.add_typer(cache_app, name="cache")

console = Console()

ConfigOption = Annotated[
    Path,
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration YAML file.",
        exists=True,
        dir_okay=False,
    ),
]


@app.command()
def load(
    config: ConfigOption,
    show: Annotated[
        int,
        typer.Option("--show", "-n", help="Number of rows to preview.", min=0),
    ] = 5,
) -> None:
    """Load the dataset once (network first, cache fallback)."""
    from revopt.config.loader import load_config
    from revopt.errors import NoDataAvailableError
    from revopt.loading.context import DataContext
    from revopt.utils.logging import configure_logging
    from revopt.validation.reporter import ConsoleReporter

    loader_config = load_config(config)
    configure_logging(loader_config.logging.level, loader_config.logging.json_output)

    console.print(f"[blue]Loading dataset from {loader_config.manifest_url}[/blue]")
    context = DataContext.from_config(loader_config)

    try:
        result = asyncio.run(context.result())
    except NoDataAvailableError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e
    finally:
        context.loader.fetcher.close()

    ConsoleReporter(console).print_result(result, preview_rows=show)


@cache_app.command("show")
def cache_show(
    config: ConfigOption,
    show: Annotated[
        int,
        typer.Option("--show", "-n", help="Number of rows to preview.", min=0),
    ] = 5,
) -> None:
    """Show what the last-known-good cache holds."""
    from revopt.config.loader import load_config
    from revopt.utils.cache import FileStorage, LastKnownGoodStore
    from revopt.validation.reporter import ConsoleReporter

    loader_config = load_config(config)
    store = LastKnownGoodStore(
        FileStorage(loader_config.cache.directory),
        data_key=loader_config.cache.data_key,
        meta_key=loader_config.cache.meta_key,
    )

    cached = store.load()
    if cached is None:
        console.print(f"[yellow]No cached dataset in {loader_config.cache.directory}[/yellow]")
        raise typer.Exit(code=1)

    ConsoleReporter(console).print_result(cached, preview_rows=show)


@cache_app.command("clear")
def cache_clear(config: ConfigOption) -> None:
    """Delete the last-known-good cache entry."""
    from revopt.config.loader import load_config
    from revopt.utils.cache import FileStorage, LastKnownGoodStore

    loader_config = load_config(config)
    store = LastKnownGoodStore(
        FileStorage(loader_config.cache.directory),
        data_key=loader_config.cache.data_key,
        meta_key=loader_config.cache.meta_key,
    )
    removed = store.clear()
    console.print(f"[green]Removed {removed} cache entries[/green]")


@app.command()
def manifest(
    payload: Annotated[
        Path,
        typer.Argument(help="CSV payload to describe.", exists=True, dir_okay=False),
    ],
    url: Annotated[
        str | None,
        typer.Option("--url", help="Payload URL as published (defaults to the file name)."),
    ] = None,
    version: Annotated[
        str | None,
        typer.Option("--version", help="Cache-busting payload version."),
    ] = None,
    schema_version: Annotated[
        str | None,
        typer.Option("--schema-version", help="Cache-busting schema version."),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the manifest here instead of stdout."),
    ] = None,
) -> None:
    """Write a manifest (with SHA-256) for a CSV payload."""
    from revopt.schemas.dataset import Manifest
    from revopt.utils.hashing import content_hash

    # Hash the decoded text, as the loader does
    text = payload.read_bytes().decode("utf-8-sig", errors="replace")
    document = Manifest(
        url=url or payload.name,
        version=version,
        schema_version=schema_version,
        sha256=content_hash(text),
    )
    rendered = json.dumps(document.model_dump(), indent=2)

    if output is None:
        typer.echo(rendered)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(rendered + "\n", encoding="utf-8")
    console.print(f"[green]Wrote manifest to {output}[/green]")


if __name__ == "__main__":
    app()
