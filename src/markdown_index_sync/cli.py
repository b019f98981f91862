"""
Command line interface for the markdown index synchronizer.

Usage:
    markdown-index-sync run --dir ./md --idxdb idx.db [--forceidx] [--env dev]
    markdown-index-sync search "query terms"
"""

import asyncio
import logging
import logging.config
import signal
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from markdown_index_sync import __version__
from markdown_index_sync.config import Environment, SyncConfig
from markdown_index_sync.models import BaseError, SearchQuery
from markdown_index_sync.monitoring import Indexer
from markdown_index_sync.storage import SQLiteMetadataStore
from markdown_index_sync.sync import SearchIndexClient

logger = logging.getLogger(__name__)

console = Console()


def build_config(verbose: bool = False, **overrides: Any) -> SyncConfig:
    """Build the configuration from environment, ``.env`` and explicit CLI options."""
    options = {key: value for key, value in overrides.items() if value is not None}
    if verbose:
        options["debug_mode"] = True
    config = SyncConfig(**options)
    logging.config.dictConfig(config.get_log_config())
    return config


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, stop_event: asyncio.Event) -> None:
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # add_signal_handler is unavailable on Windows event loops
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(stop_event.set))


async def _run_indexer(config: SyncConfig) -> None:
    stop_event = asyncio.Event()
    _install_signal_handlers(asyncio.get_running_loop(), stop_event)
    indexer = Indexer(config)
    await indexer.start(stop_event)
    logger.info("Indexer stopped: %s", indexer.stats)


common_options = [
    click.option('--dir', '-d', 'content_dir', type=click.Path(path_type=Path), help='Markdown files dir'),
    click.option('--idxdb', '-f', 'db_path', type=click.Path(path_type=Path), help='Metadata store database file'),
    click.option('--search-url', help='Base address of the search service'),
    click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging'),
]


def with_common_options(func):
    for option in reversed(common_options):
        func = option(func)
    return func


@click.group()
@click.version_option(__version__, prog_name="markdown-index-sync")
def main():
    """Keep a full-text search index in sync with a markdown directory."""


@main.command()
@with_common_options
@click.option('--forceidx', 'force_reindex', is_flag=True, help='Force to reindex all documents')
@click.option(
    '--env',
    '-e',
    'environment',
    type=click.Choice([env.value for env in Environment]),
    help='Runtime environment, dev|test|prod',
)
@click.option('--dry-run', is_flag=True, help='Do not call the search service')
@click.option('--prune-orphans', is_flag=True, help='Drop records for files deleted while offline')
def run(content_dir, db_path, search_url, verbose, force_reindex, environment, dry_run, prune_orphans):
    """Reconcile the index once, then watch the directory until interrupted."""
    try:
        config = build_config(
            verbose,
            content_dir=content_dir,
            db_path=db_path,
            search_url=search_url,
            force_reindex=force_reindex or None,
            environment=environment,
            dry_run=dry_run or None,
            prune_orphans=prune_orphans or None,
        )
        console.print(f"Watching [bold]{config.resolve_content_dir()}[/bold] (store: {config.resolve_db_path()})")
        asyncio.run(_run_indexer(config))
    except BaseError as e:
        console.print(f"[red]Startup failed:[/red] {e}")
        sys.exit(1)

    console.print("[green]Indexer stopped.[/green]")


@main.command()
@with_common_options
@click.confirmation_option(prompt='Drop the search index and clear all tracked records?')
def reset(content_dir, db_path, search_url, verbose):
    """Drop the downstream index and clear the metadata store."""
    try:
        config = build_config(verbose, content_dir=content_dir, db_path=db_path, search_url=search_url)
        indexer = Indexer(config)
    except BaseError as e:
        console.print(f"[red]Reset failed:[/red] {e}")
        sys.exit(1)

    try:
        result = asyncio.run(indexer.reset())
    finally:
        indexer.shutdown()

    if not result.ok:
        console.print(f"[red]Index drop failed:[/red] {result}")
        sys.exit(1)
    console.print("[green]Search index dropped and metadata store cleared.[/green]")


@main.command()
@click.argument('query')
@click.option('--page', type=int, default=1, show_default=True, help='Result page')
@click.option('--limit', type=int, default=10, show_default=True, help='Results per page')
@click.option('--search-url', help='Base address of the search service')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def search(query, page, limit, search_url, verbose):
    """Run a full-text query against the search service."""
    config = build_config(verbose, search_url=search_url)
    client = SearchIndexClient(config)
    try:
        response = client.query(SearchQuery(query=query, page=page, limit=limit))
    except BaseError as e:
        console.print(f"[red]Search failed:[/red] {e}")
        sys.exit(1)
    finally:
        client.close()

    if not response.is_success() or not response.hits:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Id")
    table.add_column("Path")
    table.add_column("Title")
    table.add_column("Summary")

    for hit in response.hits:
        snippet = hit.summary.replace("\n", " ")
        table.add_row(f"{hit.score:g}", str(hit.id), hit.document.path, hit.document.title, snippet[:120])

    console.print(table)
    data = response.data
    console.print(f"Total: {data.total}, page {data.page}/{data.page_count} ({data.time:g} ms)")


@main.command()
@click.option('--idxdb', '-f', 'db_path', type=click.Path(path_type=Path), help='Metadata store database file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def status(db_path, verbose):
    """Show what the metadata store currently tracks."""
    config = build_config(verbose, db_path=db_path)
    resolved_db = config.resolve_db_path()
    if not resolved_db.exists():
        console.print(f"[yellow]Database not found: {resolved_db}[/yellow]")
        return

    try:
        store = SQLiteMetadataStore(resolved_db)
    except BaseError as e:
        console.print(f"[red]Cannot open store:[/red] {e}")
        sys.exit(1)

    try:
        console.print(f"Store: [bold]{resolved_db}[/bold] (sqlite {store.sqlite_version})")
        console.print(f"Tracked documents: {store.count()}")
    finally:
        store.close()


if __name__ == '__main__':
    main()
