"""Command-line interface for tunesearch."""

import asyncio
import json
import logging
import sys

import click
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from tunesearch import __version__
from tunesearch.config import TuneSearchConfig, load_config, save_config_template
from tunesearch.errors import SearchError
from tunesearch.main import TuneSearch
from tunesearch.utils import format_duration, setup_logging


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, SearchError) and exc.is_transient


def _load(config_path) -> TuneSearchConfig:
    try:
        return load_config(config_path)
    except ValueError as e:
        raise click.ClickException(str(e))


def _fail(error: SearchError):
    click.echo(f"Error [{error.kind.value}]: {error.message}", err=True)
    sys.exit(1)


def _configure_logging(cfg: TuneSearchConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, cfg.logging.level.upper())
    setup_logging(
        level=level,
        log_file=cfg.logging.file_path or None,
        max_bytes=cfg.logging.max_file_size_mb * 1024 * 1024,
        backup_count=cfg.logging.backup_count,
        console_output=cfg.logging.console_output and verbose,
    )


async def _search_with_retries(app: TuneSearch, query: str, retries: int):
    """Retry transient failures; retry policy lives with the caller."""
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(retries + 1),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception(_is_transient),
        reraise=True,
    ):
        with attempt:
            # Only the first attempt counts as a use of the query
            first_attempt = attempt.retry_state.attempt_number == 1
            return await app.search(query, record_history=first_attempt)


async def _search_async(cfg: TuneSearchConfig, query: str, retries: int):
    async with TuneSearch(cfg) as app:
        return await _search_with_retries(app, query, retries)


async def _history_async(cfg: TuneSearchConfig, clear: bool):
    async with TuneSearch(cfg) as app:
        if clear:
            await app.clear_history()
            return []
        return await app.history()


async def _clear_cache_async(cfg: TuneSearchConfig) -> int:
    async with TuneSearch(cfg) as app:
        return await app.clear_cache()


@click.group()
@click.version_option(__version__)
def cli():
    """TuneSearch - ranked YouTube music search with caching."""
    pass


@cli.command()
@click.argument("query")
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--demo", is_flag=True, help="Return canned results without calling the API")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.option("--retries", "-r", default=0, type=click.IntRange(0, 5), help="Retries on transient errors")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
def search(query, config, demo, as_json, retries, verbose):
    """Search YouTube for QUERY and print ranked tracks."""
    cfg = _load(config)
    if demo:
        cfg.search.demo_mode = True
    _configure_logging(cfg, verbose)

    try:
        results = asyncio.run(_search_async(cfg, query, retries))
    except SearchError as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps([result.to_dict() for result in results], indent=2, ensure_ascii=False))
        return

    if not results:
        click.echo(f"No results for '{query}'")
        return

    for position, result in enumerate(results, start=1):
        track = result.candidate
        click.echo(
            f"{position:2}. {track.title} - {track.channel_name} "
            f"[{format_duration(track.duration_seconds)}] "
            f"({track.classification.value}, album: {track.album_guess}) "
            f"score={result.relevance_score:.2f}"
        )
        click.echo(f"    https://www.youtube.com/watch?v={track.external_id}")


@cli.command()
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--clear", is_flag=True, help="Delete the stored history")
def history(config, clear):
    """Show past searches, most frequent first."""
    cfg = _load(config)
    _configure_logging(cfg, verbose=False)

    try:
        queries = asyncio.run(_history_async(cfg, clear))
    except SearchError as e:
        _fail(e)

    if clear:
        click.echo("Search history cleared")
        return
    if not queries:
        click.echo("No searches recorded yet")
        return
    for query in queries:
        click.echo(query)


@cli.command("clear-cache")
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to configuration file")
def clear_cache(config):
    """Remove every cached result set."""
    cfg = _load(config)
    _configure_logging(cfg, verbose=False)

    try:
        removed = asyncio.run(_clear_cache_async(cfg))
    except SearchError as e:
        _fail(e)

    click.echo(f"Removed {removed} cached entries")


@cli.command("create-config")
@click.option("--output", "-o", default="config_template.yaml", help="Output path for template")
def create_config(output):
    """Create a configuration file template."""
    save_config_template(output)
    click.echo(f"Configuration template saved to: {output}")


if __name__ == "__main__":
    cli()
