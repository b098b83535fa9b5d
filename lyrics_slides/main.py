"""
Main CLI interface for Lyrics-Slides

This module provides the command-line interface for looking up, cleaning and
caching song lyrics. It serves as the primary entry point for user
interactions with the application.

The CLI is built using Click framework and provides commands for:
- Lyrics lookup (search, batch)
- Text cleanup (clean)
- Cache management (cache)
- Configuration diagnostics (sources)
"""

import asyncio
import functools
import sys

import aiohttp
import click

from . import __version__
from .config.settings import get_settings, reload_settings
from .core.exceptions import LyricsSlidesError
from .lyrics.cache import CacheAdapter
from .lyrics.extractors import ContentExtractor
from .lyrics.normalizer import clean_lyrics, split_paragraphs
from .lyrics.orchestrator import create_orchestrator
from .store.database import SongStore
from .utils.helpers import parse_title_line, truncate_string
from .utils.logger import configure_from_settings, create_operation_logger, current_log_file, get_logger


# Initialize logging system from configuration settings
configure_from_settings()
logger = get_logger(__name__)


def print_banner():
    """Print application banner to console"""
    banner = """
╔═══════════════════════════════════════════════════════════════╗
║                         Lyrics-Slides                         ║
║                                                               ║
║   Find, clean and cache song lyrics for presentation slides   ║
║                                                               ║
╚═══════════════════════════════════════════════════════════════╝
    """
    click.echo(click.style(banner, fg='green', bold=True))


def handle_error(func):
    """
    Decorator to handle common CLI errors gracefully

    Wraps CLI command functions to provide consistent error handling across
    all commands: user cancellation exits with 130, any other failure is
    logged, shown in red and exits with 1.

    Args:
        func: The CLI command function to wrap

    Returns:
        Wrapped function with error handling
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo(click.style("\n\nOperation cancelled by user", fg='yellow'))
            sys.exit(130)  # Standard exit code for SIGINT
        except LyricsSlidesError as e:
            logger.debug(f"Command failed: {e} {e.details}")
            click.echo(click.style(f"Error: {e}", fg='red'), err=True)
            sys.exit(1)
        except Exception as e:
            logger.error(f"Command failed: {e}")
            click.echo(click.style(f"Error: {e}", fg='red'), err=True)
            sys.exit(1)
    return wrapper


async def run_with_orchestrator(func):
    """
    Run a coroutine function with an orchestrator built from settings

    A single HTTP session is shared by search and page requests and closed
    afterwards together with the cache database.
    """
    settings = get_settings()
    timeout = aiohttp.ClientTimeout(total=settings.fetch.timeout)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        orchestrator = create_orchestrator(settings, session=session)
        try:
            return await func(orchestrator)
        finally:
            if orchestrator.cache is not None:
                orchestrator.cache.store.close()


def print_result(result, index: int, show_full: bool = True) -> None:
    """Print one lyrics result with its provenance"""
    label = f"{result.title} - {result.artist}" if result.artist else result.title
    origin = result.provenance
    if result.song_id is not None:
        origin += f" #{result.song_id}"

    click.echo(click.style(f"\n[{index}] {label}", fg='cyan', bold=True) + f"  ({origin})")
    if result.source:
        click.echo(f"    Source: {result.source}")

    if show_full:
        click.echo("")
        click.echo(result.lyrics)
    else:
        click.echo(f"    {truncate_string(result.lyrics.replace(chr(10), ' / '), 70)}")


# Main CLI group - root command that all subcommands attach to
@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--config', type=click.Path(), help='Path to config file')
@click.pass_context
def cli(ctx, version, verbose, config):
    """
    Lyrics-Slides - Find and clean song lyrics for slides

    Looks lyrics up in the local cache, an optional AI provider and the web,
    and returns them cleaned with paragraph breaks preserved.
    """
    ctx.ensure_object(dict)

    if version:
        click.echo(f"Lyrics-Slides v{__version__}")
        return

    if config:
        reload_settings(config)
        configure_from_settings()
        click.echo(f"Loaded config: {config}")

    if verbose:
        ctx.obj['verbose'] = True
        logger.info("Verbose mode enabled")

    if ctx.invoked_subcommand is None:
        print_banner()
        click.echo(ctx.get_help())


@cli.command()
@click.argument('title')
@click.option('--artist', '-a', help='Artist name (forces a fresh lookup)')
@click.option('--save', is_flag=True, help='Save the fresh result in the cache')
@click.option('--paragraphs', is_flag=True, help='Show lyrics split into slide paragraphs')
@handle_error
def search(title, artist, save, paragraphs):
    """
    Search lyrics for a song

    Cached songs with exactly this title are listed after any freshly
    acquired result.
    """
    async def run(orchestrator):
        results = await orchestrator.search_lyrics(title, artist)
        saved = None
        if save:
            saved = await orchestrator.save_result(results[0])
        return results, saved

    results, saved = asyncio.run(run_with_orchestrator(run))

    click.echo(f"Found {len(results)} result(s) for '{title}'")
    for index, result in enumerate(results, 1):
        if paragraphs:
            print_result(result, index, show_full=False)
            for paragraph in split_paragraphs(result.lyrics):
                click.echo(click.style(f"\n  [{paragraph.id} {paragraph.type}]", fg='blue'))
                click.echo("  " + paragraph.text.replace("\n", "\n  "))
        else:
            print_result(result, index)

    if save:
        if saved is None:
            click.echo(click.style("\nNothing to save: best result came from the cache", fg='yellow'))
        elif saved.success:
            click.echo(click.style(f"\nSaved to cache (song #{saved.song_id})", fg='green'))
        else:
            click.echo(click.style("\nFailed to save to cache", fg='red'), err=True)


@cli.command()
@click.argument('file', type=click.File('r', encoding='utf-8'), default='-')
@handle_error
def clean(file):
    """
    Clean lyrics text from FILE (or standard input)
    """
    click.echo(clean_lyrics(file.read()))


@cli.command()
@click.argument('title')
@click.argument('file', type=click.File('r', encoding='utf-8'))
@click.option('--artist', '-a', default='', help='Artist name')
@click.option('--source', '-s', default='manual', help='Where the lyrics came from')
@handle_error
def cache(title, file, artist, source):
    """
    Store lyrics from FILE in the cache

    An existing song with the same title and artist is updated instead of
    duplicated.
    """
    settings = get_settings()
    db_path = settings.get_database_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    store = SongStore(db_path)
    try:
        result = asyncio.run(CacheAdapter(store).upsert(title, artist, file.read(), source))
    finally:
        store.close()

    if not result.success:
        raise LyricsSlidesError(f"Failed to cache lyrics for '{title}'")

    action = "Created" if result.created else "Updated"
    click.echo(click.style(f"{action} song #{result.song_id}: {title}", fg='green'))


@cli.command()
@click.argument('file', type=click.File('r', encoding='utf-8'))
@click.option('--concurrency', '-c', type=int, help='Concurrent lookups')
@click.option('--save/--no-save', default=True, help='Save fresh results in the cache')
@handle_error
def batch(file, concurrency, save):
    """
    Search lyrics for every "Title" or "Title - Artist" line in FILE
    """
    queries = [parsed for parsed in (parse_title_line(line) for line in file) if parsed]
    if not queries:
        click.echo("No songs to search")
        return

    settings = get_settings()
    concurrency = concurrency or settings.batch.concurrency
    operation = create_operation_logger(__name__, "Lyrics search")
    done = []

    def on_complete(outcome):
        done.append(outcome)
        operation.progress(outcome.title, len(done), len(queries))

    async def run(orchestrator):
        return await orchestrator.search_many(
            queries,
            concurrency=concurrency,
            rate_limit=settings.batch.rate_limit,
            save=save,
            on_complete=on_complete
        )

    operation.start(f"Searching lyrics for {len(queries)} song(s)")
    try:
        outcomes = asyncio.run(run_with_orchestrator(run))
    except Exception as e:
        operation.error(str(e))
        raise

    found = [o for o in outcomes if o.success]
    operation.complete(f"Found lyrics for {len(found)}/{len(outcomes)} song(s)")

    for outcome in outcomes:
        label = f"{outcome.title} - {outcome.artist}" if outcome.artist else outcome.title
        if outcome.success:
            best = outcome.results[0]
            note = " (saved)" if outcome.saved and outcome.saved.success else ""
            click.echo(f"   [OK] {label}: {best.provenance} {best.source}{note}")
        else:
            click.echo(f"   [FAIL] {label}: {outcome.error}")


@cli.command()
@handle_error
def sources():
    """
    Check lyrics sources status

    Shows whether web search credentials, the AI provider and the cache
    database are configured, and where the log file is written. Useful for
    troubleshooting lookups.
    """
    settings = get_settings()

    click.echo("Lyrics Sources Status:")

    search_ok = bool(settings.search.api_key and settings.search.engine_id)
    click.echo(f"   {'[OK]' if search_ok else '[FAIL]'} web search: "
               f"{'configured' if search_ok else 'missing api_key / engine_id'}")

    provider = settings.generative.provider
    if provider == "none":
        click.echo("   [--] ai provider: disabled")
    else:
        ai_ok = bool(settings.generative.api_key)
        click.echo(f"   {'[OK]' if ai_ok else '[FAIL]'} ai provider: {provider}"
                   f"{'' if ai_ok else ' (no API key)'}")

    db_path = settings.get_database_path()
    click.echo(f"   {'[OK]' if db_path.exists() else '[--]'} cache: {db_path}"
               f"{'' if db_path.exists() else ' (created on first use)'}")

    log_file = current_log_file()
    click.echo(f"\nLog file: {log_file or 'disabled'}")

    click.echo("\nPreferred domains: " + ", ".join(settings.search.preferred_domains))
    click.echo("Site adapters: " + ", ".join(ContentExtractor(settings.extraction).domains))

    problems = settings.validate()
    if problems:
        click.echo("\nConfiguration problems:")
        for problem in problems:
            click.echo(click.style(f"   - {problem}", fg='yellow'))


if __name__ == '__main__':
    cli()
