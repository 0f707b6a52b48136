"""Command-line interface for song lookups."""

import asyncio
import json
import logging
import sys

import click

from songfinder.config import load_config, save_config_template
from songfinder.exceptions import SongFinderError
from songfinder.finder import SongFinder
from songfinder.search.providers import LookupResult, ProviderFactory
from songfinder.search.strategies import StrategyFactory
from songfinder.utils import setup_logging_from_config

logger = logging.getLogger(__name__)


def _result_to_dict(result: LookupResult) -> dict:
    return {
        "provider": result.provider,
        "found": result.found,
        "artist": result.artist,
        "song": result.song,
        "value": result.value,
    }


def _run(config_path, verbose, operation):
    """Build a finder, run ``operation`` against it and print the JSON result."""
    try:
        finder_config = load_config(config_path)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    setup_logging_from_config(finder_config.logging, verbose)

    async def _runner():
        finder = SongFinder(finder_config)
        try:
            return await operation(finder)
        finally:
            await finder.aclose()

    try:
        output = asyncio.run(_runner())
    except SongFinderError as e:
        logger.error(f"Lookup failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(output, indent=2, ensure_ascii=False))


@click.group()
@click.version_option("1.0.0")
def cli():
    """SongFinder - look up lyrics and video search links for songs."""
    pass


@cli.command()
@click.argument("artist")
@click.argument("song")
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
def song(artist, song, config, verbose):
    """Show the video search link and lyrics for a song."""

    async def _details(finder):
        return await finder.song_details(artist, song)

    _run(config, verbose, _details)


@cli.command()
@click.argument("artist")
@click.argument("song")
@click.option(
    "--provider",
    "-p",
    type=click.Choice(ProviderFactory.available(), case_sensitive=False),
    default="lyrics",
    help="Provider to query",
)
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
def find(artist, song, provider, config, verbose):
    """Look up a song with a single provider."""

    async def _find(finder):
        return _result_to_dict(await finder.find(provider, artist, song))

    _run(config, verbose, _find)


@cli.command()
@click.argument("artist")
@click.argument("song")
@click.option(
    "--strategy",
    "-s",
    type=click.Choice(StrategyFactory.available(), case_sensitive=False),
    default="exact",
    help="Matching strategy",
)
@click.option(
    "--provider",
    "-p",
    type=click.Choice(ProviderFactory.available(), case_sensitive=False),
    default="lyrics",
    help="Provider to query",
)
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
def resolve(artist, song, strategy, provider, config, verbose):
    """Look up a song through an exact or fuzzy matching strategy."""

    async def _resolve(finder):
        return _result_to_dict(await finder.resolve(strategy, artist, song, provider))

    _run(config, verbose, _resolve)


@cli.command()
def status():
    """Report that the application is running."""
    click.echo(json.dumps(SongFinder.status()))


@cli.command()
@click.option("--output", "-o", default="songfinder.yaml", help="Output path for template")
def create_config(output):
    """Create a configuration file template."""
    save_config_template(output)
    click.echo(f"Configuration template saved to: {output}")


if __name__ == "__main__":
    cli()
