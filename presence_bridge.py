"""
PresenceBridge command line entry point.

`listen` reads player broadcasts as JSON lines, one per line:
    {"action": "com.maxmpz.audioplayer.TRACK_CHANGED_EXPLICIT",
     "extras": {"title": "...", "artist": "...", "pos": 12}}
and writes the resulting presence events as JSON lines to stdout
(or POSTs them to the configured webhook).
"""
import json
import sys

import click

from bridge import Outcome, create_bridge
from config import CACHE, DEBUG, STATE_FILE, VERSION
from credentials import CredentialStore
from dispatcher import EventDispatcher
from errors import CredentialUnavailable
from logging_config import get_logger, setup_logging
from providers import TokenFetcher
from sinks import create_default_sink
from state_manager import StateStore
from track_cache import TrackCache

logger = get_logger(__name__)


@click.group()
@click.version_option(VERSION, prog_name="presence-bridge")
@click.option("--verbose", "-v", is_flag=True, help="Log debug messages to the console.")
def cli(verbose):
    """Bridge media player "now playing" events to Spotify presence events."""
    setup_logging(
        console_level="DEBUG" if verbose else DEBUG.get("log_level", "INFO"),
        file_level="DEBUG" if DEBUG.get("log_detailed", False) else "INFO",
        console=verbose or DEBUG.get("log_to_console", True),
        log_file=DEBUG.get("log_file", "presence_bridge.log"),
        max_bytes=DEBUG["log_rotation"]["max_bytes"],
        backup_count=DEBUG["log_rotation"]["backup_count"],
    )


@cli.command()
@click.option("--input", "input_file", type=click.File("r"), default="-",
              help="File with JSON-lines events (default: stdin).")
def listen(input_file):
    """Dispatch events read from stdin or a file until EOF."""
    sink = create_default_sink()
    bridge = create_bridge(sink)
    dispatcher = EventDispatcher(bridge)
    logger.info("Listening for player events...")

    try:
        for line_no, line in enumerate(input_file, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                message = json.loads(line)
                action = message["action"]
                extras = message.get("extras", {})
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Line {line_no}: not an event ({e}), skipping")
                continue
            dispatcher.on_receive(action, extras)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt...")
    finally:
        dispatcher.shutdown(wait=True)
        sink.close()
        if dispatcher.dropped:
            logger.warning(f"{dispatcher.dropped} events dropped while busy")


@cli.command()
@click.argument("title")
@click.argument("artist")
@click.option("--pos", default=0, show_default=True, help="Playback position in seconds.")
def track(title, artist, pos):
    """Send one track change."""
    sink = create_default_sink()
    result = create_bridge(sink).on_track_changed(title, artist, pos * 1000)
    sink.close()
    if result.outcome is Outcome.FAILED:
        raise click.ClickException(f"track change failed: {result.error}")
    if result.outcome is Outcome.SKIPPED:
        click.echo(f"No Spotify match for {title} - {artist}", err=True)


@cli.command()
@click.option("--playing/--paused", default=True, help="Player state.")
@click.option("--pos", default=0, show_default=True, help="Playback position in seconds.")
def status(playing, pos):
    """Send one playback status change."""
    sink = create_default_sink()
    create_bridge(sink).on_playback_state_changed(playing, pos * 1000)
    sink.close()


@cli.command("cache-info")
@click.option("--list", "list_keys", is_flag=True, help="Print the cached keys, oldest first.")
def cache_info(list_keys):
    """Show the track cache size and location."""
    cache = TrackCache(CACHE["file"], CACHE["max_size"])
    click.echo(f"{cache.cache_file}: {len(cache)}/{cache.max_size} tracks")
    if list_keys:
        for key in cache.keys():
            click.echo(f"{key} -> {cache.lookup(key)}")


@cli.command("clear-cache")
@click.confirmation_option(prompt="Remove all cached track URIs?")
def clear_cache():
    """Empty the track cache."""
    cache = TrackCache(CACHE["file"], CACHE["max_size"])
    if not cache.clear():
        raise click.ClickException(f"could not write {cache.cache_file}")
    click.echo("Track cache cleared")


@cli.command()
@click.option("--refresh", is_flag=True, help="Discard the stored token and fetch a new one.")
def token(refresh):
    """Show whether the stored access token is still valid."""
    credentials = CredentialStore(StateStore(STATE_FILE), TokenFetcher())
    if refresh:
        credentials.invalidate()
        try:
            credentials.get_valid_token()
        except CredentialUnavailable as e:
            raise click.ClickException(str(e))

    credential = credentials.load()
    if credential is None:
        click.echo("No access token stored")
        sys.exit(1)
    state = "valid" if credential.is_valid(credentials.clock()) else "expired"
    click.echo(f"Access token {state} (expires at {credential.expires_at_ms} ms)")


if __name__ == "__main__":
    cli()
