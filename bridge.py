"""
Playback bridge: turns player events into Spotify-style presence events.

Track changes are resolved to a Spotify URI (cache first, search on a miss)
and emitted as a metadata event followed by a playback state event. Playback
status changes are emitted only when the playing flag actually changes.

Nothing raised inside the bridge reaches the caller. Each operation returns a
BridgeResult telling what happened; failures are logged and produce no event.
"""
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from config import CACHE, SPOTIFY, STATE_FILE
from credentials import CredentialStore
from errors import BridgeError, CredentialUnavailable, MalformedEvent, ResolutionFailed
from events import (
    InboundEvent,
    MetadataChanged,
    OutboundEvent,
    PlaybackStateChanged,
    PlaybackStatusChanged,
    TrackChanged,
    now_ms,
)
from logging_config import get_logger
from providers import TokenFetcher, TrackResolver
from sinks import EventSink
from state_manager import StateStore
from track_cache import TrackCache, make_key

logger = get_logger(__name__)


class Outcome(Enum):
    EMITTED = "emitted"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class BridgeResult:
    outcome: Outcome
    events: List[OutboundEvent] = field(default_factory=list)
    error: Optional[BridgeError] = None

    @property
    def emitted(self) -> bool:
        return self.outcome is Outcome.EMITTED


class PlaybackBridge:
    def __init__(self, credentials: CredentialStore, resolver: TrackResolver,
                 cache: TrackCache, sink: EventSink,
                 clock: Callable[[], int] = now_ms):
        self.credentials = credentials
        self.resolver = resolver
        self.cache = cache
        self.sink = sink
        self.clock = clock

        # Last playing flag seen from the player; in memory only, None until the first status event
        self._last_playing_status: Optional[bool] = None
        self._status_lock = threading.Lock()

    @property
    def last_playing_status(self) -> Optional[bool]:
        with self._status_lock:
            return self._last_playing_status

    def handle(self, event: InboundEvent) -> BridgeResult:
        if isinstance(event, TrackChanged):
            return self.on_track_changed(event.title, event.artist, event.position_ms)
        if isinstance(event, PlaybackStatusChanged):
            return self.on_playback_state_changed(event.is_playing, event.position_ms)
        logger.debug(f"Ignoring unsupported event {event!r}")
        return BridgeResult(Outcome.SKIPPED)

    def on_track_changed(self, title: Optional[str], artist: Optional[str],
                         position_ms: int) -> BridgeResult:
        if not title or not artist:
            logger.debug(f"Track change without title or artist (title={title!r}, artist={artist!r}), ignoring")
            return BridgeResult(Outcome.SKIPPED, error=MalformedEvent("title and artist are required"))

        try:
            uri = self._resolve_uri(title, artist)
        except (CredentialUnavailable, ResolutionFailed) as e:
            logger.error(f"Dropping track change for {title} - {artist}: {e}")
            return BridgeResult(Outcome.FAILED, error=e)
        except Exception as e:
            logger.error(f"Unexpected error resolving {title} - {artist}: {e}", exc_info=True)
            return BridgeResult(Outcome.FAILED, error=BridgeError(str(e)))

        if uri is None:
            return BridgeResult(Outcome.SKIPPED)

        logger.info(f"Track URI: {uri}, Title: {title}, Artist: {artist}")

        with self._status_lock:
            last_status = self._last_playing_status
        # No status seen yet: a track change most likely means the player is playing
        playing = True if last_status is None else last_status

        events = [
            MetadataChanged(id=uri, track=title, artist=artist, time_sent=self.clock()),
            PlaybackStateChanged(playing=playing, playback_position=position_ms, time_sent=self.clock()),
        ]
        for event in events:
            self._emit(event)
        return BridgeResult(Outcome.EMITTED, events)

    def on_playback_state_changed(self, is_playing: bool, position_ms: int) -> BridgeResult:
        with self._status_lock:
            if self._last_playing_status == is_playing:
                return BridgeResult(Outcome.SKIPPED)
            self._last_playing_status = is_playing

        event = PlaybackStateChanged(playing=is_playing, playback_position=position_ms,
                                     time_sent=self.clock())
        self._emit(event)
        return BridgeResult(Outcome.EMITTED, [event])

    def _resolve_uri(self, title: str, artist: str) -> Optional[str]:
        """Cached URI, or a fresh search result (cached on success)"""
        token = self.credentials.get_valid_token()

        key = make_key(title, artist)
        uri = self.cache.lookup(key)
        if uri is not None:
            logger.debug(f"Cache hit for {key}")
            return uri

        uri = self.resolver.resolve(title, artist, token.access_token)
        if uri is not None:
            self.cache.insert(key, uri)
        return uri

    def _emit(self, event: OutboundEvent) -> None:
        logger.info(f"Sending {event.action}: {event.to_dict()['extras']}")
        try:
            self.sink.send(event)
        except Exception as e:
            logger.error(f"Sink failed to deliver {event.action}: {e}")


def create_bridge(sink: EventSink) -> PlaybackBridge:
    """Build a bridge wired to the configured files and endpoints"""
    return PlaybackBridge(
        credentials=CredentialStore(StateStore(STATE_FILE), TokenFetcher(SPOTIFY["token_url"])),
        resolver=TrackResolver(SPOTIFY["api_base"]),
        cache=TrackCache(CACHE["file"], CACHE["max_size"]),
        sink=sink,
    )
