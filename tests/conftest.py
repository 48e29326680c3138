"""Pytest configuration and shared fixtures"""
import sys
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from bridge import PlaybackBridge
from credentials import CredentialStore
from providers import TokenFetcher, TrackResolver
from sinks import EventSink
from state_manager import StateStore
from track_cache import TrackCache

NOW_MS = 1_700_000_000_000
TOKEN_LIFETIME_MS = 3_600_000
TRACK_URI = "spotify:track:4uLU6hMCjMI75M1A2tKUQC"


class FakeClock:
    """Callable clock returning a settable time in ms"""

    def __init__(self, now: int = NOW_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now


class RecordingSink(EventSink):
    def __init__(self):
        self.events = []

    def send(self, event):
        self.events.append(event)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def state_store(tmp_path):
    return StateStore(tmp_path / "state.json")


@pytest.fixture
def fetcher():
    fetcher = Mock(spec=TokenFetcher)
    fetcher.fetch_token.return_value = ("token-1", NOW_MS + TOKEN_LIFETIME_MS)
    return fetcher


@pytest.fixture
def credentials(state_store, fetcher, clock):
    return CredentialStore(state_store, fetcher, clock=clock)


@pytest.fixture
def resolver():
    resolver = Mock(spec=TrackResolver)
    resolver.resolve.return_value = TRACK_URI
    return resolver


@pytest.fixture
def cache(tmp_path):
    return TrackCache(tmp_path / "cache.json", max_size=500)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def bridge(credentials, resolver, cache, sink, clock):
    return PlaybackBridge(credentials, resolver, cache, sink, clock=clock)
