"""Tests for parsing player broadcasts and serializing presence events"""
import pytest

from errors import MalformedEvent
from events import (
    MetadataChanged,
    PlaybackStateChanged,
    PlaybackStatusChanged,
    TrackChanged,
    parse_event,
)

TRACK_ACTION = "com.maxmpz.audioplayer.TRACK_CHANGED_EXPLICIT"
STATUS_ACTION = "com.maxmpz.audioplayer.STATUS_CHANGED_EXPLICIT"


def test_track_changed_converts_seconds_to_ms():
    event = parse_event(TRACK_ACTION, {"title": "Song A", "artist": "Artist X", "pos": 12})
    assert event == TrackChanged("Song A", "Artist X", 12)
    assert event.position_ms == 12000


def test_track_changed_defaults():
    event = parse_event("track_changed", {})
    assert event == TrackChanged(None, None, 0)


def test_status_changed_inverts_paused():
    event = parse_event(STATUS_ACTION, {"paused": False, "pos": 7})
    assert isinstance(event, PlaybackStatusChanged)
    assert event.is_playing is True
    assert event.position_ms == 7000


def test_status_changed_defaults_to_paused():
    event = parse_event("status_changed", {})
    assert event.is_playing is False
    assert event.position_ms == 0


def test_string_values_are_accepted():
    event = parse_event(STATUS_ACTION, {"paused": "false", "pos": "30"})
    assert event == PlaybackStatusChanged(paused=False, position_seconds=30)


@pytest.mark.parametrize("action, extras", [
    (TRACK_ACTION, {"title": "Song A", "artist": "Artist X", "pos": "soon"}),
    (TRACK_ACTION, {"title": 5, "artist": "Artist X"}),
    (STATUS_ACTION, {"paused": "maybe"}),
    (STATUS_ACTION, {"paused": False, "pos": True}),
    (STATUS_ACTION, {"paused": False, "pos": float("nan")}),
    (TRACK_ACTION, {"title": "Song A", "artist": "Artist X", "pos": float("inf")}),
    (STATUS_ACTION, ["paused"]),
])
def test_malformed_extras(action, extras):
    with pytest.raises(MalformedEvent):
        parse_event(action, extras)


def test_unknown_action_and_missing_extras_are_ignored():
    assert parse_event("com.example.SOMETHING", {"title": "x"}) is None
    assert parse_event(TRACK_ACTION, None) is None


def test_outbound_serialization():
    metadata = MetadataChanged(id="spotify:track:1", track="Song A", artist="Artist X", time_sent=5)
    assert metadata.to_dict() == {
        "action": "com.spotify.music.metadatachanged",
        "extras": {"id": "spotify:track:1", "track": "Song A", "artist": "Artist X", "timeSent": 5},
    }

    state = PlaybackStateChanged(playing=True, playback_position=10000, time_sent=6)
    assert state.to_dict() == {
        "action": "com.spotify.music.playbackstatechanged",
        "extras": {"playing": True, "playbackPosition": 10000, "timeSent": 6},
    }


def test_time_sent_defaults_to_now():
    event = PlaybackStateChanged(playing=True, playback_position=0)
    assert event.time_sent > 1_600_000_000_000
