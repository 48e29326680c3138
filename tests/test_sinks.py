"""Tests for event sinks"""
import io
import json
from unittest.mock import Mock

import pytest
import requests

from events import MetadataChanged, PlaybackStateChanged
from sinks import CallbackSink, JsonLinesSink, WebhookSink


def test_json_lines_sink_writes_one_object_per_line():
    stream = io.StringIO()
    sink = JsonLinesSink(stream)

    sink.send(MetadataChanged(id="spotify:track:1", track="Sång", artist="Artist X", time_sent=1))
    sink.send(PlaybackStateChanged(playing=False, playback_position=500, time_sent=2))

    lines = stream.getvalue().splitlines()
    assert len(lines) == 2
    assert json.loads(lines[0])["extras"]["track"] == "Sång"
    assert json.loads(lines[1]) == {
        "action": "com.spotify.music.playbackstatechanged",
        "extras": {"playing": False, "playbackPosition": 500, "timeSent": 2},
    }


def test_webhook_sink_posts_event():
    session = Mock(spec=requests.Session)
    sink = WebhookSink("https://hooks.example.test/presence", session=session, timeout=2)
    event = PlaybackStateChanged(playing=True, playback_position=0, time_sent=3)

    sink.send(event)

    session.post.assert_called_once_with(
        "https://hooks.example.test/presence", json=event.to_dict(), timeout=2
    )


def test_webhook_failure_is_swallowed():
    session = Mock(spec=requests.Session)
    session.post.side_effect = requests.exceptions.ConnectionError("refused")
    sink = WebhookSink("https://hooks.example.test/presence", session=session)

    sink.send(PlaybackStateChanged(playing=True, playback_position=0))


def test_webhook_requires_url():
    with pytest.raises(ValueError):
        WebhookSink("")


def test_callback_sink():
    received = []
    event = PlaybackStateChanged(playing=True, playback_position=0)
    CallbackSink(received.append).send(event)
    assert received == [event]
