"""Tests for the Spotify token and search providers (no network)"""
from unittest.mock import MagicMock, Mock

import pytest
import requests
from spotipy.exceptions import SpotifyException

from errors import ResolutionFailed, TokenFetchFailed
from providers import TokenFetcher, TrackResolver, build_search_query


def _session_returning(payload=None, json_error=None, http_error=None):
    response = Mock()
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    if http_error is not None:
        response.raise_for_status.side_effect = http_error
    session = Mock(spec=requests.Session)
    session.get.return_value = response
    return session


# ==========================================
# TokenFetcher
# ==========================================

def test_fetch_token_parses_response():
    session = _session_returning({
        "accessToken": "BQC-token",
        "accessTokenExpirationTimestampMs": 1700000360000,
        "isAnonymous": True,
    })
    fetcher = TokenFetcher("https://example.test/token", session=session, timeout=3)

    assert fetcher.fetch_token() == ("BQC-token", 1700000360000)
    session.get.assert_called_once_with("https://example.test/token", params=None, headers=None, timeout=3)


@pytest.mark.parametrize("payload", [
    {"accessTokenExpirationTimestampMs": 1},
    {"accessToken": "", "accessTokenExpirationTimestampMs": 1},
    {"accessToken": "tok"},
    {"accessToken": "tok", "accessTokenExpirationTimestampMs": "soon"},
    ["not", "an", "object"],
])
def test_fetch_token_rejects_malformed_body(payload):
    fetcher = TokenFetcher("https://example.test/token", session=_session_returning(payload))
    with pytest.raises(TokenFetchFailed):
        fetcher.fetch_token()


def test_fetch_token_http_error():
    session = _session_returning({}, http_error=requests.exceptions.HTTPError("503 Server Error"))
    with pytest.raises(TokenFetchFailed):
        TokenFetcher("https://example.test/token", session=session).fetch_token()


def test_fetch_token_transport_error():
    session = Mock(spec=requests.Session)
    session.get.side_effect = requests.exceptions.ConnectionError("unreachable")
    with pytest.raises(TokenFetchFailed):
        TokenFetcher("https://example.test/token", session=session).fetch_token()
    assert session.get.call_count == 1


def test_fetch_token_invalid_json():
    session = _session_returning(json_error=ValueError("Expecting value"))
    with pytest.raises(TokenFetchFailed):
        TokenFetcher("https://example.test/token", session=session).fetch_token()


# ==========================================
# TrackResolver
# ==========================================

def _resolver_with(search_result=None, search_error=None):
    client = MagicMock()
    if search_error is not None:
        client.search.side_effect = search_error
    else:
        client.search.return_value = search_result
    factory = Mock(return_value=client)
    return TrackResolver("https://example.test/v1/", client_factory=factory), factory, client


def test_build_search_query():
    assert build_search_query("Song A", "Artist X") == "Song A artist:Artist X"


def test_resolve_returns_first_uri():
    resolver, factory, client = _resolver_with({
        "tracks": {"items": [{"uri": "spotify:track:1"}, {"uri": "spotify:track:2"}]}
    })

    assert resolver.resolve("Song A", "Artist X", "tok") == "spotify:track:1"
    factory.assert_called_once_with("tok")
    client.search.assert_called_once_with(q="Song A artist:Artist X", limit=1, type="track")


def test_resolve_no_match_is_none():
    resolver, _, _ = _resolver_with({"tracks": {"items": []}})
    assert resolver.resolve("Unknown", "Nobody", "tok") is None


@pytest.mark.parametrize("error", [
    SpotifyException(401, -1, "The access token expired"),
    requests.exceptions.ReadTimeout("timed out"),
])
def test_resolve_request_failure(error):
    resolver, _, _ = _resolver_with(search_error=error)
    with pytest.raises(ResolutionFailed):
        resolver.resolve("Song A", "Artist X", "tok")


@pytest.mark.parametrize("payload", [
    {},
    {"tracks": None},
    {"tracks": {"items": [{}]}},
    {"tracks": {"items": [{"uri": None}]}},
])
def test_resolve_unexpected_shape(payload):
    resolver, _, _ = _resolver_with(payload)
    with pytest.raises(ResolutionFailed):
        resolver.resolve("Song A", "Artist X", "tok")


def test_default_client_uses_token_and_api_base():
    resolver = TrackResolver("https://example.test/v1/", timeout=4)
    client = resolver._create_client("tok")

    assert client.prefix == "https://example.test/v1/"
    assert client.requests_timeout == 4


def test_default_client_sends_bearer_search_request():
    response = Mock()
    response.json.return_value = {"tracks": {"items": [{"uri": "spotify:track:1"}]}}
    session = Mock(spec=requests.Session)
    session.request.return_value = response
    resolver = TrackResolver("https://example.test/v1/", session=session, timeout=4)

    assert resolver.resolve("Song A", "Artist X", "tok") == "spotify:track:1"

    session.request.assert_called_once()
    (method, url), kwargs = session.request.call_args
    assert method == "GET"
    assert url == "https://example.test/v1/search"
    assert kwargs["headers"]["Authorization"] == "Bearer tok"
    assert kwargs["timeout"] == 4
    assert kwargs["params"]["q"] == "Song A artist:Artist X"
    assert kwargs["params"]["limit"] == 1
    assert kwargs["params"]["type"] == "track"

    prepared = requests.Request(method, url, params=kwargs["params"]).prepare()
    assert "q=Song+A+artist%3AArtist+X" in prepared.url
