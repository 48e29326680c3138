"""
Spotify track search
Resolves a (title, artist) pair to a Spotify track URI with a single search call
"""
from typing import Any, Callable, Optional

import requests
import spotipy
from spotipy.exceptions import SpotifyException

from .base import SpotifyProvider
from config import SPOTIFY
from errors import ResolutionFailed
from logging_config import get_logger

logger = get_logger(__name__)


def build_search_query(title: str, artist: str) -> str:
    """Search query in Spotify's field filter syntax; URL encoding happens in the HTTP layer."""
    return f"{title} artist:{artist}"


class TrackResolver(SpotifyProvider):
    """
    Looks up tracks on the Spotify Web API.

    The resolver never touches the track cache; callers decide what to store.
    """

    def __init__(self, api_base: Optional[str] = None,
                 client_factory: Optional[Callable[[str], Any]] = None, **kwargs) -> None:
        super().__init__(provider_name="Spotify Search", **kwargs)
        self.api_base = api_base or SPOTIFY["api_base"]
        self._client_factory = client_factory or self._create_client

    def _create_client(self, token: str) -> spotipy.Spotify:
        # retries=0: one request per resolve, retry policy belongs to the caller
        client = spotipy.Spotify(
            auth=token,
            requests_session=self.session,
            requests_timeout=self.timeout,
            retries=0,
            status_retries=0,
        )
        client.prefix = self.api_base
        return client

    def resolve(self, title: str, artist: str, token: str) -> Optional[str]:
        """
        Find the Spotify URI of the best match for a track.

        Args:
            title (str): Track title
            artist (str): Artist name
            token (str): Bearer token for the Web API

        Returns:
            Optional[str]: URI of the first match, None when nothing matched

        Raises:
            ResolutionFailed: transport, HTTP or response shape error
        """
        query = build_search_query(title, artist)
        client = self._client_factory(token)

        try:
            response = client.search(q=query, limit=1, type="track")
        except (SpotifyException, requests.exceptions.RequestException) as e:
            logger.error(f"Spotify search failed for '{query}': {e}")
            raise ResolutionFailed(f"search request failed: {e}") from e

        logger.debug(f"Search response: {response}")

        try:
            items = response["tracks"]["items"]
            if not items:
                logger.info(f"No tracks found for query: {query}")
                return None
            uri = items[0]["uri"]
        except (KeyError, IndexError, TypeError) as e:
            raise ResolutionFailed(f"unexpected search response: {e!r}") from e

        if not isinstance(uri, str) or not uri:
            raise ResolutionFailed(f"search result has no usable uri: {uri!r}")
        return uri
