"""
Spotify access token provider
Fetches the short-lived anonymous token used for Web API searches
"""
from typing import Optional, Tuple

import requests

from .base import SpotifyProvider
from config import SPOTIFY
from errors import TokenFetchFailed
from logging_config import get_logger

logger = get_logger(__name__)


class TokenFetcher(SpotifyProvider):
    """One request to the token endpoint per call, no retries."""

    def __init__(self, token_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(provider_name="Spotify Token", **kwargs)
        self.token_url = token_url or SPOTIFY["token_url"]

    def fetch_token(self) -> Tuple[str, int]:
        """
        Get a fresh access token.

        Returns:
            Tuple[str, int]: (access token, expiration timestamp in ms since epoch)

        Raises:
            TokenFetchFailed: transport error, non-success status or bad body
        """
        try:
            data = self._get_json(self.token_url)
        except requests.exceptions.RequestException as e:
            logger.error(f"Token request to {self.token_url} failed: {e}")
            raise TokenFetchFailed(f"token request failed: {e}") from e
        except ValueError as e:
            logger.error(f"Token endpoint returned invalid JSON: {e}")
            raise TokenFetchFailed("token response is not JSON") from e

        if not isinstance(data, dict):
            raise TokenFetchFailed(f"token response is not an object: {type(data).__name__}")

        access_token = data.get("accessToken")
        expires_at = data.get("accessTokenExpirationTimestampMs")

        if not isinstance(access_token, str) or not access_token:
            raise TokenFetchFailed("token response has no accessToken")
        if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
            raise TokenFetchFailed("token response has no accessTokenExpirationTimestampMs")

        logger.debug(f"Fetched access token valid until {int(expires_at)}")
        return access_token, int(expires_at)
