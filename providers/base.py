"""
Base Provider Class
Shared HTTP plumbing for the Spotify endpoints the bridge talks to.
"""

from typing import Any, Dict, Optional
import requests
from logging_config import get_logger
from config import SPOTIFY

logger = get_logger(__name__)


class SpotifyProvider:
    """Base class for providers that call a Spotify endpoint."""

    def __init__(self, provider_name: str, session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        """
        Args:
            provider_name (str): Name used in log messages
            session (requests.Session, optional): Shared session, a new one is created if omitted
            timeout (float, optional): Request timeout in seconds, defaults to config
        """
        self.name = provider_name
        self.timeout = timeout if timeout is not None else SPOTIFY["timeout"]
        self.session = session or requests.Session()
        logger.debug(f"Initialized {self.name} provider (timeout: {self.timeout}s)")

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None,
                  headers: Optional[Dict[str, str]] = None) -> Any:
        """
        Issue one GET and decode the JSON body.

        Raises requests.RequestException on transport errors and non-2xx
        statuses, ValueError when the body is not JSON.
        """
        response = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def __str__(self) -> str:
        return f"{self.name} Provider (timeout: {self.timeout}s)"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name='{self.name}' timeout={self.timeout}>"
