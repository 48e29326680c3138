"""
Access token lifecycle.
Keeps the last token in the state store and refreshes it once it expires.
"""
from dataclasses import dataclass
from typing import Callable, Optional

from config import SPOTIFY
from errors import CredentialUnavailable, TokenFetchFailed
from events import now_ms
from logging_config import get_logger
from providers.spotify_token import TokenFetcher
from state_manager import StateStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class Credential:
    access_token: str
    expires_at_ms: int

    def is_valid(self, now: int) -> bool:
        return now < self.expires_at_ms


class CredentialStore:
    """
    Hands out a valid access token, fetching a new one when the stored one expired.

    Token and expiry are written in one atomic store update and read from one
    snapshot, so a caller never sees a token paired with another token's expiry.
    Concurrent refreshes are not deduplicated.
    """

    def __init__(self, store: StateStore, fetcher: TokenFetcher,
                 clock: Callable[[], int] = now_ms,
                 namespace: str = SPOTIFY["prefs_namespace"]):
        self.store = store
        self.fetcher = fetcher
        self.clock = clock
        self._token_key = f"{namespace}.{SPOTIFY['token_key']}"
        self._expiration_key = f"{namespace}.{SPOTIFY['token_expiration_key']}"

    def load(self) -> Optional[Credential]:
        """Return the persisted credential, valid or not, or None if there is none"""
        values = self.store.get_many(self._token_key, self._expiration_key)
        token = values[self._token_key]
        expires_at = values[self._expiration_key]
        if not isinstance(token, str) or not token or not isinstance(expires_at, int):
            return None
        return Credential(token, expires_at)

    def get_valid_token(self) -> Credential:
        """
        Return the stored credential if it has not expired, otherwise fetch and persist a new one.

        Raises:
            CredentialUnavailable: the token could not be fetched
        """
        saved = self.load()
        if saved is not None and saved.is_valid(self.clock()):
            return saved

        logger.info("Access token missing or expired, fetching a new one")
        try:
            access_token, expires_at = self.fetcher.fetch_token()
        except TokenFetchFailed as e:
            raise CredentialUnavailable(f"could not fetch access token: {e}") from e

        credential = Credential(access_token, expires_at)
        try:
            self.store.update({
                self._token_key: credential.access_token,
                self._expiration_key: credential.expires_at_ms,
            })
        except OSError as e:
            # The token is still good for this process; it just won't survive a restart
            logger.error(f"Failed to persist access token: {e}")

        return credential

    def invalidate(self) -> None:
        """Forget the stored credential so the next call fetches a new one"""
        try:
            self.store.remove(self._token_key, self._expiration_key)
        except OSError as e:
            logger.warning(f"Failed to clear stored access token: {e}")
