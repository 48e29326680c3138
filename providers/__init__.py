"""
Spotify Providers Package
Remote endpoints used by the bridge: token issuing and track search.
"""
from .base import SpotifyProvider
from .spotify_token import TokenFetcher
from .spotify_search import TrackResolver, build_search_query

__all__ = [
    'SpotifyProvider',
    'TokenFetcher',
    'TrackResolver',
    'build_search_query',
]
