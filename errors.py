"""
Error taxonomy for PresenceBridge.

Every error raised inside the engine derives from BridgeError. They are raised
by the component that detects the failure and caught at the PlaybackBridge
(or dispatcher) boundary, where they are logged and turned into "no event".
"""


class BridgeError(Exception):
    """Base class for all engine failures"""


class TokenFetchFailed(BridgeError):
    """The token endpoint could not be reached or returned an unusable body"""


class CredentialUnavailable(BridgeError):
    """No valid access token could be obtained"""


class ResolutionFailed(BridgeError):
    """The search request failed or returned an unexpected shape"""


class CacheIOFailed(BridgeError):
    """The track cache file could not be read or written"""


class MalformedEvent(BridgeError):
    """An inbound event is missing required fields or has invalid values"""
