"""
Inbound and outbound event types.

Inbound events mirror the player's broadcasts (positions in seconds),
outbound events mirror the Spotify presence broadcasts (positions in ms).
"""
import math
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from config import ACTIONS
from errors import MalformedEvent


def now_ms() -> int:
    return int(time.time() * 1000)


# ==========================================
# Inbound
# ==========================================

@dataclass(frozen=True)
class TrackChanged:
    title: Optional[str]
    artist: Optional[str]
    position_seconds: int = 0

    @property
    def position_ms(self) -> int:
        return self.position_seconds * 1000


@dataclass(frozen=True)
class PlaybackStatusChanged:
    paused: bool
    position_seconds: int = 0

    @property
    def is_playing(self) -> bool:
        return not self.paused

    @property
    def position_ms(self) -> int:
        return self.position_seconds * 1000


InboundEvent = Union[TrackChanged, PlaybackStatusChanged]

_TRACK_ACTIONS = {ACTIONS["track_changed"], "track_changed"}
_STATUS_ACTIONS = {ACTIONS["status_changed"], "status_changed"}


def _parse_position(extras: Dict[str, Any]) -> int:
    pos = extras.get("pos", 0)
    if pos is None:
        return 0
    if isinstance(pos, bool):
        raise MalformedEvent(f"pos must be an integer, got {pos!r}")
    if isinstance(pos, float) and not math.isfinite(pos):
        raise MalformedEvent(f"pos must be a finite number, got {pos!r}")
    if isinstance(pos, (int, float)):
        return int(pos)
    try:
        return int(str(pos).strip())
    except ValueError:
        raise MalformedEvent(f"pos must be an integer, got {pos!r}") from None


def _parse_paused(extras: Dict[str, Any]) -> bool:
    # The player omits "paused" only when it is paused
    paused = extras.get("paused", True)
    if isinstance(paused, bool):
        return paused
    if isinstance(paused, str) and paused.lower() in ("true", "false"):
        return paused.lower() == "true"
    raise MalformedEvent(f"paused must be a boolean, got {paused!r}")


def _parse_text(extras: Dict[str, Any], name: str) -> Optional[str]:
    value = extras.get(name)
    if value is None or isinstance(value, str):
        return value
    raise MalformedEvent(f"{name} must be text, got {type(value).__name__}")


def parse_event(action: str, extras: Optional[Dict[str, Any]]) -> Optional[InboundEvent]:
    """
    Build an inbound event from a broadcast action and its extras.

    Returns None for actions we do not handle or when extras are missing.
    Raises MalformedEvent when a field is present but unusable.
    """
    if extras is None:
        return None
    if not isinstance(extras, dict):
        raise MalformedEvent(f"extras must be an object, got {type(extras).__name__}")

    if action in _TRACK_ACTIONS:
        return TrackChanged(
            title=_parse_text(extras, "title"),
            artist=_parse_text(extras, "artist"),
            position_seconds=_parse_position(extras),
        )
    if action in _STATUS_ACTIONS:
        return PlaybackStatusChanged(
            paused=_parse_paused(extras),
            position_seconds=_parse_position(extras),
        )
    return None


# ==========================================
# Outbound
# ==========================================

@dataclass(frozen=True)
class MetadataChanged:
    id: str
    track: str
    artist: str
    time_sent: int = field(default_factory=now_ms)

    action = ACTIONS["metadata_changed"]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "extras": {
                "id": self.id,
                "track": self.track,
                "artist": self.artist,
                "timeSent": self.time_sent,
            },
        }


@dataclass(frozen=True)
class PlaybackStateChanged:
    playing: bool
    playback_position: int
    time_sent: int = field(default_factory=now_ms)

    action = ACTIONS["playback_state_changed"]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "extras": {
                "playing": self.playing,
                "playbackPosition": self.playback_position,
                "timeSent": self.time_sent,
            },
        }


OutboundEvent = Union[MetadataChanged, PlaybackStateChanged]
