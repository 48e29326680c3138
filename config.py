"""
PresenceBridge Configuration Loader
Loads values from settings.json via the settings manager.
"""
import os
import sys
from pathlib import Path
from dotenv import load_dotenv

from settings import settings

# ==========================================
# Path Configuration
# ==========================================
if getattr(sys, 'frozen', False):
    ROOT_DIR = Path(sys.executable).parent
else:
    ROOT_DIR = Path(__file__).parent

# ==========================================
# Version
# ==========================================
VERSION = "1.0.0"

# Only load .env if it exists
env_file = ROOT_DIR / '.env'
if env_file.exists():
    load_dotenv(env_file)


# Helper to prefer Env Var > Settings JSON > Default
def conf(key, default=None):
    # 1. Check Env Var (Highest Priority - good for docker/dev)
    env_val = os.getenv(key.upper().replace('.', '_'))
    if env_val is not None:
        return env_val

    # 2. Check Settings JSON
    json_val = settings.get(key)
    if json_val is not None:
        return json_val

    # 3. Default
    return default


def conf_bool(key, default=False) -> bool:
    value = conf(key, default)
    if isinstance(value, str):
        return value.lower() in ('true', '1', 'yes', 'on')
    return bool(value)


# ==========================================
# EXPORTED CONFIG DICTS
# ==========================================

# Data directory holds the track cache and the credential state file
DATA_DIR = Path(os.getenv("PRESENCE_BRIDGE_DATA_DIR", str(ROOT_DIR / "data")))
STATE_FILE = Path(os.getenv("PRESENCE_BRIDGE_STATE_FILE", str(DATA_DIR / "state.json")))

DEBUG = {
    "log_file": conf("debug.log_file", "presence_bridge.log"),
    "log_level": conf("debug.log_level", "INFO"),
    "log_to_console": conf_bool("debug.log_to_console", True),
    "log_detailed": conf_bool("debug.log_detailed", False),
    "log_rotation": {
        "max_bytes": int(conf("debug.log_rotation.max_bytes", 1048576)),
        "backup_count": int(conf("debug.log_rotation.backup_count", 10)),
    }
}

SPOTIFY = {
    "token_url": conf("spotify.token_url", "https://open.spotify.com/get_access_token"),
    "api_base": conf("spotify.api_base", "https://api.spotify.com/v1/"),
    "timeout": float(conf("spotify.timeout", 10.0)),
    # Namespace and keys of the persisted credential record
    "prefs_namespace": "spotify",
    "token_key": "accessToken",
    "token_expiration_key": "tokenExpirationTime",
}

CACHE = {
    "file": DATA_DIR / conf("cache.file", "cache.json"),
    "max_size": int(conf("cache.max_size", 500)),
}

BRIDGE = {
    "max_workers": int(conf("bridge.max_workers", 4)),
    "max_pending": int(conf("bridge.max_pending", 32)),
    "require_network": conf_bool("bridge.require_network", True),
}

NETWORK = {
    "check_host": conf("network.check_host", "1.1.1.1"),
    "check_port": int(conf("network.check_port", 53)),
    "check_timeout": float(conf("network.check_timeout", 2.0)),
}

SINK = {
    "webhook_url": conf("sink.webhook_url", ""),
}

# Broadcast actions understood on the way in and used on the way out
ACTIONS = {
    "track_changed": "com.maxmpz.audioplayer.TRACK_CHANGED_EXPLICIT",
    "status_changed": "com.maxmpz.audioplayer.STATUS_CHANGED_EXPLICIT",
    "metadata_changed": "com.spotify.music.metadatachanged",
    "playback_state_changed": "com.spotify.music.playbackstatechanged",
}
