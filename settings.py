"""
PresenceBridge Settings Manager
Handles dynamic configuration management using settings.json
"""

import json
import os
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional
from logging_config import get_logger

logger = get_logger(__name__)

# Allow overriding the settings file location via environment variable
if getattr(sys, 'frozen', False):
    ROOT_DIR = Path(sys.executable).parent
else:
    ROOT_DIR = Path(__file__).parent

SETTINGS_FILE = Path(os.getenv("PRESENCE_BRIDGE_SETTINGS_FILE", str(ROOT_DIR / "settings.json")))


@dataclass
class Setting:
    """Represents a single configurable setting"""
    type: type
    default: Any
    min_val: Optional[float] = None
    max_val: Optional[float] = None

    def validate_and_convert(self, value: Any) -> Any:
        try:
            if self.type == bool and isinstance(value, str):
                return value.lower() in ('true', '1', 'yes', 'on')

            converted = self.type(value)
            if self.min_val is not None and converted < self.min_val:
                return self.default
            if self.max_val is not None and converted > self.max_val:
                return self.default
            return converted
        except (ValueError, TypeError):
            return self.default


class SettingsManager:
    def __init__(self, settings_file: Path = SETTINGS_FILE):
        self.settings_file = Path(settings_file)
        self._settings: Dict[str, Any] = {}

        self._definitions = {
            # Debug
            "debug.log_file": Setting(str, "presence_bridge.log"),
            "debug.log_level": Setting(str, "INFO"),
            "debug.log_to_console": Setting(bool, True),
            "debug.log_detailed": Setting(bool, False),
            "debug.log_rotation.max_bytes": Setting(int, 1048576, min_val=1024),
            "debug.log_rotation.backup_count": Setting(int, 10, min_val=0),

            # Spotify API
            "spotify.token_url": Setting(str, "https://open.spotify.com/get_access_token"),
            "spotify.api_base": Setting(str, "https://api.spotify.com/v1/"),
            "spotify.timeout": Setting(float, 10.0, min_val=0.5, max_val=120.0),

            # Track cache
            "cache.file": Setting(str, "cache.json"),
            "cache.max_size": Setting(int, 500, min_val=1),

            # Bridge
            "bridge.max_workers": Setting(int, 4, min_val=1, max_val=64),
            "bridge.max_pending": Setting(int, 32, min_val=1),
            "bridge.require_network": Setting(bool, True),

            # Connectivity check
            "network.check_host": Setting(str, "1.1.1.1"),
            "network.check_port": Setting(int, 53, min_val=1, max_val=65535),
            "network.check_timeout": Setting(float, 2.0, min_val=0.1, max_val=30.0),

            # Sink
            "sink.webhook_url": Setting(str, ""),
        }

        self.load_settings()

    def load_settings(self) -> None:
        """Load settings from JSON, fall back to defaults"""
        self._settings = {}

        # 1. Load defaults first
        for key, definition in self._definitions.items():
            self._settings[key] = definition.default

        # 2. Load from JSON if exists
        if not self.settings_file.exists():
            logger.debug(f"No settings file at {self.settings_file}, using defaults")
            return

        try:
            with open(self.settings_file, 'r', encoding='utf-8') as f:
                saved = json.load(f)
            for key, val in saved.items():
                if key in self._definitions:
                    self._settings[key] = self._definitions[key].validate_and_convert(val)
                else:
                    # Store as-is if unknown
                    self._settings[key] = val
        except (OSError, ValueError, AttributeError) as e:
            logger.error(f"Failed to load {self.settings_file}: {e} - resetting to defaults")
            backup_path = self.settings_file.with_suffix('.json.corrupted')
            try:
                shutil.copy2(self.settings_file, backup_path)
                logger.info(f"Backed up corrupted settings to {backup_path}")
            except OSError:
                pass
            self._settings = {key: d.default for key, d in self._definitions.items()}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value.
        Priority:
        1. Loaded value (from JSON or Schema Default)
        2. Schema Default (if key in definitions but not in settings dict yet)
        3. Provided 'default' argument (if key unknown)
        """
        if key in self._settings:
            return self._settings[key]

        if key in self._definitions:
            return self._definitions[key].default

        return default


settings = SettingsManager()
