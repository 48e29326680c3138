from os import path
from typing import Any, Dict, Optional
import copy
import json
import os
import threading
import uuid
import logging

from benedict import benedict

from config import STATE_FILE

# Get logger for this module (will be configured by logging_config.py)
logger = logging.getLogger(__name__)


class StateStore:
    """
    Small persistent key-value store backed by a JSON file.

    Keys are addressed in js notation ("spotify.accessToken") so each
    component keeps its values under its own namespace. Writes go through a
    temp file and os.replace, so readers never see a half-written file.
    """

    def __init__(self, state_file=STATE_FILE):
        self.state_file = str(state_file)
        # RLock: update() reads the state while already holding the lock
        self._lock = threading.RLock()
        self._state: Optional[dict] = None

    def _read(self) -> dict:
        if self._state is not None:
            return self._state

        if not path.exists(self.state_file):
            self._state = {}
            return self._state

        try:
            with open(self.state_file, "r", encoding="utf-8") as f:
                loaded = json.load(f)
            if not isinstance(loaded, dict):
                logger.warning(f"State file {self.state_file} does not hold an object, ignoring it")
                loaded = {}
            self._state = loaded
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read state file {self.state_file}: {e}, starting empty")
            self._state = {}
        return self._state

    def _write(self, new_state: dict) -> None:
        state_dir = os.path.dirname(self.state_file) or "."
        temp_path = os.path.join(state_dir, f"state_{uuid.uuid4().hex}.json.tmp")

        try:
            os.makedirs(state_dir, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(new_state, f, indent=4)
            os.replace(temp_path, self.state_file)
        except OSError:
            try:
                if path.exists(temp_path):
                    os.remove(temp_path)
            except OSError:
                pass
            raise

        self._state = new_state

    def get(self, attribute: str, default: Any = None) -> Any:
        with self._lock:
            try:
                return get_attribute_js_notation(self._read(), attribute)
            except KeyError:
                return default

    def get_many(self, *attributes: str) -> Dict[str, Any]:
        """Read several keys from one consistent snapshot"""
        with self._lock:
            state = self._read()
            result = {}
            for attribute in attributes:
                try:
                    result[attribute] = get_attribute_js_notation(state, attribute)
                except KeyError:
                    result[attribute] = None
            return result

    def update(self, values: Dict[str, Any]) -> None:
        """
        Set several keys in a single atomic write.

        Raises OSError if the file cannot be written; the in-memory state is
        left unchanged in that case.
        """
        with self._lock:
            new_state = copy.deepcopy(self._read())
            for attribute, value in values.items():
                new_state = set_attribute_js_notation(new_state, attribute, value)
            self._write(new_state)

    def remove(self, *attributes: str) -> None:
        with self._lock:
            new_state = benedict(copy.deepcopy(self._read()), keypath_separator=".")
            for attribute in attributes:
                new_state.pop(attribute, None)
            self._write(new_state.dict())


def set_attribute_js_notation(state: dict, attribute: str, value: Any) -> dict:
    """
    This function sets the given attribute to the given value in the given state.

    Args:
        state (dict): The state to set the attribute in.
        attribute (str): The attribute to set in js notation.
        value (Any): The value to set the attribute to.

    Returns:
        dict: The state with the attribute set to the value.
    """

    state = benedict(state, keypath_separator=".")
    state[attribute] = value
    return state.dict()


def get_attribute_js_notation(state: dict, attribute: str) -> Any:
    """
    This function returns the value of the given attribute in the given state.

    Args:
        state (dict): The state to get the attribute from.
        attribute (str): The attribute to get in js notation.

    Returns:
        Any: The value of the attribute.
    """

    state = benedict(state, keypath_separator=".")
    return state[attribute]
