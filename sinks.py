"""
Event sinks: where emitted presence events go.
Delivery is best effort; a sink that fails logs and moves on.
"""
import json
import sys
import threading
from typing import Callable, Optional, TextIO

import requests

from config import SINK, SPOTIFY
from events import OutboundEvent
from logging_config import get_logger

logger = get_logger(__name__)


class EventSink:
    """Base class for everything that receives outbound events"""

    def send(self, event: OutboundEvent) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass


class JsonLinesSink(EventSink):
    """Writes one JSON object per event to a text stream (stdout by default)"""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout
        self._lock = threading.Lock()

    def send(self, event: OutboundEvent) -> None:
        line = json.dumps(event.to_dict(), ensure_ascii=False)
        with self._lock:
            self.stream.write(line + "\n")
            self.stream.flush()


class WebhookSink(EventSink):
    """POSTs each event as JSON to a URL"""

    def __init__(self, url: str = SINK["webhook_url"], session: Optional[requests.Session] = None,
                 timeout: float = SPOTIFY["timeout"]):
        if not url:
            raise ValueError("WebhookSink needs a URL")
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout

    def send(self, event: OutboundEvent) -> None:
        try:
            response = self.session.post(self.url, json=event.to_dict(), timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.warning(f"Webhook delivery of {event.action} failed: {e}")

    def close(self) -> None:
        self.session.close()


class CallbackSink(EventSink):
    def __init__(self, callback: Callable[[OutboundEvent], None]):
        self.callback = callback

    def send(self, event: OutboundEvent) -> None:
        self.callback(event)


def create_default_sink() -> EventSink:
    """Webhook sink if one is configured, stdout otherwise"""
    if SINK["webhook_url"]:
        return WebhookSink(SINK["webhook_url"])
    return JsonLinesSink()
