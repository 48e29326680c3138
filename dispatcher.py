"""
Fire-and-forget event dispatch.

Each inbound event becomes one task on a thread pool so the event source is
never blocked by network calls. The number of events in flight is capped;
events arriving while the cap is reached are dropped.
"""
from __future__ import annotations
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

from bridge import BridgeResult, Outcome, PlaybackBridge
from config import BRIDGE
from errors import MalformedEvent
from events import InboundEvent, parse_event
from logging_config import get_logger
from network_utils import is_connected

logger = get_logger(__name__)


class EventDispatcher:
    def __init__(self, bridge: PlaybackBridge,
                 max_workers: int = BRIDGE["max_workers"],
                 max_pending: int = BRIDGE["max_pending"],
                 require_network: bool = BRIDGE["require_network"],
                 connectivity_check: Callable[[], bool] = is_connected):
        self.bridge = bridge
        self.require_network = require_network
        self.connectivity_check = connectivity_check
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="PresenceBridge_Worker"
        )
        self._slots = threading.BoundedSemaphore(max_pending)
        self.dropped = 0

    def on_receive(self, action: str, extras: Optional[Dict[str, Any]]) -> Optional[Future]:
        """Entry point for raw broadcasts: parse, then dispatch"""
        try:
            event = parse_event(action, extras)
        except MalformedEvent as e:
            logger.warning(f"Dropping malformed {action} event: {e}")
            return None

        if event is None:
            logger.debug(f"Ignoring action {action}")
            return None
        return self.dispatch(event)

    def dispatch(self, event: InboundEvent) -> Optional[Future]:
        """
        Queue an event for handling.

        Returns the Future of the task, or None if the event was dropped
        because too many events are already in flight.
        """
        if not self._slots.acquire(blocking=False):
            self.dropped += 1
            logger.warning(f"Too many events in flight, dropping {event!r}")
            return None

        try:
            future = self._executor.submit(self._run, event)
        except RuntimeError as e:
            # Executor already shut down
            self._slots.release()
            logger.warning(f"Dispatcher is shut down, dropping {event!r}: {e}")
            return None

        future.add_done_callback(self._release_if_cancelled)
        return future

    def _release_if_cancelled(self, future: Future) -> None:
        # Cancelled tasks never reach _run, so their slot is freed here
        if future.cancelled():
            self._slots.release()

    def _run(self, event: InboundEvent) -> BridgeResult:
        try:
            if self.require_network and not self.connectivity_check():
                logger.info(f"No network connection, skipping {type(event).__name__}")
                return BridgeResult(Outcome.SKIPPED)
            return self.bridge.handle(event)
        finally:
            # Free the slot before the future resolves
            self._slots.release()

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=not wait)

    def __enter__(self) -> EventDispatcher:
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown(wait=True)
