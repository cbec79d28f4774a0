# substack/core/events.py
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List

from substack.utils.logger import get_logger

logger = get_logger(__name__)

Listener = Callable[[Any], None]

# Event names emitted by the core
SUBSCRIPTIONS_CHANGED = "subscriptions_changed"
SYNC_STATUS = "sync_status"
UPDATES_CHANGED = "updates_changed"
FEED_STATE = "feed_state"


class EventEmitter:
    """
    Minimal observer hub. Consumers call `subscribe(event, callback)` and get
    back a function that removes the callback again.

    Listeners run synchronously on the emitting thread. A listener that raises
    is logged and skipped; the remaining listeners still run.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event: str, callback: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners[event].append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._listeners[event]:
                    self._listeners[event].remove(callback)

        return unsubscribe

    def emit(self, event: str, payload: Any = None) -> None:
        with self._lock:
            listeners = list(self._listeners[event])
        for callback in listeners:
            try:
                callback(payload)
            except Exception:
                logger.exception(f"Listener for '{event}' failed")
