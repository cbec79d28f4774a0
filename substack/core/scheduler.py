# substack/core/scheduler.py
import threading
from typing import Optional

import schedule

from substack.config import FEED_REFRESH_INTERVAL
from substack.core.feeds import FeedAggregator
from substack.utils.logger import get_logger

logger = get_logger(__name__)

POLL_SECONDS = 1


class FeedRefresher:
    """
    Refreshes a FeedAggregator every `interval` seconds on a daemon thread.

    `start()` refreshes once right away. Uses its own `schedule.Scheduler`, so
    several sessions can run side by side without sharing the module-level jobs.
    """

    def __init__(self, aggregator: FeedAggregator, interval: int = FEED_REFRESH_INTERVAL):
        self.aggregator = aggregator
        self.interval = interval
        self.scheduler = schedule.Scheduler()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self.scheduler.clear()
        self.scheduler.every(self.interval).seconds.do(self._run)
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="feed-refresher", daemon=True)
        self._thread.start()
        logger.info(f"Feed refresher started (every {self.interval}s)")

    def stop(self, timeout: Optional[float] = 5) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        self.scheduler.clear()
        logger.info("Feed refresher stopped")

    def _loop(self) -> None:
        self._run()
        while not self._stop_event.wait(POLL_SECONDS):
            self.scheduler.run_pending()

    def _run(self) -> None:
        try:
            added = self.aggregator.refresh()
            logger.debug(f"Scheduled refresh added {added} updates")
        except Exception:
            # Keep the loop alive; the next tick retries.
            logger.exception("Scheduled feed refresh failed")
