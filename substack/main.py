# substack/main.py
"""
Session composition.

`create_session()` wires one user's SubscriptionStore, FeedAggregator,
TransactionPatternDetector and (optionally) ReminderPlanner around shared
gateways. Nothing here is a global; tests build sessions with in-memory fakes.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from substack.config import FEED_REFRESH_INTERVAL, SNAPSHOT_DIR
from substack.core.db import SupabaseGateway, get_supabase_client
from substack.core.detector import TransactionPatternDetector
from substack.core.events import EventEmitter, SUBSCRIPTIONS_CHANGED
from substack.core.feeds import FeedAggregator
from substack.core.gateways import FeedSourceFetcher, NotificationGateway, PersistenceGateway
from substack.core.notifications import ReminderPlanner
from substack.core.rss import HttpFeedFetcher
from substack.core.scheduler import FeedRefresher
from substack.core.snapshot import JsonFileSnapshotStore, SnapshotStore
from substack.core.subscriptions import SubscriptionStore
from substack.utils.logger import get_logger

logger = get_logger(__name__)


class UserSession:
    """Everything one signed-in user needs. Call `start()` after login and `close()` on logout."""

    def __init__(self, user_id: Optional[str], subscriptions: SubscriptionStore, feed: FeedAggregator,
                 detector: TransactionPatternDetector, events: EventEmitter,
                 reminders: Optional[ReminderPlanner] = None, refresher: Optional[FeedRefresher] = None,
                 executor: Optional[ThreadPoolExecutor] = None):
        self.user_id = user_id
        self.subscriptions = subscriptions
        self.feed = feed
        self.detector = detector
        self.events = events
        self.reminders = reminders
        self.refresher = refresher
        self.executor = executor
        self._unsubscribe_reminders = None

    def start(self, refresh_feed: bool = True) -> None:
        """Loads the local snapshots, syncs subscriptions and (re)schedules reminders."""
        self.subscriptions.load()
        self.feed.load()
        if self.user_id:
            self.subscriptions.sync(self.user_id)
        if self.reminders is not None:
            self.reminders.reschedule_all(self.subscriptions.subscriptions)
            self._unsubscribe_reminders = self.events.subscribe(
                SUBSCRIPTIONS_CHANGED, self.reminders.reschedule_all
            )
        if refresh_feed and self.refresher is not None:
            self.refresher.start()
        logger.info(f"Session started for {self.user_id or 'anonymous'}")

    def close(self) -> None:
        if self.refresher is not None:
            self.refresher.stop()
        if self._unsubscribe_reminders is not None:
            self._unsubscribe_reminders()
            self._unsubscribe_reminders = None
        if self.executor is not None:
            self.executor.shutdown(wait=True)
        self.subscriptions.clear()
        self.feed.clear()
        logger.info(f"Session closed for {self.user_id or 'anonymous'}")


def create_session(user_id: Optional[str], gateway: Optional[PersistenceGateway] = None,
                   snapshots: Optional[SnapshotStore] = None, fetcher: Optional[FeedSourceFetcher] = None,
                   notifications: Optional[NotificationGateway] = None,
                   refresh_interval: int = FEED_REFRESH_INTERVAL, background: bool = True) -> UserSession:
    """
    Builds a UserSession. Omitted gateways default to Supabase, JSON files
    under SNAPSHOT_DIR and HTTP feed fetching. With `background=False`
    remote writes run inline and no periodic refresh is set up.
    """
    gateway = gateway or SupabaseGateway(get_supabase_client())
    snapshots = snapshots or JsonFileSnapshotStore(SNAPSHOT_DIR)
    fetcher = fetcher or HttpFeedFetcher()
    events = EventEmitter()
    # One worker keeps remote writes in submission order.
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="remote") if background else None

    subscriptions = SubscriptionStore(gateway, snapshots, user_id=user_id, executor=executor, events=events)
    feed = FeedAggregator(fetcher, snapshots, user_id=user_id, events=events)
    reminders = ReminderPlanner(notifications) if notifications is not None else None
    refresher = FeedRefresher(feed, refresh_interval) if background else None

    return UserSession(
        user_id=user_id,
        subscriptions=subscriptions,
        feed=feed,
        detector=TransactionPatternDetector(),
        events=events,
        reminders=reminders,
        refresher=refresher,
        executor=executor,
    )
