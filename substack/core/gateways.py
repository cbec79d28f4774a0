# substack/core/gateways.py
"""
Boundaries the core calls into. Concrete implementations live next to the
backend they talk to (`db.SupabaseGateway`, `rss.HttpFeedFetcher`); the
notification side is left to the presentation layer.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class PersistenceGateway(ABC):
    """Table-like remote storage partitioned by user id."""

    @abstractmethod
    def create(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Inserts `record` and returns the stored row."""

    @abstractmethod
    def delete(self, table: str, match: Dict[str, Any]) -> None:
        """Deletes every row whose columns equal all of `match`."""

    @abstractmethod
    def query(self, table: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Returns every row whose columns equal all of `filters`."""

    @abstractmethod
    def update(self, table: str, match: Dict[str, Any], patch: Dict[str, Any]) -> None:
        """Applies `patch` to every row matching `match`."""


class FeedSourceFetcher(ABC):

    @abstractmethod
    def fetch(self, url: str) -> bytes:
        """Raw RSS/Atom bytes for `url`. Raises FeedFetchError on failure."""


class NotificationGateway(ABC):
    """Schedules local payment reminders. Delivery is out of scope for the core."""

    @abstractmethod
    def schedule(self, reminder) -> None:
        """Registers a `notifications.Reminder`."""

    @abstractmethod
    def cancel(self, subscription_id: str) -> None:
        """Drops every pending reminder of one subscription."""

    @abstractmethod
    def cancel_all(self) -> None:
        ...
