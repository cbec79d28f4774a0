# substack/core/feeds.py
"""
AI-service update feed.

A refresh runs IDLE -> FETCHING -> NORMALIZING -> MERGING -> PERSISTED -> IDLE.
Sources are fetched in parallel on a thread pool; a source that fails simply
contributes nothing. The merged list is deduplicated by link (the item already
held wins), sorted newest first and capped at `max_items`.
"""

import json
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from substack.config import FEED_ITEMS_PER_SOURCE, FEED_MAX_ITEMS, FEED_MAX_WORKERS
from substack.core.categories import UpdateCategory, UpdateImportance
from substack.core.events import EventEmitter, FEED_STATE, UPDATES_CHANGED
from substack.core.gateways import FeedSourceFetcher
from substack.core.models import ServiceUpdate, parse_datetime
from substack.core.rss import RawFeedItem, parse_feed
from substack.core.snapshot import SnapshotStore, load_list, save_list, snapshot_key
from substack.core.sources import FeedSource, ManualEntry, SourceKind, default_sources
from substack.utils.logger import get_logger
from substack.utils.text_utils import clean_html, contains_any, truncate

logger = get_logger(__name__)

SUMMARY_LIMIT = 200
ALL_SERVICES = "전체"

# Checked top to bottom; the first rule with a matching keyword wins.
CATEGORY_RULES: List[Tuple[UpdateCategory, List[str]]] = [
    (UpdateCategory.PRICE_CHANGE, ["price", "pricing", "cost", "가격", "요금"]),
    (UpdateCategory.API_UPDATE, ["api", "endpoint", "sdk"]),
    (UpdateCategory.MODEL_UPDATE, ["model", "gpt", "claude", "llm", "version"]),
    (UpdateCategory.POLICY, ["policy", "terms", "정책"]),
    (UpdateCategory.NEW_FEATURE, ["feature", "update", "기능", "release", "launch"]),
]

CRITICAL_KEYWORDS = ["major", "breaking", "important", "critical", "urgent", "중요", "긴급", "주요"]
MODEL_RELEASE_KEYWORDS = ["gpt-4", "gpt-5", "claude-3", "claude-4"]
MINOR_KEYWORDS = ["minor", "small", "fix", "patch", "마이너", "수정"]


class FeedState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    NORMALIZING = "normalizing"
    MERGING = "merging"
    PERSISTED = "persisted"


@dataclass
class FeedStatistics:
    total_updates: int
    unread_count: int
    today_count: int
    critical_count: int
    by_service: Dict[str, int]
    by_category: Dict[UpdateCategory, int]


def categorize_update(title: str, description: str = "") -> UpdateCategory:
    text = f"{title} {description}".lower()
    for category, keywords in CATEGORY_RULES:
        if contains_any(text, keywords):
            return category
    return UpdateCategory.GENERAL


def determine_importance(title: str, category: UpdateCategory) -> UpdateImportance:
    if category == UpdateCategory.PRICE_CHANGE:
        return UpdateImportance.CRITICAL
    text = title.lower()
    if contains_any(text, CRITICAL_KEYWORDS):
        return UpdateImportance.CRITICAL
    if category == UpdateCategory.MODEL_UPDATE and contains_any(text, MODEL_RELEASE_KEYWORDS):
        return UpdateImportance.CRITICAL
    if contains_any(text, MINOR_KEYWORDS):
        return UpdateImportance.MINOR
    return UpdateImportance.NORMAL


def normalize_item(item: RawFeedItem, source: FeedSource, now: datetime) -> Optional[ServiceUpdate]:
    """RawFeedItem -> ServiceUpdate; None for items without a title or link."""
    title = clean_html(item.title)
    if not title or not item.link:
        return None
    summary = clean_html(item.description)
    category = categorize_update(title, summary)
    return ServiceUpdate(
        service=source.name,
        service_icon=source.icon,
        title=title,
        summary=truncate(summary, SUMMARY_LIMIT),
        link=item.link.strip(),
        published_date=item.published or now,
        category=category,
        importance=determine_importance(title, category),
    )


def entry_to_update(entry: ManualEntry, source: FeedSource, now: datetime) -> ServiceUpdate:
    return ServiceUpdate(
        service=source.name,
        service_icon=source.icon,
        title=entry.title,
        summary=truncate(entry.summary, SUMMARY_LIMIT),
        link=entry.link,
        published_date=now - timedelta(hours=entry.age_hours),
        category=entry.category,
        importance=entry.importance,
    )


def merge_updates(existing: List[ServiceUpdate], incoming: List[ServiceUpdate],
                  limit: int = FEED_MAX_ITEMS) -> Tuple[List[ServiceUpdate], int]:
    """
    Union of `existing` and `incoming` keyed by link, newest first, capped at `limit`.

    On a link collision the existing item is kept untouched. Returns the new
    list and how many incoming items made it into it.
    """
    merged = list(existing)
    seen = {u.link for u in merged}
    added_links = set()
    for update in incoming:
        if update.link in seen:
            continue
        merged.append(update)
        seen.add(update.link)
        added_links.add(update.link)
    merged.sort(key=lambda u: u.published_date, reverse=True)
    kept = merged[:limit]
    return kept, sum(1 for u in kept if u.link in added_links)


class FeedAggregator:
    """
    Owns the persisted update list of one session.

    Args:
        fetcher: Downloads RSS/Atom bytes.
        snapshots: Local blob store for the update list.
        sources: Feed sources; `default_sources()` when omitted.
        user_id: Used to namespace the snapshot key.
        events: Observer hub; a private one is created when omitted.
        max_items: Cap on the merged list.
        items_per_source: How many items each RSS source contributes per refresh.
        max_workers: Fetch thread pool size.
    """

    def __init__(self, fetcher: FeedSourceFetcher, snapshots: SnapshotStore,
                 sources: Optional[List[FeedSource]] = None, user_id: Optional[str] = None,
                 events: Optional[EventEmitter] = None, max_items: int = FEED_MAX_ITEMS,
                 items_per_source: int = FEED_ITEMS_PER_SOURCE, max_workers: int = FEED_MAX_WORKERS):
        self.fetcher = fetcher
        self.snapshots = snapshots
        self.sources = sources if sources is not None else default_sources()
        self.user_id = user_id
        self.events = events or EventEmitter()
        self.max_items = max_items
        self.items_per_source = items_per_source
        self.max_workers = max_workers

        self._updates: List[ServiceUpdate] = []
        self._has_unread = False
        self._lock = threading.RLock()
        self._generation = 0
        self._applied_generation = 0

        self.state = FeedState.IDLE
        self.last_error: Optional[str] = None
        self.last_update_time: Optional[datetime] = None
        self.source_errors: Dict[str, str] = {}

    # --- State ---

    @property
    def updates(self) -> List[ServiceUpdate]:
        with self._lock:
            return list(self._updates)

    @property
    def has_unread(self) -> bool:
        with self._lock:
            return self._has_unread

    @property
    def snapshot_key(self) -> str:
        return snapshot_key(self.user_id, "updates")

    @property
    def _meta_key(self) -> str:
        return snapshot_key(self.user_id, "updates_meta")

    def load(self) -> None:
        updates = load_list(self.snapshots, self.snapshot_key, ServiceUpdate.from_dict)
        meta = self.snapshots.load(self._meta_key)
        with self._lock:
            self._updates = updates
            self._has_unread = any(not u.is_read for u in updates)
            if meta:
                last = json.loads(meta).get("last_update_time")
                self.last_update_time = parse_datetime(last) if last else None
        logger.info(f"Loaded {len(updates)} cached updates")
        self.events.emit(UPDATES_CHANGED, self.updates)

    def clear(self) -> None:
        with self._lock:
            # Refreshes started before this point are discarded when they land.
            self._applied_generation = self._generation + 1
            self._updates = []
            self._has_unread = False
            self.last_update_time = None
            self.last_error = None
            self.source_errors = {}
            self.user_id = None
        self.events.emit(UPDATES_CHANGED, [])

    def _set_state(self, state: FeedState) -> None:
        self.state = state
        logger.debug(f"Feed state -> {state.value}")
        self.events.emit(FEED_STATE, state)

    def _persist_locked(self) -> None:
        self._has_unread = any(not u.is_read for u in self._updates)
        try:
            save_list(self.snapshots, self.snapshot_key, self._updates)
            last = self.last_update_time.isoformat() if self.last_update_time else None
            self.snapshots.save(self._meta_key, json.dumps({"last_update_time": last}))
        except OSError as e:
            logger.error(f"Failed to write the updates snapshot: {e}")
            self.last_error = f"local save failed: {e}"

    # --- Refresh ---

    def refresh(self, now: Optional[datetime] = None) -> int:
        """
        Fetches every source, merges the results and persists them.

        Never raises for source failures; they are logged and listed in
        `source_errors`. Returns the number of new items kept. If a newer
        refresh finished first, this one's result is dropped and 0 is returned.
        """
        now = now or datetime.now(timezone.utc)
        with self._lock:
            self._generation += 1
            generation = self._generation

        try:
            self._set_state(FeedState.FETCHING)
            fetched, errors = self._fetch_all()

            self._set_state(FeedState.NORMALIZING)
            incoming: List[ServiceUpdate] = []
            for source, items in fetched:
                incoming.extend(self._normalize(source, items, now))

            self._set_state(FeedState.MERGING)
            return self._apply(incoming, generation, now=now, errors=errors)
        finally:
            self._set_state(FeedState.IDLE)

    def _fetch_all(self) -> Tuple[List[Tuple[FeedSource, list]], Dict[str, str]]:
        fetched: List[Tuple[FeedSource, list]] = []
        errors: Dict[str, str] = {}
        if not self.sources:
            return fetched, errors

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_source = {
                executor.submit(self._fetch_source, source): source for source in self.sources
            }
            for future in as_completed(future_to_source):
                source = future_to_source[future]
                key = f"{source.name} ({source.kind.value})"
                try:
                    fetched.append((source, future.result()))
                except Exception as e:
                    # Any failure stays local to its source.
                    logger.warning(f"Source {key} failed: {e!r}")
                    errors[key] = str(e) or type(e).__name__
        # as_completed order is arbitrary; keep configuration order for ties.
        order = {id(s): i for i, s in enumerate(self.sources)}
        fetched.sort(key=lambda pair: order[id(pair[0])])
        logger.info(f"Fetched {len(fetched)}/{len(self.sources)} sources")
        return fetched, errors

    def _fetch_source(self, source: FeedSource) -> list:
        if source.kind == SourceKind.RSS:
            return parse_feed(self.fetcher.fetch(source.url))[: self.items_per_source]
        return list(source.entries)

    def _normalize(self, source: FeedSource, items: list, now: datetime) -> List[ServiceUpdate]:
        if source.kind == SourceKind.RSS:
            normalized = [normalize_item(item, source, now) for item in items]
            return [u for u in normalized if u is not None]
        return [entry_to_update(entry, source, now) for entry in items]

    def merge(self, new_updates: List[ServiceUpdate]) -> int:
        """Merges already-built updates into the list and persists it."""
        return self._apply(new_updates)

    def _apply(self, incoming: List[ServiceUpdate], generation: Optional[int] = None,
               now: Optional[datetime] = None, errors: Optional[Dict[str, str]] = None) -> int:
        with self._lock:
            if generation is not None:
                if generation < self._applied_generation:
                    logger.info(f"Dropping stale refresh #{generation} (#{self._applied_generation} already applied)")
                    return 0
                self._applied_generation = generation
            merged, added = merge_updates(self._updates, incoming, self.max_items)
            self._updates = merged
            if errors is not None:
                self.source_errors = errors
                self.last_error = (
                    f"{len(errors)} source(s) failed: {', '.join(sorted(errors))}" if errors else None
                )
            if now is not None:
                self.last_update_time = now
            self._persist_locked()
            snapshot = list(self._updates)
        self._set_state(FeedState.PERSISTED)
        logger.info(f"Merged {added} new updates ({len(snapshot)} total)")
        self.events.emit(UPDATES_CHANGED, snapshot)
        return added

    # --- Read state ---

    def mark_read(self, update_id: str) -> bool:
        with self._lock:
            update = next((u for u in self._updates if u.id == update_id), None)
            if update is None:
                return False
            update.is_read = True
            self._persist_locked()
            snapshot = list(self._updates)
        self.events.emit(UPDATES_CHANGED, snapshot)
        return True

    def mark_all_read(self) -> None:
        with self._lock:
            for update in self._updates:
                update.is_read = True
            self._persist_locked()
            snapshot = list(self._updates)
        self.events.emit(UPDATES_CHANGED, snapshot)

    # --- Queries ---

    def filter_updates(self, service: Optional[str] = None, category: Optional[UpdateCategory] = None,
                       importance: Optional[UpdateImportance] = None,
                       unread_only: bool = False) -> List[ServiceUpdate]:
        filtered = self.updates
        if service and service != ALL_SERVICES:
            filtered = [u for u in filtered if u.service == service]
        if category is not None:
            filtered = [u for u in filtered if u.category == category]
        if importance is not None:
            filtered = [u for u in filtered if u.importance == importance]
        if unread_only:
            filtered = [u for u in filtered if not u.is_read]
        return filtered

    def unread_updates(self) -> List[ServiceUpdate]:
        return self.filter_updates(unread_only=True)

    def critical_unread(self) -> List[ServiceUpdate]:
        return self.filter_updates(importance=UpdateImportance.CRITICAL, unread_only=True)

    def search(self, query: str) -> List[ServiceUpdate]:
        """Case-insensitive match on title, summary or service name."""
        q = query.lower()
        return [
            u for u in self.updates
            if q in u.title.lower() or q in u.summary.lower() or q in u.service.lower()
        ]

    def today_updates(self, now: Optional[datetime] = None) -> List[ServiceUpdate]:
        now = now or datetime.now(timezone.utc)
        return [u for u in self.updates if u.published_date.astimezone(now.tzinfo).date() == now.date()]

    def this_week_updates(self, now: Optional[datetime] = None) -> List[ServiceUpdate]:
        now = now or datetime.now(timezone.utc)
        week_ago = now - timedelta(days=7)
        return [u for u in self.updates if u.published_date >= week_ago]

    def statistics(self, now: Optional[datetime] = None) -> FeedStatistics:
        updates = self.updates
        return FeedStatistics(
            total_updates=len(updates),
            unread_count=sum(1 for u in updates if not u.is_read),
            today_count=len(self.today_updates(now)),
            critical_count=sum(1 for u in updates if u.importance == UpdateImportance.CRITICAL),
            by_service=dict(Counter(u.service for u in updates)),
            by_category=dict(Counter(u.category for u in updates)),
        )
