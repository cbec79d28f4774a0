# substack/core/subscriptions.py
"""
In-memory owner of one user's subscriptions.

Local state is authoritative: add/update/delete are applied and snapshotted
immediately, then mirrored to the remote table in the background. Remote
failures never roll anything back; they only show up in `last_error`.
"""

import threading
from concurrent.futures import Executor
from datetime import date, datetime, timezone
from typing import Callable, Dict, List, Optional

from substack.config import SUBSCRIPTIONS_TABLE
from substack.core import billing
from substack.core.categories import color_for_category, icon_for_service
from substack.core.errors import RemoteError, SubStackError
from substack.core.events import EventEmitter, SUBSCRIPTIONS_CHANGED, SYNC_STATUS
from substack.core.gateways import PersistenceGateway
from substack.core.models import DetectedSubscriptionCandidate, Subscription
from substack.core.snapshot import SnapshotStore, load_list, save_list, snapshot_key
from substack.utils.logger import get_logger

logger = get_logger(__name__)


class SubscriptionStore:
    """
    Args:
        gateway: Remote table storage.
        snapshots: Local blob store for the cached list.
        user_id: Owner; remote calls are skipped while it is None.
        executor: Runs remote calls in the background. Without one they run
            inline (still non-raising), which is what the tests use.
        events: Observer hub; a private one is created when omitted.
        table: Remote table name.
    """

    def __init__(self, gateway: PersistenceGateway, snapshots: SnapshotStore,
                 user_id: Optional[str] = None, executor: Optional[Executor] = None,
                 events: Optional[EventEmitter] = None, table: str = SUBSCRIPTIONS_TABLE):
        self.gateway = gateway
        self.snapshots = snapshots
        self.user_id = user_id
        self.executor = executor
        self.events = events or EventEmitter()
        self.table = table

        self._subscriptions: List[Subscription] = []
        self._lock = threading.RLock()
        # Serializes sync() calls: an overlapping call waits for the running one.
        self._sync_lock = threading.Lock()

        self.is_syncing = False
        self.last_sync_date: Optional[datetime] = None
        self.last_error: Optional[str] = None

    # --- State ---

    @property
    def subscriptions(self) -> List[Subscription]:
        with self._lock:
            return list(self._subscriptions)

    @property
    def snapshot_key(self) -> str:
        return snapshot_key(self.user_id, "subscriptions")

    def get(self, subscription_id: str) -> Optional[Subscription]:
        with self._lock:
            return next((s for s in self._subscriptions if s.id == subscription_id), None)

    def load(self) -> None:
        """Replaces the in-memory list with the local snapshot."""
        loaded = load_list(self.snapshots, self.snapshot_key, Subscription.from_dict)
        with self._lock:
            self._subscriptions = loaded
        logger.info(f"Loaded {len(loaded)} subscriptions from the local snapshot")
        self.events.emit(SUBSCRIPTIONS_CHANGED, self.subscriptions)

    def clear(self) -> None:
        """Forgets everything held in memory (logout). The snapshot stays on disk."""
        with self._lock:
            self._subscriptions = []
            self.user_id = None
            self.last_sync_date = None
            self.last_error = None
        self.events.emit(SUBSCRIPTIONS_CHANGED, [])

    def _save_locked(self) -> None:
        try:
            save_list(self.snapshots, self.snapshot_key, self._subscriptions)
        except OSError as e:
            logger.error(f"Failed to write the subscriptions snapshot: {e}")
            self.last_error = f"local save failed: {e}"

    # --- Mutations ---

    def add(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscriptions.append(subscription)
            self._save_locked()
            user_id = self.user_id
        logger.info(f"Added subscription '{subscription.name}'")
        self.events.emit(SUBSCRIPTIONS_CHANGED, self.subscriptions)
        if user_id:
            self._dispatch(self._upload, subscription, user_id)

    def update(self, subscription: Subscription) -> bool:
        """Replaces the record with the same id. Unknown ids are ignored (returns False)."""
        with self._lock:
            index = self._index_of(subscription.id)
            if index is None:
                logger.debug(f"Ignoring update of unknown subscription {subscription.id}")
                return False
            previous = self._subscriptions[index]
            self._subscriptions[index] = subscription
            self._save_locked()
            user_id = self.user_id
        self.events.emit(SUBSCRIPTIONS_CHANGED, self.subscriptions)
        if user_id:
            self._dispatch(self._update_remote, previous.name, subscription, user_id)
        return True

    def delete(self, subscription: Subscription) -> bool:
        """Removes the record with the same id. Unknown ids are ignored (returns False)."""
        with self._lock:
            index = self._index_of(subscription.id)
            if index is None:
                logger.debug(f"Ignoring delete of unknown subscription {subscription.id}")
                return False
            removed = self._subscriptions.pop(index)
            self._save_locked()
            user_id = self.user_id
        logger.info(f"Deleted subscription '{removed.name}'")
        self.events.emit(SUBSCRIPTIONS_CHANGED, self.subscriptions)
        if user_id:
            self._dispatch(self._delete_remote, removed, user_id)
        return True

    def confirm_candidate(self, candidate: DetectedSubscriptionCandidate) -> Subscription:
        """Promotes a detector candidate to a monthly subscription and adds it."""
        label = candidate.category.label
        subscription = Subscription(
            name=candidate.merchant_name,
            category=label,
            price=candidate.amount,
            icon=icon_for_service(candidate.merchant_name),
            color_name=color_for_category(label),
            billing_cycle=candidate.frequency,
            start_date=candidate.last_charge_date,
            last_payment_date=candidate.last_charge_date,
        )
        candidate.is_confirmed = True
        self.add(subscription)
        return subscription

    def roll_forward_all(self, today: Optional[date] = None) -> int:
        """Moves every overdue active subscription to its latest past charge. Returns how many moved."""
        moved = 0
        for subscription in self.subscriptions:
            if not subscription.is_active:
                continue
            rolled = billing.roll_forward(subscription, today)
            if rolled is not subscription:
                self.update(rolled)
                moved += 1
        return moved

    def _index_of(self, subscription_id: str) -> Optional[int]:
        for i, s in enumerate(self._subscriptions):
            if s.id == subscription_id:
                return i
        return None

    # --- Remote ---

    def _dispatch(self, func: Callable, *args) -> None:
        if self.executor is not None:
            self.executor.submit(self._run_remote, func, *args)
        else:
            self._run_remote(func, *args)

    def _run_remote(self, func: Callable, *args) -> None:
        try:
            func(*args)
        except RemoteError as e:
            logger.error(f"Remote call {func.__name__} failed: {e}")
            self._record_error(str(e))

    def _record_error(self, message: Optional[str]) -> None:
        with self._lock:
            self.last_error = message
        self.events.emit(SYNC_STATUS, self.status())

    def _upload(self, subscription: Subscription, user_id: str) -> None:
        self.gateway.create(self.table, subscription.to_row(user_id))
        logger.info(f"Uploaded subscription '{subscription.name}'")

    def _update_remote(self, previous_name: str, subscription: Subscription, user_id: str) -> None:
        patch = subscription.to_row(user_id)
        del patch["user_id"]
        self.gateway.update(self.table, {"name": previous_name, "user_id": user_id}, patch)

    def _delete_remote(self, subscription: Subscription, user_id: str) -> None:
        # Keyed by name, like the remote table; see DESIGN.md open questions.
        self.gateway.delete(self.table, {"name": subscription.name, "user_id": user_id})

    def sync(self, user_id: Optional[str] = None) -> bool:
        """
        Merges the remote list into the local one and uploads local-only entries.

        Merge is by name: local entries are kept as they are, remote entries
        whose name is unknown locally are appended. Concurrent calls run one
        after another. Returns False when anything remote failed; the error is
        kept in `last_error` and the next call retries.
        """
        user_id = user_id or self.user_id
        if not user_id:
            logger.error("No user id set; cannot sync subscriptions")
            self._record_error("no user id")
            return False

        with self._sync_lock:
            with self._lock:
                self.user_id = user_id
                # Entries added while the query is in flight upload themselves.
                pending_ids = {s.id for s in self._subscriptions}
            self._set_syncing(True)
            try:
                rows = self.gateway.query(self.table, {"user_id": user_id})
            except RemoteError as e:
                logger.error(f"Subscription sync failed: {e}")
                self._set_syncing(False, error=str(e))
                return False

            remote = self._decode_rows(rows)
            remote_names = {s.name for s in remote}

            with self._lock:
                local = [s for s in self._subscriptions if s.id in pending_ids]
                known = {s.name for s in self._subscriptions}
                merged = list(self._subscriptions)
                for candidate in remote:
                    if candidate.name not in known:
                        merged.append(candidate)
                        known.add(candidate.name)
                self._subscriptions = merged
                self._save_locked()

            failures = []
            for subscription in local:
                if subscription.name in remote_names:
                    continue
                try:
                    self._upload(subscription, user_id)
                except RemoteError as e:
                    logger.error(f"Upload of '{subscription.name}' failed: {e}")
                    failures.append(subscription.name)

            with self._lock:
                self.last_sync_date = datetime.now(timezone.utc)
            error = f"upload failed for: {', '.join(failures)}" if failures else None
            self._set_syncing(False, error=error)
            logger.info(f"Subscription sync complete: {len(merged)} subscriptions")
            self.events.emit(SUBSCRIPTIONS_CHANGED, self.subscriptions)
            return not failures

    def _decode_rows(self, rows: List[dict]) -> List[Subscription]:
        decoded = []
        for row in rows:
            try:
                decoded.append(Subscription.from_row(row))
            except (KeyError, ValueError, SubStackError) as e:
                logger.warning(f"Skipping malformed remote subscription row {row!r}: {e}")
        return decoded

    def _set_syncing(self, syncing: bool, error: Optional[str] = None) -> None:
        with self._lock:
            self.is_syncing = syncing
            if not syncing:
                self.last_error = error
        self.events.emit(SYNC_STATUS, self.status())

    def status(self) -> Dict[str, object]:
        with self._lock:
            return {
                "is_syncing": self.is_syncing,
                "last_sync_date": self.last_sync_date,
                "last_error": self.last_error,
            }

    # --- Queries ---

    def active(self) -> List[Subscription]:
        return [s for s in self.subscriptions if s.is_active]

    def by_category(self) -> Dict[str, List[Subscription]]:
        """Active subscriptions grouped by category, in first-seen order."""
        grouped: Dict[str, List[Subscription]] = {}
        for s in self.active():
            grouped.setdefault(s.category, []).append(s)
        return grouped

    def upcoming_payments(self) -> List[Subscription]:
        """Active subscriptions, soonest next billing date first."""
        return sorted(self.active(), key=lambda s: s.next_billing_date)

    def top_category(self) -> Optional[str]:
        """Category with the most active subscriptions; ties go to the first seen."""
        best, best_count = None, 0
        for category, items in self.by_category().items():
            if len(items) > best_count:
                best, best_count = category, len(items)
        return best

    def total_monthly_spend(self) -> int:
        return billing.normalized_monthly_spend(self.subscriptions)

    def total_yearly_spend(self) -> int:
        return billing.normalized_yearly_spend(self.subscriptions)
