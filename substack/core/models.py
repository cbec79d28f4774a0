# substack/core/models.py
"""
Domain records shared by the store, the detector and the feed aggregator.

Every record that is persisted has a `to_dict()` / `from_dict()` pair producing
plain JSON-compatible dictionaries; the snapshot store writes those as a list.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Union

from dateutil import parser as date_parser

from substack.core import billing
from substack.core.categories import (
    BillingCycle,
    MerchantCategory,
    UpdateCategory,
    UpdateImportance,
)
from substack.core.errors import InvalidAmount

DEFAULT_REMOTE_ICON = "💳"
DEFAULT_REMOTE_COLOR = "blue"


def _new_id() -> str:
    return str(uuid.uuid4())


def parse_date(value: Union[str, date, datetime]) -> date:
    """Accepts a date, a datetime or an ISO string ("2024-01-31" or a full timestamp)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date_parser.isoparse(value).date()


def parse_datetime(value: Union[str, datetime]) -> datetime:
    """ISO string or datetime -> timezone-aware datetime (naive values are taken as UTC)."""
    if isinstance(value, str):
        value = date_parser.isoparse(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class Subscription:
    """
    A recurring payment owned by one user.

    Attributes:
        id: Opaque unique identifier (uuid4 string for locally created records).
        name: Service name, e.g. "ChatGPT Plus". Also the remote match key.
        category: Free-text category label, e.g. "코딩".
        price: Amount in whole currency units (won). Never negative.
        icon: Display token (emoji).
        color_name: Display token ("blue", "red", ...).
        billing_cycle: weekly, monthly or yearly.
        start_date: First day of the subscription.
        last_payment_date: Date of the most recent charge.
        is_active: False when the subscription is paused (soft delete).
    """
    name: str
    category: str
    price: int
    billing_cycle: BillingCycle
    start_date: date
    last_payment_date: date
    icon: str = DEFAULT_REMOTE_ICON
    color_name: str = DEFAULT_REMOTE_COLOR
    is_active: bool = True
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        if isinstance(self.price, bool) or not isinstance(self.price, int) or self.price < 0:
            raise InvalidAmount(self.price)
        self.billing_cycle = BillingCycle(self.billing_cycle)

    @property
    def next_billing_date(self) -> date:
        return billing.next_billing_date(self.billing_cycle, self.last_payment_date)

    def days_until_next_payment(self, today: Optional[date] = None) -> int:
        return billing.days_until_next_payment(self.next_billing_date, today)

    # --- Local snapshot encoding ---
    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price": self.price,
            "icon": self.icon,
            "color_name": self.color_name,
            "billing_cycle": self.billing_cycle.value,
            "start_date": self.start_date.isoformat(),
            "last_payment_date": self.last_payment_date.isoformat(),
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Subscription":
        return cls(
            id=data["id"],
            name=data["name"],
            category=data["category"],
            price=data["price"],
            icon=data["icon"],
            color_name=data["color_name"],
            billing_cycle=BillingCycle(data["billing_cycle"]),
            start_date=parse_date(data["start_date"]),
            last_payment_date=parse_date(data["last_payment_date"]),
            is_active=data["is_active"],
        )

    # --- Remote row encoding ---
    def to_row(self, user_id: str) -> Dict[str, Any]:
        """Row for the remote `subscriptions` table; the remote assigns its own id."""
        row = self.to_dict()
        del row["id"]
        row["user_id"] = user_id
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any], today: Optional[date] = None) -> "Subscription":
        """
        Builds a Subscription from a remote row. Older rows only carry
        name/category/price/icon, so the rest falls back to defaults.
        """
        today = today or date.today()
        return cls(
            name=row["name"],
            category=row.get("category") or "",
            price=int(row.get("price") or 0),
            icon=row.get("icon") or DEFAULT_REMOTE_ICON,
            color_name=row.get("color_name") or DEFAULT_REMOTE_COLOR,
            billing_cycle=BillingCycle(row.get("billing_cycle") or BillingCycle.MONTHLY),
            start_date=parse_date(row["start_date"]) if row.get("start_date") else today,
            last_payment_date=(
                parse_date(row["last_payment_date"]) if row.get("last_payment_date") else today
            ),
            is_active=row.get("is_active", True) is not False,
        )


@dataclass(frozen=True)
class Transaction:
    """One line of a card/bank statement. Never mutated."""
    date: date
    description: str
    amount: int
    merchant: str


@dataclass
class DetectedSubscriptionCandidate:
    merchant_name: str
    amount: int
    frequency: BillingCycle
    last_charge_date: date
    category: MerchantCategory
    is_confirmed: bool = False


@dataclass
class ServiceUpdate:
    """One item of the AI-service update feed. `link` is the dedup key."""
    service: str
    service_icon: str
    title: str
    summary: str
    link: str
    published_date: datetime
    category: UpdateCategory = UpdateCategory.GENERAL
    importance: UpdateImportance = UpdateImportance.NORMAL
    is_read: bool = False
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        self.published_date = parse_datetime(self.published_date)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "service": self.service,
            "service_icon": self.service_icon,
            "title": self.title,
            "summary": self.summary,
            "link": self.link,
            "published_date": self.published_date.isoformat(),
            "category": self.category.value,
            "importance": int(self.importance),
            "is_read": self.is_read,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServiceUpdate":
        return cls(
            id=data["id"],
            service=data["service"],
            service_icon=data["service_icon"],
            title=data["title"],
            summary=data["summary"],
            link=data["link"],
            published_date=parse_datetime(data["published_date"]),
            category=UpdateCategory(data["category"]),
            importance=UpdateImportance(data["importance"]),
            is_read=data["is_read"],
        )


@dataclass
class Post:
    """A social post as returned by the `posts` table (joined with likes)."""
    id: str
    user_id: str
    content: str
    created_at: datetime
    media_url: Optional[str] = None
    media_type: Optional[str] = None
    likes_count: int = 0
    comments_count: int = 0
    is_liked_by_me: bool = False

    @property
    def has_media(self) -> bool:
        return self.media_url is not None and self.media_type is not None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Post":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            content=row["content"],
            created_at=parse_datetime(row["created_at"]),
            media_url=row.get("media_url"),
            media_type=row.get("media_type"),
            likes_count=row.get("likes_count") or 0,
            comments_count=row.get("comments_count") or 0,
            # The feed query embeds `is_liked_by_me:likes(user_id)` as a list.
            is_liked_by_me=bool(row.get("is_liked_by_me")),
        )
