# substack/core/notifications.py
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Iterable, List, Optional

from substack.config import NOTIFICATION_TIME, NOTIFY_DAYS_BEFORE, NOTIFY_ON_PAYMENT_DAY
from substack.core.gateways import NotificationGateway
from substack.core.models import Subscription
from substack.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Reminder:
    id: str
    subscription_id: str
    fire_at: datetime
    title: str
    body: str


def parse_notification_time(value: str) -> time:
    """"HH:MM" -> time. Raises ValueError for anything else."""
    hour, _, minute = value.strip().partition(":")
    return time(int(hour), int(minute or 0))


class ReminderPlanner:
    """
    Turns subscriptions into payment reminders and hands them to a
    NotificationGateway. Reminder ids are "<subscription id>-payment" and
    "<subscription id>-advance", so rescheduling replaces the previous ones.
    """

    def __init__(self, gateway: NotificationGateway, days_before: int = NOTIFY_DAYS_BEFORE,
                 on_payment_day: bool = NOTIFY_ON_PAYMENT_DAY, at: Optional[time] = None):
        self.gateway = gateway
        self.days_before = days_before
        self.on_payment_day = on_payment_day
        self.at = at or parse_notification_time(NOTIFICATION_TIME)

    def reminders_for(self, subscription: Subscription) -> List[Reminder]:
        billing_day = subscription.next_billing_date
        price = f"₩{subscription.price:,}"
        reminders = []
        if self.on_payment_day:
            reminders.append(Reminder(
                id=f"{subscription.id}-payment",
                subscription_id=subscription.id,
                fire_at=datetime.combine(billing_day, self.at),
                title="💳 오늘 결제 예정",
                body=f"{subscription.name} {price}이 오늘 결제됩니다",
            ))
        if self.days_before > 0:
            reminders.append(Reminder(
                id=f"{subscription.id}-advance",
                subscription_id=subscription.id,
                fire_at=datetime.combine(billing_day - timedelta(days=self.days_before), self.at),
                title="💡 결제 예정 알림",
                body=f"{subscription.name}이 {self.days_before}일 후 결제됩니다 ({price})",
            ))
        return reminders

    def schedule(self, subscription: Subscription) -> List[Reminder]:
        self.gateway.cancel(subscription.id)
        if not subscription.is_active:
            return []
        reminders = self.reminders_for(subscription)
        for reminder in reminders:
            self.gateway.schedule(reminder)
        logger.debug(f"Scheduled {len(reminders)} reminders for '{subscription.name}'")
        return reminders

    def cancel(self, subscription: Subscription) -> None:
        self.gateway.cancel(subscription.id)

    def reschedule_all(self, subscriptions: Iterable[Subscription]) -> int:
        """Drops every pending reminder and schedules the active subscriptions again."""
        self.gateway.cancel_all()
        count = 0
        for subscription in subscriptions:
            if subscription.is_active:
                count += len(self.schedule(subscription))
        logger.info(f"Rescheduled {count} payment reminders")
        return count
