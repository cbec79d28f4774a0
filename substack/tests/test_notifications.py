# substack/tests/test_notifications.py
import unittest
from datetime import date, datetime, time
from unittest.mock import MagicMock, call

from substack.core.categories import BillingCycle
from substack.core.gateways import NotificationGateway
from substack.core.models import Subscription
from substack.core.notifications import ReminderPlanner, parse_notification_time


def make_sub(name="Netflix", price=13500, last=date(2024, 3, 5), active=True):
    return Subscription(
        name=name,
        category="엔터테인먼트",
        price=price,
        billing_cycle=BillingCycle.MONTHLY,
        start_date=last,
        last_payment_date=last,
        is_active=active,
    )


class TestParseNotificationTime(unittest.TestCase):
    def test_hour_and_minute(self):
        self.assertEqual(parse_notification_time("09:00"), time(9, 0))
        self.assertEqual(parse_notification_time(" 21:45 "), time(21, 45))
        self.assertEqual(parse_notification_time("7"), time(7, 0))

    def test_invalid(self):
        with self.assertRaises(ValueError):
            parse_notification_time("noon")
        with self.assertRaises(ValueError):
            parse_notification_time("25:00")


class TestReminderPlanner(unittest.TestCase):
    def setUp(self):
        self.gateway = MagicMock(spec=NotificationGateway)
        self.planner = ReminderPlanner(self.gateway, days_before=3, on_payment_day=True, at=time(9, 0))

    def test_reminders_for_payment_and_advance(self):
        sub = make_sub()
        payment, advance = self.planner.reminders_for(sub)

        self.assertEqual(payment.id, f"{sub.id}-payment")
        self.assertEqual(payment.fire_at, datetime(2024, 4, 5, 9, 0))
        self.assertIn("₩13,500", payment.body)
        self.assertEqual(advance.id, f"{sub.id}-advance")
        self.assertEqual(advance.fire_at, datetime(2024, 4, 2, 9, 0))
        self.assertIn("3일 후", advance.body)

    def test_advance_disabled(self):
        planner = ReminderPlanner(self.gateway, days_before=0, on_payment_day=True, at=time(8, 30))
        reminders = planner.reminders_for(make_sub())
        self.assertEqual([r.id.rsplit("-", 1)[1] for r in reminders], ["payment"])

    def test_payment_day_disabled(self):
        planner = ReminderPlanner(self.gateway, days_before=1, on_payment_day=False, at=time(8, 30))
        reminders = planner.reminders_for(make_sub())
        self.assertEqual(len(reminders), 1)
        self.assertEqual(reminders[0].fire_at, datetime(2024, 4, 4, 8, 30))

    def test_schedule_cancels_first(self):
        sub = make_sub()
        self.planner.schedule(sub)
        self.assertEqual(self.gateway.method_calls[0], call.cancel(sub.id))
        self.assertEqual(self.gateway.schedule.call_count, 2)

    def test_inactive_subscription_is_only_cancelled(self):
        sub = make_sub(active=False)
        self.assertEqual(self.planner.schedule(sub), [])
        self.gateway.cancel.assert_called_once_with(sub.id)
        self.gateway.schedule.assert_not_called()

    def test_reschedule_all(self):
        subs = [make_sub("A"), make_sub("B", active=False), make_sub("C")]
        count = self.planner.reschedule_all(subs)
        self.assertEqual(count, 4)
        self.gateway.cancel_all.assert_called_once()
        self.assertEqual(self.gateway.schedule.call_count, 4)


if __name__ == "__main__":
    unittest.main()
