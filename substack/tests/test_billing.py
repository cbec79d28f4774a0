# substack/tests/test_billing.py
import unittest
from datetime import date

from substack.core import billing
from substack.core.categories import BillingCycle
from substack.core.errors import InvalidAmount
from substack.core.models import Subscription


def make_sub(price, cycle=BillingCycle.MONTHLY, last=date(2024, 1, 15), active=True, name="Netflix"):
    return Subscription(
        name=name,
        category="엔터테인먼트",
        price=price,
        billing_cycle=cycle,
        start_date=last,
        last_payment_date=last,
        is_active=active,
    )


class TestNextBillingDate(unittest.TestCase):
    def test_weekly_adds_seven_days(self):
        self.assertEqual(billing.next_billing_date(BillingCycle.WEEKLY, date(2024, 1, 29)), date(2024, 2, 5))

    def test_monthly_simple(self):
        self.assertEqual(billing.next_billing_date(BillingCycle.MONTHLY, date(2024, 1, 15)), date(2024, 2, 15))

    def test_monthly_clamps_to_month_end(self):
        # Leap year: Jan 31 -> Feb 29
        self.assertEqual(billing.next_billing_date(BillingCycle.MONTHLY, date(2024, 1, 31)), date(2024, 2, 29))
        self.assertEqual(billing.next_billing_date(BillingCycle.MONTHLY, date(2023, 1, 31)), date(2023, 2, 28))

    def test_yearly_from_leap_day(self):
        self.assertEqual(billing.next_billing_date(BillingCycle.YEARLY, date(2024, 2, 29)), date(2025, 2, 28))

    def test_accepts_raw_cycle_value(self):
        self.assertEqual(billing.next_billing_date("monthly", date(2024, 12, 1)), date(2025, 1, 1))


class TestDaysUntilNextPayment(unittest.TestCase):
    def test_future_is_positive(self):
        self.assertEqual(billing.days_until_next_payment(date(2024, 3, 10), today=date(2024, 3, 1)), 9)

    def test_due_today_is_zero(self):
        self.assertEqual(billing.days_until_next_payment(date(2024, 3, 1), today=date(2024, 3, 1)), 0)

    def test_overdue_is_negative(self):
        self.assertEqual(billing.days_until_next_payment(date(2024, 2, 28), today=date(2024, 3, 1)), -2)

    def test_subscription_helper(self):
        sub = make_sub(9900, last=date(2024, 1, 15))
        self.assertEqual(sub.next_billing_date, date(2024, 2, 15))
        self.assertEqual(sub.days_until_next_payment(today=date(2024, 2, 10)), 5)


class TestSpend(unittest.TestCase):
    def test_monthly_amount_per_cycle(self):
        self.assertEqual(billing.monthly_amount(make_sub(12000, BillingCycle.MONTHLY)), 12000)
        self.assertEqual(billing.monthly_amount(make_sub(120000, BillingCycle.YEARLY)), 10000)
        # 1000 * 52 // 12 = 4333
        self.assertEqual(billing.monthly_amount(make_sub(1000, BillingCycle.WEEKLY)), 4333)

    def test_yearly_amount_per_cycle(self):
        self.assertEqual(billing.yearly_amount(make_sub(1000, BillingCycle.WEEKLY)), 52000)
        self.assertEqual(billing.yearly_amount(make_sub(9900, BillingCycle.MONTHLY)), 118800)
        self.assertEqual(billing.yearly_amount(make_sub(99000, BillingCycle.YEARLY)), 99000)

    def test_inactive_subscriptions_are_ignored(self):
        subs = [
            make_sub(10000, name="A"),
            make_sub(5000, name="B", active=False),
            make_sub(120000, BillingCycle.YEARLY, name="C"),
        ]
        self.assertEqual(billing.normalized_monthly_spend(subs), 20000)
        self.assertEqual(billing.normalized_yearly_spend(subs), 240000)

    def test_empty_list_is_zero(self):
        self.assertEqual(billing.normalized_monthly_spend([]), 0)
        self.assertEqual(billing.normalized_yearly_spend([]), 0)

    def test_deactivating_lowers_spend_by_its_share(self):
        keep = make_sub(1000, BillingCycle.WEEKLY, name="keep")
        drop = make_sub(24000, BillingCycle.YEARLY, name="drop")
        before = billing.normalized_monthly_spend([keep, drop])
        drop.is_active = False
        after = billing.normalized_monthly_spend([keep, drop])
        self.assertEqual(before - after, 2000)

    def test_spend_is_additive_over_disjoint_sets(self):
        group_a = [
            make_sub(1001, BillingCycle.WEEKLY, name="A1"),
            make_sub(9900, BillingCycle.MONTHLY, name="A2"),
            make_sub(3000, name="A3", active=False),
        ]
        group_b = [
            make_sub(99999, BillingCycle.YEARLY, name="B1"),
            make_sub(777, BillingCycle.WEEKLY, name="B2"),
        ]
        for spend in (billing.normalized_monthly_spend, billing.normalized_yearly_spend):
            self.assertEqual(spend(group_a + group_b), spend(group_a) + spend(group_b))


class TestParsePrice(unittest.TestCase):
    def test_plain_and_grouped_digits(self):
        self.assertEqual(billing.parse_price("25000"), 25000)
        self.assertEqual(billing.parse_price("25,000"), 25000)
        self.assertEqual(billing.parse_price(" 1,234,567 "), 1234567)
        self.assertEqual(billing.parse_price("0"), 0)

    def test_rejects_invalid_input(self):
        for bad in ["", "-100", "12.5", "abc", "1,00", "₩1000", None]:
            with self.subTest(value=bad):
                with self.assertRaises(InvalidAmount):
                    billing.parse_price(bad)

    def test_invalid_amount_is_a_value_error(self):
        with self.assertRaises(ValueError):
            billing.parse_price("x")


class TestSubscriptionValidation(unittest.TestCase):
    def test_negative_price_rejected(self):
        with self.assertRaises(InvalidAmount):
            make_sub(-1)

    def test_fractional_and_bool_prices_rejected(self):
        with self.assertRaises(InvalidAmount):
            make_sub(9.99)
        with self.assertRaises(InvalidAmount):
            make_sub(True)


class TestRollForward(unittest.TestCase):
    def test_nothing_due_returns_same_object(self):
        sub = make_sub(9900, last=date(2024, 3, 1))
        self.assertIs(billing.roll_forward(sub, today=date(2024, 3, 20)), sub)

    def test_moves_to_latest_past_charge(self):
        sub = make_sub(9900, last=date(2024, 1, 10))
        rolled = billing.roll_forward(sub, today=date(2024, 4, 20))
        self.assertEqual(rolled.last_payment_date, date(2024, 4, 10))
        self.assertEqual(rolled.id, sub.id)
        self.assertEqual(sub.last_payment_date, date(2024, 1, 10))
        self.assertGreaterEqual(rolled.next_billing_date, date(2024, 4, 20))


if __name__ == "__main__":
    unittest.main()
