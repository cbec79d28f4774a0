# substack/core/billing.py
"""
Billing-cycle arithmetic.

All functions are pure. Month and year steps use calendar arithmetic
(`dateutil.relativedelta`), which clamps to the last valid day of the target
month: Jan 31 + 1 month is Feb 28 (Feb 29 in leap years) and Feb 29 + 1 year
is Feb 28. Week steps are exactly seven days.
"""

import dataclasses
import re
from datetime import date
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from substack.core.categories import BillingCycle
from substack.core.errors import InvalidAmount

_CYCLE_STEPS = {
    BillingCycle.WEEKLY: relativedelta(weeks=1),
    BillingCycle.MONTHLY: relativedelta(months=1),
    BillingCycle.YEARLY: relativedelta(years=1),
}

_PRICE_PATTERN = re.compile(r"^\d{1,3}(,\d{3})+$|^\d+$")


def next_billing_date(cycle: BillingCycle, last_payment_date: date) -> date:
    """`last_payment_date` advanced by exactly one cycle unit."""
    return last_payment_date + _CYCLE_STEPS[BillingCycle(cycle)]


def days_until_next_payment(next_billing: date, today: Optional[date] = None) -> int:
    """Calendar days from `today` to `next_billing`; 0 when due today, negative when overdue."""
    today = today or date.today()
    return (next_billing - today).days


def monthly_amount(subscription) -> int:
    """
    Monthly cost of one subscription.

    Weekly prices use 52/12 weeks per month, an approximation. Results are
    integer-divided, truncating towards zero (prices are never negative).
    """
    cycle = subscription.billing_cycle
    if cycle == BillingCycle.WEEKLY:
        return subscription.price * 52 // 12
    if cycle == BillingCycle.YEARLY:
        return subscription.price // 12
    return subscription.price


def yearly_amount(subscription) -> int:
    return subscription.price * subscription.billing_cycle.multiplier


def normalized_monthly_spend(subscriptions: Iterable) -> int:
    """Sum of `monthly_amount` over the active subscriptions."""
    return sum(monthly_amount(s) for s in subscriptions if s.is_active)


def normalized_yearly_spend(subscriptions: Iterable) -> int:
    """Sum of `yearly_amount` over the active subscriptions."""
    return sum(yearly_amount(s) for s in subscriptions if s.is_active)


def parse_price(text: str) -> int:
    """
    Validates user price input at the boundary.

    Accepts plain digits ("25000") or comma-grouped digits ("25,000").

    Raises:
        InvalidAmount: for empty, negative, fractional or non-numeric input.
    """
    if text is None:
        raise InvalidAmount(text)
    cleaned = str(text).strip()
    if not _PRICE_PATTERN.match(cleaned):
        raise InvalidAmount(text)
    return int(cleaned.replace(",", ""))


def roll_forward(subscription, today: Optional[date] = None):
    """
    Advances `last_payment_date` one cycle at a time until the next billing
    date is today or later. Returns the same object when nothing is due.
    """
    today = today or date.today()
    last = subscription.last_payment_date
    while next_billing_date(subscription.billing_cycle, last) < today:
        last = next_billing_date(subscription.billing_cycle, last)
    if last == subscription.last_payment_date:
        return subscription
    return dataclasses.replace(subscription, last_payment_date=last)
