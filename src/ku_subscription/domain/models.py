"""Domain models and plan table for ku_subscription."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from src.ku_common.enums import SubscriptionPlan, SubscriptionStatus
from src.ku_common.errors import InvalidPlanError

SUBSCRIPTION_PERIOD = timedelta(days=30)

# plan -> price in kobo for one period
PLAN_PRICES: dict[SubscriptionPlan, int] = {
    SubscriptionPlan.BASIC: 300_000,
    SubscriptionPlan.PRO: 500_000,
    SubscriptionPlan.PREMIUM: 1_000_000,
}


def plan_price(plan: str) -> tuple[SubscriptionPlan, int]:
    try:
        parsed = SubscriptionPlan(plan)
    except ValueError:
        raise InvalidPlanError(plan) from None
    return parsed, PLAN_PRICES[parsed]


def payment_label(plan: SubscriptionPlan) -> str:
    """payment_history label for a subscription payment."""
    return f"sub_{plan.value}"


@dataclass
class Subscription:
    user_id: str
    plan: SubscriptionPlan
    status: SubscriptionStatus
    current_period_start: datetime
    current_period_end: datetime
    customer_code: str | None = None

    def is_current(self, now: datetime) -> bool:
        return self.status == SubscriptionStatus.ACTIVE and now < self.current_period_end
