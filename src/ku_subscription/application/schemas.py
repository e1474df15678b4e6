"""Pydantic schemas for ku_subscription API."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.ku_checkout.domain.reference import REFERENCE_PATTERN
from src.ku_subscription.domain.models import Subscription


class VerifySubscriptionRequest(BaseModel):
    reference: str = Field(..., min_length=1, max_length=128, pattern=REFERENCE_PATTERN)
    plan: str = Field(..., min_length=1, max_length=32)


class SubscriptionResponse(BaseModel):
    plan: str
    status: str
    current_period_start: datetime
    current_period_end: datetime
    is_current: bool
    already_settled: bool = False

    @classmethod
    def from_subscription(
        cls, sub: Subscription, now: datetime, already_settled: bool = False
    ) -> "SubscriptionResponse":
        return cls(
            plan=sub.plan.value,
            status=sub.status.value,
            current_period_start=sub.current_period_start,
            current_period_end=sub.current_period_end,
            is_current=sub.is_current(now),
            already_settled=already_settled,
        )
