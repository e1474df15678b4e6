"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class PrincipalKind(str, Enum):
    """Owner of a wallet: an individual user or a study group."""
    USER = "user"
    GROUP = "group"


class WalletTarget(str, Enum):
    """Which wallet a purchase credits, as chosen at checkout."""
    PERSONAL = "personal"
    GROUP = "group"


class CheckoutStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    AMOUNT_MISMATCH = "amount_mismatch"
    EXPIRED = "expired"


class PaymentStatus(str, Enum):
    """Terminal payment_history status: the row itself is the idempotency guard."""
    SUCCESS = "success"
    FAILED = "failed"


class ProviderStatus(str, Enum):
    """Transaction status as reported by Paystack."""
    SUCCESS = "success"
    PENDING = "pending"
    ONGOING = "ongoing"
    QUEUED = "queued"
    FAILED = "failed"
    ABANDONED = "abandoned"
    REVERSED = "reversed"
    UNKNOWN = "unknown"


RETRYABLE_PROVIDER_STATUSES = frozenset(
    {ProviderStatus.PENDING, ProviderStatus.ONGOING, ProviderStatus.QUEUED}
)


class TransactionKind(str, Enum):
    PURCHASE = "purchase"
    CONSUMPTION = "consumption"
    REFERRAL_BONUS = "referral_bonus"
    REFUND = "refund"


class ConsumptionReason(str, Enum):
    CHAT_PROMPT = "chat_prompt"
    EXAM_START = "exam_start"
    LIBRARY_SLOT = "library_slot"


class SubscriptionPlan(str, Enum):
    BASIC = "basic"
    PRO = "pro"
    PREMIUM = "premium"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
