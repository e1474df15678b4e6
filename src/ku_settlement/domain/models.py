"""Domain models for ku_settlement: pure dataclasses, no SQLAlchemy dependency."""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from src.ku_common.enums import PaymentStatus, ProviderStatus, WalletTarget
from src.ku_wallet.domain.models import Principal


class AuthMethod(str, Enum):
    """How the payment confirmation was authenticated."""
    PROVIDER_VERIFY = "provider_verify"  # client path: server-side verify call
    SIGNATURE = "signature"              # webhook path: HMAC over the raw body


class SettlementOutcome(str, Enum):
    CREDITED = "credited"
    ALREADY_SETTLED = "already_settled"
    NO_CHECKOUT = "no_checkout"
    CHECKOUT_NOT_PENDING = "checkout_not_pending"
    AMOUNT_MISMATCH = "amount_mismatch"
    IDENTITY_MISMATCH = "identity_mismatch"
    NOT_SUCCESSFUL = "not_successful"
    IGNORED = "ignored"


@dataclass(frozen=True)
class PaymentConfirmation:
    """A provider-issued fact about one transaction. Never created by us."""
    reference: str
    status: ProviderStatus
    amount: int                       # kobo actually charged
    email: str | None = None
    customer_code: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_provider_data(cls, data: dict[str, Any]) -> "PaymentConfirmation":
        """Build from the `data` object of a verify response or webhook event."""
        try:
            status = ProviderStatus(str(data.get("status", "")).lower())
        except ValueError:
            status = ProviderStatus.UNKNOWN

        metadata = data.get("metadata") or {}
        # Paystack returns metadata as a JSON string when it was sent as one
        if isinstance(metadata, str):
            try:
                metadata = json.loads(metadata)
            except ValueError:
                metadata = {}
        if not isinstance(metadata, dict):
            metadata = {}

        customer = data.get("customer") or {}
        return cls(
            reference=str(data.get("reference") or ""),
            status=status,
            amount=int(data.get("amount") or 0),
            email=customer.get("email"),
            customer_code=customer.get("customer_code"),
            metadata=metadata,
        )

    def metadata_value(self, key: str) -> str | None:
        """Look up `key` directly in metadata, then in its custom_fields list."""
        value = self.metadata.get(key)
        if value is not None:
            return str(value)
        custom_fields = self.metadata.get("custom_fields")
        if isinstance(custom_fields, list):
            for item in custom_fields:
                if isinstance(item, dict) and item.get("variable_name") == key:
                    found = item.get("value")
                    return str(found) if found is not None else None
        return None


@dataclass(frozen=True)
class PurchaseTerms:
    """What a reference is worth, resolved from an intent or the price table."""
    user_id: str                      # principal on whose behalf the purchase was made
    target: WalletTarget
    group_id: str | None
    units: int
    expected_amount: int              # kobo
    package_id: str | None
    from_intent: bool

    @property
    def wallet_principal(self) -> Principal:
        return Principal.for_target(self.target, self.user_id, self.group_id)

    @property
    def plan_label(self) -> str:
        """payment_history label: ku_starter_personal, ku_custom_37_group, ..."""
        label = self.package_id or f"custom_{self.units}"
        return f"ku_{label}_{self.target.value}"


@dataclass(frozen=True)
class SettlementContext:
    reference: str
    auth: AuthMethod
    user_id: str | None = None        # authenticated caller (client path only)
    email: str | None = None


@dataclass
class SettlementResult:
    reference: str
    outcome: SettlementOutcome
    units_credited: int = 0
    new_balance: int | None = None

    @property
    def already_settled(self) -> bool:
        return self.outcome == SettlementOutcome.ALREADY_SETTLED

    @property
    def success(self) -> bool:
        return self.outcome in (SettlementOutcome.CREDITED, SettlementOutcome.ALREADY_SETTLED)


@dataclass(frozen=True)
class PurchaseClaim:
    """What the client says it bought. Only used to look up trusted terms."""
    reference: str
    target: WalletTarget = WalletTarget.PERSONAL
    package_id: str | None = None
    group_id: str | None = None
    custom_units: int | None = None
    from_pending: bool = False


@dataclass(frozen=True)
class PaymentRecord:
    """A terminal payment_history row. Its reference is the idempotency guard."""
    id: int
    reference: str
    user_id: str
    amount: int
    plan: str
    status: PaymentStatus
    created_at: datetime | None = None
