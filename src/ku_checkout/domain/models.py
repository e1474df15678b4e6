"""Domain models for ku_checkout: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.ku_common.enums import CheckoutStatus, WalletTarget
from src.ku_wallet.domain.models import Principal


@dataclass
class CheckoutIntent:
    """An expected purchase, registered before the user is sent to pay.

    pending -> completed | amount_mismatch | expired, exactly once.
    """
    reference: str
    user_id: str
    target: WalletTarget
    group_id: str | None
    units: int
    expected_amount: int             # kobo
    package_id: str | None           # None for custom-amount purchases
    status: CheckoutStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == CheckoutStatus.PENDING

    @property
    def wallet_principal(self) -> Principal:
        return Principal.for_target(self.target, self.user_id, self.group_id)
