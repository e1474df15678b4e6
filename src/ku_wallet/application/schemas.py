"""Pydantic schemas for ku_wallet API."""

from pydantic import BaseModel, Field

from src.ku_common.enums import ConsumptionReason
from src.ku_common.money import units_to_display
from src.ku_wallet.domain.models import Wallet

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ConsumeRequest(BaseModel):
    reason: ConsumptionReason
    group_id: str | None = Field(
        None, max_length=64, description="Debit the group wallet instead of the personal one"
    )


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class WalletResponse(BaseModel):
    principal_kind: str
    principal_id: str
    balance: int
    balance_display: str
    library_slots: int
    can_chat: bool
    can_start_exam: bool

    @classmethod
    def from_wallet(cls, wallet: Wallet) -> "WalletResponse":
        return cls(
            principal_kind=wallet.principal_kind.value,
            principal_id=wallet.principal_id,
            balance=wallet.balance,
            balance_display=units_to_display(wallet.balance),
            library_slots=wallet.library_slots,
            can_chat=wallet.balance >= 1,
            can_start_exam=wallet.balance >= 70,
        )


class DebitResponse(BaseModel):
    reason: str
    units_debited: int
    new_balance: int
    library_slots: int
    transaction_id: int
