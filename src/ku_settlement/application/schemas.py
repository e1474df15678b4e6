"""Pydantic schemas for ku_settlement API."""

from pydantic import BaseModel, ConfigDict, Field

from src.ku_checkout.domain.pricing import MAX_CUSTOM_UNITS
from src.ku_checkout.domain.reference import REFERENCE_PATTERN
from src.ku_common.enums import WalletTarget
from src.ku_settlement.domain.models import PurchaseClaim, SettlementResult


class SettlePurchaseRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reference: str = Field(..., min_length=1, max_length=128, pattern=REFERENCE_PATTERN)
    package_id: str | None = Field(None, alias="packageId", max_length=32)
    target: WalletTarget = WalletTarget.PERSONAL
    group_id: str | None = Field(None, alias="groupId", max_length=64)
    custom_units: int | None = Field(None, alias="customUnits", ge=1, le=MAX_CUSTOM_UNITS)
    from_pending: bool = Field(False, alias="fromPending")

    def to_claim(self) -> PurchaseClaim:
        return PurchaseClaim(
            reference=self.reference,
            target=self.target,
            package_id=self.package_id,
            group_id=self.group_id,
            custom_units=self.custom_units,
            from_pending=self.from_pending,
        )


class SettlePurchaseResponse(BaseModel):
    """Dumped with by_alias=True: {success, reference, newBalance, unitsCredited, alreadySettled}."""
    success: bool
    reference: str
    new_balance: int = Field(serialization_alias="newBalance")
    units_credited: int = Field(serialization_alias="unitsCredited")
    already_settled: bool = Field(serialization_alias="alreadySettled")

    @classmethod
    def from_result(cls, result: SettlementResult) -> "SettlePurchaseResponse":
        return cls(
            success=result.success,
            reference=result.reference,
            new_balance=result.new_balance or 0,
            units_credited=result.units_credited,
            already_settled=result.already_settled,
        )


class WebhookAck(BaseModel):
    received: bool = True
    outcome: str
