"""Pydantic schemas for ku_checkout API.

Request fields accept both the widget's camelCase names and snake_case.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.ku_checkout.domain.models import CheckoutIntent
from src.ku_checkout.domain.pricing import MAX_CUSTOM_UNITS
from src.ku_common.enums import WalletTarget
from src.ku_common.money import kobo_to_display

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateCheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    package_id: str | None = Field(None, alias="packageId", max_length=32)
    custom_units: int | None = Field(
        None, alias="customUnits", ge=1, le=MAX_CUSTOM_UNITS
    )
    target: WalletTarget = WalletTarget.PERSONAL
    group_id: str | None = Field(None, alias="groupId", max_length=64)

    @model_validator(mode="after")
    def _package_or_units(self) -> "CreateCheckoutRequest":
        if self.package_id is None and self.custom_units is None:
            raise ValueError("Either packageId or customUnits is required")
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class CustomField(BaseModel):
    display_name: str
    variable_name: str
    value: str


class CheckoutMetadata(BaseModel):
    user_id: str
    target: str
    group_id: str | None
    units: int
    custom_fields: list[CustomField]


class CheckoutIntentResponse(BaseModel):
    reference: str
    target: str
    group_id: str | None
    units: int
    expected_amount: int
    expected_amount_display: str
    package_id: str | None
    status: str
    created_at: datetime | None

    @classmethod
    def from_intent(cls, intent: CheckoutIntent) -> "CheckoutIntentResponse":
        return cls(
            reference=intent.reference,
            target=intent.target.value,
            group_id=intent.group_id,
            units=intent.units,
            expected_amount=intent.expected_amount,
            expected_amount_display=kobo_to_display(intent.expected_amount),
            package_id=intent.package_id,
            status=intent.status.value,
            created_at=intent.created_at,
        )


class CheckoutResponse(CheckoutIntentResponse):
    """Intent plus everything the payment widget needs to open."""
    email: str
    amount: int  # kobo, what the widget charges
    currency: str
    metadata: CheckoutMetadata


class PendingCheckoutList(BaseModel):
    items: list[CheckoutIntentResponse]
