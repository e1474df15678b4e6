"""Checkout reference generation.

Format: ku_{label}_{target}_{user_id}_{epoch_millis}

The user id makes references globally unique across principals; label,
target and millisecond timestamp make collisions within one principal
practically impossible. The UNIQUE index on checkout_intents.reference
rejects the remainder.

Client-supplied references must match REFERENCE_PATTERN (the characters
Paystack accepts); they become one path segment of the verify URL.
"""

from datetime import datetime

from src.ku_common.datetime_utils import epoch_millis
from src.ku_common.enums import WalletTarget

REFERENCE_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9_.=-]*$"


def build_reference(
    label: str, target: WalletTarget, user_id: str, at: datetime | None = None
) -> str:
    return f"ku_{label}_{target.value}_{user_id}_{epoch_millis(at)}"
