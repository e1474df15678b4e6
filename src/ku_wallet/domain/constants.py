"""Wallet constants: consumption prices and welcome bonuses."""

from config.settings import settings
from src.ku_common.enums import ConsumptionReason, PrincipalKind

# reason -> (cost in KU, minimum balance required before the debit)
CONSUMPTION_PRICES: dict[ConsumptionReason, tuple[int, int]] = {
    ConsumptionReason.CHAT_PROMPT: (1, 1),
    ConsumptionReason.EXAM_START: (1, 70),
    ConsumptionReason.LIBRARY_SLOT: (5, 5),
}

CONSUMPTION_DESCRIPTIONS: dict[ConsumptionReason, str] = {
    ConsumptionReason.CHAT_PROMPT: "Chat prompt",
    ConsumptionReason.EXAM_START: "Exam generation",
    ConsumptionReason.LIBRARY_SLOT: "Library slot purchase",
}


def welcome_bonus(kind: PrincipalKind) -> int:
    """Units added on top of the first credit when a wallet row is created."""
    if kind == PrincipalKind.USER:
        return settings.PERSONAL_WELCOME_BONUS
    return settings.GROUP_WELCOME_BONUS
