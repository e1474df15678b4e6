"""Domain models for ku_ledger: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.ku_common.enums import TransactionKind


@dataclass(frozen=True)
class TransactionRecord:
    """Append-only audit entry. Never updated or deleted once written."""
    id: int                          # BIGSERIAL
    user_id: str                     # acting user (buyer, consumer, grantee)
    group_id: str | None             # set when the group wallet moved
    amount: int                      # KU, positive=credit negative=debit
    kind: TransactionKind
    description: str | None
    created_at: datetime
