"""Pydantic schemas and cursor utilities for ku_ledger API."""

import base64
import json
from datetime import datetime

from pydantic import BaseModel

from src.ku_common.money import units_to_display
from src.ku_ledger.domain.models import TransactionRecord

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(created_at: datetime, last_id: int) -> str:
    """Encode the last seen (created_at, id) into an opaque Base64 cursor string."""
    payload = json.dumps({"ts": created_at.isoformat(), "id": last_id})
    return base64.urlsafe_b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> tuple[datetime, int] | None:
    """Decode a cursor string back to (created_at, id). Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.urlsafe_b64decode(cursor.encode()).decode())
        return datetime.fromisoformat(payload["ts"]), int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TransactionItem(BaseModel):
    id: int
    user_id: str
    group_id: str | None
    amount: int
    amount_display: str
    kind: str
    description: str | None
    created_at: str  # ISO8601 string

    @classmethod
    def from_record(cls, record: TransactionRecord) -> "TransactionItem":
        return cls(
            id=record.id,
            user_id=record.user_id,
            group_id=record.group_id,
            amount=record.amount,
            amount_display=units_to_display(record.amount),
            kind=record.kind.value,
            description=record.description,
            created_at=record.created_at.isoformat(),
        )


class TransactionPage(BaseModel):
    items: list[TransactionItem]
    next_cursor: str | None
    has_more: bool
