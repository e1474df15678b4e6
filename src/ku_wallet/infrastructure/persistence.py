"""WalletRepository: concrete implementation of WalletRepositoryProtocol.

Every balance mutation is ONE statement: an atomic increment (credit) or a
guarded decrement (debit). No read-modify-write across round trips, so two
settlements racing for the same wallet cannot lose an update.
A guarded UPDATE returning 0 rows means the balance was too low.

Transaction ownership: the CALLER (application service) commits or rolls back.
The ledger row for each mutation is appended by the caller, not here.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ku_common.enums import PrincipalKind
from src.ku_common.errors import InsufficientBalanceError, InternalError, InvalidCreditAmountError
from src.ku_wallet.domain.models import Principal, Wallet

_WALLET_COLUMNS = "principal_kind, principal_id, balance, library_slots, created_at, updated_at"

_GET_WALLET_SQL = text(f"""
    SELECT {_WALLET_COLUMNS}
    FROM wallets
    WHERE principal_kind = :kind AND principal_id = :principal_id
""")

# Lazy creation: the welcome bonus is only part of the INSERT branch.
_CREDIT_SQL = text(f"""
    INSERT INTO wallets (principal_kind, principal_id, balance, library_slots)
    VALUES (:kind, :principal_id, :amount + :welcome_bonus, :initial_slots)
    ON CONFLICT (principal_kind, principal_id) DO UPDATE
        SET balance = wallets.balance + :amount,
            updated_at = NOW()
    RETURNING {_WALLET_COLUMNS}
""")

_DEBIT_SQL = text(f"""
    UPDATE wallets
    SET balance = balance - :amount,
        updated_at = NOW()
    WHERE principal_kind = :kind
      AND principal_id = :principal_id
      AND balance >= GREATEST(:amount, :min_balance)
    RETURNING {_WALLET_COLUMNS}
""")

_ADD_LIBRARY_SLOT_SQL = text(f"""
    UPDATE wallets
    SET balance = balance - :cost,
        library_slots = library_slots + 1,
        updated_at = NOW()
    WHERE principal_kind = :kind
      AND principal_id = :principal_id
      AND balance >= :cost
    RETURNING {_WALLET_COLUMNS}
""")


def _row_to_wallet(row: object) -> Wallet:
    return Wallet(
        principal_kind=PrincipalKind(row.principal_kind),  # type: ignore[attr-defined]
        principal_id=row.principal_id,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        library_slots=row.library_slots,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _key(principal: Principal) -> dict[str, str]:
    return {"kind": principal.kind.value, "principal_id": principal.id}


class WalletRepository:
    """Concrete repository: all mutations atomic at the SQL level."""

    async def get_wallet(self, db: AsyncSession, principal: Principal) -> Wallet | None:
        result = await db.execute(_GET_WALLET_SQL, _key(principal))
        row = result.fetchone()
        return _row_to_wallet(row) if row else None

    async def credit(
        self, db: AsyncSession, principal: Principal, amount: int, welcome_bonus: int
    ) -> Wallet:
        if amount <= 0:
            raise InvalidCreditAmountError(amount)
        result = await db.execute(
            _CREDIT_SQL,
            {
                **_key(principal),
                "amount": amount,
                "welcome_bonus": welcome_bonus,
                "initial_slots": 1 if principal.kind == PrincipalKind.USER else 0,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Wallet upsert returned no rows")
        return _row_to_wallet(row)

    async def debit(
        self, db: AsyncSession, principal: Principal, amount: int, min_balance: int = 0
    ) -> Wallet:
        if amount <= 0:
            raise InvalidCreditAmountError(amount)
        result = await db.execute(
            _DEBIT_SQL, {**_key(principal), "amount": amount, "min_balance": min_balance}
        )
        row = result.fetchone()
        if row is None:
            current = await self.get_wallet(db, principal)
            raise InsufficientBalanceError(
                max(amount, min_balance), current.balance if current else 0
            )
        return _row_to_wallet(row)

    async def add_library_slot(
        self, db: AsyncSession, principal: Principal, cost: int
    ) -> Wallet:
        result = await db.execute(_ADD_LIBRARY_SLOT_SQL, {**_key(principal), "cost": cost})
        row = result.fetchone()
        if row is None:
            current = await self.get_wallet(db, principal)
            raise InsufficientBalanceError(cost, current.balance if current else 0)
        return _row_to_wallet(row)
