"""In-memory fakes of the repository Protocols.

Each fake yields to the event loop before touching state, so coroutines run
with asyncio.gather interleave the way concurrent requests would. The state
change itself happens without an await, like a single SQL statement.
"""

import asyncio
import itertools
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock

import pytest

from src.ku_checkout.domain.models import CheckoutIntent
from src.ku_common.datetime_utils import utc_now
from src.ku_common.enums import (
    CheckoutStatus,
    PaymentStatus,
    PrincipalKind,
    ProviderStatus,
    TransactionKind,
    WalletTarget,
)
from src.ku_common.errors import (
    AlreadyTerminalError,
    CheckoutNotFoundError,
    DuplicateReferenceError,
    InsufficientBalanceError,
    InvalidCreditAmountError,
)
from src.ku_ledger.domain.models import TransactionRecord
from src.ku_settlement.application.engine import SettlementEngine
from src.ku_settlement.domain.models import PaymentConfirmation, PaymentRecord
from src.ku_wallet.domain.models import Principal, Wallet


class FakeWalletRepository:
    def __init__(self) -> None:
        self.wallets: dict[Principal, Wallet] = {}

    def seed(self, principal: Principal, balance: int) -> None:
        self.wallets[principal] = replace(Wallet.empty(principal), balance=balance)

    def balance(self, principal: Principal) -> int | None:
        wallet = self.wallets.get(principal)
        return wallet.balance if wallet else None

    async def get_wallet(self, db: Any, principal: Principal) -> Wallet | None:
        await asyncio.sleep(0)
        wallet = self.wallets.get(principal)
        return replace(wallet) if wallet else None

    async def credit(self, db: Any, principal: Principal, amount: int, welcome_bonus: int) -> Wallet:
        if amount <= 0:
            raise InvalidCreditAmountError(amount)
        await asyncio.sleep(0)
        wallet = self.wallets.get(principal)
        if wallet is None:
            wallet = replace(Wallet.empty(principal), balance=amount + welcome_bonus)
        else:
            wallet = replace(wallet, balance=wallet.balance + amount)
        self.wallets[principal] = wallet
        return replace(wallet)

    async def debit(self, db: Any, principal: Principal, amount: int, min_balance: int = 0) -> Wallet:
        if amount <= 0:
            raise InvalidCreditAmountError(amount)
        await asyncio.sleep(0)
        wallet = self.wallets.get(principal)
        current = wallet.balance if wallet else 0
        if wallet is None or current < max(amount, min_balance):
            raise InsufficientBalanceError(max(amount, min_balance), current)
        wallet = replace(wallet, balance=current - amount)
        self.wallets[principal] = wallet
        return replace(wallet)

    async def add_library_slot(self, db: Any, principal: Principal, cost: int) -> Wallet:
        await asyncio.sleep(0)
        wallet = self.wallets.get(principal)
        current = wallet.balance if wallet else 0
        if wallet is None or current < cost:
            raise InsufficientBalanceError(cost, current)
        wallet = replace(wallet, balance=current - cost, library_slots=wallet.library_slots + 1)
        self.wallets[principal] = wallet
        return replace(wallet)


class FakeLedgerRepository:
    def __init__(self) -> None:
        self.records: list[TransactionRecord] = []
        self._ids = itertools.count(1)
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    async def append(
        self,
        db: Any,
        user_id: str,
        group_id: str | None,
        amount: int,
        kind: TransactionKind,
        description: str,
    ) -> TransactionRecord:
        await asyncio.sleep(0)
        record = TransactionRecord(
            id=next(self._ids),
            user_id=user_id,
            group_id=group_id,
            amount=amount,
            kind=kind,
            description=description,
            created_at=self._clock + timedelta(seconds=len(self.records)),
        )
        self.records.append(record)
        return record

    def _matches(self, record: TransactionRecord, principal: Principal) -> bool:
        if principal.kind == PrincipalKind.GROUP:
            return record.group_id == principal.id
        return record.user_id == principal.id and record.group_id is None

    def for_principal(self, principal: Principal) -> list[TransactionRecord]:
        return [r for r in self.records if self._matches(r, principal)]

    async def list_for_principal(
        self,
        db: Any,
        principal: Principal,
        since: datetime | None,
        after: tuple[datetime, int] | None,
        limit: int,
    ) -> list[TransactionRecord]:
        rows = [
            r for r in self.for_principal(principal)
            if (since is None or r.created_at >= since)
            and (after is None or (r.created_at, r.id) > after)
        ]
        rows.sort(key=lambda r: (r.created_at, r.id))
        return rows[:limit]

    async def sum_for_principal(self, db: Any, principal: Principal) -> int:
        return sum(r.amount for r in self.for_principal(principal))


class FakeCheckoutRepository:
    def __init__(self) -> None:
        self.intents: dict[str, CheckoutIntent] = {}

    def add(
        self,
        reference: str,
        user_id: str,
        units: int,
        amount: int,
        package_id: str | None = None,
        target: WalletTarget = WalletTarget.PERSONAL,
        group_id: str | None = None,
        status: CheckoutStatus = CheckoutStatus.PENDING,
        created_at: datetime | None = None,
    ) -> CheckoutIntent:
        intent = CheckoutIntent(
            reference=reference,
            user_id=user_id,
            target=target,
            group_id=group_id,
            units=units,
            expected_amount=amount,
            package_id=package_id,
            status=status,
            created_at=created_at or utc_now(),
        )
        self.intents[reference] = intent
        return intent

    async def create(self, db: Any, intent: CheckoutIntent) -> CheckoutIntent:
        await asyncio.sleep(0)
        if intent.reference in self.intents:
            raise DuplicateReferenceError(intent.reference)
        stored = replace(intent, created_at=utc_now())
        self.intents[intent.reference] = stored
        return replace(stored)

    async def get(self, db: Any, reference: str) -> CheckoutIntent | None:
        await asyncio.sleep(0)
        intent = self.intents.get(reference)
        return replace(intent) if intent else None

    async def list_pending(self, db: Any, user_id: str) -> list[CheckoutIntent]:
        rows = [i for i in self.intents.values() if i.user_id == user_id and i.is_pending]
        return sorted(rows, key=lambda i: i.created_at, reverse=True)

    async def mark_terminal(self, db: Any, reference: str, status: CheckoutStatus) -> CheckoutIntent:
        await asyncio.sleep(0)
        intent = self.intents.get(reference)
        if intent is None:
            raise CheckoutNotFoundError(reference)
        if not intent.is_pending:
            raise AlreadyTerminalError(reference, intent.status.value)
        intent = replace(intent, status=status)
        self.intents[reference] = intent
        return replace(intent)

    async def sweep_expired(self, db: Any, max_age_hours: int) -> int:
        cutoff = utc_now() - timedelta(hours=max_age_hours)
        expired = 0
        for ref, intent in list(self.intents.items()):
            if intent.is_pending and intent.created_at < cutoff:
                self.intents[ref] = replace(intent, status=CheckoutStatus.EXPIRED)
                expired += 1
        return expired


class FakePaymentHistoryRepository:
    def __init__(self) -> None:
        self.rows: dict[str, PaymentRecord] = {}
        self._ids = itertools.count(1)

    def status(self, reference: str) -> PaymentStatus | None:
        row = self.rows.get(reference)
        return row.status if row else None

    async def get_by_reference(self, db: Any, reference: str) -> PaymentRecord | None:
        await asyncio.sleep(0)
        return self.rows.get(reference)

    async def record_success(
        self, db: Any, reference: str, user_id: str, amount: int, plan: str
    ) -> bool:
        await asyncio.sleep(0)
        existing = self.rows.get(reference)
        if existing is not None and existing.status == PaymentStatus.SUCCESS:
            return False
        self.rows[reference] = PaymentRecord(
            id=existing.id if existing else next(self._ids),
            reference=reference,
            user_id=user_id,
            amount=amount,
            plan=plan,
            status=PaymentStatus.SUCCESS,
        )
        return True

    async def record_failure(
        self, db: Any, reference: str, user_id: str, amount: int, plan: str
    ) -> None:
        await asyncio.sleep(0)
        if reference not in self.rows:
            self.rows[reference] = PaymentRecord(
                id=next(self._ids),
                reference=reference,
                user_id=user_id,
                amount=amount,
                plan=plan,
                status=PaymentStatus.FAILED,
            )


class FakeVerifier:
    """Returns queued confirmations per reference, repeating the last one."""

    def __init__(self) -> None:
        self.responses: dict[str, list[PaymentConfirmation]] = {}
        self.errors: dict[str, Exception] = {}
        self.calls: list[str] = []

    def will_return(self, *confirmations: PaymentConfirmation) -> None:
        for c in confirmations:
            self.responses.setdefault(c.reference, []).append(c)

    async def verify(self, reference: str) -> PaymentConfirmation:
        self.calls.append(reference)
        await asyncio.sleep(0)
        if reference in self.errors:
            raise self.errors[reference]
        queue = self.responses.get(reference)
        if not queue:
            return PaymentConfirmation(reference=reference, status=ProviderStatus.UNKNOWN, amount=0)
        return queue.pop(0) if len(queue) > 1 else queue[0]


class FakeNotifier:
    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []

    async def payment_success(self, email: str | None, amount: int, units: int, target: str) -> bool:
        self.sent.append({"email": email, "amount": amount, "units": units, "target": target})
        return True


def _confirmation(
    reference: str,
    amount: int,
    status: ProviderStatus = ProviderStatus.SUCCESS,
    user_id: str | None = None,
    email: str | None = None,
    custom_fields: bool = False,
) -> PaymentConfirmation:
    metadata: dict[str, Any] = {}
    if user_id is not None:
        if custom_fields:
            metadata["custom_fields"] = [
                {"display_name": "User ID", "variable_name": "user_id", "value": user_id}
            ]
        else:
            metadata["user_id"] = user_id
    return PaymentConfirmation(
        reference=reference, status=status, amount=amount, email=email, metadata=metadata
    )


@dataclass
class LedgerWorld:
    wallets: FakeWalletRepository = field(default_factory=FakeWalletRepository)
    ledger: FakeLedgerRepository = field(default_factory=FakeLedgerRepository)
    checkouts: FakeCheckoutRepository = field(default_factory=FakeCheckoutRepository)
    payments: FakePaymentHistoryRepository = field(default_factory=FakePaymentHistoryRepository)
    verifier: FakeVerifier = field(default_factory=FakeVerifier)
    notifier: FakeNotifier = field(default_factory=FakeNotifier)
    sleeps: list[float] = field(default_factory=list)

    async def _sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)

    def engine(self) -> SettlementEngine:
        return SettlementEngine(
            wallets=self.wallets,
            checkouts=self.checkouts,
            ledger=self.ledger,
            payments=self.payments,
            verifier=self.verifier,
            notifier=self.notifier,  # type: ignore[arg-type]
            verify_attempts=3,
            backoff_seconds=0.8,
            sleep=self._sleep,
        )


@pytest.fixture
def world() -> LedgerWorld:
    return LedgerWorld()


@pytest.fixture
def db() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def make_confirmation() -> Any:
    return _confirmation
