"""Unit tests for WalletRepository SQL wiring (mocked AsyncSession)."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.ku_common.enums import PrincipalKind
from src.ku_common.errors import InsufficientBalanceError, InvalidCreditAmountError
from src.ku_wallet.domain.models import Principal
from src.ku_wallet.infrastructure.persistence import WalletRepository


def _row(kind: str = "user", principal_id: str = "u1", balance: int = 13, slots: int = 1) -> MagicMock:
    row = MagicMock()
    row.principal_kind = kind
    row.principal_id = principal_id
    row.balance = balance
    row.library_slots = slots
    row.created_at = datetime.now(timezone.utc)
    row.updated_at = datetime.now(timezone.utc)
    return row


def _result(row: MagicMock | None) -> MagicMock:
    result = MagicMock()
    result.fetchone.return_value = row
    return result


@pytest.fixture
def repo() -> WalletRepository:
    return WalletRepository()


class TestCredit:
    async def test_single_upsert_statement(self, repo: WalletRepository) -> None:
        db = AsyncMock()
        db.execute = AsyncMock(return_value=_result(_row(balance=13)))

        wallet = await repo.credit(db, Principal.user("u1"), 10, 3)

        assert wallet.balance == 13
        assert wallet.principal_kind == PrincipalKind.USER
        db.execute.assert_awaited_once()
        sql, params = db.execute.call_args.args
        assert "ON CONFLICT" in str(sql)
        assert "wallets.balance + :amount" in str(sql)
        assert params == {
            "kind": "user",
            "principal_id": "u1",
            "amount": 10,
            "welcome_bonus": 3,
            "initial_slots": 1,
        }

    async def test_group_wallet_starts_without_slots(self, repo: WalletRepository) -> None:
        db = AsyncMock()
        db.execute = AsyncMock(return_value=_result(_row(kind="group", principal_id="g1", slots=0)))

        await repo.credit(db, Principal.group("g1"), 10, 0)

        _, params = db.execute.call_args.args
        assert params["initial_slots"] == 0
        assert params["kind"] == "group"

    async def test_rejects_non_positive(self, repo: WalletRepository) -> None:
        db = AsyncMock()
        with pytest.raises(InvalidCreditAmountError):
            await repo.credit(db, Principal.user("u1"), 0, 3)
        db.execute.assert_not_awaited()


class TestDebit:
    async def test_guarded_update(self, repo: WalletRepository) -> None:
        db = AsyncMock()
        db.execute = AsyncMock(return_value=_result(_row(balance=69)))

        wallet = await repo.debit(db, Principal.user("u1"), 1, 70)

        assert wallet.balance == 69
        sql, params = db.execute.call_args.args
        assert "GREATEST(:amount, :min_balance)" in str(sql)
        assert params["min_balance"] == 70

    async def test_zero_rows_means_insufficient(self, repo: WalletRepository) -> None:
        db = AsyncMock()
        db.execute = AsyncMock(side_effect=[_result(None), _result(_row(balance=2))])

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await repo.debit(db, Principal.user("u1"), 5)

        assert exc_info.value.required == 5
        assert exc_info.value.available == 2

    async def test_missing_wallet_reports_zero(self, repo: WalletRepository) -> None:
        db = AsyncMock()
        db.execute = AsyncMock(side_effect=[_result(None), _result(None)])

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await repo.debit(db, Principal.user("u1"), 1, 1)

        assert exc_info.value.available == 0


class TestGetWallet:
    async def test_none_when_absent(self, repo: WalletRepository) -> None:
        db = AsyncMock()
        db.execute = AsyncMock(return_value=_result(None))
        assert await repo.get_wallet(db, Principal.user("u1")) is None
