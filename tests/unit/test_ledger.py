"""Unit tests for ku_ledger cursor pagination and the read service."""

import base64
from datetime import datetime, timezone

import pytest

from src.ku_common.enums import TransactionKind
from src.ku_ledger.application.schemas import cursor_decode, cursor_encode
from src.ku_ledger.application.service import LedgerApplicationService
from src.ku_wallet.domain.models import Principal


class TestCursor:
    def test_round_trip(self) -> None:
        ts = datetime(2026, 3, 1, 12, 30, tzinfo=timezone.utc)
        assert cursor_decode(cursor_encode(ts, 42)) == (ts, 42)

    def test_none(self) -> None:
        assert cursor_decode(None) is None

    def test_garbage(self) -> None:
        assert cursor_decode("not-a-cursor!!") is None

    def test_missing_keys(self) -> None:
        bad = base64.urlsafe_b64encode(b'{"ts": "2026-01-01T00:00:00"}').decode()
        assert cursor_decode(bad) is None


@pytest.fixture
def service(world) -> LedgerApplicationService:
    return LedgerApplicationService(repo=world.ledger)


async def _seed(world, count: int, user_id: str = "u1", group_id: str | None = None) -> None:
    for _ in range(count):
        await world.ledger.append(None, user_id, group_id, -1, TransactionKind.CONSUMPTION, "Chat prompt")


class TestListTransactions:
    async def test_pages_until_exhausted(self, service, world, db) -> None:
        await _seed(world, 5)

        first = await service.list_transactions(db, Principal.user("u1"), None, None, 2)
        assert [i.id for i in first.items] == [1, 2]
        assert first.has_more is True

        second = await service.list_transactions(db, Principal.user("u1"), None, first.next_cursor, 2)
        assert [i.id for i in second.items] == [3, 4]

        third = await service.list_transactions(db, Principal.user("u1"), None, second.next_cursor, 2)
        assert [i.id for i in third.items] == [5]
        assert third.has_more is False
        assert third.next_cursor is None

    async def test_exact_page_has_no_more(self, service, world, db) -> None:
        await _seed(world, 2)
        page = await service.list_transactions(db, Principal.user("u1"), None, None, 2)
        assert page.has_more is False
        assert page.next_cursor is None

    async def test_personal_history_excludes_group_rows(self, service, world, db) -> None:
        await _seed(world, 1)
        await _seed(world, 2, group_id="g1")

        personal = await service.list_transactions(db, Principal.user("u1"), None, None, 10)
        group = await service.list_transactions(db, Principal.group("g1"), None, None, 10)

        assert len(personal.items) == 1
        assert len(group.items) == 2
        assert all(i.group_id == "g1" for i in group.items)

    async def test_since_filter(self, service, world, db) -> None:
        await _seed(world, 3)
        since = world.ledger.records[1].created_at

        page = await service.list_transactions(db, Principal.user("u1"), since, None, 10)

        assert [i.id for i in page.items] == [2, 3]

    async def test_item_display(self, service, world, db) -> None:
        await _seed(world, 1)
        page = await service.list_transactions(db, Principal.user("u1"), None, None, 10)
        item = page.items[0]
        assert item.amount_display == "-1 KU"
        assert item.kind == "consumption"
