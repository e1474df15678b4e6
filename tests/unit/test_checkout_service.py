"""Unit tests for CheckoutApplicationService and CheckoutRepository."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from src.ku_checkout.application.schemas import CreateCheckoutRequest
from src.ku_checkout.application.service import CheckoutApplicationService
from src.ku_checkout.infrastructure.persistence import CheckoutRepository
from src.ku_common.datetime_utils import utc_now
from src.ku_common.enums import CheckoutStatus, WalletTarget
from src.ku_common.errors import (
    AlreadyTerminalError,
    CheckoutNotFoundError,
    DuplicateReferenceError,
    GroupIdRequiredError,
    InvalidPackageError,
)


@pytest.fixture
def service(world) -> CheckoutApplicationService:
    return CheckoutApplicationService(repo=world.checkouts)


class TestCreateCheckoutRequest:
    def test_camel_case_aliases(self) -> None:
        req = CreateCheckoutRequest.model_validate(
            {"packageId": "bulk", "target": "group", "groupId": "g1"}
        )
        assert req.package_id == "bulk"
        assert req.target == WalletTarget.GROUP
        assert req.group_id == "g1"

    def test_snake_case_accepted(self) -> None:
        req = CreateCheckoutRequest.model_validate({"custom_units": 12})
        assert req.custom_units == 12
        assert req.target == WalletTarget.PERSONAL

    def test_package_or_units_required(self) -> None:
        with pytest.raises(ValidationError):
            CreateCheckoutRequest.model_validate({"target": "personal"})

    def test_custom_units_bounds(self) -> None:
        with pytest.raises(ValidationError):
            CreateCheckoutRequest.model_validate({"customUnits": 0})


class TestCreate:
    async def test_package_checkout(self, service, world, db) -> None:
        req = CreateCheckoutRequest.model_validate({"packageId": "starter"})

        result = await service.create(db, "u1", "u1@example.com", req)

        assert result.reference.startswith("ku_starter_personal_u1_")
        assert result.units == 10
        assert result.amount == 50_000
        assert result.expected_amount_display == "₦500.00"
        assert result.email == "u1@example.com"
        assert result.status == "pending"
        assert world.checkouts.intents[result.reference].expected_amount == 50_000
        db.commit.assert_awaited_once()

    async def test_widget_metadata_carries_user(self, service, db) -> None:
        req = CreateCheckoutRequest.model_validate({"customUnits": 7})

        result = await service.create(db, "u1", "u1@example.com", req)

        assert result.amount == 35_000
        assert result.metadata.user_id == "u1"
        fields = {f.variable_name: f.value for f in result.metadata.custom_fields}
        assert fields == {"package": "custom_7", "target": "personal", "user_id": "u1"}

    async def test_group_requires_group_id(self, service, world, db) -> None:
        req = CreateCheckoutRequest.model_validate({"packageId": "bulk", "target": "group"})

        with pytest.raises(GroupIdRequiredError):
            await service.create(db, "u1", "u1@example.com", req)

        assert world.checkouts.intents == {}

    async def test_personal_drops_group_id(self, service, world, db) -> None:
        req = CreateCheckoutRequest.model_validate({"packageId": "bulk", "groupId": "g1"})

        result = await service.create(db, "u1", "u1@example.com", req)

        assert world.checkouts.intents[result.reference].group_id is None

    async def test_unknown_package(self, service, db) -> None:
        req = CreateCheckoutRequest.model_validate({"packageId": "gigantic"})
        with pytest.raises(InvalidPackageError):
            await service.create(db, "u1", "u1@example.com", req)

    async def test_duplicate_reference_rolls_back(self, db) -> None:
        repo = AsyncMock()
        repo.create = AsyncMock(side_effect=DuplicateReferenceError("ku_x"))
        service = CheckoutApplicationService(repo=repo)
        req = CreateCheckoutRequest.model_validate({"packageId": "starter"})

        with pytest.raises(DuplicateReferenceError):
            await service.create(db, "u1", "u1@example.com", req)

        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()


class TestReads:
    async def test_get_own_intent(self, service, world, db) -> None:
        world.checkouts.add("R1", "u1", 10, 50_000, package_id="starter")
        result = await service.get(db, "u1", "R1")
        assert result.reference == "R1"

    async def test_other_users_intent_reads_as_missing(self, service, world, db) -> None:
        world.checkouts.add("R1", "u1", 10, 50_000, package_id="starter")
        with pytest.raises(CheckoutNotFoundError):
            await service.get(db, "u2", "R1")

    async def test_list_pending_newest_first(self, service, world, db) -> None:
        now = utc_now()
        world.checkouts.add("OLD", "u1", 10, 50_000, created_at=now - timedelta(hours=2))
        world.checkouts.add("NEW", "u1", 10, 50_000, created_at=now)
        world.checkouts.add("DONE", "u1", 10, 50_000, status=CheckoutStatus.COMPLETED)
        world.checkouts.add("OTHER", "u2", 10, 50_000)

        result = await service.list_pending(db, "u1")

        assert [i.reference for i in result] == ["NEW", "OLD"]


class TestSweep:
    async def test_expires_only_stale_pending(self, service, world, db) -> None:
        now = utc_now()
        world.checkouts.add("STALE", "u1", 10, 50_000, created_at=now - timedelta(hours=30))
        world.checkouts.add("FRESH", "u1", 10, 50_000, created_at=now)
        world.checkouts.add(
            "PAID", "u1", 10, 50_000,
            status=CheckoutStatus.COMPLETED, created_at=now - timedelta(hours=30),
        )

        expired = await service.sweep(db, 24)

        assert expired == 1
        assert world.checkouts.intents["STALE"].status == CheckoutStatus.EXPIRED
        assert world.checkouts.intents["FRESH"].status == CheckoutStatus.PENDING
        assert world.checkouts.intents["PAID"].status == CheckoutStatus.COMPLETED
        db.commit.assert_awaited_once()


def _intent_row(status: str = "completed") -> MagicMock:
    row = MagicMock()
    row.reference = "R1"
    row.user_id = "u1"
    row.target = "personal"
    row.group_id = None
    row.units = 10
    row.expected_amount = 50_000
    row.package_id = "starter"
    row.status = status
    row.created_at = utc_now()
    row.updated_at = utc_now()
    return row


def _result(row: MagicMock | None) -> MagicMock:
    result = MagicMock()
    result.fetchone.return_value = row
    return result


class TestCheckoutRepository:
    async def test_create_conflict_is_duplicate(self) -> None:
        db = AsyncMock()
        db.execute = AsyncMock(return_value=_result(None))
        intent = MagicMock(reference="R1", target=WalletTarget.PERSONAL)

        with pytest.raises(DuplicateReferenceError):
            await CheckoutRepository().create(db, intent)

        sql = str(db.execute.call_args.args[0])
        assert "ON CONFLICT (reference) DO NOTHING" in sql

    async def test_mark_terminal_guards_on_pending(self) -> None:
        db = AsyncMock()
        db.execute = AsyncMock(return_value=_result(_intent_row("completed")))

        intent = await CheckoutRepository().mark_terminal(db, "R1", CheckoutStatus.COMPLETED)

        assert intent.status == CheckoutStatus.COMPLETED
        sql, params = db.execute.call_args.args
        assert "status = 'pending'" in str(sql)
        assert params == {"reference": "R1", "status": "completed"}

    async def test_second_transition_rejected(self) -> None:
        db = AsyncMock()
        db.execute = AsyncMock(side_effect=[_result(None), _result(_intent_row("completed"))])

        with pytest.raises(AlreadyTerminalError) as exc_info:
            await CheckoutRepository().mark_terminal(db, "R1", CheckoutStatus.EXPIRED)

        assert exc_info.value.status == "completed"

    async def test_mark_terminal_unknown_reference(self) -> None:
        db = AsyncMock()
        db.execute = AsyncMock(side_effect=[_result(None), _result(None)])

        with pytest.raises(CheckoutNotFoundError):
            await CheckoutRepository().mark_terminal(db, "R9", CheckoutStatus.EXPIRED)

    async def test_pending_is_not_terminal(self) -> None:
        db = AsyncMock()
        with pytest.raises(ValueError):
            await CheckoutRepository().mark_terminal(db, "R1", CheckoutStatus.PENDING)
        db.execute.assert_not_awaited()

    async def test_sweep_counts_returned_rows(self) -> None:
        db = AsyncMock()
        result = MagicMock()
        result.fetchall.return_value = [MagicMock(), MagicMock()]
        db.execute = AsyncMock(return_value=result)

        assert await CheckoutRepository().sweep_expired(db, 24) == 2
        assert db.execute.call_args.args[1] == {"max_age_hours": 24}
