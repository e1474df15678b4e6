"""Integration tests for the checkout -> webhook -> wallet flow (requires PG + Redis).

Pre-condition: alembic upgrade head

The webhook path needs no Paystack call, so a signed charge.success event is
enough to drive a real settlement through PostgreSQL.
"""

import json
import uuid

import pytest
from httpx import AsyncClient

from config.settings import settings
from src.ku_settlement.domain.signature import compute_signature

pytestmark = pytest.mark.asyncio(loop_scope="session")


async def _register_and_login(client: AsyncClient) -> tuple[str, dict[str, str]]:
    """Register a fresh user; return (user_id, auth headers)."""
    uid = uuid.uuid4().hex[:8]
    user = {"username": f"buyer_{uid}", "email": f"buyer_{uid}@example.com", "password": "TestPass1"}
    reg = await client.post("/api/v1/auth/register", json=user)
    resp = await client.post(
        "/api/v1/auth/login",
        json={"username": user["username"], "password": user["password"]},
    )
    token = resp.json()["data"]["access_token"]
    return reg.json()["data"]["user_id"], {"Authorization": f"Bearer {token}"}


async def _webhook(client: AsyncClient, reference: str, amount: int, user_id: str) -> dict:
    body = json.dumps({
        "event": "charge.success",
        "data": {
            "reference": reference,
            "status": "success",
            "amount": amount,
            "metadata": {"user_id": user_id},
        },
    }).encode()
    resp = await client.post(
        "/api/v1/payments/webhook",
        content=body,
        headers={
            "x-paystack-signature": compute_signature(settings.PAYSTACK_SECRET_KEY, body),
            "content-type": "application/json",
        },
    )
    assert resp.status_code == 200
    return resp.json()


class TestWallet:
    async def test_unauthenticated_returns_401(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/wallet/balance")
        assert resp.status_code == 401

    async def test_new_user_reads_empty_wallet(self, client: AsyncClient) -> None:
        _, headers = await _register_and_login(client)
        resp = await client.get("/api/v1/wallet/balance", headers=headers)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["balance"] == 0
        assert data["can_chat"] is False


class TestPurchaseFlow:
    async def test_checkout_webhook_credit_and_replay(self, client: AsyncClient) -> None:
        user_id, headers = await _register_and_login(client)

        created = await client.post(
            "/api/v1/checkouts", json={"packageId": "starter"}, headers=headers
        )
        assert created.status_code == 201
        checkout = created.json()["data"]
        reference = checkout["reference"]
        assert checkout["amount"] == 50_000

        pending = await client.get("/api/v1/checkouts/pending", headers=headers)
        assert [c["reference"] for c in pending.json()["data"]["items"]] == [reference]

        first = await _webhook(client, reference, 50_000, user_id)
        assert first["outcome"] == "credited"

        replay = await _webhook(client, reference, 50_000, user_id)
        assert replay["outcome"] == "already_settled"

        wallet = (await client.get("/api/v1/wallet/balance", headers=headers)).json()["data"]
        assert wallet["balance"] == 10 + settings.PERSONAL_WELCOME_BONUS

        intent = (await client.get(f"/api/v1/checkouts/{reference}", headers=headers)).json()
        assert intent["data"]["status"] == "completed"

        history = (await client.get("/api/v1/ledger/transactions", headers=headers)).json()
        assert [t["amount"] for t in history["data"]["items"]] == [10]

    async def test_underpaid_webhook_not_credited(self, client: AsyncClient) -> None:
        user_id, headers = await _register_and_login(client)
        created = await client.post(
            "/api/v1/checkouts", json={"packageId": "bulk"}, headers=headers
        )
        reference = created.json()["data"]["reference"]

        result = await _webhook(client, reference, 100, user_id)

        assert result["outcome"] == "amount_mismatch"
        wallet = (await client.get("/api/v1/wallet/balance", headers=headers)).json()["data"]
        assert wallet["balance"] == 0

    async def test_consume_after_purchase(self, client: AsyncClient) -> None:
        user_id, headers = await _register_and_login(client)
        created = await client.post(
            "/api/v1/checkouts", json={"packageId": "starter"}, headers=headers
        )
        await _webhook(client, created.json()["data"]["reference"], 50_000, user_id)

        resp = await client.post(
            "/api/v1/wallet/consume", json={"reason": "chat_prompt"}, headers=headers
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["new_balance"] == 9 + settings.PERSONAL_WELCOME_BONUS

        exam = await client.post(
            "/api/v1/wallet/consume", json={"reason": "exam_start"}, headers=headers
        )
        assert exam.status_code == 402
        assert exam.json()["code"] == 2001
