"""Integration tests for POST /payments/verify."""

from decimal import Decimal

import pytest
from libs.common.emails.client import get_email_client
from libs.common.emails.core import EmailFailed
from services.store_service.models import Order
from sqlalchemy import func, select
from tests.factories import auth_header, item_payload, metadata_payload


async def _orders(db_session) -> list[Order]:
    result = await db_session.execute(select(Order))
    return list(result.scalars().all())


@pytest.mark.asyncio
@pytest.mark.integration
async def test_successful_payment_creates_order_and_sends_email(
    client, db_session, paystack_stub, email_outbox
):
    paystack_stub.add_transaction("abc123", 49999, metadata_payload())

    response = await client.post("/payments/verify", json={"reference": "abc123"})

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["data"]["status"] == "success"
    assert body["order"]["payment_reference"] == "abc123"
    assert Decimal(body["order"]["total"]) == Decimal("499.99")
    assert body["order"]["payment_status"] == "completed"
    assert body["order"]["status"] == "confirmed"

    orders = await _orders(db_session)
    assert len(orders) == 1
    assert orders[0].order_number == body["order"]["order_number"]

    assert len(email_outbox.sent) == 1
    message = email_outbox.sent[0]
    assert message["to_email"] == "thandi@example.com"
    assert body["order"]["order_number"] in message["subject"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unsuccessful_payment_returns_raw_response(
    client, db_session, paystack_stub, email_outbox
):
    paystack_stub.add_transaction("abc123", 49999, metadata_payload(), status="abandoned")

    response = await client.post("/payments/verify", json={"reference": "abc123"})

    assert response.status_code == 200
    body = response.json()
    assert body["data"]["status"] == "abandoned"
    assert "order" not in body
    assert await _orders(db_session) == []
    assert email_outbox.sent == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_replayed_verification_creates_one_order(
    client, db_session, paystack_stub, email_outbox
):
    paystack_stub.add_transaction("abc123", 49999, metadata_payload())

    first = await client.post("/payments/verify", json={"reference": "abc123"})
    second = await client.post("/payments/verify", json={"reference": "abc123"})

    assert first.status_code == second.status_code == 200
    assert first.json()["order"]["id"] == second.json()["order"]["id"]
    count = (
        await db_session.execute(
            select(func.count(Order.id)).where(Order.payment_reference == "abc123")
        )
    ).scalar_one()
    assert count == 1
    assert len(email_outbox.sent) == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_stored_item_names_are_sanitized(client, db_session, paystack_stub):
    metadata = metadata_payload(
        items=[item_payload(name="<script>alert(1)</script>Hoodie")]
    )
    paystack_stub.add_transaction("abc123", 49999, metadata)

    response = await client.post("/payments/verify", json={"reference": "abc123"})

    assert response.status_code == 200
    stored = (await _orders(db_session))[0].items[0]["name"]
    assert stored == "Hoodie"
    assert "<" not in stored and ">" not in stored


@pytest.mark.asyncio
@pytest.mark.integration
async def test_malformed_metadata_is_rejected(client, db_session, paystack_stub):
    paystack_stub.add_transaction("abc123", 49999, metadata_payload(items=[]))

    response = await client.post("/payments/verify", json={"reference": "abc123"})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request"
    assert await _orders(db_session) == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_gateway_error_returned_without_order(client, db_session, paystack_stub):
    response = await client.post("/payments/verify", json={"reference": "missing"})

    assert response.status_code == 400
    assert response.json() == {"error": "Transaction reference not found"}
    assert await _orders(db_session) == []


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("body", [{}, {"reference": ""}, {"reference": "x" * 101}])
async def test_bad_reference_payload_rejected(client, paystack_stub, body):
    response = await client.post("/payments/verify", json=body)

    assert response.status_code == 400
    assert paystack_stub.requests == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_signed_in_shopper_is_recorded_on_order(client, db_session, paystack_stub):
    paystack_stub.add_transaction("abc123", 49999, metadata_payload())

    response = await client.post(
        "/payments/verify",
        json={"reference": "abc123"},
        headers=auth_header("user-42"),
    )

    assert response.status_code == 200
    assert (await _orders(db_session))[0].user_id == "user-42"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_invalid_token_is_treated_as_guest(client, db_session, paystack_stub):
    paystack_stub.add_transaction("abc123", 49999, metadata_payload())

    response = await client.post(
        "/payments/verify",
        json={"reference": "abc123"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )

    assert response.status_code == 200
    assert (await _orders(db_session))[0].user_id is None


class _FailingEmailClient:
    def __init__(self, raise_error: bool):
        self.raise_error = raise_error
        self.attempts = 0

    async def send(self, to_email, subject, html_body, text_body=None):
        self.attempts += 1
        if self.raise_error:
            raise RuntimeError("email provider exploded")
        return EmailFailed(provider="test", reason="mailbox full")


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("raise_error", [False, True])
async def test_email_failure_does_not_affect_verification(
    store_app, client, db_session, paystack_stub, raise_error
):
    failing = _FailingEmailClient(raise_error)
    store_app.dependency_overrides[get_email_client] = lambda: failing
    paystack_stub.add_transaction("abc123", 49999, metadata_payload())

    response = await client.post("/payments/verify", json={"reference": "abc123"})

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["data"]["status"] == "success"
    assert body["order"]["payment_reference"] == "abc123"
    assert failing.attempts == 1
    assert len(await _orders(db_session)) == 1
