import json
from typing import AsyncGenerator, Optional

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from libs.common.emails.core import EmailSent
from libs.db.base import Base
from services.store_service import models as _store_models  # noqa: F401
from services.store_service.paystack_client import PaystackClient


@pytest_asyncio.fixture
async def test_engine():
    """
    A fresh in-memory SQLite database per test.

    StaticPool keeps the single connection alive so every session sees the
    same database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Paystack stub
# ---------------------------------------------------------------------------


class PaystackStub:
    """
    In-memory stand-in for the Paystack Transaction API.

    Served through ``httpx.MockTransport`` so the real PaystackClient does
    the HTTP work. Initialized transactions are remembered and come back
    from verify with ``verify_status``.
    """

    def __init__(self):
        self.transactions: dict[str, dict] = {}
        self.requests: list[tuple[str, str, Optional[dict]]] = []
        self.verify_status = "success"
        self.fail_with: Optional[tuple[int, dict]] = None
        self._counter = 0

    @property
    def initialize_calls(self) -> list[dict]:
        return [body for _, path, body in self.requests if path.endswith("/initialize")]

    @property
    def verify_calls(self) -> list[str]:
        return [
            path.rsplit("/", 1)[-1]
            for _, path, _ in self.requests
            if "/transaction/verify/" in path
        ]

    def add_transaction(
        self,
        reference: str,
        amount_cents: int,
        metadata,
        status: str = "success",
        email: str = "thandi@example.com",
    ) -> None:
        self.transactions[reference] = {
            "amount": amount_cents,
            "metadata": metadata,
            "status": status,
            "email": email,
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, body))

        if self.fail_with:
            status_code, payload = self.fail_with
            return httpx.Response(status_code, json=payload)

        if request.url.path == "/transaction/initialize":
            self._counter += 1
            reference = f"ref{self._counter:04d}"
            self.add_transaction(
                reference,
                body["amount"],
                body["metadata"],
                status=self.verify_status,
                email=body["email"],
            )
            return httpx.Response(
                200,
                json={
                    "status": True,
                    "message": "Authorization URL created",
                    "data": {
                        "authorization_url": f"https://checkout.paystack.com/{reference}",
                        "access_code": f"ac_{reference}",
                        "reference": reference,
                    },
                },
            )

        if request.url.path.startswith("/transaction/verify/"):
            reference = request.url.path.rsplit("/", 1)[-1]
            transaction = self.transactions.get(reference)
            if transaction is None:
                return httpx.Response(
                    400,
                    json={"status": False, "message": "Transaction reference not found"},
                )
            return httpx.Response(
                200,
                json={
                    "status": True,
                    "message": "Verification successful",
                    "data": {
                        "status": transaction["status"],
                        "reference": reference,
                        "amount": transaction["amount"],
                        "currency": "ZAR",
                        "customer": {"email": transaction["email"]},
                        "metadata": transaction["metadata"],
                    },
                },
            )

        return httpx.Response(404, json={"status": False, "message": "Not found"})

    def client(self) -> PaystackClient:
        return PaystackClient(
            secret_key="sk_test_stub",
            base_url="https://api.paystack.test",
            transport=httpx.MockTransport(self.handler),
        )


class RecordingEmailClient:
    """EmailClient double that records every message instead of sending it."""

    def __init__(self):
        self.sent: list[dict] = []

    async def send(self, to_email, subject, html_body, text_body=None):
        self.sent.append(
            {
                "to_email": to_email,
                "subject": subject,
                "html_body": html_body,
                "text_body": text_body,
            }
        )
        return EmailSent(provider="test", message_id=f"msg-{len(self.sent)}")


@pytest.fixture
def paystack_stub() -> PaystackStub:
    return PaystackStub()


@pytest.fixture
def email_outbox() -> RecordingEmailClient:
    return RecordingEmailClient()
