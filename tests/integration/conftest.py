"""
Integration fixtures.

Each test gets its own app instance wired to the test database, the
Paystack stub and the recording email client. Auth uses real HS256 tokens
signed with the test secret, so the auth dependencies run unmodified.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from libs.common.emails.client import get_email_client
from libs.db.session import get_async_db
from services.store_service.app.main import create_app
from services.store_service.dependencies import get_paystack_client


@pytest.fixture
def store_app(db_session, paystack_stub, email_outbox):
    app = create_app()

    async def _db():
        yield db_session

    app.dependency_overrides[get_async_db] = _db
    app.dependency_overrides[get_paystack_client] = paystack_stub.client
    app.dependency_overrides[get_email_client] = lambda: email_outbox
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(store_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=store_app), base_url="http://test"
    ) as ac:
        yield ac
