"""Integration tests for the audit trail behind an authenticated API."""

from collections.abc import Generator
from typing import Annotated

import pytest
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel
from sqlalchemy import select

from swan_fastapi.audit import ActionFlags, use_audit_trail
from swan_fastapi.auth import CurrentUserId, use_bearer_token_authentication
from swan_fastapi.database import BusinessSession
from swan_fastapi.errors import use_json_exception_handler
from tests.conftest import resolve_test_identity
from tests.models import AuditEntry, Customer, Order


pytestmark = pytest.mark.integration


class OrderIn(BaseModel):
    number: str


@pytest.fixture
def app(session_factory, token_parameters) -> FastAPI:
    app = FastAPI()
    use_json_exception_handler(app)
    use_bearer_token_authentication(app, token_parameters, resolve_test_identity)

    def get_db(user_id: CurrentUserId) -> Generator[BusinessSession, None, None]:
        with session_factory() as session:
            controller = use_audit_trail(session, AuditEntry, user_id)
            controller.register_types(ActionFlags.CREATE, [Order])
            yield session

    Db = Annotated[BusinessSession, Depends(get_db)]

    @app.post("/api/orders", status_code=201)
    def create_order(order_in: OrderIn, db: Db):
        order = Order(number=order_in.number)
        db.add(order)
        db.add(Customer(name=f"Customer of {order_in.number}"))
        db.commit()
        return {"id": str(order.id)}

    @app.put("/api/orders/{number}")
    def rename_order(number: str, order_in: OrderIn, db: Db):
        order = db.scalars(select(Order).where(Order.number == number)).one()
        order.number = order_in.number
        db.commit()
        return {"number": order.number}

    return app


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="https://test"
    ) as ac:
        yield ac


async def _auth_headers(client: AsyncClient) -> dict[str, str]:
    response = await client.post(
        "/api/token",
        data={
            "username": "alice",
            "password": "wonderland",
            "grant_type": "password",
            "client_id": "web",
        },
    )
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def _entries(session_factory) -> list[AuditEntry]:
    with session_factory() as session:
        return list(session.scalars(select(AuditEntry).order_by(AuditEntry.date_created)))


class TestAuditedApi:
    """Tests for audit entries written by API requests."""

    async def test_authenticated_create_is_audited(self, client, session_factory):
        """Creating an order records who did it; customers aren't listed."""
        response = await client.post(
            "/api/orders", json={"number": "A-1"}, headers=await _auth_headers(client)
        )

        assert response.status_code == 201
        [entry] = _entries(session_factory)
        assert entry.table_name == "Order"
        assert entry.action_flag is ActionFlags.CREATE
        assert entry.user_id == "u1"
        assert '"number": "A-1"' in entry.json_body

    async def test_anonymous_changes_are_not_audited(self, client, session_factory):
        response = await client.post("/api/orders", json={"number": "A-1"})

        assert response.status_code == 201
        assert _entries(session_factory) == []

    async def test_update_is_audited_for_all_types(self, client, session_factory):
        """Updates have no allow-list, so every type is audited."""
        headers = await _auth_headers(client)
        await client.post("/api/orders", json={"number": "A-1"}, headers=headers)

        response = await client.put(
            "/api/orders/A-1", json={"number": "A-2"}, headers=headers
        )

        assert response.json() == {"number": "A-2"}
        entries = _entries(session_factory)
        assert [entry.action_flag for entry in entries] == [
            ActionFlags.CREATE,
            ActionFlags.UPDATE,
        ]
        assert '"number": "A-2"' in entries[1].json_body
