"""Integration tests for API endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio
from fastapi import Request
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from dispatch.config import GeocodingConfig
from dispatch.db.engine import get_db
from dispatch.dependencies import get_geocoder
from dispatch.main import app, sqlalchemy_error_handler
from dispatch.models import Base
from dispatch.models.auth_models import User, UserSession
from dispatch.services.auth import SESSION_COOKIE_NAME, _hash_token, hash_password
from dispatch.services.geocoding import Geocoder

_ADMIN_TOKEN = "test-session-token-admin"
_VIEWER_TOKEN = "test-session-token-viewer"


@pytest_asyncio.fixture
async def app_db():
    """In-memory database seeded with an admin and a read-only client user."""
    test_engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with factory() as db:
        for email, role, token in (
            ("admin@test.com", "admin", _ADMIN_TOKEN),
            ("viewer@test.com", "client_viewer", _VIEWER_TOKEN),
        ):
            user = User(
                email=email,
                display_name=role.title(),
                password_hash=hash_password("testpass123"),
                role=role,
            )
            db.add(user)
            await db.flush()
            db.add(UserSession(
                user_id=user.id,
                token_hash=_hash_token(token),
                expires_at=datetime.now(timezone.utc) + timedelta(hours=24),
                ip_address="127.0.0.1",
            ))
        await db.commit()

    async def override_get_db():
        async with factory() as session:
            yield session

    def handler(request):
        return httpx.Response(200, json=[{"lat": "-22.9056", "lon": "-47.0608"}])

    geocoder = Geocoder(GeocodingConfig(min_interval_seconds=0), transport=httpx.MockTransport(handler))

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    yield factory
    app.dependency_overrides.clear()
    await test_engine.dispose()


def _client(token: str | None = None) -> AsyncClient:
    cookies = {SESSION_COOKIE_NAME: token} if token else None
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test", cookies=cookies)


@pytest_asyncio.fixture
async def client(app_db):
    async with _client(_ADMIN_TOKEN) as c:
        yield c


@pytest_asyncio.fixture
async def viewer(app_db):
    async with _client(_VIEWER_TOKEN) as c:
        yield c


@pytest_asyncio.fixture
async def anonymous(app_db):
    async with _client() as c:
        yield c


async def _seed_ticket(client, **overrides):
    """Client + two agents + an open ticket with one support agent."""
    c = (await client.post("/api/clients", json={
        "name": "Acme Transportes", "document": "12.345.678/0001-90", "city": "Campinas", "state": "SP",
    })).json()
    alice = (await client.post("/api/agents", json={"name": "Alice", "phone": "1", "latitude": -22.9, "longitude": -47.0})).json()
    bob = (await client.post("/api/agents", json={"name": "Bob", "phone": "2", "latitude": -23.5, "longitude": -46.6})).json()
    body = {
        "code": "OC-1",
        "service_type": "logistics_escort",
        "client_id": c["id"],
        "main_agent_id": alice["id"],
        "start_datetime": "2025-01-10T08:00:00Z",
        "toll_cost": "10.50",
        "support_agents": [{"agent_id": bob["id"], "food_cost": "25.00", "other_costs": "5.00"}],
    }
    body.update(overrides)
    resp = await client.post("/api/tickets", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json(), c, alice, bob


async def _complete(client, ticket_id):
    for status in ("in_progress", "completed"):
        resp = await client.post(f"/api/tickets/{ticket_id}/status", json={"status": status})
        assert resp.status_code == 200, resp.text
    return resp.json()


# ── Auth ─────────────────────────────────────────────────

async def test_health(anonymous):
    resp = await anonymous.get("/health")
    assert resp.status_code == 200
    assert resp.json()["database"] == "ok"


async def test_database_failure_maps_to_service_error():
    request = Request({"type": "http", "method": "GET", "path": "/api/clients", "headers": [], "query_string": b""})
    resp = await sqlalchemy_error_handler(request, OperationalError("SELECT 1", {}, Exception("disk I/O error")))
    assert resp.status_code == 502
    assert b"NetworkOrServiceError" in resp.body


async def test_requires_session(anonymous):
    resp = await anonymous.get("/api/clients")
    assert resp.status_code == 401


async def test_login_sets_cookie(anonymous):
    resp = await anonymous.post("/api/auth/login", json={"email": "admin@test.com", "password": "testpass123"})
    assert resp.status_code == 200
    assert SESSION_COOKIE_NAME in resp.cookies

    me = await anonymous.get("/api/auth/me")
    assert me.json()["role"] == "admin"


async def test_login_wrong_password(anonymous):
    resp = await anonymous.post("/api/auth/login", json={"email": "admin@test.com", "password": "nope"})
    assert resp.status_code == 401


async def test_viewer_cannot_write(viewer):
    resp = await viewer.post("/api/plans", json={"name": "Gold"})
    assert resp.status_code == 403
    assert resp.json()["error"] == "PermissionDeniedError"


async def test_viewer_reads_dashboard_but_not_finance(viewer):
    assert (await viewer.get("/api/dashboard?range=all")).status_code == 200
    assert (await viewer.get("/api/finance/ledger")).status_code == 403


# ── Reference entities ───────────────────────────────────

async def test_plan_crud(client):
    created = await client.post("/api/plans", json={"name": "Gold", "category": "escort"})
    assert created.status_code == 201
    plan_id = created.json()["id"]

    updated = await client.put(f"/api/plans/{plan_id}", json={"description": "24h"})
    assert updated.json()["description"] == "24h"
    assert updated.json()["name"] == "Gold"

    assert (await client.delete(f"/api/plans/{plan_id}")).status_code == 204
    missing = await client.delete(f"/api/plans/{plan_id}")
    assert missing.status_code == 404
    assert missing.json()["error"] == "NotFoundError"


async def test_delete_client_with_tickets_is_blocked(client):
    _, c, _, _ = await _seed_ticket(client)
    resp = await client.delete(f"/api/clients/{c['id']}")
    assert resp.status_code == 409
    assert resp.json()["error"] == "ForeignKeyConstraintError"


async def test_delete_referenced_agent_is_blocked(client):
    _, _, _, bob = await _seed_ticket(client)
    resp = await client.delete(f"/api/agents/{bob['id']}")
    assert resp.status_code == 409


async def test_vehicles_for_client(client):
    c = (await client.post("/api/clients", json={
        "name": "Beta", "document": "1", "city": "Santos", "state": "SP",
    })).json()
    resp = await client.post("/api/vehicles", json={
        "client_id": c["id"], "description": "Scania R450", "plate_main": "ABC1D23",
    })
    assert resp.status_code == 201
    listed = await client.get(f"/api/clients/{c['id']}/vehicles")
    assert [v["plate_main"] for v in listed.json()] == ["ABC1D23"]


async def test_agent_create_geocodes_address(client):
    resp = await client.post("/api/agents", json={
        "name": "Diego", "phone": "5", "address": "Rua X, 10, Campinas", "geocode_fallback": "Campinas, SP",
    })
    assert resp.status_code == 201
    assert resp.json()["latitude"] == pytest.approx(-22.9056)


async def test_nearest_agents(client):
    await _seed_ticket(client)
    resp = await client.get("/api/agents/map/nearest", params={"q": "Campinas"})
    body = resp.json()
    assert body["origin_lat"] == pytest.approx(-22.9056)
    assert [a["agent"]["name"] for a in body["agents"]] == ["Alice", "Bob"]


async def test_agent_created_when_geocoder_is_down(client):
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    app.dependency_overrides[get_geocoder] = lambda: Geocoder(
        GeocodingConfig(min_interval_seconds=0), transport=httpx.MockTransport(handler),
    )
    resp = await client.post("/api/agents", json={"name": "Fabio", "phone": "7", "address": "Rua Y, 20, Campinas"})
    assert resp.status_code == 201
    assert resp.json()["latitude"] is None
    assert resp.json()["longitude"] is None


# ── Registrations ────────────────────────────────────────

async def test_public_registration_and_approval(anonymous, client):
    resp = await anonymous.post("/api/registrations", json={"name": "Eva", "phone": "9", "is_armed": True})
    assert resp.status_code == 201
    reg_id = resp.json()["id"]

    pending = await client.get("/api/registrations")
    assert [r["id"] for r in pending.json()] == [reg_id]

    agent = await client.post(f"/api/registrations/{reg_id}/approve")
    assert agent.status_code == 201
    assert agent.json()["name"] == "Eva"
    assert agent.json()["status"] == "active"
    assert agent.json()["performance_level"] == "good"

    again = await client.post(f"/api/registrations/{reg_id}/reject")
    assert again.status_code == 400


# ── Tickets ──────────────────────────────────────────────

async def test_ticket_lifecycle(client):
    ticket, _, _, _ = await _seed_ticket(client)
    assert ticket["status"] == "open"
    assert len(ticket["support_agents"]) == 1

    done = await _complete(client, ticket["id"])
    assert done["status"] == "completed"
    assert done["end_datetime"] is not None

    resp = await client.post(f"/api/tickets/{ticket['id']}/status", json={"status": "open"})
    assert resp.status_code == 409
    assert resp.json()["current"] == "completed"
    assert resp.json()["attempted"] == "open"


async def test_ticket_search_and_update(client):
    ticket, _, alice, _ = await _seed_ticket(client)
    found = await client.get("/api/tickets", params={"q": "acme"})
    assert [t["id"] for t in found.json()] == [ticket["id"]]
    assert (await client.get("/api/tickets", params={"q": "zzz"})).json() == []

    resp = await client.put(f"/api/tickets/{ticket['id']}", json={"support_agents": [{"agent_id": alice["id"]}]})
    assert [s["agent_id"] for s in resp.json()["support_agents"]] == [alice["id"]]


async def test_ticket_edit_keeps_support_payment(client):
    ticket, _, _, bob = await _seed_ticket(client)
    await _complete(client, ticket["id"])
    await client.post("/api/finance/payments/mark-paid", json={"ticket_id": ticket["id"], "slot": "support-1"})

    resp = await client.put(
        f"/api/tickets/{ticket['id']}",
        json={"support_agents": [{"agent_id": bob["id"], "food_cost": "26.00"}]},
    )
    [support] = resp.json()["support_agents"]
    assert Decimal(support["food_cost"]) == Decimal("26.00")
    assert support["payment_status"] == "paid"
    assert support["paid_at"] is not None


async def test_ticket_input_errors_are_client_errors(client):
    ticket, c, _, _ = await _seed_ticket(client)
    dup = await client.post("/api/tickets", json={
        "code": "OC-1", "service_type": "alarm", "client_id": c["id"], "start_datetime": "2025-01-11T08:00:00Z",
    })
    assert dup.status_code == 400
    assert dup.json()["error"] == "ValidationFailedError"

    missing = await client.post("/api/tickets", json={
        "service_type": "alarm", "client_id": c["id"], "main_agent_id": "nope",
        "start_datetime": "2025-01-11T08:00:00Z",
    })
    assert missing.status_code == 404
    assert missing.json()["error"] == "NotFoundError"

    resp = await client.put(f"/api/tickets/{ticket['id']}", json={"support_agents": [{"agent_id": "nope"}]})
    assert resp.status_code == 404


async def test_ticket_with_photos_cannot_be_deleted(client):
    ticket, _, _, _ = await _seed_ticket(client)
    photo = await client.post(f"/api/tickets/{ticket['id']}/photos", json={"file_url": "https://files.example/1.jpg"})
    assert photo.status_code == 201
    resp = await client.delete(f"/api/tickets/{ticket['id']}")
    assert resp.status_code == 409


async def test_ticket_report_html(client):
    ticket, _, _, _ = await _seed_ticket(client)
    resp = await client.get(f"/api/tickets/{ticket['id']}/report", params={"format": "html"})
    assert resp.status_code == 200
    assert "OC-1" in resp.text


# ── Finance ──────────────────────────────────────────────

async def test_ledger_mark_paid_and_undo(client):
    ticket, _, _, _ = await _seed_ticket(client)

    ledger = (await client.get("/api/finance/ledger")).json()
    assert ledger["lines"] == []

    await _complete(client, ticket["id"])
    ledger = (await client.get("/api/finance/ledger")).json()
    assert [line["role_label"] for line in ledger["lines"]] == ["Main Agent", "Support 1"]
    assert Decimal(ledger["summary"]["pending_total"]) == Decimal("40.50")

    paid = await client.post("/api/finance/payments/mark-paid", json={"ticket_id": ticket["id"], "slot": "main"})
    assert paid.status_code == 200
    statuses = {line["slot"]: line["payment_status"] for line in paid.json()["lines"]}
    assert statuses == {"main": "paid", "support-1": "pending"}

    undone = await client.post("/api/finance/payments/undo", json={"ticket_id": ticket["id"], "slot": "main"})
    statuses = {line["slot"]: line["payment_status"] for line in undone.json()["lines"]}
    assert statuses == {"main": "pending", "support-1": "pending"}


async def test_ledger_placeholders(client):
    ticket, _, _, _ = await _seed_ticket(client, code=None)
    await _complete(client, ticket["id"])
    line = (await client.get("/api/finance/ledger")).json()["lines"][0]
    assert line["ticket_code"] == "-"
    assert line["pix_key"] == "-"


async def test_mark_paid_unknown_ticket(client):
    resp = await client.post("/api/finance/payments/mark-paid", json={"ticket_id": "missing", "slot": "main"})
    assert resp.status_code == 404


# ── Reporting ────────────────────────────────────────────

async def test_dashboard_and_performance(client):
    ticket, _, _, _ = await _seed_ticket(client)
    await _complete(client, ticket["id"])

    dash = (await client.get("/api/dashboard", params={"range": "all"})).json()
    assert dash["stats"]["total_tickets"] == 1
    assert dash["stats"]["completed_tickets"] == 1
    assert dash["stats"]["active_agents"] == 2
    assert Decimal(dash["payments"]["pending_value"]) == Decimal("40.50")
    assert dash["payments"]["pending_agents"] == 2
    assert [s["name"] for s in dash["status_distribution"]] == ["completed", "open", "cancelled"]

    perf = (await client.get("/api/performance", params={"range": "all"})).json()
    assert [a["name"] for a in perf["agents"]] == ["Alice"]
    assert perf["operators"][0]["name"] == "General/Central"
    assert perf["stats"]["success_rate"] == 100


async def test_custom_range_needs_start(client):
    resp = await client.get("/api/dashboard", params={"range": "custom"})
    assert resp.status_code == 400
