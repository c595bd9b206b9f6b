from datetime import datetime, timedelta, timezone
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from dispatch.config import GeocodingConfig, Settings
from dispatch.db import crud
from dispatch.errors import NetworkOrServiceError, NotFoundError, ValidationFailedError
from dispatch.models import Base
from dispatch.services.geocoding import Geocoder
from dispatch.services.views import (
    AgentMapView, DashboardView, FinanceLedgerView, LoadResult, PerformanceView,
)

NOW = datetime(2025, 1, 20, 15, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def db():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()


@pytest_asyncio.fixture
async def seeded(db):
    """Two completed tickets (one old and already paid), one open, one cancelled."""
    client = await crud.create_client(db, name="Acme", document="1", city="Campinas", state="SP")
    desk = await crud.create_operator(db, "Marta")
    alice = await crud.create_agent(db, name="Alice", phone="1")
    bob = await crud.create_agent(db, name="Bob", phone="2")

    recent = await crud.create_ticket(
        db, code="OC-1", status="completed", service_type="alarm", client_id=client.id,
        operator_id=desk.id, main_agent_id=alice.id,
        created_at=NOW - timedelta(days=2), start_datetime=NOW - timedelta(days=2),
        end_datetime=NOW - timedelta(days=2) + timedelta(minutes=90),
        toll_cost=Decimal("10.50"),
        support_agents=[{"agent_id": bob.id, "food_cost": Decimal("25.00"), "other_costs": Decimal("5.00")}],
    )
    old = await crud.create_ticket(
        db, code="OC-0", status="completed", service_type="alarm", client_id=client.id,
        main_agent_id=bob.id, main_agent_payment_status="paid", main_agent_paid_at=NOW - timedelta(days=300),
        created_at=NOW - timedelta(days=400), start_datetime=NOW - timedelta(days=400),
        end_datetime=NOW - timedelta(days=400) + timedelta(minutes=30),
        toll_cost=Decimal("99.00"),
    )
    await crud.create_ticket(
        db, status="open", service_type="investigation", client_id=client.id,
        created_at=NOW - timedelta(days=1), start_datetime=NOW - timedelta(days=1),
    )
    await crud.create_ticket(
        db, status="cancelled", service_type="investigation", client_id=client.id,
        created_at=NOW - timedelta(days=1), start_datetime=NOW - timedelta(days=1),
    )
    return {"recent": recent, "old": old, "alice": alice, "bob": bob}


def _clock():
    return NOW


async def test_ledger_lists_pending_lines(db, seeded):
    result = await FinanceLedgerView(db, Settings(), clock=_clock).load()
    assert result.ok
    assert [(line.ticket_code, line.role_label) for line in result.data.lines] == [
        ("OC-1", "Main Agent"), ("OC-1", "Support 1"),
    ]
    assert result.data.summary.pending_count == 2
    assert result.data.summary.paid_count == 1
    assert result.data.summary.pending_total == Decimal("40.50")


async def test_ledger_search_and_paid_filter(db, seeded):
    paid = await FinanceLedgerView(db, Settings(), status="paid").load()
    assert [line.ticket_code for line in paid.data.lines] == ["OC-0"]

    found = await FinanceLedgerView(db, Settings(), status="all", search="bob").load()
    assert {line.slot for line in found.data.lines} == {"support-1", "main"}


async def test_ledger_mark_paid_refreshes(db, seeded):
    view = FinanceLedgerView(db, Settings(), clock=_clock)
    result = await view.mark_paid(seeded["recent"].id, "support-1")
    assert [line.role_label for line in result.data.lines] == ["Main Agent"]
    assert result.data.summary.paid_count == 2

    result = await view.undo_payment(seeded["recent"].id, "support-1")
    assert len(result.data.lines) == 2


async def test_ledger_rejects_unknown_status(db):
    with pytest.raises(ValidationFailedError):
        FinanceLedgerView(db, Settings(), status="late")


async def test_dashboard_week(db, seeded):
    result = await DashboardView(db, Settings(), preset="7days", clock=_clock).load()
    data = result.unwrap()

    assert data.stats.total_tickets == 3
    assert data.stats.completed_tickets == 1
    assert data.stats.open_tickets == 1
    assert data.stats.cancelled_tickets == 1
    assert data.stats.total_clients == 1
    assert data.stats.active_agents == 2

    # Pending is all-time, paid only counts the selected range.
    assert data.payments.pending_value == Decimal("40.50")
    assert data.payments.pending_agents == 2
    assert data.payments.paid_value == Decimal("0.00")
    assert data.payments.paid_agents == 0

    assert sum(p.value for p in data.trend) == 3
    assert [(p.name, p.value) for p in data.top_clients] == [("Acme", 3)]


async def test_dashboard_all_time_counts_old_payment(db, seeded):
    data = (await DashboardView(db, Settings(), preset="all", clock=_clock).load()).unwrap()
    assert data.stats.total_tickets == 4
    assert data.payments.paid_value == Decimal("99.00")
    assert data.payments.paid_agents == 1


async def test_dashboard_bad_range_is_an_error_result(db):
    result = await DashboardView(db, Settings(), preset="custom", clock=_clock).load()
    assert not result.ok
    assert isinstance(result.error, ValidationFailedError)


async def test_performance(db, seeded):
    data = (await PerformanceView(db, Settings(), preset="7days", clock=_clock).load()).unwrap()
    assert [(a.name, a.count, a.avg_minutes) for a in data.agents] == [("Alice", 1, 90)]
    assert [(o.name, o.count) for o in data.operators] == [("General/Central", 2), ("Marta", 1)]
    assert data.stats.success_rate == 50
    assert data.stats.total_finished == 1


async def test_database_failure_becomes_error_result(db):
    view = PerformanceView(db, Settings(), preset="all")

    async def broken():
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))

    view._fetch = broken
    result = await view.refresh()
    assert isinstance(result.error, NetworkOrServiceError)
    assert view.result is result


def test_unwrap_raises_error():
    result = LoadResult(error=NotFoundError("gone"))
    with pytest.raises(NotFoundError, match="gone"):
        result.unwrap()


async def test_agent_map_sorts_by_distance(db):
    await crud.create_agent(db, name="Rio", phone="1", latitude=-22.9068, longitude=-43.1729)
    await crud.create_agent(db, name="Paulista", phone="2", latitude=-23.5614, longitude=-46.6559)
    await crud.create_agent(db, name="Unplaced", phone="3")

    def handler(request):
        return httpx.Response(200, json=[{"lat": "-23.5505", "lon": "-46.6333"}])

    geocoder = Geocoder(GeocodingConfig(min_interval_seconds=0), transport=httpx.MockTransport(handler))
    data = (await AgentMapView(db, Settings(), geocoder, query="Praça da Sé").load()).unwrap()
    assert [d.agent.name for d in data.agents] == ["Paulista", "Rio"]
    assert data.origin.lat == -23.5505


async def test_agent_map_query_without_match(db):
    await crud.create_agent(db, name="Rio", phone="1", latitude=-22.9, longitude=-43.1)
    geocoder = Geocoder(
        GeocodingConfig(min_interval_seconds=0),
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[])),
    )
    data = (await AgentMapView(db, Settings(), geocoder, query="Atlantis").load()).unwrap()
    assert data.origin is None
    assert data.agents == []
