from datetime import datetime, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from dispatch.db import crud
from dispatch.errors import NotFoundError, ValidationFailedError
from dispatch.models import Agent, Base, Client, Ticket, TicketSupportAgent
from dispatch.services import payments


def _agent(agent_id, name, **kwargs):
    return Agent(id=agent_id, name=name, phone="11999990000", **kwargs)


def _ticket(ticket_id="t1", main=None, supports=(), **costs):
    ticket = Ticket(
        id=ticket_id,
        code=f"OC-{ticket_id}",
        status="completed",
        client=Client(name="Acme Transportes", document="123", city="Campinas", state="SP"),
        main_agent=main,
        main_agent_id=main.id if main is not None else None,
        start_datetime=datetime(2025, 1, 10, 8, 0, tzinfo=timezone.utc),
        **costs,
    )
    ticket.support_agents = [
        TicketSupportAgent(agent=agent, agent_id=agent.id, position=i, **c)
        for i, (agent, c) in enumerate(supports)
    ]
    return ticket


def test_main_and_support_lines_sum_to_pending_total():
    alice = _agent("a1", "Alice", is_armed=True, pix_key="alice@pix")
    bob = _agent("a2", "Bob")
    ticket = _ticket(
        main=alice,
        supports=[(bob, {"food_cost": Decimal("25.00"), "other_costs": Decimal("5.00")})],
        toll_cost=Decimal("10.50"),
    )

    lines = payments.expand_ticket(ticket)
    assert [line.role_label for line in lines] == ["Main Agent", "Support 1"]
    assert [line.slot for line in lines] == ["main", "support-1"]
    assert lines[0].total == Decimal("10.50")
    assert lines[1].total == Decimal("30.00")
    assert lines[0].pix_key == "alice@pix"

    summary = payments.summarize_payments(lines, lines)
    assert summary.pending_value == Decimal("40.50")
    assert summary.pending_agents == 2
    assert summary.paid_value == Decimal("0.00")
    assert summary.paid_agents == 0


def test_missing_costs_and_status_default():
    ticket = _ticket(main=_agent("a1", "Alice"))
    [line] = payments.expand_ticket(ticket)
    assert line.total == Decimal("0.00")
    assert line.payment_status == "pending"


def test_null_main_agent_contributes_no_main_line():
    bob = _agent("a2", "Bob")
    ticket = _ticket(main=None, supports=[(bob, {"toll_cost": Decimal("7.25")})])
    lines = payments.expand_ticket(ticket)
    assert len(lines) == 1
    assert lines[0].role_label == "Support 1"


def test_ticket_without_supports_has_one_line():
    assert len(payments.expand_ticket(_ticket(main=_agent("a1", "Alice")))) == 1


def test_line_totals_match_per_ticket_costs():
    alice, bob, carol = _agent("a1", "Alice"), _agent("a2", "Bob"), _agent("a3", "Carol")
    tickets = [
        _ticket("t1", main=alice, toll_cost=Decimal("1.10"), food_cost=Decimal("2.20")),
        _ticket(
            "t2", main=bob, other_costs=Decimal("0.30"),
            supports=[
                (alice, {"toll_cost": Decimal("0.10")}),
                (carol, {"food_cost": Decimal("0.20"), "other_costs": Decimal("0.70")}),
            ],
        ),
    ]
    lines = payments.expand_payment_lines(tickets)
    assert len(lines) == 4
    assert sum(line.total for line in lines) == Decimal("4.60")

    # Alice appears as main on one ticket and support on another: counted once.
    summary = payments.summarize_payments(lines, [])
    assert summary.pending_agents == 3


def test_paid_totals_use_only_in_range_lines():
    alice, bob = _agent("a1", "Alice"), _agent("a2", "Bob")
    old = _ticket("old", main=alice, toll_cost=Decimal("100.00"), main_agent_payment_status="paid")
    recent = _ticket("new", main=bob, toll_cost=Decimal("20.00"), main_agent_payment_status="paid")
    pending = _ticket("p", main=bob, food_cost=Decimal("3.00"))

    all_lines = payments.expand_payment_lines([old, recent, pending])
    in_range = payments.expand_payment_lines([recent, pending])
    summary = payments.summarize_payments(all_lines, in_range)

    assert summary.paid_value == Decimal("20.00")
    assert summary.paid_agents == 1
    assert summary.pending_value == Decimal("3.00")


def test_filter_lines_by_status_and_search():
    alice, bob = _agent("a1", "Alice"), _agent("a2", "Bob")
    lines = payments.expand_payment_lines([
        _ticket("t1", main=alice),
        _ticket("t2", main=bob, main_agent_payment_status="paid"),
    ])
    assert [line.agent_name for line in payments.filter_lines(lines)] == ["Alice"]
    assert [line.agent_name for line in payments.filter_lines(lines, "paid")] == ["Bob"]
    assert len(payments.filter_lines(lines, "all")) == 2
    assert [line.agent_name for line in payments.filter_lines(lines, "all", "oc-t2")] == ["Bob"]
    assert len(payments.filter_lines(lines, "all", "acme")) == 2

    summary = payments.ledger_summary(lines)
    assert summary.pending_count == 1
    assert summary.paid_count == 1


# ── Mark paid / undo against the database ───────────────

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
async def completed_ticket(db):
    client = await crud.create_client(db, name="Acme", document="1", city="Campinas", state="SP")
    alice = await crud.create_agent(db, name="Alice", phone="1")
    bob = await crud.create_agent(db, name="Bob", phone="2")
    carol = await crud.create_agent(db, name="Carol", phone="3")
    return await crud.create_ticket(
        db,
        status="completed",
        service_type="alarm",
        client_id=client.id,
        main_agent_id=alice.id,
        start_datetime=datetime(2025, 1, 10, 8, 0, tzinfo=timezone.utc),
        toll_cost=Decimal("10.50"),
        support_agents=[
            {"agent_id": bob.id, "food_cost": Decimal("25.00")},
            {"agent_id": carol.id, "other_costs": Decimal("5.00")},
        ],
    )


async def test_mark_paid_then_undo_round_trip(db, completed_ticket):
    now = datetime(2025, 2, 1, 12, 0, tzinfo=timezone.utc)
    ticket = await payments.mark_paid(db, completed_ticket.id, "main", now=now)
    assert ticket.main_agent_payment_status == "paid"
    assert ticket.main_agent_paid_at is not None

    ticket = await payments.undo_payment(db, completed_ticket.id, "main")
    assert ticket.main_agent_payment_status == "pending"
    assert ticket.main_agent_paid_at is None

    reloaded = await crud.get_ticket(db, completed_ticket.id)
    assert reloaded.main_agent_payment_status == "pending"
    assert reloaded.main_agent_paid_at is None


async def test_mark_paid_only_touches_one_slot(db, completed_ticket):
    await payments.mark_paid(db, completed_ticket.id, "support-2")

    ticket = await crud.get_ticket(db, completed_ticket.id)
    assert ticket.main_agent_payment_status == "pending"
    assert ticket.support_agents[0].payment_status == "pending"
    assert ticket.support_agents[1].payment_status == "paid"
    assert ticket.support_agents[1].paid_at is not None


async def test_mark_paid_missing_ticket(db):
    with pytest.raises(NotFoundError):
        await payments.mark_paid(db, "01NOPE0000000000000000000", "main")


async def test_mark_paid_missing_slot(db, completed_ticket):
    with pytest.raises(NotFoundError):
        await payments.mark_paid(db, completed_ticket.id, "support-3")
    with pytest.raises(ValidationFailedError):
        await payments.mark_paid(db, completed_ticket.id, "driver")
    with pytest.raises(ValidationFailedError):
        await payments.set_payment_status(db, completed_ticket.id, "main", "refunded")
