"""CRUD operations for dispatch models."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.errors import ForeignKeyConstraintError, NotFoundError, ValidationFailedError
from dispatch.models import (
    Agent, AgentRegistration, Client, Operator, Plan,
    Ticket, TicketPhoto, TicketSupportAgent, User, Vehicle,
)
from dispatch.models.agent import SKILL_FIELDS


# ── Shared helpers ───────────────────────────────────────

async def _get_or_raise(db: AsyncSession, model, obj_id: str, label: str):
    obj = await db.get(model, obj_id)
    if obj is None:
        raise NotFoundError(f"{label} not found")
    return obj


async def _update(db: AsyncSession, obj, **kwargs):
    for k, v in kwargs.items():
        setattr(obj, k, v)
    await db.commit()
    await db.refresh(obj)
    return obj


async def _count(db: AsyncSession, model, *criteria) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


async def _delete_by_id(db: AsyncSession, model, obj_id: str, label: str) -> None:
    """Delete one row; zero affected rows is reported as not found."""
    try:
        result = await db.execute(delete(model).where(model.id == obj_id))
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ForeignKeyConstraintError(f"{label} is still referenced by other records") from exc
    if result.rowcount == 0:
        raise NotFoundError(f"{label} not found or permission denied")


# ── Clients ──────────────────────────────────────────────

async def list_clients(db: AsyncSession) -> list[Client]:
    result = await db.execute(select(Client).order_by(Client.name))
    return list(result.scalars().all())


async def create_client(db: AsyncSession, **fields) -> Client:
    client = Client(**fields)
    db.add(client)
    await db.commit()
    await db.refresh(client)
    return client


async def get_client(db: AsyncSession, client_id: str) -> Client:
    return await _get_or_raise(db, Client, client_id, "Client")


async def update_client(db: AsyncSession, client: Client, **kwargs) -> Client:
    return await _update(db, client, **kwargs)


async def delete_client(db: AsyncSession, client_id: str) -> None:
    tickets = await _count(db, Ticket, Ticket.client_id == client_id)
    if tickets:
        raise ForeignKeyConstraintError(f"Client has {tickets} ticket(s) and cannot be deleted")
    await _delete_by_id(db, Client, client_id, "Client")


async def count_clients(db: AsyncSession) -> int:
    return await _count(db, Client)


# ── Vehicles ─────────────────────────────────────────────

async def list_vehicles(db: AsyncSession, client_id: str | None = None) -> list[Vehicle]:
    query = select(Vehicle).order_by(Vehicle.created_at.desc())
    if client_id:
        query = query.where(Vehicle.client_id == client_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_vehicle(db: AsyncSession, **fields) -> Vehicle:
    await get_client(db, fields["client_id"])
    vehicle = Vehicle(**fields)
    db.add(vehicle)
    await db.commit()
    await db.refresh(vehicle)
    return vehicle


async def get_vehicle(db: AsyncSession, vehicle_id: str) -> Vehicle:
    return await _get_or_raise(db, Vehicle, vehicle_id, "Vehicle")


async def update_vehicle(db: AsyncSession, vehicle: Vehicle, **kwargs) -> Vehicle:
    return await _update(db, vehicle, **kwargs)


async def delete_vehicle(db: AsyncSession, vehicle_id: str) -> None:
    tickets = await _count(db, Ticket, Ticket.vehicle_id == vehicle_id)
    if tickets:
        raise ForeignKeyConstraintError(f"Vehicle is used by {tickets} ticket(s) and cannot be deleted")
    await _delete_by_id(db, Vehicle, vehicle_id, "Vehicle")


# ── Plans ────────────────────────────────────────────────

async def list_plans(db: AsyncSession) -> list[Plan]:
    result = await db.execute(select(Plan).order_by(Plan.name))
    return list(result.scalars().all())


async def create_plan(db: AsyncSession, **fields) -> Plan:
    plan = Plan(**fields)
    db.add(plan)
    await db.commit()
    await db.refresh(plan)
    return plan


async def get_plan(db: AsyncSession, plan_id: str) -> Plan:
    return await _get_or_raise(db, Plan, plan_id, "Plan")


async def update_plan(db: AsyncSession, plan: Plan, **kwargs) -> Plan:
    return await _update(db, plan, **kwargs)


async def delete_plan(db: AsyncSession, plan_id: str) -> None:
    tickets = await _count(db, Ticket, Ticket.plan_id == plan_id)
    if tickets:
        raise ForeignKeyConstraintError(f"Plan is used by {tickets} ticket(s) and cannot be deleted")
    await _delete_by_id(db, Plan, plan_id, "Plan")


# ── Operators ────────────────────────────────────────────

async def list_operators(db: AsyncSession, active_only: bool = False) -> list[Operator]:
    query = select(Operator).order_by(Operator.name)
    if active_only:
        query = query.where(Operator.active == True)
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_operator(db: AsyncSession, name: str, active: bool = True) -> Operator:
    op = Operator(name=name, active=active)
    db.add(op)
    await db.commit()
    await db.refresh(op)
    return op


async def get_operator(db: AsyncSession, operator_id: str) -> Operator:
    return await _get_or_raise(db, Operator, operator_id, "Operator")


async def update_operator(db: AsyncSession, op: Operator, **kwargs) -> Operator:
    return await _update(db, op, **kwargs)


async def delete_operator(db: AsyncSession, operator_id: str) -> None:
    tickets = await _count(db, Ticket, Ticket.operator_id == operator_id)
    if tickets:
        raise ForeignKeyConstraintError(f"Operator handled {tickets} ticket(s) and cannot be deleted")
    await _delete_by_id(db, Operator, operator_id, "Operator")


# ── Agents ───────────────────────────────────────────────

async def list_agents(
    db: AsyncSession,
    search: str = "",
    skills: list[str] | None = None,
    status: str | None = None,
) -> list[Agent]:
    """List agents filtered by name substring, status and required skills (all must match)."""
    query = select(Agent).order_by(Agent.name)
    if status:
        query = query.where(Agent.status == status)
    if search:
        query = query.where(func.lower(Agent.name).contains(search.lower()))
    for skill in skills or []:
        if skill not in SKILL_FIELDS:
            continue
        query = query.where(getattr(Agent, skill) == True)
    result = await db.execute(query)
    return list(result.scalars().all())


async def list_located_agents(db: AsyncSession) -> list[Agent]:
    """Active agents that have map coordinates."""
    result = await db.execute(
        select(Agent).where(
            Agent.status == "active",
            Agent.latitude.is_not(None),
            Agent.longitude.is_not(None),
        )
    )
    return list(result.scalars().all())


async def create_agent(db: AsyncSession, **fields) -> Agent:
    agent = Agent(**fields)
    db.add(agent)
    await db.commit()
    await db.refresh(agent)
    return agent


async def get_agent(db: AsyncSession, agent_id: str) -> Agent:
    return await _get_or_raise(db, Agent, agent_id, "Agent")


async def update_agent(db: AsyncSession, agent: Agent, **kwargs) -> Agent:
    return await _update(db, agent, **kwargs)


async def delete_agent(db: AsyncSession, agent_id: str) -> None:
    as_main = await _count(db, Ticket, Ticket.main_agent_id == agent_id)
    if as_main:
        raise ForeignKeyConstraintError(f"Agent is the main agent on {as_main} ticket(s)")
    as_support = await _count(db, TicketSupportAgent, TicketSupportAgent.agent_id == agent_id)
    if as_support:
        raise ForeignKeyConstraintError(f"Agent is a support agent on {as_support} ticket(s)")
    await _delete_by_id(db, Agent, agent_id, "Agent")


async def count_active_agents(db: AsyncSession) -> int:
    return await _count(db, Agent, Agent.status == "active")


# ── Agent registrations ──────────────────────────────────

async def create_registration(db: AsyncSession, **fields) -> AgentRegistration:
    reg = AgentRegistration(**fields)
    db.add(reg)
    await db.commit()
    await db.refresh(reg)
    return reg


async def list_registrations(db: AsyncSession, status: str | None = "pending") -> list[AgentRegistration]:
    query = select(AgentRegistration).order_by(AgentRegistration.created_at.desc())
    if status:
        query = query.where(AgentRegistration.status == status)
    result = await db.execute(query)
    return list(result.scalars().all())


async def count_pending_registrations(db: AsyncSession) -> int:
    return await _count(db, AgentRegistration, AgentRegistration.status == "pending")


async def get_registration(db: AsyncSession, registration_id: str) -> AgentRegistration:
    return await _get_or_raise(db, AgentRegistration, registration_id, "Registration")


async def review_registration(
    db: AsyncSession, reg: AgentRegistration, status: str, reviewer_id: str,
) -> AgentRegistration:
    return await _update(
        db, reg,
        status=status,
        reviewed_at=datetime.now(timezone.utc),
        reviewed_by=reviewer_id,
    )


async def delete_registration(db: AsyncSession, registration_id: str) -> None:
    await _delete_by_id(db, AgentRegistration, registration_id, "Registration")


# ── Tickets ──────────────────────────────────────────────

async def list_tickets(db: AsyncSession, status: str | None = None) -> list[Ticket]:
    query = select(Ticket).order_by(Ticket.start_datetime.desc())
    if status:
        query = query.where(Ticket.status == status)
    result = await db.execute(query)
    return list(result.scalars().all())


async def list_tickets_by_creation(db: AsyncSession) -> list[Ticket]:
    """All tickets, oldest first (reporting input)."""
    result = await db.execute(select(Ticket).order_by(Ticket.created_at))
    return list(result.scalars().all())


def _support_rows(support_agents: list[dict]) -> list[TicketSupportAgent]:
    return [
        TicketSupportAgent(position=i, **fields)
        for i, fields in enumerate(support_agents)
    ]


def _sync_support_rows(ticket: Ticket, support_agents: list[dict], agents: dict[str, Agent]) -> None:
    """Edit support rows in place by position.

    Payment status survives the edit; it is reset only on a slot whose agent changed.
    Extra positions get new rows and trailing rows beyond the list are removed.
    """
    rows = list(ticket.support_agents or [])
    for position, fields in enumerate(support_agents):
        if position >= len(rows):
            rows.append(TicketSupportAgent(position=position, **fields))
            continue
        row = rows[position]
        if row.agent_id != fields["agent_id"]:
            row.agent = agents[fields["agent_id"]]
            row.payment_status = "pending"
            row.paid_at = None
        for k, v in fields.items():
            setattr(row, k, v)
    ticket.support_agents = rows[:len(support_agents)]


_TICKET_REFS = (
    ("client_id", Client, "Client"),
    ("vehicle_id", Vehicle, "Vehicle"),
    ("plan_id", Plan, "Plan"),
    ("operator_id", Operator, "Operator"),
    ("main_agent_id", Agent, "Agent"),
)


async def _check_ticket_refs(
    db: AsyncSession, fields: dict, support_agents: list[dict] | None,
) -> dict[str, Agent]:
    """Raise NotFoundError for any dangling reference; returns the support agents by id."""
    for key, model, label in _TICKET_REFS:
        if fields.get(key) is not None:
            await _get_or_raise(db, model, fields[key], label)
    agents = {}
    for support in support_agents or []:
        agents[support["agent_id"]] = await _get_or_raise(db, Agent, support["agent_id"], "Support agent")
    return agents


async def _commit_ticket(db: AsyncSession, code: str | None) -> None:
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ValidationFailedError(f"Ticket code {code!r} is already in use") from exc


async def create_ticket(
    db: AsyncSession, support_agents: list[dict] | None = None, **fields,
) -> Ticket:
    await _check_ticket_refs(db, fields, support_agents)
    ticket = Ticket(**fields)
    ticket.support_agents = _support_rows(support_agents or [])
    db.add(ticket)
    await _commit_ticket(db, fields.get("code"))
    return await get_ticket(db, ticket.id)


async def get_ticket(db: AsyncSession, ticket_id: str) -> Ticket:
    """Load a ticket with every relation re-read from the store."""
    result = await db.execute(
        select(Ticket)
        .where(Ticket.id == ticket_id)
        .execution_options(populate_existing=True)
    )
    ticket = result.scalars().first()
    if ticket is None:
        raise NotFoundError("Ticket not found")
    return ticket


async def update_ticket(
    db: AsyncSession, ticket: Ticket, support_agents: list[dict] | None = None, **kwargs,
) -> Ticket:
    """Update ticket fields; a non-None ``support_agents`` list is synced onto the existing rows."""
    agents = await _check_ticket_refs(db, kwargs, support_agents)
    ticket_id = ticket.id
    for k, v in kwargs.items():
        setattr(ticket, k, v)
    if support_agents is not None:
        _sync_support_rows(ticket, support_agents, agents)
    await _commit_ticket(db, kwargs.get("code"))
    return await get_ticket(db, ticket_id)


async def delete_ticket(db: AsyncSession, ticket_id: str) -> None:
    photos = await _count(db, TicketPhoto, TicketPhoto.ticket_id == ticket_id)
    if photos:
        raise ForeignKeyConstraintError(f"Ticket has {photos} photo(s); remove them before deleting")
    await _delete_by_id(db, Ticket, ticket_id, "Ticket")


async def add_ticket_photo(
    db: AsyncSession, ticket_id: str, file_url: str, caption: str | None = None,
    uploaded_by: str | None = None,
) -> TicketPhoto:
    await get_ticket(db, ticket_id)
    photo = TicketPhoto(ticket_id=ticket_id, file_url=file_url, caption=caption, uploaded_by=uploaded_by)
    db.add(photo)
    await db.commit()
    await db.refresh(photo)
    return photo


async def list_ticket_photos(db: AsyncSession, ticket_id: str) -> list[TicketPhoto]:
    result = await db.execute(
        select(TicketPhoto)
        .where(TicketPhoto.ticket_id == ticket_id)
        .order_by(TicketPhoto.created_at)
    )
    return list(result.scalars().all())


# ── Users ────────────────────────────────────────────────

async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalars().first()


async def create_user(
    db: AsyncSession, email: str, password_hash: str, role: str, display_name: str = "",
) -> User:
    user = User(email=email, password_hash=password_hash, role=role, display_name=display_name)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user
