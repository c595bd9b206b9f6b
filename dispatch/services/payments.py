"""Agent payment reconciliation.

Completed tickets are expanded into one ``PaymentLine`` per responder (the
main agent plus each support agent). Lines feed the finance ledger and the
dashboard payment totals. Marking a line paid or pending goes through
``set_payment_status``, which knows where each responder's status lives.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.db import crud
from dispatch.errors import NotFoundError, ValidationFailedError
from dispatch.models import Ticket

logger = logging.getLogger(__name__)

PENDING = "pending"
PAID = "paid"
MAIN_SLOT = "main"
MAIN_LABEL = "Main Agent"
_SUPPORT_PREFIX = "support-"
_CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """Coerce a stored cost (None, float, str, Decimal) to a 2-place Decimal."""
    if value is None or value == "":
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(_CENTS)


def support_slot(position: int) -> str:
    """Slot key for the 1-based support position."""
    return f"{_SUPPORT_PREFIX}{position}"


def support_label(position: int) -> str:
    return f"Support {position}"


@dataclass
class PaymentLine:
    ticket_id: str
    ticket_code: str | None
    client_name: str | None
    start_datetime: datetime | None
    slot: str
    role_label: str
    agent_id: str | None
    agent_name: str
    is_armed: bool | None
    pix_key: str | None
    bank_name: str | None
    bank_agency: str | None
    bank_account: str | None
    bank_account_type: str | None
    toll_cost: Decimal
    food_cost: Decimal
    other_costs: Decimal
    payment_status: str
    paid_at: datetime | None

    @property
    def total(self) -> Decimal:
        return self.toll_cost + self.food_cost + self.other_costs


@dataclass
class PaymentSummary:
    pending_value: Decimal
    pending_agents: int
    paid_value: Decimal
    paid_agents: int


@dataclass
class LedgerSummary:
    pending_count: int
    paid_count: int
    pending_total: Decimal


def _line(ticket: Ticket, agent, costs, slot: str, label: str, status, paid_at) -> PaymentLine:
    client = ticket.client
    return PaymentLine(
        ticket_id=ticket.id,
        ticket_code=ticket.code,
        client_name=client.name if client is not None else None,
        start_datetime=ticket.start_datetime,
        slot=slot,
        role_label=label,
        agent_id=agent.id,
        agent_name=agent.name,
        is_armed=agent.is_armed,
        pix_key=agent.pix_key,
        bank_name=agent.bank_name,
        bank_agency=agent.bank_agency,
        bank_account=agent.bank_account,
        bank_account_type=agent.bank_account_type,
        toll_cost=to_money(costs.toll_cost),
        food_cost=to_money(costs.food_cost),
        other_costs=to_money(costs.other_costs),
        payment_status=status or PENDING,
        paid_at=paid_at,
    )


def expand_ticket(ticket: Ticket) -> list[PaymentLine]:
    """One line for the main agent (if set) plus one per populated support slot."""
    lines = []
    if ticket.main_agent is not None:
        lines.append(_line(
            ticket, ticket.main_agent, ticket, MAIN_SLOT, MAIN_LABEL,
            ticket.main_agent_payment_status, ticket.main_agent_paid_at,
        ))
    for position, support in enumerate(ticket.support_agents or [], start=1):
        if support.agent is None:
            continue
        lines.append(_line(
            ticket, support.agent, support, support_slot(position), support_label(position),
            support.payment_status, support.paid_at,
        ))
    return lines


def expand_payment_lines(tickets: Iterable[Ticket]) -> list[PaymentLine]:
    lines = []
    for ticket in tickets:
        lines.extend(expand_ticket(ticket))
    return lines


def _sum_and_agents(lines: Iterable[PaymentLine], status: str) -> tuple[Decimal, int]:
    total = Decimal("0.00")
    agents = set()
    for line in lines:
        if line.payment_status != status:
            continue
        total += line.total
        agents.add(line.agent_id)
    return total, len(agents)


def summarize_payments(
    all_time_lines: Iterable[PaymentLine],
    in_range_lines: Iterable[PaymentLine],
) -> PaymentSummary:
    """Pending totals come from all-time lines, paid totals from the selected range only."""
    pending_value, pending_agents = _sum_and_agents(all_time_lines, PENDING)
    paid_value, paid_agents = _sum_and_agents(in_range_lines, PAID)
    return PaymentSummary(
        pending_value=pending_value,
        pending_agents=pending_agents,
        paid_value=paid_value,
        paid_agents=paid_agents,
    )


def filter_lines(lines: Iterable[PaymentLine], status: str = PENDING, search: str = "") -> list[PaymentLine]:
    """Ledger filter: status is pending | paid | all; search matches agent, ticket code or client."""
    needle = search.strip().lower()
    result = []
    for line in lines:
        if status != "all" and line.payment_status != status:
            continue
        if needle and not any(
            needle in (value or "").lower()
            for value in (line.agent_name, line.ticket_code, line.client_name)
        ):
            continue
        result.append(line)
    return result


def ledger_summary(lines: list[PaymentLine]) -> LedgerSummary:
    pending = [line for line in lines if line.payment_status == PENDING]
    return LedgerSummary(
        pending_count=len(pending),
        paid_count=sum(1 for line in lines if line.payment_status == PAID),
        pending_total=sum((line.total for line in pending), Decimal("0.00")),
    )


# ── Status mutation ──────────────────────────────────────

def _support_position(slot: str) -> int:
    if not slot.startswith(_SUPPORT_PREFIX):
        raise ValidationFailedError(f"Unknown responder slot: {slot}")
    try:
        position = int(slot[len(_SUPPORT_PREFIX):])
    except ValueError:
        raise ValidationFailedError(f"Unknown responder slot: {slot}") from None
    if position < 1:
        raise ValidationFailedError(f"Unknown responder slot: {slot}")
    return position


async def set_payment_status(
    db: AsyncSession,
    ticket_id: str,
    slot: str,
    status: str,
    now: datetime | None = None,
) -> Ticket:
    """Set one responder's payment status; sibling slots are left untouched."""
    if status not in (PENDING, PAID):
        raise ValidationFailedError(f"Invalid payment status: {status}")
    paid_at = (now or datetime.now(timezone.utc)) if status == PAID else None

    ticket = await crud.get_ticket(db, ticket_id)
    if slot == MAIN_SLOT:
        if ticket.main_agent_id is None:
            raise NotFoundError("Ticket has no main agent")
        ticket.main_agent_payment_status = status
        ticket.main_agent_paid_at = paid_at
    else:
        position = _support_position(slot)
        supports = list(ticket.support_agents or [])
        if position > len(supports):
            raise NotFoundError(f"Ticket has no {support_label(position).lower()}")
        row = supports[position - 1]
        row.payment_status = status
        row.paid_at = paid_at

    await db.commit()
    logger.info("Payment %s on ticket %s set to %s", slot, ticket_id, status)
    return ticket


async def mark_paid(db: AsyncSession, ticket_id: str, slot: str, now: datetime | None = None) -> Ticket:
    return await set_payment_status(db, ticket_id, slot, PAID, now=now)


async def undo_payment(db: AsyncSession, ticket_id: str, slot: str) -> Ticket:
    return await set_payment_status(db, ticket_id, slot, PENDING)
