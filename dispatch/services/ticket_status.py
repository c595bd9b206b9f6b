"""Ticket status state machine."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from dispatch.errors import InvalidTransitionError
from dispatch.models import Ticket

logger = logging.getLogger(__name__)


class TicketState:
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


VALID_TRANSITIONS = {
    TicketState.OPEN: [TicketState.IN_PROGRESS, TicketState.CANCELLED],
    TicketState.IN_PROGRESS: [TicketState.COMPLETED, TicketState.CANCELLED],
    TicketState.COMPLETED: [],
    TicketState.CANCELLED: [],
}

TERMINAL_STATES = frozenset(s for s, targets in VALID_TRANSITIONS.items() if not targets)


def validate_transition(current_state: str, new_state: str) -> None:
    if new_state not in VALID_TRANSITIONS.get(current_state, []):
        raise InvalidTransitionError(current_state, new_state)


def transition(ticket: Ticket, new_state: str, now: datetime | None = None) -> Ticket:
    """Move a ticket to ``new_state``.

    Completing a ticket without an end time stamps it with ``now``.
    Does NOT commit. The caller must commit the transaction.
    """
    validate_transition(ticket.status, new_state)
    previous = ticket.status
    ticket.status = new_state
    if new_state == TicketState.COMPLETED and ticket.end_datetime is None:
        ticket.end_datetime = now or datetime.now(timezone.utc)
    logger.info("Ticket %s: %s -> %s", ticket.id, previous, new_state)
    return ticket
