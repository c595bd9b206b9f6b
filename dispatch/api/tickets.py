"""Ticket API: CRUD, status transitions, photos and the printable report."""

from __future__ import annotations

from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.config import Settings
from dispatch.db import crud
from dispatch.db.engine import get_db
from dispatch.dependencies import get_settings_dep, require_reader, require_staff
from dispatch.services import ticket_report
from dispatch.services.auth import AuthContext
from dispatch.services.ticket_status import transition
from dispatch.schemas import (
    TicketCreate, TicketPhotoCreate, TicketPhotoRead, TicketRead, TicketStatusChange, TicketUpdate,
)

router = APIRouter(prefix="/api/tickets", tags=["tickets"])


def _matches(ticket, needle: str) -> bool:
    haystack = (ticket.code, ticket.city, ticket.client.name if ticket.client else None)
    return any(needle in (value or "").lower() for value in haystack)


@router.get("", response_model=list[TicketRead])
async def list_tickets(
    status: str | None = None,
    q: str = "",
    auth: AuthContext = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
):
    tickets = await crud.list_tickets(db, status=status)
    needle = q.strip().lower()
    if needle:
        tickets = [t for t in tickets if _matches(t, needle)]
    return tickets


@router.post("", response_model=TicketRead, status_code=201)
async def create_ticket(
    body: TicketCreate,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    fields = body.model_dump(exclude={"support_agents"})
    support = [s.model_dump() for s in body.support_agents]
    return await crud.create_ticket(db, support_agents=support, created_by=auth.user_id, **fields)


@router.get("/{ticket_id}", response_model=TicketRead)
async def get_ticket(
    ticket_id: str,
    auth: AuthContext = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
):
    return await crud.get_ticket(db, ticket_id)


@router.put("/{ticket_id}", response_model=TicketRead)
async def update_ticket(
    ticket_id: str,
    body: TicketUpdate,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    ticket = await crud.get_ticket(db, ticket_id)
    updates = body.model_dump(exclude_unset=True, exclude={"support_agents"})
    support = None
    if body.support_agents is not None:
        support = [s.model_dump() for s in body.support_agents]
    return await crud.update_ticket(db, ticket, support_agents=support, **updates)


@router.delete("/{ticket_id}", status_code=204)
async def delete_ticket(
    ticket_id: str,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    await crud.delete_ticket(db, ticket_id)


@router.post("/{ticket_id}/status", response_model=TicketRead)
async def change_status(
    ticket_id: str,
    body: TicketStatusChange,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    ticket = await crud.get_ticket(db, ticket_id)
    transition(ticket, body.status)
    await db.commit()
    return await crud.get_ticket(db, ticket_id)


# ── Photos ───────────────────────────────────────────────

@router.get("/{ticket_id}/photos", response_model=list[TicketPhotoRead])
async def list_photos(
    ticket_id: str,
    auth: AuthContext = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
):
    await crud.get_ticket(db, ticket_id)
    return await crud.list_ticket_photos(db, ticket_id)


@router.post("/{ticket_id}/photos", response_model=TicketPhotoRead, status_code=201)
async def add_photo(
    ticket_id: str,
    body: TicketPhotoCreate,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    return await crud.add_ticket_photo(
        db, ticket_id, body.file_url, caption=body.caption, uploaded_by=auth.user_id,
    )


# ── Report ───────────────────────────────────────────────

@router.get("/{ticket_id}/report")
async def ticket_report_view(
    ticket_id: str,
    format: str = "pdf",
    auth: AuthContext = Depends(require_reader),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
):
    ticket = await crud.get_ticket(db, ticket_id)
    tz = ZoneInfo(settings.reporting.timezone)
    if format == "html":
        return HTMLResponse(ticket_report.render_html(ticket, tz, settings.finance.currency))
    pdf_bytes = ticket_report.render_pdf(ticket, tz, settings.finance.currency)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="ticket_{ticket.code or ticket.id}.pdf"'},
    )
