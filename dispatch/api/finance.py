"""Finance ledger: payment lines per responder and the paid/pending toggle."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.config import Settings
from dispatch.db.engine import get_db
from dispatch.dependencies import get_settings_dep, require_staff
from dispatch.services.auth import AuthContext
from dispatch.services.views import FinanceLedgerView
from dispatch.schemas import LedgerRead, PaymentSlotRequest

router = APIRouter(prefix="/api/finance", tags=["finance"])


@router.get("/ledger", response_model=LedgerRead)
async def ledger(
    status: str = "pending",
    q: str = "",
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
):
    view = FinanceLedgerView(db, settings, status=status, search=q)
    return (await view.load()).unwrap()


@router.post("/payments/mark-paid", response_model=LedgerRead)
async def mark_paid(
    body: PaymentSlotRequest,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
):
    view = FinanceLedgerView(db, settings, status="all")
    return (await view.mark_paid(body.ticket_id, body.slot)).unwrap()


@router.post("/payments/undo", response_model=LedgerRead)
async def undo_payment(
    body: PaymentSlotRequest,
    auth: AuthContext = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
):
    view = FinanceLedgerView(db, settings, status="all")
    return (await view.undo_payment(body.ticket_id, body.slot)).unwrap()
