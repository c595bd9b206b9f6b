from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, field_validator

PLACEHOLDER = "-"


class PaymentLineRead(BaseModel):
    ticket_id: str
    ticket_code: str = PLACEHOLDER
    client_name: str = PLACEHOLDER
    start_datetime: datetime | None = None
    slot: str  # main | support-N
    role_label: str
    agent_id: str | None = None
    agent_name: str
    is_armed: bool | None = None
    pix_key: str = PLACEHOLDER
    bank_name: str = PLACEHOLDER
    bank_agency: str = PLACEHOLDER
    bank_account: str = PLACEHOLDER
    bank_account_type: str = PLACEHOLDER
    toll_cost: Decimal
    food_cost: Decimal
    other_costs: Decimal
    total: Decimal
    payment_status: str
    paid_at: datetime | None = None

    model_config = {"from_attributes": True}

    @field_validator(
        "ticket_code", "client_name", "pix_key", "bank_name",
        "bank_agency", "bank_account", "bank_account_type",
        mode="before",
    )
    @classmethod
    def _placeholder(cls, v):
        return v or PLACEHOLDER


class LedgerSummaryRead(BaseModel):
    pending_count: int
    paid_count: int
    pending_total: Decimal

    model_config = {"from_attributes": True}


class LedgerRead(BaseModel):
    lines: list[PaymentLineRead]
    summary: LedgerSummaryRead

    model_config = {"from_attributes": True}


class PaymentSlotRequest(BaseModel):
    ticket_id: str
    slot: str  # main | support-N


class PaymentSummaryRead(BaseModel):
    pending_value: Decimal
    pending_agents: int
    paid_value: Decimal
    paid_agents: int

    model_config = {"from_attributes": True}
