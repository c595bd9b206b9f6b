from __future__ import annotations
from datetime import datetime
from typing import Literal
from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str
    password: str


class UserRead(BaseModel):
    id: str
    email: str
    display_name: str
    role: Literal["admin", "operator", "agent", "client_viewer"]
    is_active: bool
    last_login_at: datetime | None = None

    model_config = {"from_attributes": True}
