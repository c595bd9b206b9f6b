"""Ticket report rendering: Jinja2 HTML, converted to PDF with xhtml2pdf."""

from __future__ import annotations

import io
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from zoneinfo import ZoneInfo

from jinja2 import Environment, FileSystemLoader, select_autoescape

from dispatch.errors import DispatchError
from dispatch.models import Ticket
from dispatch.services.payments import expand_ticket, to_money
from dispatch.services.reporting import ensure_aware

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
_env = Environment(loader=FileSystemLoader(str(_TEMPLATE_DIR)), autoescape=select_autoescape(["html", "j2"]))


def format_duration(minutes: int | None) -> str:
    if not minutes:
        return "-"
    hours, mins = divmod(minutes, 60)
    if hours == 0:
        return f"{mins} min"
    if mins == 0:
        return f"{hours} hour{'s' if hours > 1 else ''}"
    return f"{hours}h {mins}min"


def format_currency(value, currency: str = "BRL") -> str:
    amount = to_money(value)
    if currency == "BRL":
        whole, cents = f"{amount:,.2f}".split(".")
        return f"R$ {whole.replace(',', '.')},{cents}"
    return f"{currency} {amount:,.2f}"


def team_summary(ticket: Ticket) -> str:
    """E.g. "02 armed agents + 01 unarmed agent"."""
    agents = [ticket.main_agent] if ticket.main_agent is not None else []
    agents += [s.agent for s in ticket.support_agents or [] if s.agent is not None]
    armed = sum(1 for a in agents if a.is_armed)
    unarmed = len(agents) - armed

    parts = []
    for count, label in ((armed, "armed"), (unarmed, "unarmed")):
        if count:
            parts.append(f"{count:02d} {label} agent{'s' if count > 1 else ''}")
    return " + ".join(parts) or "-"


def _service_minutes(ticket: Ticket) -> int | None:
    if ticket.start_datetime is None or ticket.end_datetime is None:
        return None
    delta = ensure_aware(ticket.end_datetime) - ensure_aware(ticket.start_datetime)
    return max(int(delta.total_seconds() // 60), 0)


def build_context(ticket: Ticket, tz: ZoneInfo, currency: str = "BRL") -> dict:
    def local(moment):
        if moment is None:
            return "-"
        return ensure_aware(moment).astimezone(tz).strftime("%d/%m/%Y %H:%M")

    lines = expand_ticket(ticket)
    total = sum((line.total for line in lines), Decimal("0.00"))
    return {
        "ticket": ticket,
        "client_name": ticket.client.name if ticket.client is not None else "-",
        "vehicle": ticket.vehicle,
        "start": local(ticket.start_datetime),
        "end": local(ticket.end_datetime),
        "duration": format_duration(_service_minutes(ticket)),
        "team": team_summary(ticket),
        "lines": [
            {"role": line.role_label, "agent": line.agent_name, "total": format_currency(line.total, currency)}
            for line in lines
        ],
        "total_cost": format_currency(total, currency),
        "photos": ticket.photos or [],
        "report_date": datetime.now(timezone.utc).astimezone(tz).strftime("%d/%m/%Y"),
    }


def render_html(ticket: Ticket, tz: ZoneInfo, currency: str = "BRL") -> str:
    return _env.get_template("ticket_report.html.j2").render(**build_context(ticket, tz, currency))


def render_pdf(ticket: Ticket, tz: ZoneInfo, currency: str = "BRL") -> bytes:
    """Generate the ticket report PDF. Returns PDF bytes."""
    from xhtml2pdf import pisa

    pdf_buffer = io.BytesIO()
    pisa_status = pisa.CreatePDF(io.StringIO(render_html(ticket, tz, currency)), dest=pdf_buffer)
    if pisa_status.err:
        raise DispatchError(f"PDF generation failed with {pisa_status.err} errors")
    return pdf_buffer.getvalue()
