"""Dashboard and performance aggregation over already-fetched tickets."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable
from zoneinfo import ZoneInfo

from dispatch.errors import ValidationFailedError
from dispatch.models import Ticket
from dispatch.services.ticket_status import TicketState

RANGE_PRESETS = ("7days", "month", "year", "all", "custom")
UNKNOWN_AGENT = "Unknown"
GENERAL_OPERATOR_ID = "system"
GENERAL_OPERATOR_NAME = "General/Central"
OTHER_CLIENTS = "Others"


def ensure_aware(moment: datetime) -> datetime:
    """SQLite drops tzinfo on read; stored values are always UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass
class DateWindow:
    """Inclusive [start, end] window; ``None`` bounds mean unbounded."""

    start: datetime | None = None
    end: datetime | None = None

    def contains(self, moment: datetime | None) -> bool:
        if moment is None:
            return self.start is None and self.end is None
        moment = ensure_aware(moment)
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True


def _start_of_day(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def _end_of_day(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.max, tzinfo=tz)


def resolve_range(
    preset: str,
    now: datetime,
    tz: ZoneInfo,
    start_date: date | None = None,
    end_date: date | None = None,
) -> DateWindow:
    """Turn a range preset into a concrete window in the reporting timezone."""
    if preset not in RANGE_PRESETS:
        raise ValidationFailedError(f"Unknown range: {preset}")
    if preset == "all":
        return DateWindow()

    local_now = ensure_aware(now).astimezone(tz)
    end = _end_of_day(local_now.date(), tz)

    if preset == "custom":
        if start_date is None:
            raise ValidationFailedError("Custom range requires a start date")
        if end_date is not None:
            end = _end_of_day(end_date, tz)
        start = _start_of_day(start_date, tz)
        if start > end:
            raise ValidationFailedError("Custom range start is after its end")
        return DateWindow(start, end)

    if preset == "7days":
        start = local_now - timedelta(days=7)
    elif preset == "month":
        start = _start_of_day(local_now.date().replace(day=1), tz)
    else:
        start = _start_of_day(date(local_now.year, 1, 1), tz)
    return DateWindow(start, end)


def filter_by_created(tickets: Iterable[Ticket], window: DateWindow) -> list[Ticket]:
    return [t for t in tickets if window.contains(t.created_at)]


# ── Trend / distribution ─────────────────────────────────

@dataclass
class ChartPoint:
    name: str
    value: int


def trend_buckets(tickets: Iterable[Ticket], tz: ZoneInfo) -> list[ChartPoint]:
    """Tickets per local calendar day (dd/mm). Days without tickets are not emitted."""
    daily: dict[str, int] = {}
    for t in tickets:
        if t.created_at is None:
            continue
        day = ensure_aware(t.created_at).astimezone(tz).strftime("%d/%m")
        daily[day] = daily.get(day, 0) + 1
    return [ChartPoint(name, value) for name, value in daily.items()]


def status_distribution(tickets: list[Ticket]) -> list[ChartPoint]:
    return [
        ChartPoint(TicketState.COMPLETED, sum(1 for t in tickets if t.status == TicketState.COMPLETED)),
        ChartPoint(TicketState.OPEN, sum(1 for t in tickets if t.status == TicketState.OPEN)),
        ChartPoint(TicketState.CANCELLED, sum(1 for t in tickets if t.status == TicketState.CANCELLED)),
    ]


def top_clients(tickets: Iterable[Ticket], limit: int = 5) -> list[ChartPoint]:
    counts: dict[str, int] = {}
    for t in tickets:
        name = t.client.name if t.client is not None and t.client.name else OTHER_CLIENTS
        counts[name] = counts.get(name, 0) + 1
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [ChartPoint(name, value) for name, value in ranked[:limit]]


# ── Rankings ─────────────────────────────────────────────

def completion_minutes(ticket: Ticket) -> int | None:
    """Whole minutes from creation to end, truncated; None when either timestamp is missing."""
    if ticket.created_at is None or ticket.end_datetime is None:
        return None
    delta = ensure_aware(ticket.end_datetime) - ensure_aware(ticket.created_at)
    return int(delta.total_seconds() / 60)


@dataclass
class AgentPerformance:
    id: str | None
    name: str
    count: int
    avg_minutes: int


@dataclass
class OperatorPerformance:
    id: str
    name: str
    count: int


@dataclass
class GlobalStats:
    avg_completion_minutes: int
    total_finished: int
    success_rate: int


def rank_agents(tickets: Iterable[Ticket]) -> list[AgentPerformance]:
    """Completed tickets per main agent, busiest first.

    The average only uses tickets with a positive duration; bad rows
    (end before creation) still count towards the ticket total.
    """
    buckets: dict[str | None, dict] = {}
    for t in tickets:
        if t.status != TicketState.COMPLETED:
            continue
        bucket = buckets.get(t.main_agent_id)
        if bucket is None:
            name = t.main_agent.name if t.main_agent is not None else UNKNOWN_AGENT
            bucket = buckets[t.main_agent_id] = {"name": name, "count": 0, "minutes": 0, "timed": 0}
        bucket["count"] += 1
        minutes = completion_minutes(t)
        if minutes is not None and minutes > 0:
            bucket["minutes"] += minutes
            bucket["timed"] += 1

    ranking = [
        AgentPerformance(
            id=agent_id,
            name=b["name"],
            count=b["count"],
            avg_minutes=_round_half_up(Decimal(b["minutes"]) / b["timed"]) if b["timed"] else 0,
        )
        for agent_id, b in buckets.items()
    ]
    return sorted(ranking, key=lambda a: a.count, reverse=True)


def rank_operators(
    tickets: Iterable[Ticket], operator_names: dict[str, str] | None = None,
) -> list[OperatorPerformance]:
    """All tickets per operator; tickets without one fall into the General/Central bucket."""
    names = operator_names or {}
    buckets: dict[str, OperatorPerformance] = {}
    for t in tickets:
        op_id = t.operator_id or GENERAL_OPERATOR_ID
        entry = buckets.get(op_id)
        if entry is None:
            if t.operator is not None:
                name = t.operator.name
            else:
                name = names.get(t.operator_id or "", GENERAL_OPERATOR_NAME)
            entry = buckets[op_id] = OperatorPerformance(id=op_id, name=name, count=0)
        entry.count += 1
    return sorted(buckets.values(), key=lambda o: o.count, reverse=True)


def global_stats(tickets: list[Ticket]) -> GlobalStats:
    """Unlike the agent ranking, the average spreads every timed duration over all finished tickets."""
    finished = [t for t in tickets if t.status == TicketState.COMPLETED]
    cancelled = sum(1 for t in tickets if t.status == TicketState.CANCELLED)
    total_minutes = sum(m for m in (completion_minutes(t) for t in finished) if m is not None)

    avg = _round_half_up(Decimal(total_minutes) / len(finished)) if finished else 0
    success = 0
    if tickets:
        closed = len(finished) + cancelled
        success = _round_half_up(Decimal(len(finished) * 100) / (closed or 1))
    return GlobalStats(avg_completion_minutes=avg, total_finished=len(finished), success_rate=success)
