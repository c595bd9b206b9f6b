"""Per-screen view models.

Each view owns one screen's data. ``load()`` re-fetches everything it needs
and recomputes from scratch; ``refresh()`` is the same call, kept as the
explicit recovery action after an error or a mutation. Failures come back
as a ``LoadResult`` carrying a typed error instead of raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable, Generic, TypeVar
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.config import Settings
from dispatch.db import crud
from dispatch.errors import DispatchError, NetworkOrServiceError, ValidationFailedError
from dispatch.services import payments, reporting
from dispatch.services.geocoding import AgentDistance, Coordinates, Geocoder, nearest_agents
from dispatch.services.ticket_status import TicketState

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class LoadResult(Generic[T]):
    data: T | None = None
    error: DispatchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.data


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScreenView(Generic[T]):
    """Base class: subclasses implement ``_fetch``."""

    def __init__(self, db: AsyncSession, settings: Settings, clock: Callable[[], datetime] = _utcnow):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.result: LoadResult[T] | None = None

    async def _fetch(self) -> T:
        raise NotImplementedError

    async def load(self) -> LoadResult[T]:
        try:
            data = await self._fetch()
        except DispatchError as exc:
            logger.warning("%s failed to load: %s", type(self).__name__, exc.detail)
            self.result = LoadResult(error=exc)
        except SQLAlchemyError as exc:
            logger.exception("%s failed to load", type(self).__name__)
            err = NetworkOrServiceError("Database request failed")
            err.__cause__ = exc
            self.result = LoadResult(error=err)
        else:
            self.result = LoadResult(data=data)
        return self.result

    async def refresh(self) -> LoadResult[T]:
        return await self.load()


# ── Finance ledger ───────────────────────────────────────

@dataclass
class LedgerData:
    lines: list[payments.PaymentLine]
    summary: payments.LedgerSummary


class FinanceLedgerView(ScreenView[LedgerData]):
    """Payment lines of completed tickets, filtered by status and a search term."""

    def __init__(self, db, settings, status: str = payments.PENDING, search: str = "", **kwargs):
        super().__init__(db, settings, **kwargs)
        if status not in (payments.PENDING, payments.PAID, "all"):
            raise ValidationFailedError(f"Invalid ledger status: {status}")
        self.status = status
        self.search = search

    async def _fetch(self) -> LedgerData:
        tickets = await crud.list_tickets(self.db, status=TicketState.COMPLETED)
        lines = payments.expand_payment_lines(tickets)
        return LedgerData(
            lines=payments.filter_lines(lines, self.status, self.search),
            summary=payments.ledger_summary(lines),
        )

    async def mark_paid(self, ticket_id: str, slot: str) -> LoadResult[LedgerData]:
        await payments.mark_paid(self.db, ticket_id, slot, now=self.clock())
        return await self.refresh()

    async def undo_payment(self, ticket_id: str, slot: str) -> LoadResult[LedgerData]:
        await payments.undo_payment(self.db, ticket_id, slot)
        return await self.refresh()


# ── Dashboard / performance ──────────────────────────────

class _RangedView(ScreenView[T]):
    def __init__(
        self, db, settings, preset: str = "month",
        start: date | None = None, end: date | None = None, **kwargs,
    ):
        super().__init__(db, settings, **kwargs)
        self.preset = preset
        self.start = start
        self.end = end

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.settings.reporting.timezone)

    def window(self) -> reporting.DateWindow:
        return reporting.resolve_range(self.preset, self.clock(), self.tz, self.start, self.end)


@dataclass
class DashboardStats:
    total_tickets: int
    open_tickets: int
    completed_tickets: int
    cancelled_tickets: int
    total_clients: int
    active_agents: int


@dataclass
class DashboardData:
    stats: DashboardStats
    payments: payments.PaymentSummary
    trend: list[reporting.ChartPoint]
    status_distribution: list[reporting.ChartPoint]
    top_clients: list[reporting.ChartPoint]


class DashboardView(_RangedView[DashboardData]):
    async def _fetch(self) -> DashboardData:
        window = self.window()
        # One session cannot run statements concurrently; counts go one after another.
        total_clients = await crud.count_clients(self.db)
        active_agents = await crud.count_active_agents(self.db)
        tickets = await crud.list_tickets_by_creation(self.db)
        in_range = reporting.filter_by_created(tickets, window)

        completed_all = [t for t in tickets if t.status == TicketState.COMPLETED]
        completed_in_range = [t for t in in_range if t.status == TicketState.COMPLETED]
        summary = payments.summarize_payments(
            payments.expand_payment_lines(completed_all),
            payments.expand_payment_lines(completed_in_range),
        )
        dist = reporting.status_distribution(in_range)
        counts = {p.name: p.value for p in dist}
        return DashboardData(
            stats=DashboardStats(
                total_tickets=len(in_range),
                open_tickets=counts[TicketState.OPEN],
                completed_tickets=counts[TicketState.COMPLETED],
                cancelled_tickets=counts[TicketState.CANCELLED],
                total_clients=total_clients,
                active_agents=active_agents,
            ),
            payments=summary,
            trend=reporting.trend_buckets(in_range, self.tz),
            status_distribution=dist,
            top_clients=reporting.top_clients(in_range, self.settings.reporting.top_clients_limit),
        )


@dataclass
class PerformanceData:
    agents: list[reporting.AgentPerformance]
    operators: list[reporting.OperatorPerformance]
    stats: reporting.GlobalStats


class PerformanceView(_RangedView[PerformanceData]):
    async def _fetch(self) -> PerformanceData:
        window = self.window()
        operators = await crud.list_operators(self.db)
        tickets = reporting.filter_by_created(await crud.list_tickets_by_creation(self.db), window)
        return PerformanceData(
            agents=reporting.rank_agents(tickets),
            operators=reporting.rank_operators(tickets, {op.id: op.name for op in operators}),
            stats=reporting.global_stats(tickets),
        )


# ── Agent map ────────────────────────────────────────────

@dataclass
class AgentMapData:
    origin: Coordinates | None
    agents: list[AgentDistance] = field(default_factory=list)


class AgentMapView(ScreenView[AgentMapData]):
    """Active located agents; with a query, sorted by distance from the geocoded point."""

    def __init__(self, db, settings, geocoder: Geocoder, query: str = "", **kwargs):
        super().__init__(db, settings, **kwargs)
        self.geocoder = geocoder
        self.query = query

    async def _fetch(self) -> AgentMapData:
        agents = await crud.list_located_agents(self.db)
        if not self.query.strip():
            return AgentMapData(
                origin=None,
                agents=[AgentDistance(agent=a, distance_km=0.0) for a in agents],
            )
        origin = await self.geocoder.locate(self.query)
        if origin is None:
            return AgentMapData(origin=None)
        return AgentMapData(origin=origin, agents=nearest_agents(agents, origin.lat, origin.lon))
