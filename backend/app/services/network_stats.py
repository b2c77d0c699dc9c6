"""Period-over-period network statistics."""

from __future__ import annotations

import dataclasses
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from decimal import Decimal

from loguru import logger
from sqlalchemy.orm import Session, sessionmaker

from app.domain import (
    FilterCriteria,
    Period,
    ProtocolFees,
    StatsComparison,
    StatsSnapshot,
    named_period,
    previous_period,
)
from app.domain.periods import NAMED_PERIODS
from app.errors import ValidationError
from app.repositories import FillRepository

from .query_compiler import compile_filter
from .token_amounts import ETH_TOKEN_DECIMALS, format_token_amount


def percentage_change(previous: float | Decimal, current: float | Decimal) -> float | None:
    """Signed percentage change from ``previous`` to ``current``.

    Returns ``0.0`` when both are zero and ``None`` when only ``previous`` is
    zero, since growth from nothing has no finite percentage.
    """

    if previous == 0:
        return 0.0 if current == 0 else None
    return float((Decimal(str(current)) - Decimal(str(previous))) / Decimal(str(previous)) * 100)


class NetworkStatsService:
    """Aggregate fill metrics for a window and the window before it.

    Both aggregation queries run at once, each on its own session, and both
    must succeed before any change is computed.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def compute_stats(
        self,
        date_from: datetime,
        date_to: datetime,
        criteria: FilterCriteria | None = None,
    ) -> StatsComparison:
        criteria = criteria or FilterCriteria()
        previous = previous_period(date_from, date_to)
        logger.info(
            "Computing network stats for {} - {} against {} - {}",
            date_from.isoformat(),
            date_to.isoformat(),
            previous.date_from.isoformat(),
            previous.date_to.isoformat(),
        )

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="network-stats") as pool:
            current_future = pool.submit(
                self._snapshot, Period(date_from=date_from, date_to=date_to), criteria
            )
            previous_future = pool.submit(self._snapshot, previous, criteria)
            current_stats = current_future.result()
            previous_stats = previous_future.result()

        return StatsComparison(
            fill_count=current_stats.fill_count,
            fill_count_change=percentage_change(
                previous_stats.fill_count, current_stats.fill_count
            ),
            fill_volume=current_stats.fill_volume,
            fill_volume_change=percentage_change(
                previous_stats.fill_volume, current_stats.fill_volume
            ),
            protocol_fees=current_stats.protocol_fees,
            protocol_fees_change=percentage_change(
                previous_stats.protocol_fees.USD, current_stats.protocol_fees.USD
            ),
            trade_count=current_stats.trade_count,
            trade_count_change=percentage_change(
                previous_stats.trade_count, current_stats.trade_count
            ),
            trade_volume=current_stats.trade_volume,
            trade_volume_change=percentage_change(
                previous_stats.trade_volume, current_stats.trade_volume
            ),
        )

    def compute_for_period(
        self,
        period_name: str,
        criteria: FilterCriteria | None = None,
        *,
        now: datetime | None = None,
    ) -> tuple[Period, StatsComparison]:
        """Compute stats for a named window (day, week, month, year).

        The window ends at ``criteria.date_to`` or ``now``. An explicit
        ``criteria.date_from`` replaces the window's start.
        """

        if period_name not in NAMED_PERIODS:
            raise ValidationError("period", "Must be one of: " + ", ".join(NAMED_PERIODS))

        criteria = criteria or FilterCriteria()
        window = named_period(period_name, criteria.date_to or now or datetime.now(timezone.utc))
        if criteria.date_from is not None:
            if criteria.date_from > window.date_to:
                raise ValidationError("dateFrom", "Cannot be greater than dateTo")
            window = Period(date_from=criteria.date_from, date_to=window.date_to)
        return window, self.compute_stats(window.date_from, window.date_to, criteria)

    def _snapshot(self, period: Period, criteria: FilterCriteria) -> StatsSnapshot:
        scoped = dataclasses.replace(criteria, date_from=period.date_from, date_to=period.date_to)
        query = compile_filter(scoped)
        with self._session_factory() as session:
            totals = FillRepository(session).aggregate(query)

        return StatsSnapshot(
            fill_count=totals.fill_count,
            fill_volume=float(totals.fill_volume),
            protocol_fees=ProtocolFees(
                ETH=format_token_amount(totals.protocol_fees_eth, ETH_TOKEN_DECIMALS),
                USD=float(totals.protocol_fees_usd),
            ),
            trade_count=float(totals.trade_count),
            trade_volume=float(totals.trade_volume),
        )


__all__ = ["NetworkStatsService", "percentage_change"]
