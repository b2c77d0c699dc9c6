"""Comparison-period arithmetic for network statistics."""

from __future__ import annotations

from datetime import datetime, timedelta

from .models import Period

PERIOD_GAP = timedelta(milliseconds=1)

NAMED_PERIODS: dict[str, timedelta] = {
    "day": timedelta(days=1),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "year": timedelta(days=365),
}


def previous_period(date_from: datetime, date_to: datetime) -> Period:
    """Return the range of equal length that ends just before ``date_from``."""

    duration = date_to - date_from
    prev_to = date_from - PERIOD_GAP
    return Period(date_from=prev_to - duration, date_to=prev_to)


def named_period(name: str, now: datetime) -> Period:
    """Return the window called ``name`` that ends at ``now``."""

    return Period(date_from=now - NAMED_PERIODS[name], date_to=now)


__all__ = ["NAMED_PERIODS", "PERIOD_GAP", "named_period", "previous_period"]
