"""Shared repository result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from app.models import Fill


@dataclass(slots=True)
class FillPage:
    """One page of fills plus the unpaginated match count."""

    total: int
    fills: list[Fill] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class FillTotals:
    """Raw aggregation sums; absent sums are reported as zero."""

    fill_count: int
    fill_volume: Decimal
    protocol_fees_eth: Decimal
    protocol_fees_usd: Decimal
    trade_count: Decimal
    trade_volume: Decimal


__all__ = ["FillPage", "FillTotals"]
