"""Typed domain values that flow between validation, querying and statistics."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


class FillStatus(str, Enum):
    FAILED = "failed"
    PENDING = "pending"
    SUCCESSFUL = "successful"


# Public status names and the integer codes stored on indexed fills.
FILL_STATUS_CODES: dict[FillStatus, int] = {
    FillStatus.PENDING: 0,
    FillStatus.SUCCESSFUL: 1,
    FillStatus.FAILED: 2,
}
_STATUS_BY_CODE: dict[int, FillStatus] = {code: status for status, code in FILL_STATUS_CODES.items()}


def reverse_map_status(status: FillStatus | str) -> int:
    """Translate a public status name into its stored code."""

    return FILL_STATUS_CODES[FillStatus(status)]


def map_status(code: int | None) -> FillStatus | None:
    """Translate a stored status code into its public name.

    Codes outside the table return ``None`` so callers can surface an unknown
    status instead of guessing one.
    """

    if code is None:
        return None
    return _STATUS_BY_CODE.get(code)


@dataclass(frozen=True, slots=True)
class FilterCriteria:
    """Validated fill filter; ``None`` leaves a field unconstrained."""

    address: str | None = None
    bridged: bool | None = None
    bridge_address: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    protocol_version: int | None = None
    relayer_id: int | None = None
    search_term: str | None = None
    status: int | None = None
    token: str | None = None
    value_from: float | None = None
    value_to: float | None = None


@dataclass(frozen=True, slots=True)
class Period:
    date_from: datetime
    date_to: datetime

    @property
    def duration(self) -> timedelta:
        return self.date_to - self.date_from


@dataclass(frozen=True, slots=True)
class ProtocolFees:
    ETH: str
    USD: float


@dataclass(frozen=True, slots=True)
class StatsSnapshot:
    """Aggregated network metrics for one period."""

    fill_count: int
    fill_volume: float
    protocol_fees: ProtocolFees
    trade_count: float
    trade_volume: float


@dataclass(frozen=True, slots=True)
class StatsComparison:
    """Current-period metrics with their change against the previous period.

    A ``*_change`` of ``None`` means the previous value was zero while the
    current one is not, so no finite percentage exists.
    """

    fill_count: int
    fill_count_change: float | None
    fill_volume: float
    fill_volume_change: float | None
    protocol_fees: ProtocolFees
    protocol_fees_change: float | None
    trade_count: float
    trade_count_change: float | None
    trade_volume: float
    trade_volume_change: float | None
