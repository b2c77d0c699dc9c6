"""Domain values for fill filtering and network statistics."""

from .models import (
    FILL_STATUS_CODES,
    FillStatus,
    FilterCriteria,
    Period,
    ProtocolFees,
    StatsComparison,
    StatsSnapshot,
    map_status,
    reverse_map_status,
)
from .periods import named_period, previous_period

__all__ = [
    "FILL_STATUS_CODES",
    "FillStatus",
    "FilterCriteria",
    "Period",
    "ProtocolFees",
    "StatsComparison",
    "StatsSnapshot",
    "map_status",
    "named_period",
    "previous_period",
    "reverse_map_status",
]
