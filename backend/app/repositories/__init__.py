"""Repository abstractions for database interactions."""

from .fill_repository import FillRepository, build_filters
from .relayer_repository import RelayerRepository
from .search_log_repository import SearchLogRepository
from .types import FillPage, FillTotals

__all__ = [
    "FillPage",
    "FillRepository",
    "FillTotals",
    "RelayerRepository",
    "SearchLogRepository",
    "build_filters",
]
