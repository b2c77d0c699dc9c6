"""Paginated fill search used by the listing and detail endpoints."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Sequence

from loguru import logger
from sqlalchemy.orm import Session

from app.domain import FilterCriteria, map_status
from app.models import Fill
from app.repositories import FillRepository
from app.schemas import FillAsset, FillDetail, FillSummary, ProtocolFee, RelayerSummary

from .background import BestEffortRunner
from .query_compiler import compile_filter
from .token_amounts import ETH_TOKEN_DECIMALS, format_token_amount

SearchTermLogger = Callable[[str, datetime], None]


@dataclass(slots=True)
class SearchResult:
    docs: Sequence[FillSummary]
    page: int
    pages: int
    total: int


class FillSearchService:
    """Run validated fill filters against the fill index.

    When a filter carries a search term, the term is handed to the
    best-effort runner before the search starts; the search never waits on
    it and is unaffected if logging fails.
    """

    def __init__(
        self,
        session: Session,
        *,
        log_search_term: SearchTermLogger | None = None,
        runner: BestEffortRunner | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repo = FillRepository(session)
        self._log_search_term = log_search_term
        self._runner = runner
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def search(self, criteria: FilterCriteria, *, page: int, limit: int) -> SearchResult:
        if page < 1 or limit < 1:
            raise ValueError("page and limit must be positive")

        query = compile_filter(criteria)
        if criteria.search_term is not None:
            self._schedule_search_log(criteria.search_term)

        result = self._repo.search(query, page=page, limit=limit)
        pages = math.ceil(result.total / limit)
        logger.info(
            "Fill search matched {} fills (page {}/{}, limit {})",
            result.total,
            page,
            pages,
            limit,
        )
        return SearchResult(
            docs=[self._build_summary(fill) for fill in result.fills],
            page=page,
            pages=pages,
            total=result.total,
        )

    def get_fill(self, fill_id: str) -> FillDetail | None:
        record = self._repo.get_fill(fill_id)
        if record is None:
            return None
        return FillDetail(
            **self._summary_fields(record),
            transaction_hash=record.transaction_hash,
            order_hash=record.order_hash,
            transaction_from=record.transaction_from,
        )

    def _schedule_search_log(self, term: str) -> None:
        if self._log_search_term is None or self._runner is None:
            return
        self._runner.submit("log_search_term", self._log_search_term, term, self._clock())

    def _build_summary(self, record: Fill) -> FillSummary:
        return FillSummary(**self._summary_fields(record))

    @staticmethod
    def _summary_fields(record: Fill) -> dict[str, Any]:
        status = map_status(record.status)
        return {
            "id": record.fill_id,
            "date": record.date,
            "status": status.value if status is not None else None,
            "protocol_version": record.protocol_version,
            "relayer": RelayerSummary.model_validate(record.relayer) if record.relayer else None,
            "maker_address": record.maker_address,
            "taker_address": record.taker_address,
            "bridge_address": record.bridge_address,
            "bridged": record.bridged,
            "value": record.value,
            "trade_volume": record.trade_volume,
            "protocol_fee": ProtocolFee(
                ETH=format_token_amount(record.protocol_fee_eth, ETH_TOKEN_DECIMALS),
                USD=float(record.protocol_fee_usd) if record.protocol_fee_usd is not None else None,
            ),
            "assets": [FillAsset.model_validate(asset) for asset in record.assets],
        }


__all__ = ["FillSearchService", "SearchResult", "SearchTermLogger"]
