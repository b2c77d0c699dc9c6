"""Fill index access: structured-query translation, paging and aggregation."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable

from loguru import logger
from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.sql.elements import ColumnElement

from app.errors import CollaboratorError
from app.models import Fill, FillAsset
from app.services.query_compiler import MatchClause, RangeClause, StructuredQuery, TermClause

from .types import FillPage, FillTotals

_TERM_FILTERS: dict[str, Callable[[Any], ColumnElement[bool]]] = {
    "address": lambda value: or_(
        Fill.maker_address == value,
        Fill.taker_address == value,
        Fill.transaction_from == value,
    ),
    "bridgeAddress": lambda value: Fill.bridge_address == value,
    "bridged": lambda value: Fill.bridged == value,
    "protocolVersion": lambda value: Fill.protocol_version == value,
    "relayerId": lambda value: Fill.relayer_lookup_id == value,
    "status": lambda value: Fill.status == value,
    "token": lambda value: Fill.assets.any(FillAsset.token_address == value),
}

_RANGE_COLUMNS = {
    "date": Fill.date,
    "value": Fill.value,
}


def _match_filter(text: str) -> ColumnElement[bool]:
    terms = text.split()
    return and_(*(Fill.search_text.icontains(term, autoescape=True) for term in terms))


def build_filters(query: StructuredQuery) -> list[ColumnElement[bool]]:
    """Translate each clause of ``query`` into a SQL predicate."""

    filters: list[ColumnElement[bool]] = []
    for clause in query.clauses:
        if isinstance(clause, TermClause):
            try:
                filters.append(_TERM_FILTERS[clause.field](clause.value))
            except KeyError:
                raise ValueError(f"Unsupported term field: {clause.field}") from None
        elif isinstance(clause, RangeClause):
            column = _RANGE_COLUMNS.get(clause.field)
            if column is None:
                raise ValueError(f"Unsupported range field: {clause.field}")
            if clause.gte is not None:
                filters.append(column >= clause.gte)
            if clause.lte is not None:
                filters.append(column <= clause.lte)
        elif isinstance(clause, MatchClause):
            filters.append(_match_filter(clause.text))
    return filters


def _zero_if_missing(value: Any) -> Decimal:
    if value is None:
        return Decimal(0)
    return Decimal(str(value))


class FillRepository:
    """Read-only access to indexed fills."""

    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Queries

    def search(self, query: StructuredQuery, *, page: int, limit: int) -> FillPage:
        filters = build_filters(query)
        logger.debug("Fill search query={} page={} limit={}", query.as_dict(), page, limit)

        statement = (
            select(Fill)
            .options(selectinload(Fill.relayer), selectinload(Fill.assets))
            .where(*filters)
            .order_by(Fill.date.desc(), Fill.fill_id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        total_statement = select(func.count(Fill.fill_id)).where(*filters)

        try:
            fills = list(self._session.execute(statement).scalars().all())
            total = self._session.execute(total_statement).scalar_one()
        except SQLAlchemyError as exc:
            raise CollaboratorError("fill index", str(exc)) from exc
        return FillPage(total=int(total or 0), fills=fills)

    def aggregate(self, query: StructuredQuery) -> FillTotals:
        filters = build_filters(query)
        logger.debug("Fill aggregation query={}", query.as_dict())

        statement = select(
            func.count(Fill.fill_id).label("fill_count"),
            func.sum(Fill.value).label("fill_volume"),
            func.sum(Fill.protocol_fee_eth).label("protocol_fees_eth"),
            func.sum(Fill.protocol_fee_usd).label("protocol_fees_usd"),
            func.sum(Fill.trade_count_contribution).label("trade_count"),
            func.sum(Fill.trade_volume).label("trade_volume"),
        ).where(*filters)

        try:
            row = self._session.execute(statement).one()
        except SQLAlchemyError as exc:
            raise CollaboratorError("fill index", str(exc)) from exc

        return FillTotals(
            fill_count=int(row.fill_count or 0),
            fill_volume=_zero_if_missing(row.fill_volume),
            protocol_fees_eth=_zero_if_missing(row.protocol_fees_eth),
            protocol_fees_usd=_zero_if_missing(row.protocol_fees_usd),
            trade_count=_zero_if_missing(row.trade_count),
            trade_volume=_zero_if_missing(row.trade_volume),
        )

    def get_fill(self, fill_id: str) -> Fill | None:
        statement = (
            select(Fill)
            .options(selectinload(Fill.relayer), selectinload(Fill.assets))
            .where(Fill.fill_id == fill_id)
        )
        try:
            return self._session.execute(statement).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise CollaboratorError("fill index", str(exc)) from exc


__all__ = ["FillRepository", "build_filters"]
