"""Compile a validated fill filter into a backend-agnostic structured query."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from app.domain import FilterCriteria


@dataclass(frozen=True, slots=True)
class TermClause:
    """Equality on a single indexed field."""

    field: str
    value: Any


@dataclass(frozen=True, slots=True)
class RangeClause:
    """Inclusive bounds on an indexed field; either end may be open."""

    field: str
    gte: Any = None
    lte: Any = None


@dataclass(frozen=True, slots=True)
class MatchClause:
    """Full-text match against the searchable content of a fill."""

    text: str


Clause = TermClause | RangeClause | MatchClause


@dataclass(frozen=True, slots=True)
class StructuredQuery:
    """All clauses must hold for a fill to match."""

    clauses: tuple[Clause, ...] = ()

    @property
    def is_unconstrained(self) -> bool:
        return not self.clauses

    def as_dict(self) -> dict[str, Any]:
        """Render as an Elasticsearch-style ``bool`` query for diagnostics."""

        if self.is_unconstrained:
            return {"match_all": {}}

        filters: list[dict[str, Any]] = []
        must: list[dict[str, Any]] = []
        for clause in self.clauses:
            if isinstance(clause, TermClause):
                filters.append({"term": {clause.field: _render_value(clause.value)}})
            elif isinstance(clause, RangeClause):
                bounds = {
                    key: _render_value(value)
                    for key, value in (("gte", clause.gte), ("lte", clause.lte))
                    if value is not None
                }
                filters.append({"range": {clause.field: bounds}})
            else:
                must.append({"simple_query_string": {"query": clause.text}})

        query: dict[str, Any] = {"filter": filters}
        if must:
            query["must"] = must
        return {"bool": query}


def _render_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


_TERM_FIELDS: tuple[tuple[str, str], ...] = (
    ("address", "address"),
    ("bridge_address", "bridgeAddress"),
    ("bridged", "bridged"),
    ("protocol_version", "protocolVersion"),
    ("relayer_id", "relayerId"),
    ("status", "status"),
    ("token", "token"),
)


def compile_filter(criteria: FilterCriteria) -> StructuredQuery:
    clauses: list[Clause] = []

    for attribute, index_field in _TERM_FIELDS:
        value = getattr(criteria, attribute)
        if value is not None:
            clauses.append(TermClause(field=index_field, value=value))

    if criteria.date_from is not None or criteria.date_to is not None:
        clauses.append(RangeClause(field="date", gte=criteria.date_from, lte=criteria.date_to))

    if criteria.value_from is not None or criteria.value_to is not None:
        clauses.append(RangeClause(field="value", gte=criteria.value_from, lte=criteria.value_to))

    if criteria.search_term is not None:
        clauses.append(MatchClause(text=criteria.search_term))

    return StructuredQuery(clauses=tuple(clauses))


__all__ = [
    "Clause",
    "MatchClause",
    "RangeClause",
    "StructuredQuery",
    "TermClause",
    "compile_filter",
]
