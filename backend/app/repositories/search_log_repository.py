"""Search-analytics persistence."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models import SearchLogEntry


class SearchLogRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def record(self, term: str, searched_at: datetime) -> SearchLogEntry:
        entry = SearchLogEntry(term=term, searched_at=searched_at)
        self._session.add(entry)
        return entry

    def count_term(self, term: str) -> int:
        statement = select(func.count(SearchLogEntry.entry_id)).where(SearchLogEntry.term == term)
        return int(self._session.execute(statement).scalar_one() or 0)


__all__ = ["SearchLogRepository"]
