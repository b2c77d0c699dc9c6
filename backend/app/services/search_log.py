"""Search-analytics logging collaborator."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session, sessionmaker

from app.db import session_scope
from app.repositories import SearchLogRepository


class SearchTermLog:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def log_search_term(self, term: str, searched_at: datetime) -> None:
        with session_scope(self._session_factory) as session:
            SearchLogRepository(session).record(term, searched_at)


__all__ = ["SearchTermLog"]
