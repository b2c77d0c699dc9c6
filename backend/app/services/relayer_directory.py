"""Relayer identifier resolution."""

from __future__ import annotations

from loguru import logger
from sqlalchemy.orm import Session, sessionmaker

from app.repositories import RelayerRepository


class RelayerDirectory:
    """Resolve public relayer ids on a session of their own.

    Lookups may run on a worker thread while the request thread keeps
    parsing, so each call opens and closes its own session.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def resolve_lookup_id(self, relayer_id: str) -> int | None:
        with self._session_factory() as session:
            lookup_id = RelayerRepository(session).get_lookup_id(relayer_id)
        if lookup_id is None:
            logger.info("Relayer {} not found in directory", relayer_id)
        return lookup_id


__all__ = ["RelayerDirectory"]
