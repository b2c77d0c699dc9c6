"""Relayer directory lookups."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import CollaboratorError
from app.models import Relayer


class RelayerRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_lookup_id(self, relayer_id: str) -> int | None:
        """Return the internal lookup id for ``relayer_id`` or ``None`` if unknown."""

        statement = select(Relayer.lookup_id).where(Relayer.relayer_id == relayer_id)
        try:
            return self._session.execute(statement).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise CollaboratorError("relayer directory", str(exc)) from exc


__all__ = ["RelayerRepository"]
