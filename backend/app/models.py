from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Relayer(Base):
    __tablename__ = "relayers"

    lookup_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    relayer_id: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    slug: Mapped[str] = mapped_column(String, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String, nullable=True)

    fills: Mapped[list["Fill"]] = relationship("Fill", back_populates="relayer")


class Fill(Base):
    __tablename__ = "fills"

    fill_id: Mapped[str] = mapped_column(String, primary_key=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    relayer_lookup_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("relayers.lookup_id"), nullable=True, index=True
    )
    transaction_hash: Mapped[str] = mapped_column(String, nullable=False)
    order_hash: Mapped[str | None] = mapped_column(String, nullable=True)
    maker_address: Mapped[str] = mapped_column(String, nullable=False, index=True)
    taker_address: Mapped[str] = mapped_column(String, nullable=False, index=True)
    transaction_from: Mapped[str | None] = mapped_column(String, nullable=True)
    bridge_address: Mapped[str | None] = mapped_column(String, nullable=True)
    bridged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    protocol_version: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[int] = mapped_column(Integer, nullable=False)
    value: Mapped[Decimal | None] = mapped_column(Numeric(24, 4), nullable=True)
    trade_volume: Mapped[Decimal | None] = mapped_column(Numeric(24, 4), nullable=True)
    trade_count_contribution: Mapped[Decimal] = mapped_column(
        Numeric(6, 3), nullable=False, default=1
    )
    # Smallest ETH unit (wei); formatted with 18 decimals for display.
    protocol_fee_eth: Mapped[Decimal | None] = mapped_column(Numeric(38, 0), nullable=True)
    protocol_fee_usd: Mapped[Decimal | None] = mapped_column(Numeric(24, 4), nullable=True)
    search_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    indexed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    relayer: Mapped[Relayer | None] = relationship("Relayer", back_populates="fills")
    assets: Mapped[list["FillAsset"]] = relationship(
        "FillAsset", back_populates="fill", cascade="all, delete-orphan"
    )


class FillAsset(Base):
    __tablename__ = "fill_assets"

    asset_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    fill_id: Mapped[str] = mapped_column(String, ForeignKey("fills.fill_id"), nullable=False)
    token_address: Mapped[str] = mapped_column(String, nullable=False, index=True)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(78, 0), nullable=True)
    trader_type: Mapped[str] = mapped_column(String(5), nullable=False)

    fill: Mapped[Fill] = relationship("Fill", back_populates="assets")


class SearchLogEntry(Base):
    __tablename__ = "search_log"

    entry_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    term: Mapped[str] = mapped_column(Text, nullable=False)
    searched_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
