from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator


def _coerce_float(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)


class RelayerSummary(BaseModel):
    relayer_id: str
    name: str
    slug: str
    image_url: str | None = None

    model_config = {"from_attributes": True}


class FillAsset(BaseModel):
    token_address: str
    amount: str | None = None
    trader_type: str

    model_config = {"from_attributes": True}

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> str | None:
        if value is None:
            return None
        return str(value)


class ProtocolFee(BaseModel):
    ETH: str
    USD: float | None = None


class FillSummary(BaseModel):
    id: str
    date: datetime
    status: str | None = Field(
        default=None, description="failed, pending or successful; null for unrecognised codes"
    )
    protocol_version: int
    relayer: RelayerSummary | None = None
    maker_address: str
    taker_address: str
    bridge_address: str | None = None
    bridged: bool
    value: float | None = None
    trade_volume: float | None = None
    protocol_fee: ProtocolFee
    assets: list[FillAsset] = Field(default_factory=list)

    @field_validator("value", "trade_volume", mode="before")
    @classmethod
    def _coerce_numeric(cls, value: Any) -> float | None:
        return _coerce_float(value)


class FillDetail(FillSummary):
    transaction_hash: str
    order_hash: str | None = None
    transaction_from: str | None = None


class FillList(BaseModel):
    fills: list[FillSummary]
    limit: int
    page: int
    page_count: int
    total: int


class NetworkStats(BaseModel):
    """Network metrics for a window compared with the window before it.

    Each ``*_change`` field is a signed percentage; ``null`` means the
    previous window had no activity while the current one did, so no finite
    change exists.
    """

    date_from: datetime
    date_to: datetime
    fill_count: int
    fill_count_change: float | None = None
    fill_volume: float
    fill_volume_change: float | None = None
    protocol_fees: ProtocolFee
    protocol_fees_change: float | None = None
    trade_count: float
    trade_count_change: float | None = None
    trade_volume: float
    trade_volume_change: float | None = None


class ErrorResponse(BaseModel):
    error: str
    field: str | None = None
    reason: str
