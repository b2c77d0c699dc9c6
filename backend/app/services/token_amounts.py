"""Render smallest-unit token amounts for display."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

ETH_TOKEN_DECIMALS = 18


def format_token_amount(raw_amount: Any, decimals: int) -> str:
    """Shift ``raw_amount`` by ``decimals`` places and return it as plain text.

    ``None`` renders as ``"0"``. The result never uses exponent notation and
    carries no trailing zeros, e.g. ``format_token_amount(1500000000000000000, 18)``
    returns ``"1.5"``.
    """

    if raw_amount is None:
        return "0"
    try:
        amount = Decimal(str(raw_amount))
    except InvalidOperation as exc:
        raise ValueError(f"Not a numeric token amount: {raw_amount!r}") from exc

    shifted = amount.scaleb(-decimals).normalize()
    if shifted.is_zero():
        return "0"
    return format(shifted, "f")


__all__ = ["ETH_TOKEN_DECIMALS", "format_token_amount"]
