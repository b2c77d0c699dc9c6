"""Turn raw fill query parameters into a validated ``FilterCriteria``.

This is the only place raw query strings are inspected. Values are parsed
once into typed fields, then cross-field checks run in a fixed order and the
first failure is raised as a :class:`~app.errors.ValidationError`.
"""

from __future__ import annotations

import math
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Mapping

from app.domain import FillStatus, FilterCriteria, reverse_map_status
from app.errors import ValidationError

RelayerResolver = Callable[[str], int | None]

VALID_STATUSES = tuple(status.value for status in FillStatus)

# Largest value a protocolVersion can take in the fill index (signed 32-bit).
MAX_PROTOCOL_VERSION = 2**31 - 1


class _Unparseable:
    def __repr__(self) -> str:
        return "<unparseable>"


UNPARSEABLE = _Unparseable()


def _normalize(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _parse_boolean(value: str | None) -> bool | None:
    text = _normalize(value)
    if text is None:
        return None
    return text == "true"


def _parse_number(value: str | None) -> float | None:
    text = _normalize(value)
    if text is None:
        return None
    try:
        return float(text)
    except ValueError:
        return math.nan


def _parse_date(value: str | None) -> datetime | _Unparseable | None:
    text = _normalize(value)
    if text is None:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return UNPARSEABLE
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _is_number(value: float | None) -> bool:
    return value is not None and math.isfinite(value)


def _is_date(value: datetime | _Unparseable | None) -> bool:
    return isinstance(value, datetime)


@dataclass(frozen=True, slots=True)
class _ParsedParams:
    address: str | None
    bridged: bool | None
    bridge_address: str | None
    date_from: datetime | _Unparseable | None
    date_to: datetime | _Unparseable | None
    protocol_version: float | None
    relayer: str | None
    search_term: str | None
    status: str | None
    token: str | None
    value_from: float | None
    value_to: float | None


def _parse_params(raw_params: Mapping[str, str | None]) -> _ParsedParams:
    return _ParsedParams(
        address=_normalize(raw_params.get("address")),
        bridged=_parse_boolean(raw_params.get("bridged")),
        bridge_address=_normalize(raw_params.get("bridgeAddress")),
        date_from=_parse_date(raw_params.get("dateFrom")),
        date_to=_parse_date(raw_params.get("dateTo")),
        protocol_version=_parse_number(raw_params.get("protocolVersion")),
        relayer=_normalize(raw_params.get("relayer")),
        search_term=_normalize(raw_params.get("q")),
        status=_normalize(raw_params.get("status")),
        token=_normalize(raw_params.get("token")),
        value_from=_parse_number(raw_params.get("valueFrom")),
        value_to=_parse_number(raw_params.get("valueTo")),
    )


def _check_value_range(
    field: str, bound: float | None, other_field: str, other: float | None, *, lower: bool
) -> None:
    if bound is None:
        return
    if not _is_number(bound):
        raise ValidationError(field, "Must be a valid number")
    if bound < 0:
        raise ValidationError(field, "Cannot be less than zero")
    if lower and _is_number(other) and bound > other:
        raise ValidationError(field, f"Cannot be greater than {other_field}")


def _build_criteria(params: _ParsedParams, relayer_lookup_id: int | None) -> FilterCriteria:
    if params.status is not None and params.status not in VALID_STATUSES:
        raise ValidationError("status", "Must be one of: " + ", ".join(VALID_STATUSES))

    if params.relayer is not None and relayer_lookup_id is None:
        raise ValidationError("relayer", f'No relayer exists with an ID of "{params.relayer}"')

    protocol_version = params.protocol_version
    if protocol_version is not None:
        if not _is_number(protocol_version):
            raise ValidationError("protocolVersion", "Must be a valid number")
        if protocol_version > MAX_PROTOCOL_VERSION:
            raise ValidationError("protocolVersion", "Must be a valid number")
        if protocol_version < 1:
            raise ValidationError("protocolVersion", "Cannot be less than 1")
        if not protocol_version.is_integer():
            raise ValidationError("protocolVersion", "Must be a whole number")

    if params.date_from is not None:
        if not _is_date(params.date_from):
            raise ValidationError("dateFrom", "Must be in ISO 8601 format")
        if _is_date(params.date_to) and params.date_from > params.date_to:
            raise ValidationError("dateFrom", "Cannot be greater than dateTo")

    if params.date_to is not None and not _is_date(params.date_to):
        raise ValidationError("dateTo", "Must be in ISO 8601 format")

    _check_value_range("valueFrom", params.value_from, "valueTo", params.value_to, lower=True)
    _check_value_range("valueTo", params.value_to, "valueFrom", params.value_from, lower=False)

    return FilterCriteria(
        address=params.address,
        bridged=params.bridged,
        bridge_address=params.bridge_address,
        date_from=params.date_from,
        date_to=params.date_to,
        protocol_version=int(protocol_version) if protocol_version is not None else None,
        relayer_id=relayer_lookup_id,
        search_term=params.search_term,
        status=reverse_map_status(params.status) if params.status is not None else None,
        token=params.token,
        value_from=params.value_from,
        value_to=params.value_to,
    )


def validate_and_build_filter(
    raw_params: Mapping[str, str | None],
    resolve_relayer: RelayerResolver,
    *,
    executor: Executor | None = None,
) -> FilterCriteria:
    """Parse ``raw_params`` and return the fill filter they describe.

    The relayer lookup starts on ``executor`` before the remaining parameters
    are parsed and is awaited before any check runs, so a lookup failure
    propagates to the caller unchanged. Without an ``executor`` the lookup
    gets a single-use worker thread.
    """

    relayer = _normalize(raw_params.get("relayer"))
    if relayer is None:
        return _build_criteria(_parse_params(raw_params), None)

    if executor is not None:
        return _resolve_and_build(executor, raw_params, resolve_relayer, relayer)
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="relayer-lookup") as pool:
        return _resolve_and_build(pool, raw_params, resolve_relayer, relayer)


def _resolve_and_build(
    executor: Executor,
    raw_params: Mapping[str, str | None],
    resolve_relayer: RelayerResolver,
    relayer: str,
) -> FilterCriteria:
    lookup: Future = executor.submit(resolve_relayer, relayer)
    params = _parse_params(raw_params)
    return _build_criteria(params, lookup.result())


__all__ = [
    "MAX_PROTOCOL_VERSION",
    "RelayerResolver",
    "UNPARSEABLE",
    "VALID_STATUSES",
    "validate_and_build_filter",
]
