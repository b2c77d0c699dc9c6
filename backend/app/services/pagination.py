"""Page/limit policy for fill listings."""

from __future__ import annotations

from dataclasses import dataclass

from app.errors import ValidationError


@dataclass(frozen=True, slots=True)
class Pagination:
    page: int
    limit: int


def _parse_positive_int(field: str, raw: str | None) -> int | None:
    if raw is None or not raw.strip():
        return None
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValidationError(field, "Must be a whole number") from None
    if value < 1:
        raise ValidationError(field, "Cannot be less than 1")
    return value


def resolve_pagination(
    raw_page: str | None,
    raw_limit: str | None,
    *,
    default_limit: int,
    max_limit: int,
) -> Pagination:
    """Parse ``page``/``limit`` query values; limits above ``max_limit`` are clamped."""

    page = _parse_positive_int("page", raw_page) or 1
    limit = _parse_positive_int("limit", raw_limit) or default_limit
    return Pagination(page=page, limit=min(limit, max_limit))


__all__ = ["Pagination", "resolve_pagination"]
