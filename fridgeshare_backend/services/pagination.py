"""Page/limit parsing shared by list endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from fridgeshare_backend.config import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_LIMIT,
    MAX_PAGE_LIMIT,
)


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _coerce_int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return default
    return parsed or default


def parse_page_limit(query: Mapping[str, Any]) -> PageParams:
    """Read ``page``/``limit`` from query args, clamping to sane bounds.

    Missing or non-numeric values fall back to the defaults; ``page`` is at
    least 1 and ``limit`` stays within ``1..MAX_PAGE_LIMIT``.
    """

    page = max(1, _coerce_int(query.get("page"), DEFAULT_PAGE))
    limit = min(
        MAX_PAGE_LIMIT,
        max(1, _coerce_int(query.get("limit"), DEFAULT_PAGE_LIMIT)),
    )
    return PageParams(page=page, limit=limit)


def paginate(items: list, params: PageParams) -> list:
    return items[params.offset : params.offset + params.limit]
