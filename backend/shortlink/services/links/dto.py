# shortlink/services/links/dto.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from shortlink.services._shared.dto import WindowMeta

SORTABLE_FIELDS = frozenset(
    {"created_at", "updated_at", "title", "short_code", "click_count", "last_clicked_at"}
)


@dataclass(frozen=True, slots=True)
class LinkCreateIn:
    """
    :param target_url: Absolute http(s) URL to redirect to.
    :param short_code: Requested code; ``None`` lets the allocator pick one.
    :param title: Optional human label.
    """

    target_url: str
    short_code: str | None = None
    title: str | None = None


@dataclass(frozen=True, slots=True)
class LinkUpdateIn:
    """
    Partial update. Only keys present in ``changes`` are applied; allowed
    keys are ``target_url``, ``title`` and ``is_active``.
    """

    changes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class LinkListIn:
    """
    :param query: Case-insensitive substring matched on code or title.
    :param is_active: Optional active-state filter.
    :param sort_by: One of :data:`SORTABLE_FIELDS`.
    :param order_by: ``"asc"`` or ``"desc"``.
    """

    limit: int = 20
    offset: int = 0
    query: str | None = None
    is_active: bool | None = None
    sort_by: str = "created_at"
    order_by: str = "desc"


@dataclass(frozen=True, slots=True)
class LinkOut:
    id: UUID
    short_code: str
    target_url: str
    title: str | None
    is_active: bool
    click_count: int
    last_clicked_at: datetime | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class LinkListOut:
    items: list[LinkOut]
    meta: WindowMeta


@dataclass(frozen=True, slots=True)
class RedirectTarget:
    """Minimal projection used by the redirect path."""

    link_id: UUID
    target_url: str
