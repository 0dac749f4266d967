# shortlink/services/links/service.py
from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from shortlink.models.base import as_utc, utcnow
from shortlink.models.link import Link
from shortlink.services._shared.base import BaseService
from shortlink.services._shared.dto import WindowMeta
from shortlink.services._shared.errors import (
    InvalidInputError,
    NotFoundError,
    ShortCodeConflictError,
    violates,
)
from shortlink.services._shared.ports import ShortCodeRegistry
from shortlink.services.links.allocator import (
    DEFAULT_LENGTH,
    DEFAULT_MAX_ATTEMPTS,
    ShortCodeAllocator,
)
from shortlink.services.links.dto import (
    SORTABLE_FIELDS,
    LinkCreateIn,
    LinkListIn,
    LinkListOut,
    LinkOut,
    LinkUpdateIn,
    RedirectTarget,
)
from shortlink.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)


def _to_out(link: Link) -> LinkOut:
    return LinkOut(
        id=link.id,
        short_code=link.short_code,
        target_url=link.target_url,
        title=link.title,
        is_active=link.is_active,
        click_count=link.click_count,
        last_clicked_at=as_utc(link.last_clicked_at) if link.last_clicked_at else None,
        created_at=as_utc(link.created_at),
        updated_at=as_utc(link.updated_at),
    )


class LinkClaimRegistry(ShortCodeRegistry):
    """
    :class:`ShortCodeRegistry` whose ``claim`` inserts the link itself.

    The insert runs inside a ``SAVEPOINT`` so a rejected code rolls back only
    that insert and the unit of work can try the next candidate.
    """

    def __init__(self, uow: SQLAlchemyUnitOfWork, *, user_id: UUID, dto: LinkCreateIn) -> None:
        self.uow = uow
        self.user_id = user_id
        self.dto = dto
        self.link: Link | None = None

    def is_taken(self, code: str) -> bool:
        return self.uow.links.is_taken(code)

    def claim(self, code: str) -> None:
        link = Link(
            user_id=self.user_id,
            short_code=code,
            target_url=self.dto.target_url,
            title=self.dto.title,
        )
        try:
            with self.uow.savepoint():
                self.uow.links.add(link)
        except IntegrityError as exc:
            if link in self.uow.session:
                self.uow.session.expunge(link)
            if violates(exc, "uq_links_short_code"):
                raise ShortCodeConflictError(code) from exc
            raise
        self.link = link


class LinkService(BaseService):
    """
    Link management for an authenticated owner, plus the public redirect
    lookup and click accounting.

    :param code_length: Length of generated short codes.
    :param max_attempts: Allocator attempt budget.
    """

    def __init__(
        self,
        *,
        code_length: int = DEFAULT_LENGTH,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        super().__init__()
        self.code_length = code_length
        self.max_attempts = max_attempts

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #

    def create(self, user_id: UUID, dto: LinkCreateIn) -> LinkOut:
        """
        Create a link with a requested or generated short code.

        :raises InvalidShortCodeError | ReservedShortCodeError: Bad requested code.
        :raises ShortCodeConflictError: Requested code already in use.
        :raises AllocationExhaustedError: No free generated code found.
        """
        with self.rw_uow() as uow:
            registry = LinkClaimRegistry(uow, user_id=user_id, dto=dto)
            allocator = ShortCodeAllocator(
                registry, length=self.code_length, max_attempts=self.max_attempts
            )
            code = allocator.allocate(dto.short_code)
            if registry.link is None:  # pragma: no cover - claim always sets it
                raise RuntimeError("short code claimed without a link")
            out = _to_out(registry.link)
        log.info(
            "links.created", extra={"link_id": str(out.id), "short_code": code, "user_id": str(user_id)}
        )
        return out

    def update(self, user_id: UUID, link_id: UUID, dto: LinkUpdateIn) -> LinkOut:
        """
        Apply a partial update. The short code cannot be changed.

        :raises NotFoundError: Unknown link or not owned by ``user_id``.
        :raises InvalidInputError: Unknown or immutable field.
        """
        with self.rw_uow() as uow:
            link = uow.links.get_owned(link_id, user_id)
            if link is None:
                raise NotFoundError("Link", link_id)
            try:
                uow.links.assign_updates(link, dto.changes)
            except ValueError as exc:
                raise InvalidInputError(str(exc)) from exc
            out = _to_out(link)
        return out

    def delete(self, user_id: UUID, link_id: UUID) -> None:
        """
        Delete a link; its short code becomes available again.

        :raises NotFoundError: Unknown link or not owned by ``user_id``.
        """
        with self.rw_uow() as uow:
            link = uow.links.get_owned(link_id, user_id)
            if link is None:
                raise NotFoundError("Link", link_id)
            uow.links.delete(link)
        log.info("links.deleted", extra={"link_id": str(link_id), "user_id": str(user_id)})

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def get(self, user_id: UUID, link_id: UUID) -> LinkOut:
        with self.ro_uow() as uow:
            link = uow.links.get_owned(link_id, user_id)
            if link is None:
                raise NotFoundError("Link", link_id)
            return _to_out(link)

    def list(self, user_id: UUID, dto: LinkListIn) -> LinkListOut:
        """
        List the owner's links.

        :raises InvalidInputError: Unknown ``sort_by`` or ``order_by``.
        """
        if dto.sort_by not in SORTABLE_FIELDS:
            raise InvalidInputError(f"Cannot sort by '{dto.sort_by}'")
        if dto.order_by not in {"asc", "desc"}:
            raise InvalidInputError("order_by must be 'asc' or 'desc'")
        window = self.ensure_window(limit=dto.limit, offset=dto.offset)
        token = dto.sort_by if dto.order_by == "asc" else f"-{dto.sort_by}"
        with self.ro_uow() as uow:
            links, total = uow.links.search(
                user_id,
                query=dto.query,
                is_active=dto.is_active,
                sort=[token],
                limit=window.limit,
                offset=window.offset,
            )
            items = [_to_out(link) for link in links]
        return LinkListOut(
            items=items, meta=WindowMeta(limit=window.limit, offset=window.offset, total=total)
        )

    def resolve(self, short_code: str) -> RedirectTarget:
        """
        Find the redirect target of an active link.

        :raises NotFoundError: Unknown code or inactive link.
        """
        with self.ro_uow() as uow:
            link = uow.links.get_by_code(short_code)
            if link is None or not link.is_active:
                raise NotFoundError("Link", short_code)
            return RedirectTarget(link_id=link.id, target_url=link.target_url)

    # ------------------------------------------------------------------ #
    # Click accounting
    # ------------------------------------------------------------------ #

    def record_click(self, link_id: UUID, clicked_at: datetime | None = None) -> bool:
        """Increment the click counter; ``False`` when the link is gone."""
        with self.rw_uow() as uow:
            return uow.links.increment_clicks(link_id, clicked_at or utcnow())
