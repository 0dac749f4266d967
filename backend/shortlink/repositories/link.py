"""Link repository: ownership-scoped lookups, filtered listing and click counters."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any, cast
from uuid import UUID

from sqlalchemy import Select, or_, select, update

from shortlink.models.link import Link
from shortlink.repositories.base import BaseRepository


class LinkRepository(BaseRepository[Link]):
    """Persistence-only repository for :class:`Link`."""

    model = Link

    def _sortable_fields(self):
        return {
            "created_at": Link.created_at,
            "updated_at": Link.updated_at,
            "title": Link.title,
            "short_code": Link.short_code,
            "click_count": Link.click_count,
            "last_clicked_at": Link.last_clicked_at,
        }

    def _filterable_fields(self):
        return {
            "user_id": Link.user_id,
            "short_code": Link.short_code,
            "is_active": Link.is_active,
        }

    def _updatable_fields(self):
        # short_code is immutable after creation
        return {"target_url", "title", "is_active"}

    # ---------------------------- Lookups ----------------------------

    def get_by_code(self, short_code: str) -> Link | None:
        stmt = select(Link).where(Link.short_code == short_code)
        return cast(Link | None, self.session.execute(stmt).scalars().first())

    def get_owned(self, link_id: UUID, user_id: UUID) -> Link | None:
        """Fetch a link only if it belongs to ``user_id``."""
        stmt = select(Link).where(Link.id == link_id, Link.user_id == user_id)
        return cast(Link | None, self.session.execute(stmt).scalars().first())

    def is_taken(self, short_code: str) -> bool:
        stmt = select(Link.id).where(Link.short_code == short_code).limit(1)
        return self.session.execute(stmt).first() is not None

    # ---------------------------- Listing ----------------------------

    def search_statement(
        self,
        user_id: UUID,
        *,
        query: str | None = None,
        is_active: bool | None = None,
        sort: Iterable[str] | None = None,
    ) -> Select[Any]:
        """Build the owner-scoped listing query.

        :param user_id: Owner of the links.
        :param query: Case-insensitive substring matched on code or title.
        :param is_active: Optional active-state filter.
        :param sort: Public sort tokens (``"-created_at"`` by default).
        """
        filters: dict[str, Any] = {"user_id": user_id}
        if is_active is not None:
            filters["is_active"] = is_active
        stmt = select(Link)
        if query:
            pattern = f"%{query.strip()}%"
            stmt = stmt.where(or_(Link.short_code.ilike(pattern), Link.title.ilike(pattern)))
        return self._list_statement(stmt, filters=filters, sort=sort or ["-created_at"])

    def search(
        self,
        user_id: UUID,
        *,
        query: str | None = None,
        is_active: bool | None = None,
        sort: Iterable[str] | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Link], int]:
        """Return one window of the owner's links and the total match count."""
        stmt = self.search_statement(user_id, query=query, is_active=is_active, sort=sort)
        total = self.count(stmt)
        items = list(self.session.execute(stmt.limit(limit).offset(offset)).scalars().all())
        return cast(list[Link], items), total

    # ---------------------------- Counters ----------------------------

    def increment_clicks(self, link_id: UUID, clicked_at: datetime) -> bool:
        """Atomically bump ``click_count`` and stamp ``last_clicked_at``.

        A single ``UPDATE`` so concurrent clicks never lose increments.

        :returns: ``False`` if the link no longer exists.
        """
        stmt = (
            update(Link)
            .where(Link.id == link_id)
            .values(click_count=Link.click_count + 1, last_clicked_at=clicked_at)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        return bool(result.rowcount)
