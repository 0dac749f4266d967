"""User repository for persistence-level account lookups."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select

from shortlink.models.user import User, normalize_email
from shortlink.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    Password verification and token issuing live in the auth service; this
    repository only stores and finds credentials.
    """

    model = User

    def _filterable_fields(self):
        return {"email": User.email}

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email, normalizing the lookup key first.

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == normalize_email(email))
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def exists_by_email(self, email: str) -> bool:
        stmt = select(User.id).where(User.email == normalize_email(email))
        return self.session.execute(stmt).first() is not None
