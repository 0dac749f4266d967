"""SQL-backed refresh token store.

Implements :class:`~shortlink.services._shared.ports.RefreshTokenStore` on
the ``refresh_tokens`` table. Revocation and expiry cleanup are single
``UPDATE``/``DELETE`` statements so concurrent callers are serialized by the
database, not by the application.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select, update

from shortlink.models.base import as_utc
from shortlink.models.refresh_token import RefreshToken
from shortlink.repositories.base import BaseRepository
from shortlink.services._shared.ports.refresh_token_store import RefreshTokenRecord


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only refresh token store (never commits)."""

    model = RefreshToken

    def _filterable_fields(self):
        return {"user_id": RefreshToken.user_id, "revoked": RefreshToken.revoked}

    def save(self, *, user_id: UUID, token_hash: str, expires_at: datetime) -> None:
        self.add(RefreshToken(user_id=user_id, token_hash=token_hash, expires_at=expires_at))

    def find_by_hash(self, token_hash: str) -> RefreshTokenRecord | None:
        stmt = select(
            RefreshToken.user_id,
            RefreshToken.token_hash,
            RefreshToken.revoked,
            RefreshToken.expires_at,
        ).where(RefreshToken.token_hash == token_hash)
        row = self.session.execute(stmt).first()
        if row is None:
            return None
        return RefreshTokenRecord(
            user_id=row.user_id,
            token_hash=row.token_hash,
            revoked=bool(row.revoked),
            expires_at=as_utc(row.expires_at),
        )

    def mark_revoked(self, token_hash: str) -> bool:
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.token_hash == token_hash)
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        return bool(self.session.execute(stmt).rowcount)

    def revoke_if_active(self, token_hash: str) -> bool:
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.token_hash == token_hash, RefreshToken.revoked.is_(False))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        return bool(self.session.execute(stmt).rowcount)

    def revoke_all_for_user(self, user_id: UUID) -> int:
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def delete_expired(self, now: datetime) -> int:
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.expires_at < now)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)
