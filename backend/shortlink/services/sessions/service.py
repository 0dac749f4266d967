# shortlink/services/sessions/service.py
from __future__ import annotations

import hashlib
import logging
import secrets
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import timedelta
from uuid import UUID

from shortlink.models.base import utcnow
from shortlink.services._shared.base import BaseService
from shortlink.services._shared.errors import (
    RefreshTokenExpiredError,
    RefreshTokenNotFoundError,
    RefreshTokenRevokedError,
)
from shortlink.services._shared.ports import RefreshTokenStore

log = logging.getLogger(__name__)

TOKEN_BYTES = 32  # 256 bits of entropy


def hash_token(plaintext: str) -> str:
    """Return the hex SHA-256 digest stored in place of a refresh token.

    A fast content hash is enough: the input is already 256 random bits.
    """
    return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


def new_token() -> str:
    """Return a fresh URL-safe refresh token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


class SessionStore(BaseService):
    """
    Refresh-token lifecycle: issue, validate, revoke, sweep.

    Only the SHA-256 hash of a token is ever handed to the backing store. When
    ``store`` is omitted, every call runs in its own read-write unit of work
    against the ``refresh_tokens`` table; otherwise the given store (Redis,
    in-memory) is used as-is.

    :param store: Explicit :class:`RefreshTokenStore`; ``None`` selects SQL.
    :param default_ttl: Lifetime applied when ``issue`` gets no ``ttl``.
    """

    def __init__(
        self,
        *,
        store: RefreshTokenStore | None = None,
        default_ttl: timedelta = timedelta(hours=168),
    ) -> None:
        super().__init__()
        self._store = store
        self.default_ttl = default_ttl

    @contextmanager
    def _tokens(self) -> Iterator[RefreshTokenStore]:
        if self._store is not None:
            yield self._store
            return
        with self.rw_uow() as uow:
            yield uow.refresh_tokens

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def issue(self, user_id: UUID, ttl: timedelta | None = None) -> str:
        """
        Create and persist a new refresh token for ``user_id``.

        :returns: The plaintext token. It is not retrievable afterwards.
        """
        plaintext = new_token()
        expires_at = utcnow() + (ttl or self.default_ttl)
        with self._tokens() as tokens:
            tokens.save(user_id=user_id, token_hash=hash_token(plaintext), expires_at=expires_at)
        return plaintext

    def validate(self, plaintext: str) -> UUID:
        """
        Resolve a refresh token to its owner without consuming it.

        :raises RefreshTokenNotFoundError: No record matches.
        :raises RefreshTokenRevokedError: The record is revoked.
        :raises RefreshTokenExpiredError: The record is past its expiry.
        """
        with self._tokens() as tokens:
            record = tokens.find_by_hash(hash_token(plaintext))
        if record is None:
            raise RefreshTokenNotFoundError()
        if record.revoked:
            raise RefreshTokenRevokedError()
        if utcnow() > record.expires_at:
            raise RefreshTokenExpiredError()
        return record.user_id

    def revoke(self, plaintext: str) -> None:
        """
        Revoke a refresh token in one atomic store update.

        Revoking an already revoked token succeeds.

        :raises RefreshTokenNotFoundError: No record matches.
        """
        with self._tokens() as tokens:
            found = tokens.mark_revoked(hash_token(plaintext))
        if not found:
            raise RefreshTokenNotFoundError()

    def revoke_all(self, user_id: UUID) -> int:
        """Revoke every active refresh token of ``user_id``."""
        with self._tokens() as tokens:
            count = tokens.revoke_all_for_user(user_id)
        log.info("sessions.revoke_all", extra={"user_id": str(user_id), "removed": count})
        return count

    def rotate(self, plaintext: str, ttl: timedelta | None = None) -> tuple[UUID, str]:
        """
        Exchange a valid refresh token for a new one.

        The old token is revoked with a conditional update, so of two
        concurrent rotations of the same token exactly one succeeds; the
        other observes it as revoked.

        :returns: ``(user_id, new_plaintext)``.
        :raises RefreshTokenNotFoundError | RefreshTokenRevokedError | RefreshTokenExpiredError:
            As for :meth:`validate`.
        """
        token_hash = hash_token(plaintext)
        replacement = new_token()
        with self._tokens() as tokens:
            record = tokens.find_by_hash(token_hash)
            if record is None:
                raise RefreshTokenNotFoundError()
            if record.revoked:
                raise RefreshTokenRevokedError()
            if utcnow() > record.expires_at:
                raise RefreshTokenExpiredError()
            if not tokens.revoke_if_active(token_hash):
                raise RefreshTokenRevokedError()
            tokens.save(
                user_id=record.user_id,
                token_hash=hash_token(replacement),
                expires_at=utcnow() + (ttl or self.default_ttl),
            )
        return record.user_id, replacement

    def sweep_expired(self) -> int:
        """Delete every record whose expiry is in the past."""
        with self._tokens() as tokens:
            removed = tokens.delete_expired(utcnow())
        log.info("sessions.sweep", extra={"removed": removed})
        return removed
