from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Protocol
from uuid import UUID


@dataclass(frozen=True, slots=True)
class RefreshTokenRecord:
    """
    Read-model for a stored refresh token.

    :ivar user_id: Owner user id.
    :ivar token_hash: Hex SHA-256 digest of the plaintext.
    :ivar revoked: Whether the token has been revoked.
    :ivar expires_at: Absolute expiration (UTC, timezone-aware).
    """

    user_id: UUID
    token_hash: str
    revoked: bool
    expires_at: datetime


class RefreshTokenStore(Protocol):
    """
    Stateful store for refresh tokens, keyed by token hash.

    ``mark_revoked`` and ``revoke_all_for_user`` MUST each be a single atomic
    operation on the backing store: two concurrent revocations of the same
    token both succeed and leave it revoked exactly once.
    """

    def save(self, *, user_id: UUID, token_hash: str, expires_at: datetime) -> None:
        """Persist a new, non-revoked record."""

    def find_by_hash(self, token_hash: str) -> RefreshTokenRecord | None:
        """Fetch a record snapshot (if present)."""

    def mark_revoked(self, token_hash: str) -> bool:
        """Flag a record as revoked. :returns: False if no record matched."""

    def revoke_if_active(self, token_hash: str) -> bool:
        """Revoke only a non-revoked record. :returns: True if this call flipped the flag."""

    def revoke_all_for_user(self, user_id: UUID) -> int:
        """Revoke every non-revoked record of a user. :returns: Records affected."""

    def delete_expired(self, now: datetime) -> int:
        """Delete records whose ``expires_at`` is before ``now``. :returns: Records removed."""


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    In-memory refresh token store.

    .. note::
       Uses a threading lock to provide the atomicity contract in unit tests.
    """

    def __init__(self) -> None:
        self._by_hash: dict[str, RefreshTokenRecord] = {}
        self._lock = threading.Lock()

    def save(self, *, user_id: UUID, token_hash: str, expires_at: datetime) -> None:
        with self._lock:
            if token_hash in self._by_hash:
                raise ValueError("duplicate refresh token hash")
            self._by_hash[token_hash] = RefreshTokenRecord(
                user_id=user_id, token_hash=token_hash, revoked=False, expires_at=expires_at
            )

    def find_by_hash(self, token_hash: str) -> RefreshTokenRecord | None:
        with self._lock:
            return self._by_hash.get(token_hash)

    def mark_revoked(self, token_hash: str) -> bool:
        with self._lock:
            record = self._by_hash.get(token_hash)
            if record is None:
                return False
            self._by_hash[token_hash] = replace(record, revoked=True)
            return True

    def revoke_if_active(self, token_hash: str) -> bool:
        with self._lock:
            record = self._by_hash.get(token_hash)
            if record is None or record.revoked:
                return False
            self._by_hash[token_hash] = replace(record, revoked=True)
            return True

    def revoke_all_for_user(self, user_id: UUID) -> int:
        with self._lock:
            affected = [
                h for h, r in self._by_hash.items() if r.user_id == user_id and not r.revoked
            ]
            for token_hash in affected:
                self._by_hash[token_hash] = replace(self._by_hash[token_hash], revoked=True)
            return len(affected)

    def delete_expired(self, now: datetime) -> int:
        with self._lock:
            expired = [h for h, r in self._by_hash.items() if r.expires_at < now]
            for token_hash in expired:
                del self._by_hash[token_hash]
            return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_hash)
