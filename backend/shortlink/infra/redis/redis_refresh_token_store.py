# comments in English; reST docstrings
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

import redis  # type: ignore[import-untyped]

from shortlink.services._shared.ports import RefreshTokenRecord, RefreshTokenStore


def _s(value: bytes | str | None, default: str = "") -> str:
    if value is None:
        return default
    return value.decode() if isinstance(value, bytes) else value


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh token store.

    Layout
    ------
    ``rt:{hash}``
        Hash with ``user_id``, ``revoked`` and ``expires_at`` (fractional epoch seconds).
    ``rt:u:{user_id}``
        Set of the user's token hashes.
    ``rt:exp``
        Sorted set of token hashes scored by ``expires_at``; drives the sweep.

    Records outlive their expiry by ``retention`` so a late refresh reports
    *expired* rather than *not found*; the key TTL is only a safety net for
    a sweep that never runs.

    :param r: A Redis client (already connected).
    :param retention: Extra key lifetime past ``expires_at``.
    """

    r: redis.Redis
    retention: timedelta = timedelta(days=1)

    # -------------------- helpers --------------------

    @staticmethod
    def _k(token_hash: str) -> str:
        return f"rt:{token_hash}"

    @staticmethod
    def _ku(user_id: UUID | str) -> str:
        return f"rt:u:{user_id}"

    _KEXP = "rt:exp"

    @staticmethod
    def _to_ts(dt: datetime) -> float:
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return dt.timestamp()

    def _flip_revoked(self, token_hash: str, *, only_active: bool) -> bool:
        """WATCH/MULTI check-and-set of the ``revoked`` flag."""
        key = self._k(token_hash)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(key)
                    current = p.hget(key, "revoked")
                    if current is None:
                        p.unwatch()
                        return False
                    if only_active and _s(current) == "1":
                        p.unwatch()
                        return False
                    p.multi()
                    p.hset(key, "revoked", "1")
                    p.execute()
                    return True
            except redis.WatchError:
                continue

    # -------------------- API ------------------------

    def save(self, *, user_id: UUID, token_hash: str, expires_at: datetime) -> None:
        key = self._k(token_hash)
        exp_ts = self._to_ts(expires_at)
        pipe = self.r.pipeline(transaction=True)
        pipe.hset(
            key,
            mapping={"user_id": str(user_id), "revoked": "0", "expires_at": repr(exp_ts)},
        )
        pipe.expireat(key, math.ceil(exp_ts + self.retention.total_seconds()))
        pipe.sadd(self._ku(user_id), token_hash)
        pipe.zadd(self._KEXP, {token_hash: exp_ts})
        pipe.execute()

    def find_by_hash(self, token_hash: str) -> RefreshTokenRecord | None:
        h = self.r.hgetall(self._k(token_hash))
        if not h:
            return None
        fields = {_s(k): _s(v) for k, v in h.items()}
        return RefreshTokenRecord(
            user_id=UUID(fields["user_id"]),
            token_hash=token_hash,
            revoked=fields.get("revoked") == "1",
            expires_at=datetime.fromtimestamp(float(fields["expires_at"]), tz=UTC),
        )

    def mark_revoked(self, token_hash: str) -> bool:
        return self._flip_revoked(token_hash, only_active=False)

    def revoke_if_active(self, token_hash: str) -> bool:
        return self._flip_revoked(token_hash, only_active=True)

    def revoke_all_for_user(self, user_id: UUID) -> int:
        affected = 0
        stale: list[str] = []
        for member in self.r.smembers(self._ku(user_id)):
            token_hash = _s(member)
            if not self.r.exists(self._k(token_hash)):
                stale.append(token_hash)
                continue
            if self._flip_revoked(token_hash, only_active=True):
                affected += 1
        if stale:
            self.r.srem(self._ku(user_id), *stale)
        return affected

    def delete_expired(self, now: datetime) -> int:
        # Exclusive upper bound: a record expiring exactly now is not yet past it.
        expired = [_s(m) for m in self.r.zrangebyscore(self._KEXP, "-inf", f"({self._to_ts(now)}")]
        if not expired:
            return 0
        owners = self.r.pipeline(transaction=False)
        for token_hash in expired:
            owners.hget(self._k(token_hash), "user_id")
        user_ids = owners.execute()

        pipe = self.r.pipeline(transaction=True)
        for token_hash, uid in zip(expired, user_ids, strict=True):
            pipe.delete(self._k(token_hash))
            if uid is not None:
                pipe.srem(self._ku(_s(uid)), token_hash)
        pipe.zrem(self._KEXP, *expired)
        pipe.execute()
        return len(expired)
