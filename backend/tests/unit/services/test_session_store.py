# tests/unit/services/test_session_store.py
"""Refresh-token lifecycle against the in-memory store and the SQL repository."""

from __future__ import annotations

import threading
from datetime import timedelta
from uuid import uuid4

import pytest
from freezegun import freeze_time
from shortlink.models.refresh_token import RefreshToken
from shortlink.services._shared.errors import (
    RefreshTokenExpiredError,
    RefreshTokenNotFoundError,
    RefreshTokenRevokedError,
)
from shortlink.services._shared.ports import InMemoryRefreshTokenStore
from shortlink.services.sessions.service import SessionStore, hash_token
from sqlalchemy import select

from tests.factories.user import UserFactory


@pytest.fixture()
def memory_store() -> InMemoryRefreshTokenStore:
    return InMemoryRefreshTokenStore()


@pytest.fixture()
def sessions(memory_store) -> SessionStore:
    return SessionStore(store=memory_store, default_ttl=timedelta(hours=1))


# ------------------------------ In-memory ---------------------------------- #


def test_issue_stores_only_the_hash(sessions, memory_store):
    user_id = uuid4()

    token = sessions.issue(user_id)

    record = memory_store.find_by_hash(hash_token(token))
    assert record is not None
    assert record.user_id == user_id
    assert memory_store.find_by_hash(token) is None
    assert len(token) >= 43  # 32 random bytes, base64url


def test_issued_tokens_are_unique(sessions):
    tokens = {sessions.issue(uuid4()) for _ in range(50)}

    assert len(tokens) == 50


def test_validate_returns_owner(sessions):
    user_id = uuid4()
    token = sessions.issue(user_id)

    assert sessions.validate(token) == user_id
    # Validation does not consume the token
    assert sessions.validate(token) == user_id


def test_validate_unknown_token(sessions):
    with pytest.raises(RefreshTokenNotFoundError):
        sessions.validate("nope")


def test_validate_revoked_token(sessions):
    token = sessions.issue(uuid4())
    sessions.revoke(token)

    with pytest.raises(RefreshTokenRevokedError):
        sessions.validate(token)


def test_validate_expired_token(sessions):
    with freeze_time("2026-01-01 12:00:00") as frozen:
        token = sessions.issue(uuid4(), ttl=timedelta(minutes=5))
        frozen.tick(timedelta(minutes=5))
        # Still valid exactly at expiry
        sessions.validate(token)
        frozen.tick(timedelta(seconds=1))

        with pytest.raises(RefreshTokenExpiredError):
            sessions.validate(token)


def test_revoke_is_idempotent(sessions):
    token = sessions.issue(uuid4())

    sessions.revoke(token)
    sessions.revoke(token)

    with pytest.raises(RefreshTokenRevokedError):
        sessions.validate(token)


def test_revoke_unknown_token(sessions):
    with pytest.raises(RefreshTokenNotFoundError):
        sessions.revoke("missing")


def test_revoke_all_only_touches_owner(sessions):
    owner, other = uuid4(), uuid4()
    owned = [sessions.issue(owner) for _ in range(3)]
    foreign = sessions.issue(other)

    assert sessions.revoke_all(owner) == 3
    assert sessions.revoke_all(owner) == 0
    for token in owned:
        with pytest.raises(RefreshTokenRevokedError):
            sessions.validate(token)
    assert sessions.validate(foreign) == other


def test_rotate_revokes_old_and_issues_new(sessions):
    user_id = uuid4()
    old = sessions.issue(user_id)

    owner, new = sessions.rotate(old)

    assert owner == user_id
    assert new != old
    assert sessions.validate(new) == user_id
    with pytest.raises(RefreshTokenRevokedError):
        sessions.rotate(old)


def test_concurrent_rotation_has_single_winner(sessions):
    token = sessions.issue(uuid4())
    outcomes: list[str] = []
    lock = threading.Lock()
    barrier = threading.Barrier(8)

    def worker() -> None:
        barrier.wait()
        try:
            sessions.rotate(token)
            result = "ok"
        except RefreshTokenRevokedError:
            result = "revoked"
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert outcomes.count("revoked") == 7


def test_sweep_removes_only_expired(sessions, memory_store):
    with freeze_time("2026-01-01 12:00:00") as frozen:
        sessions.issue(uuid4(), ttl=timedelta(minutes=1))
        keep = sessions.issue(uuid4(), ttl=timedelta(hours=2))
        frozen.tick(timedelta(minutes=2))

        assert sessions.sweep_expired() == 1
        assert len(memory_store) == 1
        sessions.validate(keep)


# ------------------------------ SQL-backed -------------------------------- #


def test_database_store_round_trip(session):
    user = UserFactory()
    sessions = SessionStore(default_ttl=timedelta(hours=1))

    token = sessions.issue(user.id)
    assert sessions.validate(token) == user.id

    row = session.execute(select(RefreshToken).where(RefreshToken.user_id == user.id)).scalar_one()
    assert row.token_hash == hash_token(token)
    assert row.revoked is False

    sessions.revoke(token)
    with pytest.raises(RefreshTokenRevokedError):
        sessions.validate(token)


def test_database_store_rotation_and_revoke_all(session):
    user = UserFactory()
    sessions = SessionStore()
    first = sessions.issue(user.id)
    second = sessions.issue(user.id)

    _, rotated = sessions.rotate(first)

    with pytest.raises(RefreshTokenRevokedError):
        sessions.validate(first)
    assert sessions.revoke_all(user.id) == 2
    for token in (second, rotated):
        with pytest.raises(RefreshTokenRevokedError):
            sessions.validate(token)


def test_database_store_sweep(session):
    user = UserFactory()
    sessions = SessionStore()
    with freeze_time("2026-01-01 12:00:00") as frozen:
        expired = sessions.issue(user.id, ttl=timedelta(minutes=1))
        live = sessions.issue(user.id, ttl=timedelta(days=1))
        frozen.tick(timedelta(minutes=5))

        assert sessions.validate(live) == user.id
        with pytest.raises(RefreshTokenExpiredError):
            sessions.validate(expired)
        assert sessions.sweep_expired() == 1
        with pytest.raises(RefreshTokenNotFoundError):
            sessions.validate(expired)
