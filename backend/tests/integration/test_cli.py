"""Integration tests for the maintenance CLI commands."""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

from shortlink.services.sessions.service import SessionStore

from tests.factories.user import UserFactory


def test_sessions_sweep(app) -> None:
    user_id = UserFactory().id
    SessionStore().issue(user_id, ttl=timedelta(seconds=-1))
    SessionStore().issue(user_id, ttl=timedelta(hours=1))

    result = app.test_cli_runner().invoke(args=["sessions", "sweep"])

    assert result.exit_code == 0, result.output
    assert "Removed 1 expired refresh token(s)." in result.output


def test_sessions_revoke_user(app) -> None:
    user_id = UserFactory().id
    SessionStore().issue(user_id)

    result = app.test_cli_runner().invoke(args=["sessions", "revoke-user", str(user_id)])

    assert result.exit_code == 0, result.output
    assert f"Revoked 1 refresh token(s) for {user_id}." in result.output
    assert SessionStore().revoke_all(user_id) == 0


def test_sessions_revoke_user_rejects_bad_uuid(app) -> None:
    result = app.test_cli_runner().invoke(args=["sessions", "revoke-user", "not-a-uuid"])

    assert result.exit_code == 2


def test_sessions_revoke_user_unknown_user(app) -> None:
    result = app.test_cli_runner().invoke(args=["sessions", "revoke-user", str(uuid4())])

    assert result.exit_code == 0
    assert "Revoked 0" in result.output


def test_ratelimit_sweep(app) -> None:
    app.extensions["rate_limiters"]["redirect"].allow("192.0.2.1")

    result = app.test_cli_runner().invoke(args=["ratelimit", "sweep"])

    assert result.exit_code == 0, result.output
    assert "auth: removed 0 idle key(s), tracking 0." in result.output
    assert "redirect: removed 0 idle key(s), tracking 1." in result.output
