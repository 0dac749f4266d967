# tests/unit/services/test_auth_service.py
from __future__ import annotations

from datetime import timedelta
from uuid import UUID

import pytest
from freezegun import freeze_time
from shortlink.infra.jwt.flask_jwt_token_issuer import JWTTokenIssuer
from shortlink.infra.security.werkzeug_password_hasher import WerkzeugPasswordHasher
from shortlink.models.user import User
from shortlink.services._shared.errors import (
    AuthenticationError,
    EmailTakenError,
    RefreshTokenNotFoundError,
)
from shortlink.services._shared.ports import InMemoryRefreshTokenStore
from shortlink.services.auth.dto import (
    AuthTokenConfig,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    TokenPairOut,
)
from shortlink.services.auth.service import AuthService
from shortlink.services.sessions.service import SessionStore
from sqlalchemy import func, select

from tests.factories.user import DEFAULT_PASSWORD, UserFactory


class CountingHasher(WerkzeugPasswordHasher):
    """Werkzeug hasher that counts ``verify`` calls."""

    calls = 0

    def verify(self, plaintext: str, digest: str) -> bool:
        type(self).calls += 1
        return super().verify(plaintext, digest)


# ------------------------------ Fixtures ---------------------------------- #
@pytest.fixture()
def store() -> InMemoryRefreshTokenStore:
    return InMemoryRefreshTokenStore()


def build_service(store, *, rotate: bool = False, hasher=None) -> AuthService:
    """Wire an AuthService to the real hasher/issuer and an in-memory session store."""
    cfg = AuthTokenConfig(
        access_expires=timedelta(minutes=15),
        refresh_expires=timedelta(hours=168),
        rotate_refresh=rotate,
    )
    return AuthService(
        hasher=hasher or WerkzeugPasswordHasher(),
        issuer=JWTTokenIssuer(),
        sessions=SessionStore(store=store, default_ttl=cfg.refresh_expires),
        token_cfg=cfg,
    )


@pytest.fixture()
def service(store) -> AuthService:
    return build_service(store)


# ------------------------------ Register ---------------------------------- #
def test_register_normalizes_email_and_hashes_password(service, session):
    out = service.register(RegisterIn(email="  Alice@Example.COM ", password="s3cret-pass"))

    assert out.email == "alice@example.com"
    user = session.get(User, out.id)
    assert user is not None
    assert user.password_hash != "s3cret-pass"
    assert user.password_hash.startswith("scrypt:")


def test_register_duplicate_email_case_insensitive(service, session):
    service.register(RegisterIn(email="bob@example.com", password="s3cret-pass"))

    with pytest.raises(EmailTakenError):
        service.register(RegisterIn(email="BOB@example.com", password="other-pass"))

    count = session.execute(select(func.count()).select_from(User)).scalar_one()
    assert count == 1


# ------------------------------ Login ------------------------------------- #
def test_login_issues_token_pair(service, store):
    user = UserFactory(email="carol@example.com")

    pair = service.login(LoginIn(email="Carol@Example.com", password=DEFAULT_PASSWORD))

    assert isinstance(pair, TokenPairOut)
    assert pair.expires_in == 15 * 60
    assert pair.refresh_expires_in == 168 * 3600
    claims = JWTTokenIssuer().verify(pair.access_token)
    assert claims.user_id == user.id
    assert claims.email == "carol@example.com"
    assert len(store) == 1


def test_login_wrong_password(service):
    UserFactory(email="dave@example.com")

    with pytest.raises(AuthenticationError) as exc:
        service.login(LoginIn(email="dave@example.com", password="wrong-password"))
    assert str(exc.value) == "Invalid credentials"


def test_login_unknown_email_same_error_and_still_hashes(store):
    CountingHasher.calls = 0
    service = build_service(store, hasher=CountingHasher())

    with pytest.raises(AuthenticationError) as exc:
        service.login(LoginIn(email="ghost@example.com", password="whatever"))

    assert str(exc.value) == "Invalid credentials"
    assert CountingHasher.calls == 1
    assert len(store) == 0


# ------------------------------ Refresh ----------------------------------- #
def test_refresh_returns_new_access_token_only(service):
    user = UserFactory()
    pair = service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD))

    out = service.refresh(RefreshIn(refresh_token=pair.refresh_token))

    assert out.refresh_token is None
    assert JWTTokenIssuer().verify(out.access_token).user_id == user.id
    # Without rotation the same refresh token keeps working
    service.refresh(RefreshIn(refresh_token=pair.refresh_token))


def test_refreshed_access_token_expires_later(service):
    user = UserFactory()
    issuer = JWTTokenIssuer()
    with freeze_time("2026-05-01 09:00:00") as frozen:
        pair = service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD))
        frozen.tick(timedelta(seconds=5))

        out = service.refresh(RefreshIn(refresh_token=pair.refresh_token))

        first = issuer.verify(pair.access_token)
        second = issuer.verify(out.access_token)
    assert second.expires_at - first.expires_at == timedelta(seconds=5)


def test_refresh_unknown_token_is_unauthorized(service):
    with pytest.raises(AuthenticationError):
        service.refresh(RefreshIn(refresh_token="not-a-token"))


def test_refresh_after_logout_is_unauthorized(service):
    user = UserFactory()
    pair = service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD))
    service.logout(LogoutIn(refresh_token=pair.refresh_token))

    with pytest.raises(AuthenticationError):
        service.refresh(RefreshIn(refresh_token=pair.refresh_token))


def test_refresh_with_rotation(store):
    service = build_service(store, rotate=True)
    user = UserFactory()
    pair = service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD))

    out = service.refresh(RefreshIn(refresh_token=pair.refresh_token))

    assert out.refresh_token and out.refresh_token != pair.refresh_token
    assert out.refresh_expires_in == 168 * 3600
    with pytest.raises(AuthenticationError):
        service.refresh(RefreshIn(refresh_token=pair.refresh_token))
    service.refresh(RefreshIn(refresh_token=out.refresh_token))


def test_refresh_for_deleted_user_is_unauthorized(service, store):
    sessions = SessionStore(store=store)
    token = sessions.issue(UUID(int=42))

    with pytest.raises(AuthenticationError):
        service.refresh(RefreshIn(refresh_token=token))


# ------------------------------ Logout ------------------------------------ #
def test_logout_is_idempotent(service):
    user = UserFactory()
    pair = service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD))

    service.logout(LogoutIn(refresh_token=pair.refresh_token))
    service.logout(LogoutIn(refresh_token=pair.refresh_token))


def test_logout_unknown_token(service):
    with pytest.raises(RefreshTokenNotFoundError):
        service.logout(LogoutIn(refresh_token="missing"))


def test_revoke_all_sessions(service):
    user = UserFactory()
    tokens = [
        service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD)).refresh_token
        for _ in range(2)
    ]

    assert service.revoke_all_sessions(user.id) == 2
    for token in tokens:
        with pytest.raises(AuthenticationError):
            service.refresh(RefreshIn(refresh_token=token))
