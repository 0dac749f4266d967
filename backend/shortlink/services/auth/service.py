# shortlink/services/auth/service.py
from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from shortlink.models.user import User, normalize_email
from shortlink.services._shared.base import BaseService
from shortlink.services._shared.errors import (
    AuthenticationError,
    EmailTakenError,
    RefreshTokenNotFoundError,
    violates,
)
from shortlink.services._shared.ports import PasswordHasher, TokenIssuer
from shortlink.services.auth.dto import (
    AccessTokenOut,
    AuthTokenConfig,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    TokenPairOut,
    UserOut,
)
from shortlink.services.sessions.service import SessionStore

log = logging.getLogger(__name__)


class AuthService(BaseService):
    """
    Authentication lifecycle service (register / login / refresh / logout).

    Composes a :class:`PasswordHasher`, a :class:`TokenIssuer` and the
    :class:`SessionStore`, and reports failures as service errors:

    * unknown email or wrong password → :class:`AuthenticationError`
    * unknown, revoked or expired refresh token on refresh → :class:`AuthenticationError`
    * unknown refresh token on logout → :class:`RefreshTokenNotFoundError`
    """

    def __init__(
        self,
        *,
        hasher: PasswordHasher,
        issuer: TokenIssuer,
        sessions: SessionStore,
        token_cfg: AuthTokenConfig | None = None,
    ) -> None:
        super().__init__()
        self.hasher = hasher
        self.issuer = issuer
        self.sessions = sessions
        self.cfg = token_cfg or AuthTokenConfig()
        self._dummy_digest: str | None = None

    # ------------------------------------------------------------------ #
    # Register
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> UserOut:
        """
        Create an account.

        :raises EmailTakenError: The normalized email already exists, also
            when a concurrent registration wins the insert.
        """
        email = normalize_email(dto.email)
        digest = self.hasher.hash(dto.password)
        try:
            with self.rw_uow() as uow:
                if uow.users.exists_by_email(email):
                    raise EmailTakenError()
                user = uow.users.add(User(email=email, password_hash=digest))
                out = UserOut(id=user.id, email=user.email, created_at=user.created_at)
        except IntegrityError as exc:
            if violates(exc, "uq_users_email"):
                raise EmailTakenError() from exc
            raise
        log.info("auth.registered", extra={"user_id": str(out.id)})
        return out

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def _burn_verify(self, password: str) -> None:
        # Unknown emails still pay for one hash check
        if self._dummy_digest is None:
            self._dummy_digest = self.hasher.hash("not-a-real-password")
        self.hasher.verify(password, self._dummy_digest)

    def login(self, dto: LoginIn) -> TokenPairOut:
        """
        Verify credentials and issue an access/refresh token pair.

        :raises AuthenticationError: Unknown email or wrong password (same
            message for both).
        """
        with self.ro_uow() as uow:
            user = uow.users.get_by_email(dto.email)
            found = (user.id, user.email, user.password_hash) if user is not None else None

        if found is None:
            self._burn_verify(dto.password)
            raise AuthenticationError("Invalid credentials")
        user_id, email, digest = found
        if not self.hasher.verify(dto.password, digest):
            raise AuthenticationError("Invalid credentials")

        access = self.issuer.issue(user_id, email, self.cfg.access_expires)
        refresh = self.sessions.issue(user_id, self.cfg.refresh_expires)
        log.info("auth.login", extra={"user_id": str(user_id)})
        return TokenPairOut(
            access_token=access,
            expires_in=int(self.cfg.access_expires.total_seconds()),
            refresh_token=refresh,
            refresh_expires_in=int(self.cfg.refresh_expires.total_seconds()),
        )

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> AccessTokenOut:
        """
        Mint a new access token from a valid refresh token.

        Without rotation the same refresh token stays valid until it expires
        or is revoked. With rotation it is revoked and replaced.

        :raises AuthenticationError: Unknown, revoked or expired refresh
            token, or the owning account no longer exists.
        """
        new_refresh: str | None = None
        try:
            if self.cfg.rotate_refresh:
                user_id, new_refresh = self.sessions.rotate(
                    dto.refresh_token, self.cfg.refresh_expires
                )
            else:
                user_id = self.sessions.validate(dto.refresh_token)
        except RefreshTokenNotFoundError as exc:
            raise AuthenticationError("Invalid refresh token") from exc

        email = self._email_of(user_id)
        access = self.issuer.issue(user_id, email, self.cfg.access_expires)
        return AccessTokenOut(
            access_token=access,
            expires_in=int(self.cfg.access_expires.total_seconds()),
            refresh_token=new_refresh,
            refresh_expires_in=(
                int(self.cfg.refresh_expires.total_seconds()) if new_refresh else None
            ),
        )

    def _email_of(self, user_id: UUID) -> str:
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise AuthenticationError("Invalid refresh token")
            return user.email

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        """
        Revoke the presented refresh token. Idempotent for revoked tokens.

        :raises RefreshTokenNotFoundError: No such token.
        """
        self.sessions.revoke(dto.refresh_token)

    def revoke_all_sessions(self, user_id: UUID) -> int:
        """Revoke every refresh token of a user (sign out everywhere)."""
        return self.sessions.revoke_all(user_id)
