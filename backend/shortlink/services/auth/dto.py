# shortlink/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for registration.

    :param email: User email (normalized by the service).
    :type email: str
    :param password: Raw password (hashed before storage).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email (normalized by the service).
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    :param refresh_token: Opaque refresh token obtained at login.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    :param refresh_token: Opaque refresh token to revoke.
    :type refresh_token: str
    """

    refresh_token: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserOut:
    id: UUID
    email: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO of a successful login.

    :param access_token: Encoded access JWT.
    :param expires_in: Access token lifetime in seconds.
    :param refresh_token: Opaque refresh token (shown once).
    :param refresh_expires_in: Refresh token lifetime in seconds.
    """

    access_token: str
    expires_in: int
    refresh_token: str
    refresh_expires_in: int


@dataclass(frozen=True, slots=True)
class AccessTokenOut:
    """
    Output DTO of a refresh.

    ``refresh_token`` is set only when rotation is enabled; the caller must
    then discard the token it presented.
    """

    access_token: str
    expires_in: int
    refresh_token: str | None = None
    refresh_expires_in: int | None = None


# ------------------------ Config DTO --------------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Token emission configuration.

    :param access_expires: Access token lifetime.
    :type access_expires: timedelta
    :param refresh_expires: Refresh token lifetime.
    :type refresh_expires: timedelta
    :param rotate_refresh: Issue a new refresh token on every refresh.
    :type rotate_refresh: bool
    """

    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(hours=168)
    rotate_refresh: bool = False
