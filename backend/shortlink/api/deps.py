"""Shared API helpers: service builders, authentication and response helpers."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar, cast
from uuid import UUID

from flask import Response, current_app, g, jsonify, request

from shortlink.core.errors import Unauthorized
from shortlink.core.extensions import get_redis
from shortlink.infra.jwt.flask_jwt_token_issuer import JWTTokenIssuer
from shortlink.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
from shortlink.infra.security.werkzeug_password_hasher import WerkzeugPasswordHasher
from shortlink.services._shared.errors import TokenError
from shortlink.services.auth.dto import AuthTokenConfig
from shortlink.services.auth.service import AuthService
from shortlink.services.links.clicks import ClickRecorder
from shortlink.services.links.service import LinkService
from shortlink.services.rate_limit import SlidingWindowRateLimiter
from shortlink.services.sessions.service import SessionStore

F = TypeVar("F", bound=Callable[..., Any])


# --------------------------------------------------------------------------- #
# Service builders
# --------------------------------------------------------------------------- #


def get_session_store() -> SessionStore:
    """Build the refresh-token store selected by ``REFRESH_TOKEN_BACKEND``."""

    cfg = current_app.config
    store = None
    if cfg.get("REFRESH_TOKEN_BACKEND") == "redis":
        store = RedisRefreshTokenStore(get_redis())
    return SessionStore(store=store, default_ttl=cfg["JWT_REFRESH_TTL"])


def get_auth_service() -> AuthService:
    cfg = current_app.config
    return AuthService(
        hasher=WerkzeugPasswordHasher(),
        issuer=JWTTokenIssuer(),
        sessions=get_session_store(),
        token_cfg=AuthTokenConfig(
            access_expires=cfg["JWT_ACCESS_TTL"],
            refresh_expires=cfg["JWT_REFRESH_TTL"],
            rotate_refresh=bool(cfg.get("REFRESH_TOKEN_ROTATION", False)),
        ),
    )


def get_link_service() -> LinkService:
    cfg = current_app.config
    return LinkService(
        code_length=int(cfg.get("SHORT_CODE_LENGTH", 8)),
        max_attempts=int(cfg.get("SHORT_CODE_MAX_ATTEMPTS", 10)),
    )


def get_click_recorder() -> ClickRecorder:
    return cast(ClickRecorder, current_app.extensions["click_recorder"])


def get_rate_limiter(name: str) -> SlidingWindowRateLimiter:
    limiters = cast(dict[str, SlidingWindowRateLimiter], current_app.extensions["rate_limiters"])
    return limiters[name]


# --------------------------------------------------------------------------- #
# Authentication
# --------------------------------------------------------------------------- #


def _bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if not header:
        raise Unauthorized("Missing Authorization header")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized("Malformed Authorization header")
    return token.strip()


def require_auth(func: F) -> F:
    """Ensure the request carries a valid access token.

    On success ``g.user_id`` (UUID) and ``g.user_email`` are set.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        try:
            claims = JWTTokenIssuer().verify(_bearer_token())
        except TokenError as exc:
            raise Unauthorized(str(exc)) from exc
        g.user_id = claims.user_id
        g.user_email = claims.email
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def current_user_id() -> UUID:
    return cast(UUID, g.user_id)


# --------------------------------------------------------------------------- #
# Responses
# --------------------------------------------------------------------------- #


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
