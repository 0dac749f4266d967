"""Per-blueprint admission gates backed by in-process sliding-window limiters."""

from __future__ import annotations

import logging

from flask import Blueprint, Flask, Response, g, request

from shortlink.api.deps import get_rate_limiter
from shortlink.core.errors import TooManyRequests
from shortlink.services.rate_limit import SlidingWindowRateLimiter

log = logging.getLogger(__name__)

AUTH = "auth"
REDIRECT = "redirect"


def build_limiters(app: Flask) -> dict[str, SlidingWindowRateLimiter]:
    """Create the named limiters from config and store them on the app."""

    cfg = app.config
    window = cfg["RATE_LIMIT_WINDOW"]
    shards = int(cfg.get("RATE_LIMIT_SHARDS", 16))
    limiters = {
        AUTH: SlidingWindowRateLimiter(
            int(cfg["RATE_LIMIT_AUTH"]), window, name=AUTH, shards=shards
        ),
        REDIRECT: SlidingWindowRateLimiter(
            int(cfg["RATE_LIMIT_REDIRECT"]), window, name=REDIRECT, shards=shards
        ),
    }
    app.extensions["rate_limiters"] = limiters
    return limiters


def client_key() -> str:
    """Caller network address (``ProxyFix`` rewrites it behind a proxy)."""

    return request.remote_addr or "unknown"


def gate(bp: Blueprint, limiter_name: str) -> None:
    """Admit every request of ``bp`` through the limiter ``limiter_name``.

    Allowed and denied responses both carry the ``X-RateLimit-*`` headers;
    a denial short-circuits with ``429``.
    """

    @bp.before_request
    def _admit() -> None:
        decision = get_rate_limiter(limiter_name).allow(client_key())
        g.rate_limit = decision
        if not decision.allowed:
            log.warning(
                "ratelimit.denied", extra={"limiter": limiter_name, "client": client_key()}
            )
            raise TooManyRequests(headers=decision.headers())

    @bp.after_request
    def _stamp(response: Response) -> Response:
        decision = g.get("rate_limit")
        if decision is not None:
            for name, value in decision.headers().items():
                response.headers.setdefault(name, value)
        return response
