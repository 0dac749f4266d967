"""API blueprint package aggregating versioned endpoints."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from flask import Blueprint, Flask

from shortlink.core.errors import _problem_response
from shortlink.services._shared.base import translate_service_error
from shortlink.services._shared.errors import ServiceError

log = logging.getLogger(__name__)


def register_blueprint_group(
    app: Flask,
    *,
    base_prefix: str,
    entries: Iterable[tuple[Blueprint, str]],
) -> None:
    """Register related blueprints beneath a common prefix.

    Parameters
    ----------
    app:
        Application instance receiving the blueprints.
    base_prefix:
        Prefix applied to all entries, typically the API version segment such
        as ``"/api/v1"``.
    entries:
        Iterable of ``(blueprint, relative_prefix)`` pairs where
        ``relative_prefix`` is appended to ``base_prefix``.

    Notes
    -----
    Empty relative prefixes are supported, allowing a blueprint to mount at the
    version root while others extend it with additional path segments.
    """

    for bp, rel_prefix in entries:
        full_prefix = "/".join(
            segment for segment in [base_prefix.rstrip("/"), rel_prefix.strip("/")] if segment
        )
        full_prefix = "/" + full_prefix if not full_prefix.startswith("/") else full_prefix
        app.register_blueprint(bp, url_prefix=full_prefix)


def _register_service_error_handler(app: Flask) -> None:
    @app.errorhandler(ServiceError)
    def handle_service_error(exc: ServiceError):
        err = translate_service_error(exc)
        problem = err.to_problem()
        level = log.error if err.status_code >= 500 else log.warning
        level(
            "ServiceError: type=%s code=%s status=%s request_id=%s",
            type(exc).__name__,
            err.code,
            err.status_code,
            problem.get("request_id"),
        )
        return _problem_response(problem, err.status_code, err.headers)


def init_app(app: Flask) -> None:
    """Register the API versions, probes and the public redirect."""

    api_base = app.config.get("API_BASE_PREFIX", "/api")

    from shortlink.api.v1 import API_VERSION as V1
    from shortlink.api.v1 import REGISTRY as V1_REGISTRY

    register_blueprint_group(app, base_prefix=f"{api_base}/{V1}", entries=V1_REGISTRY)

    from shortlink.api.health import bp as health_bp
    from shortlink.api.redirect import bp as redirect_bp

    app.register_blueprint(health_bp)
    # Registered last: its single-segment catch-all must not shadow anything
    app.register_blueprint(redirect_bp)

    _register_service_error_handler(app)


__all__ = ["init_app", "register_blueprint_group"]
