"""CORS configuration helper for API resources."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS


def init_app(app: Flask) -> None:
    """Configure CORS for the JSON API based on application config.

    Only ``/api/*`` is covered; redirects and probes are never called from
    browsers via XHR. When ``CORS_ORIGINS`` is blank or ``"*"`` any origin is
    allowed and credentials are disabled. Bearer tokens travel in the
    ``Authorization`` header, so it is listed explicitly, as are the
    rate-limit headers clients may want to read.
    """
    raw_origins = app.config.get("CORS_ORIGINS", "")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    wildcard = len(origins) == 0 or origins == ["*"]

    CORS(
        app,
        resources={r"/api/*": {"origins": "*" if wildcard else origins}},
        supports_credentials=not wildcard,
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=[
            "X-Request-ID",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
