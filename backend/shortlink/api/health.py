"""Liveness and readiness probes, mounted at the application root."""

from __future__ import annotations

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from shortlink.api.deps import json_response
from shortlink.core.extensions import db

bp = Blueprint("health", __name__)


@bp.get("/healthz")
def healthz():
    """Process is up; no dependency is touched."""

    return json_response({"status": "ok"})


@bp.get("/readyz")
def readyz():
    """Return 200 when the database answers, 503 otherwise."""

    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("readyz.db_error")
        db.session.rollback()
        return json_response({"status": "unavailable", "db": "fail"}, status=503)
    version = current_app.config.get("APP_VERSION", "dev")
    return json_response({"status": "ok", "db": "ok", "version": version})
