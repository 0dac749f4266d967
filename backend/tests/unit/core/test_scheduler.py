"""Unit tests for the maintenance scheduler."""

from __future__ import annotations

from datetime import timedelta

import pytest
from flask import current_app
from shortlink.core.scheduler import MaintenanceJob, MaintenanceScheduler

from tests.factories.user import UserFactory


def test_app_registers_maintenance_jobs(app):
    scheduler = app.extensions["scheduler"]

    assert scheduler.job_ids() == ["ratelimit_sweep", "refresh_token_sweep"]
    # Disabled under TestingConfig
    assert scheduler.running is False


def test_run_now_executes_inside_app_context(app):
    calls: list[str] = []

    def job() -> int:
        calls.append(current_app.name)
        return 3

    scheduler = MaintenanceScheduler(app)
    scheduler.add_job(MaintenanceJob("probe", job, timedelta(minutes=5)))

    scheduler.run_now("probe")

    assert calls == [app.name]


def test_run_now_unknown_job(app):
    with pytest.raises(KeyError):
        MaintenanceScheduler(app).run_now("missing")


def test_start_and_stop(app):
    scheduler = MaintenanceScheduler(app)
    scheduler.add_job(MaintenanceJob("idle", lambda: 0, timedelta(hours=1)))

    scheduler.start()
    try:
        assert scheduler.running is True
        scheduler.start()  # second start is a no-op
    finally:
        scheduler.stop(wait=False)

    assert scheduler.running is False
    scheduler.stop()


def test_refresh_token_sweep_job(app, session):
    from shortlink.services.sessions.service import SessionStore

    user_id = UserFactory().id
    SessionStore().issue(user_id, ttl=timedelta(seconds=-1))
    SessionStore().issue(user_id, ttl=timedelta(hours=1))

    app.extensions["scheduler"].run_now("refresh_token_sweep")

    from shortlink.models.refresh_token import RefreshToken
    from sqlalchemy import func, select

    remaining = session.execute(select(func.count()).select_from(RefreshToken)).scalar_one()
    assert remaining == 1


def test_ratelimit_sweep_job(app):
    limiter = app.extensions["rate_limiters"]["auth"]
    limiter.allow("198.51.100.7")

    app.extensions["scheduler"].run_now("ratelimit_sweep")

    # Stamps inside the window survive the sweep
    assert limiter.tracked_keys() == 1
