"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside an outer transaction on one connection to an in-memory
SQLite database. The test session joins it with
``join_transaction_mode="create_savepoint"``, so service-level commits and
rollbacks only move SAVEPOINTs and nothing leaks between cases.
"""

from __future__ import annotations

import os

import pytest
from shortlink.core.config import TestingConfig
from shortlink.core.extensions import db as _db  # Flask-SQLAlchemy instance
from shortlink.factory import create_app  # application factory under test
from sqlalchemy.orm import scoped_session, sessionmaker


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestingConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestingConfig, instance_relative_config=False)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(autouse=True)
def app_ctx(app):
    """Push a fresh application context (and so a fresh ``g``) per test."""
    with app.app_context():
        yield


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
    yield _db
    with app.app_context():
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(app, db):
    """Keep a dedicated DBAPI connection open for the whole session."""
    with app.app_context():
        conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in a rolled-back outer transaction.

    Yields
    ------
    sqlalchemy.orm.scoping.scoped_session
        Scoped session bound to the shared connection. ``db.session`` is
        reassigned to it for the duration of the test so application code
        (units of work, repositories, probes) uses it transparently.
    """
    outer = connection.begin()
    factory = sessionmaker(
        bind=connection, autoflush=False, join_transaction_mode="create_savepoint"
    )
    scoped = scoped_session(factory)

    original_session = db.session
    db.session = scoped
    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        outer.rollback()


@pytest.fixture(autouse=True)
def _reset_rate_limiters(app):
    """Start every test with empty limiter tables."""
    for limiter in app.extensions["rate_limiters"].values():
        limiter.reset()
    yield


@pytest.fixture()
def client(app, session):
    """Flask test client sharing the transactional session."""
    return app.test_client()


@pytest.fixture()
def click_recorder(app):
    recorder = app.extensions["click_recorder"]
    recorder.drain()
    yield recorder
    recorder.drain()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield


@pytest.fixture()
def auth_user(session):
    """Persisted user plus ready-to-use JSON headers carrying a bearer token.

    Only plain values are exposed: app-context teardowns inside a test may
    detach ORM instances.
    """
    from datetime import timedelta
    from types import SimpleNamespace

    from shortlink.infra.jwt.flask_jwt_token_issuer import JWTTokenIssuer

    from tests.factories.user import UserFactory
    from tests.helpers.http import json_headers

    user = UserFactory()
    token = JWTTokenIssuer().issue(user.id, user.email, timedelta(minutes=15))
    return SimpleNamespace(id=user.id, email=user.email, token=token, headers=json_headers(token))
