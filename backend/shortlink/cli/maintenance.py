"""Flask CLI commands exposing the maintenance sweeps and session revocation."""

from __future__ import annotations

import logging
from uuid import UUID

import click
from flask import current_app
from flask.cli import with_appcontext

from shortlink.api.deps import get_session_store

LOGGER = logging.getLogger(__name__)


@click.group("sessions")
def sessions_cli() -> None:
    """Refresh-token maintenance commands."""


@sessions_cli.command("sweep")
@with_appcontext
def sweep_sessions() -> None:
    """Delete refresh tokens whose expiry is in the past."""
    removed = get_session_store().sweep_expired()
    click.echo(f"Removed {removed} expired refresh token(s).")


@sessions_cli.command("revoke-user")
@click.argument("user_id", type=click.UUID)
@with_appcontext
def revoke_user(user_id: UUID) -> None:
    """Revoke every refresh token of USER_ID (sign out everywhere)."""
    revoked = get_session_store().revoke_all(user_id)
    click.echo(f"Revoked {revoked} refresh token(s) for {user_id}.")


@click.group("ratelimit")
def ratelimit_cli() -> None:
    """In-process rate limiter maintenance commands."""


@ratelimit_cli.command("sweep")
@with_appcontext
def sweep_rate_limits() -> None:
    """Drop idle keys from every limiter of this process."""
    limiters = current_app.extensions["rate_limiters"]
    for name, limiter in sorted(limiters.items()):
        removed = limiter.sweep()
        LOGGER.info("ratelimit.sweep", extra={"limiter": name, "removed": removed})
        click.echo(f"{name}: removed {removed} idle key(s), tracking {limiter.tracked_keys()}.")
