"""Application factory wiring Flask extensions, services and blueprints."""

from __future__ import annotations

import atexit

from flask import Flask

from shortlink.core.config import BaseConfig, get_config, validate_config
from shortlink.core.logger import configure_logging, init_app as init_logging


def _init_click_recorder(app: Flask) -> None:
    from shortlink.services.links.clicks import ClickEvent, ClickRecorder
    from shortlink.services.links.service import LinkService

    def record(event: ClickEvent) -> None:
        with app.app_context():
            LinkService().record_click(event.link_id, event.clicked_at)

    recorder = ClickRecorder(record, maxsize=int(app.config.get("CLICK_QUEUE_SIZE", 10_000)))
    app.extensions["click_recorder"] = recorder
    # Tests drain the queue synchronously instead
    if not app.testing:
        recorder.start()
        atexit.register(recorder.stop)


def _init_scheduler(app: Flask) -> None:
    from shortlink.api.deps import get_session_store
    from shortlink.core import scheduler
    from shortlink.services.rate_limit import SlidingWindowRateLimiter

    def sweep_rate_limits() -> int:
        limiters: dict[str, SlidingWindowRateLimiter] = app.extensions["rate_limiters"]
        return sum(limiter.sweep() for limiter in limiters.values())

    def sweep_refresh_tokens() -> int:
        return get_session_store().sweep_expired()

    scheduler.init_app(
        app,
        [
            scheduler.MaintenanceJob(
                "ratelimit_sweep", sweep_rate_limits, app.config["RATE_LIMIT_SWEEP_INTERVAL"]
            ),
            scheduler.MaintenanceJob(
                "refresh_token_sweep",
                sweep_refresh_tokens,
                app.config["REFRESH_TOKEN_SWEEP_INTERVAL"],
            ),
        ],
    )


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application."""

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    validate_config(app.config)
    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Proxy headers if running behind a reverse proxy (optional module)
    from shortlink.core import proxy

    proxy.init_app(app)

    from shortlink.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from shortlink.core import cors

    cors.init_app(app)

    from shortlink.api.rate_limit import build_limiters

    build_limiters(app)

    from shortlink.api import init_app as init_api

    init_api(app)

    from shortlink.core import errors

    errors.init_app(app)

    _init_click_recorder(app)
    _init_scheduler(app)

    from shortlink import cli as app_cli

    app_cli.init_app(app)

    return app
