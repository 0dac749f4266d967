"""WSGI proxy middleware configuration helper."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Apply :class:`werkzeug.middleware.proxy_fix.ProxyFix` when enabled.

    Parameters
    ----------
    app: flask.Flask
        Application whose WSGI pipeline should respect upstream proxy headers.

    Notes
    -----
    Rate limiting keys callers by ``request.remote_addr``; behind a reverse
    proxy that address is only meaningful once ``X-Forwarded-For`` has been
    applied. ``PROXY_TRUSTED_HOPS`` must match the number of proxies in front
    of the app, otherwise clients can spoof their address. Disable with
    ``USE_PROXYFIX=false`` when the app is exposed directly.
    """
    if not app.config.get("USE_PROXYFIX", True):
        return
    hops = int(app.config.get("PROXY_TRUSTED_HOPS", 1))
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=hops, x_proto=hops, x_host=hops, x_prefix=hops)
