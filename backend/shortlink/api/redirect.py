"""Public redirect: ``GET /<short_code>``."""

from __future__ import annotations

import logging

from flask import Blueprint, redirect

from shortlink.api.deps import get_click_recorder, get_link_service
from shortlink.api.rate_limit import REDIRECT, gate
from shortlink.core.errors import NotFound
from shortlink.services.links.allocator import is_valid_code
from shortlink.services.links.clicks import ClickEvent

log = logging.getLogger(__name__)

bp = Blueprint("redirect", __name__)
gate(bp, REDIRECT)


@bp.get("/<string:short_code>")
def follow(short_code: str):
    """Redirect to the link target and record the click in the background."""

    if not is_valid_code(short_code):
        raise NotFound("Link not found")
    target = get_link_service().resolve(short_code)
    get_click_recorder().submit(ClickEvent(link_id=target.link_id))
    log.debug("redirect.follow", extra={"short_code": short_code, "link_id": str(target.link_id)})
    return redirect(target.target_url, code=302)
