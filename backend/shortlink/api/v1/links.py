"""Link management endpoints (owner-scoped, bearer-protected)."""

from __future__ import annotations

from uuid import UUID

from flask import Blueprint, request

from shortlink.api.deps import current_user_id, get_link_service, json_response, require_auth, timing
from shortlink.schemas import (
    LinkCreateSchema,
    LinkQuerySchema,
    LinkSchema,
    LinkUpdateSchema,
    build_meta,
)
from shortlink.services.links.dto import LinkCreateIn, LinkListIn, LinkUpdateIn

bp = Blueprint("links", __name__, url_prefix="/links")

link_schema = LinkSchema()
link_list_schema = LinkSchema(many=True)
link_create_schema = LinkCreateSchema()
link_update_schema = LinkUpdateSchema()
link_query_schema = LinkQuerySchema()


@bp.post("")
@require_auth
@timing
def create_link():
    """Create a link with a requested or generated short code."""

    payload = link_create_schema.load(request.get_json(silent=True) or {})
    link = get_link_service().create(current_user_id(), LinkCreateIn(**payload))
    response = json_response({"data": link_schema.dump(link)}, status=201)
    response.headers["Location"] = f"{request.base_url.rstrip('/')}/{link.id}"
    return response


@bp.get("")
@require_auth
@timing
def list_links():
    """Return one window of the caller's links."""

    args = link_query_schema.load(request.args)
    page = get_link_service().list(
        current_user_id(),
        LinkListIn(
            limit=args["limit"],
            offset=args["offset"],
            query=args["query"],
            is_active=args["active"],
            sort_by=args["sort_by"],
            order_by=args["order_by"],
        ),
    )
    return json_response({"data": link_list_schema.dump(page.items), "meta": build_meta(page.meta)})


@bp.get("/<uuid:link_id>")
@require_auth
@timing
def get_link(link_id: UUID):
    link = get_link_service().get(current_user_id(), link_id)
    return json_response({"data": link_schema.dump(link)})


@bp.patch("/<uuid:link_id>")
@require_auth
@timing
def update_link(link_id: UUID):
    """Apply a partial update (target URL, title, active flag)."""

    changes = link_update_schema.load(request.get_json(silent=True) or {})
    link = get_link_service().update(current_user_id(), link_id, LinkUpdateIn(changes=changes))
    return json_response({"data": link_schema.dump(link)})


@bp.delete("/<uuid:link_id>")
@require_auth
@timing
def delete_link(link_id: UUID):
    get_link_service().delete(current_user_id(), link_id)
    return "", 204
