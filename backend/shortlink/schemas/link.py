"""Link Marshmallow schemas."""

from __future__ import annotations

from typing import Any

from flask import current_app
from marshmallow import Schema, ValidationError, fields, validate, validates_schema

from shortlink.models.link import TARGET_URL_MAX_LENGTH
from shortlink.schemas.common import WindowQuerySchema
from shortlink.services.links.dto import SORTABLE_FIELDS

_URL = dict(
    schemes={"http", "https"},
    require_tld=False,
    validate=validate.Length(max=TARGET_URL_MAX_LENGTH),
)


class LinkCreateSchema(Schema):
    """Input payload for creating a link; ``short_code`` is optional."""

    target_url = fields.URL(required=True, **_URL)
    title = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=255))
    short_code = fields.String(load_default=None, allow_none=True)


class LinkUpdateSchema(Schema):
    """Partial update; the short code is not accepted."""

    target_url = fields.URL(**_URL)
    title = fields.String(allow_none=True, validate=validate.Length(max=255))
    is_active = fields.Boolean()

    @validates_schema
    def _not_empty(self, data: dict[str, Any], **_: Any) -> None:
        if not data:
            raise ValidationError("At least one field must be provided.")


class LinkQuerySchema(WindowQuerySchema):
    """Filters, ordering and window of ``GET /links``."""

    query = fields.String(load_default=None, validate=validate.Length(max=255))
    active = fields.Boolean(load_default=None, allow_none=True)
    sort_by = fields.String(
        load_default="created_at", validate=validate.OneOf(sorted(SORTABLE_FIELDS))
    )
    order_by = fields.String(load_default="desc", validate=validate.OneOf(["asc", "desc"]))


def _short_url(obj: Any) -> str:
    return f"{current_app.config['BASE_URL'].rstrip('/')}/{obj.short_code}"


class LinkSchema(Schema):
    """Serialize a link for API responses."""

    class Meta:
        ordered = True

    id = fields.UUID(dump_only=True)
    short_code = fields.String(dump_only=True)
    short_url = fields.Function(_short_url, dump_only=True)
    target_url = fields.String(dump_only=True)
    title = fields.String(dump_only=True, allow_none=True)
    is_active = fields.Boolean(dump_only=True)
    click_count = fields.Integer(dump_only=True)
    last_clicked_at = fields.DateTime(dump_only=True, allow_none=True)
    created_at = fields.DateTime(dump_only=True)
    updated_at = fields.DateTime(dump_only=True)
