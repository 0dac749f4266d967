"""Common Marshmallow schemas shared across resources."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from shortlink.services._shared.dto import WindowMeta


class WindowQuerySchema(Schema):
    """Validate ``limit``/``offset`` query parameters."""

    limit = fields.Integer(load_default=20, validate=validate.Range(min=1, max=100))
    offset = fields.Integer(load_default=0, validate=validate.Range(min=0))


class MetaSchema(Schema):
    """Metadata block for windowed list responses."""

    total = fields.Integer(required=True)
    limit = fields.Integer(required=True)
    offset = fields.Integer(required=True)
    has_more = fields.Boolean(required=True)


def build_meta(meta: WindowMeta) -> dict[str, object]:
    """Return a ``meta`` mapping for windowed responses."""

    return MetaSchema().dump(meta)
