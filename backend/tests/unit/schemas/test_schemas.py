# tests/unit/schemas/test_schemas.py
from __future__ import annotations

import pytest
from marshmallow import ValidationError
from shortlink.schemas.auth import LoginSchema, RegisterSchema
from shortlink.schemas.link import LinkSchema

from tests.factories.link import LinkFactory


@pytest.mark.parametrize("schema_cls", [RegisterSchema, LoginSchema])
def test_email_is_trimmed_before_validation(schema_cls):
    raw = {"email": "  USER@example.com ", "password": "s3cret-pass"}

    data = schema_cls().load(raw)

    assert data["email"] == "USER@example.com"
    # Caller payload is left untouched
    assert raw["email"] == "  USER@example.com "


def test_blank_email_still_fails():
    with pytest.raises(ValidationError) as exc:
        RegisterSchema().load({"email": "   ", "password": "s3cret-pass"})

    assert "email" in exc.value.messages


def test_short_url_joins_base_url(app, monkeypatch):
    link = LinkFactory(short_code="docs-1")
    monkeypatch.setitem(app.config, "BASE_URL", "https://sho.rt/")

    out = LinkSchema().dump(link)

    assert out["short_url"] == "https://sho.rt/docs-1"
