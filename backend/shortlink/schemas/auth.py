"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from typing import Any

from marshmallow import Schema, fields, pre_load, validate


def _strip_email(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


class _CredentialsSchema(Schema):
    """Email/password payload; the email is trimmed before it is validated."""

    email = fields.Email(required=True, validate=validate.Length(max=254))

    @pre_load
    def strip_email(self, data: Any, **kwargs: Any) -> Any:
        if isinstance(data, dict) and "email" in data:
            data = {**data, "email": _strip_email(data["email"])}
        return data


class RegisterSchema(_CredentialsSchema):
    """Input payload for account registration."""

    password = fields.String(required=True, validate=validate.Length(min=8, max=128))


class LoginSchema(_CredentialsSchema):
    """Input payload for authenticating a user."""

    # No minimum here: a short password is just a wrong password
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshTokenSchema(Schema):
    """Input payload carrying an opaque refresh token (refresh, logout)."""

    refresh_token = fields.String(required=True, validate=validate.Length(min=1, max=512))


class UserSchema(Schema):
    """Public view of a registered account."""

    id = fields.UUID(dump_only=True)
    email = fields.Email(dump_only=True)
    created_at = fields.DateTime(dump_only=True)


class TokenPairSchema(Schema):
    """Response payload of a successful login."""

    access_token = fields.String(required=True)
    token_type = fields.Constant("bearer")
    expires_in = fields.Integer(required=True)
    refresh_token = fields.String(required=True)
    refresh_expires_in = fields.Integer(required=True)


class AccessTokenSchema(Schema):
    """Response payload of a refresh; the refresh pair appears only on rotation."""

    access_token = fields.String(required=True)
    token_type = fields.Constant("bearer")
    expires_in = fields.Integer(required=True)
    refresh_token = fields.String()
    refresh_expires_in = fields.Integer()
