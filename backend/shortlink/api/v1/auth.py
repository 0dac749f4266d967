"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint, request

from shortlink.api.deps import get_auth_service, json_response, timing
from shortlink.api.rate_limit import AUTH, gate
from shortlink.schemas import (
    AccessTokenSchema,
    LoginSchema,
    RefreshTokenSchema,
    RegisterSchema,
    TokenPairSchema,
    UserSchema,
)
from shortlink.services.auth.dto import LoginIn, LogoutIn, RefreshIn, RegisterIn

bp = Blueprint("auth", __name__, url_prefix="/auth")
gate(bp, AUTH)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_token_schema = RefreshTokenSchema()
user_schema = UserSchema()
token_pair_schema = TokenPairSchema()
access_token_schema = AccessTokenSchema()


def _body() -> dict:
    return request.get_json(silent=True) or {}


@bp.post("/register")
@timing
def register():
    """Register a new account and return its public representation."""

    payload = register_schema.load(_body())
    user = get_auth_service().register(RegisterIn(**payload))
    return json_response({"data": user_schema.dump(user)}, status=201)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and issue an access/refresh token pair."""

    payload = login_schema.load(_body())
    tokens = get_auth_service().login(LoginIn(**payload))
    return json_response({"data": token_pair_schema.dump(tokens)})


@bp.post("/refresh")
@timing
def refresh():
    """Exchange a refresh token for a new access token."""

    payload = refresh_token_schema.load(_body())
    tokens = get_auth_service().refresh(RefreshIn(**payload))
    data = access_token_schema.dump(tokens)
    if tokens.refresh_token is None:
        data.pop("refresh_token", None)
        data.pop("refresh_expires_in", None)
    return json_response({"data": data})


@bp.post("/logout")
@timing
def logout():
    """Revoke the presented refresh token."""

    payload = refresh_token_schema.load(_body())
    get_auth_service().logout(LogoutIn(**payload))
    return "", 204
