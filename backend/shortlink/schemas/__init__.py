"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    AccessTokenSchema,
    LoginSchema,
    RefreshTokenSchema,
    RegisterSchema,
    TokenPairSchema,
    UserSchema,
)
from .common import MetaSchema, WindowQuerySchema, build_meta
from .link import LinkCreateSchema, LinkQuerySchema, LinkSchema, LinkUpdateSchema

__all__ = [
    "AccessTokenSchema",
    "LoginSchema",
    "RefreshTokenSchema",
    "RegisterSchema",
    "TokenPairSchema",
    "UserSchema",
    "MetaSchema",
    "WindowQuerySchema",
    "build_meta",
    "LinkCreateSchema",
    "LinkQuerySchema",
    "LinkSchema",
    "LinkUpdateSchema",
]
