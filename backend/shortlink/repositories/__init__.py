"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from shortlink.repositories.base import BaseRepository, parse_sort_tokens
from shortlink.repositories.link import LinkRepository
from shortlink.repositories.refresh_token import RefreshTokenRepository
from shortlink.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "parse_sort_tokens",
    "LinkRepository",
    "RefreshTokenRepository",
    "UserRepository",
]
