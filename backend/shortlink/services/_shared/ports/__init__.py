"""
shortlink.services._shared.ports
================================

Collection of *ports* (hexagonal interfaces) that define the contracts for
credential, token and short-code infrastructure.

Modules
-------
- :mod:`password_hasher`:
    Defines :class:`~.PasswordHasher`, salted one-way hashing.

- :mod:`token_issuer`:
    Defines :class:`~.TokenIssuer` and :class:`~.AccessClaims`, stateless
    access tokens.

- :mod:`refresh_token_store`:
    Defines :class:`~.RefreshTokenStore`, :class:`~.RefreshTokenRecord` and an
    in-memory double.

- :mod:`short_code_registry`:
    Defines :class:`~.ShortCodeRegistry` and an in-memory double.

Concrete adapters (database, Redis, werkzeug, flask-jwt-extended) live under
``shortlink.infra`` and ``shortlink.repositories``.
"""

from __future__ import annotations

from .password_hasher import PasswordHasher
from .refresh_token_store import (
    InMemoryRefreshTokenStore,
    RefreshTokenRecord,
    RefreshTokenStore,
)
from .short_code_registry import InMemoryShortCodeRegistry, ShortCodeRegistry
from .token_issuer import AccessClaims, TokenIssuer

__all__ = [
    "AccessClaims",
    "InMemoryRefreshTokenStore",
    "InMemoryShortCodeRegistry",
    "PasswordHasher",
    "RefreshTokenRecord",
    "RefreshTokenStore",
    "ShortCodeRegistry",
    "TokenIssuer",
]
