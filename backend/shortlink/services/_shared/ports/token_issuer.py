from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol
from uuid import UUID


@dataclass(frozen=True, slots=True)
class AccessClaims:
    """
    Verified contents of an access token.

    :ivar user_id: Subject (``sub``) as a UUID.
    :ivar email: Normalized email of the subject.
    :ivar issued_at: ``iat`` claim (UTC).
    :ivar expires_at: ``exp`` claim (UTC).
    """

    user_id: UUID
    email: str
    issued_at: datetime
    expires_at: datetime


class TokenIssuer(Protocol):
    """Port for issuing and verifying stateless access tokens.

    ``verify`` raises one of :class:`~shortlink.services._shared.errors.InvalidTokenSignatureError`,
    :class:`~shortlink.services._shared.errors.TokenExpiredError` or
    :class:`~shortlink.services._shared.errors.MalformedTokenError`.
    """

    def issue(self, user_id: UUID, email: str, ttl: timedelta) -> str: ...

    def verify(self, token: str) -> AccessClaims: ...
