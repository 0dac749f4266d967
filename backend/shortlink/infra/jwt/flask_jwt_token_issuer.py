# shortlink/infra/jwt/flask_jwt_token_issuer.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, cast
from uuid import UUID

import jwt as pyjwt
from flask_jwt_extended.exceptions import JWTDecodeError

from shortlink.services._shared.errors import (
    InvalidTokenSignatureError,
    MalformedTokenError,
    TokenExpiredError,
)
from shortlink.services._shared.ports import AccessClaims, TokenIssuer


@dataclass(slots=True)
class JWTTokenIssuer(TokenIssuer):
    """
    Adapter for Flask-JWT-Extended (HS256 over ``JWT_SECRET_KEY``).

    Tokens carry ``sub`` (user id), ``email``, ``iat`` and ``exp``. No
    clock-skew leeway is applied on verification. ``iat`` and ``exp`` are
    whole epoch seconds, so two tokens issued within the same second carry
    the same expiry.

    .. note::
       Requires an active Flask app context with proper JWT settings.
    """

    def issue(self, user_id: UUID, email: str, ttl: timedelta) -> str:
        from flask_jwt_extended import create_access_token as _create_access

        return cast(
            str,
            _create_access(
                identity=str(user_id),
                additional_claims={"email": email},
                expires_delta=ttl,
            ),
        )

    def decode(self, token: str) -> dict[str, Any]:
        """Decode and validate a token, mapping library errors to token errors.

        :raises TokenExpiredError: When ``exp`` is in the past.
        :raises InvalidTokenSignatureError: On secret or algorithm mismatch.
        :raises MalformedTokenError: On any structural problem.
        """
        from flask_jwt_extended import decode_token

        try:
            return cast(dict[str, Any], decode_token(token))
        except pyjwt.ExpiredSignatureError as exc:
            raise TokenExpiredError() from exc
        except (pyjwt.InvalidSignatureError, pyjwt.InvalidAlgorithmError) as exc:
            raise InvalidTokenSignatureError() from exc
        except (pyjwt.InvalidTokenError, JWTDecodeError) as exc:
            raise MalformedTokenError() from exc

    def verify(self, token: str) -> AccessClaims:
        claims = self.decode(token)
        try:
            return AccessClaims(
                user_id=UUID(str(claims["sub"])),
                email=str(claims["email"]),
                issued_at=datetime.fromtimestamp(int(claims["iat"]), tz=UTC),
                expires_at=datetime.fromtimestamp(int(claims["exp"]), tz=UTC),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedTokenError("Token is missing required claims") from exc
