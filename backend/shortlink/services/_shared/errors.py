"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never depend on Flask or
HTTP. They are the stable contract between repositories, ports and
application services.

The translation to HTTP responses (RFC 7807) is handled by
:func:`shortlink.services._shared.base.translate_service_error`, which maps
them onto ``shortlink.core.errors.APIError`` subclasses.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    PostgreSQL reports the constraint name; SQLite only reports the columns
    (``UNIQUE constraint failed: links.short_code``), so the conventional
    ``uq_<table>_<column>`` name is also matched against that form.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_links_short_code').

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    name = constraint_name.lower()
    if name in message:
        return True
    if name.startswith("uq_") and "unique constraint failed" in message:
        table_column = name[len("uq_") :]
        columns = message.split("unique constraint failed:", 1)[-1]
        return any(
            part.strip().replace(".", "_") == table_column for part in columns.split(",")
        )
    return False


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    These are *not* HTTP errors. The API layer translates them.
    """


class NotFoundError(ServiceError):
    """
    Raised when an entity is not found.

    :param entity: Entity name (e.g., "Link").
    :param key: Identifier or search key.
    """

    def __init__(self, entity: str, key: object) -> None:
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class ConflictError(ServiceError):
    """
    Raised when a uniqueness rule is violated.

    :param entity: Entity name (e.g., "User").
    :param detail: Short human-readable explanation.
    """

    def __init__(self, entity: str, detail: str) -> None:
        self.entity = entity
        self.detail = detail
        super().__init__(f"Conflict on {entity}: {detail}")


class InvalidInputError(ServiceError):
    """Raised when a value is well-formed JSON but fails a domain rule."""


class AuthenticationError(ServiceError):
    """Raised when a caller cannot be authenticated."""

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


# --------------------------------------------------------------------------- #
# Access tokens
# --------------------------------------------------------------------------- #


class TokenError(AuthenticationError):
    """Base class for access-token verification failures."""


class InvalidTokenSignatureError(TokenError):
    def __init__(self, message: str = "Invalid token signature") -> None:
        super().__init__(message)


class TokenExpiredError(TokenError):
    def __init__(self, message: str = "Token has expired") -> None:
        super().__init__(message)


class MalformedTokenError(TokenError):
    def __init__(self, message: str = "Malformed token") -> None:
        super().__init__(message)


# --------------------------------------------------------------------------- #
# Refresh tokens
# --------------------------------------------------------------------------- #


class RefreshTokenNotFoundError(NotFoundError):
    """No stored refresh token matches the presented value."""

    def __init__(self) -> None:
        # The key is deliberately not the token itself.
        super().__init__("RefreshToken", "<redacted>")


class RefreshTokenRevokedError(AuthenticationError):
    def __init__(self) -> None:
        super().__init__("Refresh token has been revoked")


class RefreshTokenExpiredError(AuthenticationError):
    def __init__(self) -> None:
        super().__init__("Refresh token has expired")


# --------------------------------------------------------------------------- #
# Accounts & links
# --------------------------------------------------------------------------- #


class EmailTakenError(ConflictError):
    def __init__(self) -> None:
        super().__init__("User", "email already registered")


class ShortCodeConflictError(ConflictError):
    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__("Link", f"short code '{code}' is already in use")


class InvalidShortCodeError(InvalidInputError):
    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(
            "Short code must be 4-32 characters of letters, digits, '_' or '-'"
        )


class ReservedShortCodeError(InvalidInputError):
    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Short code '{code}' is reserved")


class AllocationExhaustedError(ServiceError):
    """Raised when every generated candidate collided within the attempt budget."""

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"Could not allocate a short code after {attempts} attempts")
