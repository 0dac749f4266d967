# shortlink/infra/security/werkzeug_password_hasher.py
from __future__ import annotations

from dataclasses import dataclass

from werkzeug.security import check_password_hash, generate_password_hash

from shortlink.services._shared.ports import PasswordHasher


@dataclass(frozen=True, slots=True)
class WerkzeugPasswordHasher(PasswordHasher):
    """
    Password hasher backed by :mod:`werkzeug.security`.

    ``scrypt`` is memory- and CPU-hard; werkzeug draws a fresh 16-character
    salt from :mod:`secrets` on every call and embeds it, along with the
    method parameters, in the returned digest.

    :param method: werkzeug method string (e.g. ``"scrypt"`` or
        ``"scrypt:32768:8:1"``).
    """

    method: str = "scrypt"

    def hash(self, plaintext: str) -> str:
        if not isinstance(plaintext, str) or not plaintext:
            raise ValueError("Password must be a non-empty string.")
        return generate_password_hash(plaintext, method=self.method)

    def verify(self, plaintext: str, digest: str) -> bool:
        if not digest:
            return False
        try:
            # ``check_password_hash`` is untyped; coerce to bool for mypy.
            return bool(check_password_hash(digest, plaintext))
        except (ValueError, TypeError):
            # Unknown method or truncated digest
            return False
