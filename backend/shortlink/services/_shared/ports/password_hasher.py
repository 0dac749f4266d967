from __future__ import annotations

from typing import Protocol


class PasswordHasher(Protocol):
    """Port for one-way, salted password hashing.

    ``hash`` embeds a per-call random salt in its output, so two calls with
    the same plaintext return different digests. ``verify`` returns ``False``
    (never raises) for a wrong password or a malformed digest.
    """

    def hash(self, plaintext: str) -> str: ...

    def verify(self, plaintext: str, digest: str) -> bool: ...
