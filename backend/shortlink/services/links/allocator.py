"""Short code allocation.

Generated codes are 8 symbols drawn with :func:`secrets.choice` from a
64-symbol, path-safe alphabet, i.e. 64**8 = 2**48 (about 2.8e14) codes.
With ``N`` links stored, one attempt collides with probability
``p = N / 2**48``; ten consecutive collisions happen with probability
``p**10``, about 3.6e-55 even at ``N = 10**9``. Exhausting the attempt budget
therefore signals a broken store or entropy source rather than bad luck.

Uniqueness is enforced by the store: :meth:`ShortCodeRegistry.claim` inserts
and raises on a uniqueness violation, and the allocator retries on that
signal. ``is_taken`` only saves a doomed insert.
"""

from __future__ import annotations

import logging
import re
import secrets
import string
from collections.abc import Callable, Sequence

from shortlink.services._shared.errors import (
    AllocationExhaustedError,
    InvalidShortCodeError,
    ReservedShortCodeError,
    ShortCodeConflictError,
)
from shortlink.services._shared.ports import ShortCodeRegistry

log = logging.getLogger(__name__)

ALPHABET = string.ascii_letters + string.digits + "_-"
MIN_LENGTH = 4
MAX_LENGTH = 32
DEFAULT_LENGTH = 8
DEFAULT_MAX_ATTEMPTS = 10

RESERVED_CODES: frozenset[str] = frozenset(
    {
        "api",
        "admin",
        "healthz",
        "readyz",
        "docs",
        "swagger",
        "www",
        "app",
        "auth",
        "login",
        "logout",
        "register",
        "signup",
    }
)

_CODE_RE = re.compile(rf"^[A-Za-z0-9_-]{{{MIN_LENGTH},{MAX_LENGTH}}}$")


def is_valid_code(code: str) -> bool:
    return bool(_CODE_RE.match(code))


def is_reserved(code: str) -> bool:
    """Reserved words are matched case-insensitively (``Admin`` is reserved)."""
    return code.lower() in RESERVED_CODES


class ShortCodeAllocator:
    """
    Allocate globally unique short codes against a :class:`ShortCodeRegistry`.

    Parameters
    ----------
    registry : ShortCodeRegistry
        Storage performing the pre-check and the uniqueness-enforcing claim.
    length : int, optional
        Length of generated codes.
    max_attempts : int, optional
        Generated candidates tried before giving up.
    choice : Callable[[Sequence[str]], str], optional
        Symbol picker; :func:`secrets.choice` unless a test pins it.
    """

    def __init__(
        self,
        registry: ShortCodeRegistry,
        *,
        length: int = DEFAULT_LENGTH,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        choice: Callable[[Sequence[str]], str] = secrets.choice,
    ) -> None:
        if not MIN_LENGTH <= length <= MAX_LENGTH:
            raise ValueError(f"length must be within [{MIN_LENGTH}, {MAX_LENGTH}]")
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.registry = registry
        self.length = length
        self.max_attempts = max_attempts
        self._choice = choice

    def generate(self) -> str:
        return "".join(self._choice(ALPHABET) for _ in range(self.length))

    def allocate(self, candidate: str | None = None) -> str:
        """
        Claim ``candidate`` or a freshly generated code.

        :param candidate: Caller-requested code; surrounding whitespace is
            ignored. ``None`` or blank means "generate one".
        :returns: The claimed code.
        :raises InvalidShortCodeError: Candidate outside ``[A-Za-z0-9_-]{4,32}``.
        :raises ReservedShortCodeError: Candidate is a reserved word.
        :raises ShortCodeConflictError: Candidate already in use.
        :raises AllocationExhaustedError: Every generated candidate collided.
        """
        if candidate is not None and candidate.strip():
            return self._claim_requested(candidate.strip())
        return self._claim_generated()

    def _claim_requested(self, code: str) -> str:
        if not is_valid_code(code):
            raise InvalidShortCodeError(code)
        if is_reserved(code):
            raise ReservedShortCodeError(code)
        if self.registry.is_taken(code):
            raise ShortCodeConflictError(code)
        self.registry.claim(code)
        return code

    def _claim_generated(self) -> str:
        for attempt in range(1, self.max_attempts + 1):
            code = self.generate()
            if is_reserved(code) or self.registry.is_taken(code):
                continue
            try:
                self.registry.claim(code)
            except ShortCodeConflictError:
                # Lost the race between pre-check and insert
                log.info("shortcode.claim_conflict", extra={"short_code": code})
                continue
            if attempt > 1:
                log.info("shortcode.allocated_after_retry", extra={"short_code": code})
            return code
        log.error("shortcode.exhausted")
        raise AllocationExhaustedError(self.max_attempts)
