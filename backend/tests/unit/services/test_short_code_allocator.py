# tests/unit/services/test_short_code_allocator.py
"""Short-code allocation against the in-memory registry."""

from __future__ import annotations

import threading
from collections.abc import Iterator

import pytest
from shortlink.services._shared.errors import (
    AllocationExhaustedError,
    InvalidShortCodeError,
    ReservedShortCodeError,
    ShortCodeConflictError,
)
from shortlink.services._shared.ports import InMemoryShortCodeRegistry
from shortlink.services.links.allocator import (
    ALPHABET,
    RESERVED_CODES,
    ShortCodeAllocator,
    is_reserved,
    is_valid_code,
)


def scripted_choice(codes: list[str]):
    """Return a ``choice`` replacement spelling out ``codes`` one symbol at a time."""
    symbols: Iterator[str] = iter("".join(codes))
    return lambda _alphabet: next(symbols)


class LyingRegistry(InMemoryShortCodeRegistry):
    """Pre-check always answers "free", like a concurrent inserter winning the race."""

    def is_taken(self, code: str) -> bool:
        return False


# ------------------------------ Validation -------------------------------- #


@pytest.mark.parametrize("code", ["abcd", "A_b-9", "x" * 32, "My-Link_2024"])
def test_valid_codes(code):
    assert is_valid_code(code)


@pytest.mark.parametrize("code", ["abc", "x" * 33, "has space", "dot.ted", "slash/ed", "ümlaut", ""])
def test_invalid_codes(code):
    assert not is_valid_code(code)


def test_reserved_words_are_case_insensitive():
    assert is_reserved("admin")
    assert is_reserved("ADMIN")
    assert is_reserved("Healthz")
    assert not is_reserved("administrator")


# ------------------------------ Requested --------------------------------- #


def test_requested_code_is_claimed_verbatim():
    registry = InMemoryShortCodeRegistry()
    allocator = ShortCodeAllocator(registry)

    assert allocator.allocate("my-code") == "my-code"
    assert "my-code" in registry.codes


def test_requested_code_is_trimmed():
    allocator = ShortCodeAllocator(InMemoryShortCodeRegistry())

    assert allocator.allocate("  launch  ") == "launch"


def test_requested_code_taken_raises_conflict():
    allocator = ShortCodeAllocator(InMemoryShortCodeRegistry(taken={"promo"}))

    with pytest.raises(ShortCodeConflictError):
        allocator.allocate("promo")


def test_requested_code_lost_race_raises_conflict():
    allocator = ShortCodeAllocator(LyingRegistry(taken={"promo"}))

    with pytest.raises(ShortCodeConflictError):
        allocator.allocate("promo")


@pytest.mark.parametrize("code", ["ab", "bad code", "a" * 40])
def test_requested_code_invalid(code):
    allocator = ShortCodeAllocator(InMemoryShortCodeRegistry())

    with pytest.raises(InvalidShortCodeError):
        allocator.allocate(code)


@pytest.mark.parametrize("code", sorted(c for c in RESERVED_CODES if len(c) >= 4))
def test_requested_code_reserved(code):
    allocator = ShortCodeAllocator(InMemoryShortCodeRegistry())

    with pytest.raises(ReservedShortCodeError):
        allocator.allocate(code.upper())


def test_blank_request_falls_back_to_generation():
    allocator = ShortCodeAllocator(InMemoryShortCodeRegistry())

    code = allocator.allocate("   ")

    assert len(code) == 8


# ------------------------------ Generated --------------------------------- #


def test_generated_code_shape():
    registry = InMemoryShortCodeRegistry()
    allocator = ShortCodeAllocator(registry, length=12)

    code = allocator.allocate()

    assert len(code) == 12
    assert set(code) <= set(ALPHABET)
    assert registry.codes == {code}


def test_generation_skips_taken_codes():
    registry = InMemoryShortCodeRegistry(taken={"aaaaaaaa"})
    allocator = ShortCodeAllocator(registry, choice=scripted_choice(["aaaaaaaa", "bbbbbbbb"]))

    assert allocator.allocate() == "bbbbbbbb"


def test_generation_skips_reserved_codes():
    allocator = ShortCodeAllocator(
        InMemoryShortCodeRegistry(),
        length=5,
        choice=scripted_choice(["login", "LOGIN", "zzzzz"]),
    )

    assert allocator.allocate() == "zzzzz"


def test_generation_retries_when_claim_loses_race():
    registry = LyingRegistry(taken={"aaaaaaaa"})
    allocator = ShortCodeAllocator(registry, choice=scripted_choice(["aaaaaaaa", "cccccccc"]))

    assert allocator.allocate() == "cccccccc"
    assert registry.codes == {"aaaaaaaa", "cccccccc"}


def test_exhaustion_after_attempt_budget():
    registry = InMemoryShortCodeRegistry(taken={"aaaa"})
    allocator = ShortCodeAllocator(
        registry, length=4, max_attempts=3, choice=lambda _alphabet: "a"
    )

    with pytest.raises(AllocationExhaustedError):
        allocator.allocate()


@pytest.mark.parametrize("kwargs", [{"length": 3}, {"length": 33}, {"max_attempts": 0}])
def test_rejects_invalid_configuration(kwargs):
    with pytest.raises(ValueError):
        ShortCodeAllocator(InMemoryShortCodeRegistry(), **kwargs)


def test_concurrent_allocations_are_distinct():
    registry = InMemoryShortCodeRegistry()
    allocator = ShortCodeAllocator(registry, length=4)
    results: list[str] = []
    lock = threading.Lock()
    barrier = threading.Barrier(8)

    def worker() -> None:
        barrier.wait()
        local = [allocator.allocate() for _ in range(50)]
        with lock:
            results.extend(local)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 400
    assert len(set(results)) == 400
    assert registry.codes == set(results)
