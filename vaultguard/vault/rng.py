"""
Random Source — cryptographically secure randomness for salts, nonces,
record ids and generated passwords.

Anything with ``token_bytes`` and ``randbelow`` can be injected in place of
the system source (tests use deterministic doubles).
"""
import secrets
from typing import Protocol, runtime_checkable


@runtime_checkable
class RandomSource(Protocol):
    """Source of unpredictable bytes and integers."""

    def token_bytes(self, n: int) -> bytes:
        ...

    def randbelow(self, n: int) -> int:
        ...


class SystemRandomSource:
    """RandomSource backed by the OS CSPRNG via :mod:`secrets`."""

    def token_bytes(self, n: int) -> bytes:
        if n < 0:
            raise ValueError("Byte count cannot be negative")
        return secrets.token_bytes(n)

    def randbelow(self, n: int) -> int:
        return secrets.randbelow(n)

    def __repr__(self) -> str:
        return "<SystemRandomSource>"


default_random = SystemRandomSource()


def resolve(rng: RandomSource | None) -> RandomSource:
    """Return ``rng`` or the process-wide system source."""
    return default_random if rng is None else rng
