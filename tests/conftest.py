"""Shared fixtures for vault tests.

Key derivation runs 600k PBKDF2 iterations, so a vault is initialized once
per session and each test gets a fresh store seeded with that blob.
"""
import os

import pytest

from vaultguard.vault import MemoryStore, VaultConfig, VaultLifecycle
from vaultguard.vault.secure import SecretKey

PASSPHRASE = "correct horse battery staple"
STORAGE_KEY = VaultConfig().storage_key


class FixedClock:
    """Clock double returning a controllable millisecond timestamp."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int = 1000) -> int:
        self.now += ms
        return self.now


class ScriptedRandom:
    """RandomSource double replaying fixed randbelow values."""

    def __init__(self, values):
        self._values = list(values)
        self.calls = []

    def token_bytes(self, n: int) -> bytes:
        return os.urandom(n)

    def randbelow(self, n: int) -> int:
        self.calls.append(n)
        return self._values.pop(0) % n


@pytest.fixture
def passphrase():
    return PASSPHRASE


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def raw_key():
    """A random 256-bit key, without paying for derivation."""
    key = SecretKey(os.urandom(32))
    yield key
    key.zeroize()


@pytest.fixture(scope="session")
def sealed_blob():
    """Transport blob of an empty vault protected by PASSPHRASE."""
    store = MemoryStore()
    vault = VaultLifecycle(store)
    vault.initialize(PASSPHRASE)
    vault.lock()
    return store.get(STORAGE_KEY)


@pytest.fixture
def store(sealed_blob):
    """Store already holding an initialized vault."""
    return MemoryStore({STORAGE_KEY: sealed_blob})


@pytest.fixture
def empty_store():
    return MemoryStore()


@pytest.fixture
def vault(store, clock):
    """Locked vault over a fresh copy of the shared blob."""
    return VaultLifecycle(store, clock=clock)


@pytest.fixture
def scripted_random():
    """Factory for RandomSource doubles with fixed randbelow output."""
    return ScriptedRandom
