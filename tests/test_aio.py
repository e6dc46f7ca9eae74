"""
Tests for the asyncio facade.

Tests cover:
- Coroutine round trip through initialize / save / unlock
- Outcome API from async callers
- Cancellation of the awaiting task not aborting the worker
- Synchronous lock() / destroy() overtaking a running unlock
- Construction from a store or an existing lifecycle
"""
import asyncio
import threading

import pytest

from vaultguard.exceptions import InvalidPassphraseError, VaultLockedError
from vaultguard.vault import crypto
from vaultguard.vault.aio import AsyncVaultLifecycle
from vaultguard.vault.config import VaultConfig
from vaultguard.vault.lifecycle import UnlockOutcome, VaultLifecycle, VaultState
from vaultguard.vault.store import MemoryStore

STORAGE_KEY = VaultConfig().storage_key


async def wait_for(event: threading.Event, timeout: float = 30.0) -> None:
    """Poll a thread event from the event loop."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not event.is_set():
        if loop.time() > deadline:
            raise TimeoutError("worker never reached derivation")
        await asyncio.sleep(0.01)


@pytest.fixture
def paused_derive(monkeypatch):
    """Hold the worker thread inside derivation until ``release`` is set."""
    started = threading.Event()
    release = threading.Event()

    def derive(*args, **kwargs):
        started.set()
        release.wait(timeout=30)
        return crypto.derive(*args, **kwargs)

    monkeypatch.setattr("vaultguard.vault.lifecycle.derive", derive)
    return started, release


class TestAsyncVaultLifecycle:

    @pytest.mark.asyncio
    async def test_roundtrip(self, empty_store, passphrase):
        """Test initialize, save and unlock work from a coroutine."""
        vault = AsyncVaultLifecycle(empty_store)
        assert vault.is_initialized() is False
        key = await vault.initialize(passphrase)
        record = vault.new_record("Site", secret=vault.generate_password())
        vault.contents.add(record)
        await vault.save(key, vault.contents)
        vault.lock()
        assert vault.state is VaultState.LOCKED

        _, contents = await vault.unlock(passphrase)
        assert contents.entries == [record]

    @pytest.mark.asyncio
    async def test_wrong_passphrase(self, store):
        vault = AsyncVaultLifecycle(store)
        with pytest.raises(InvalidPassphraseError):
            await vault.unlock("wrong")
        result = await vault.try_unlock("wrong")
        assert result.outcome is UnlockOutcome.WRONG_PASSPHRASE

    @pytest.mark.asyncio
    async def test_rotation(self, store, passphrase):
        vault = AsyncVaultLifecycle(store)
        result = await vault.try_rotate_passphrase(passphrase, "next passphrase")
        assert result.ok
        vault.lock()
        assert (await vault.try_unlock("next passphrase")).ok

    @pytest.mark.asyncio
    async def test_cancellation_does_not_abort_unlock(self, store, passphrase, paused_derive):
        """Test the worker finishes and holds the lock after the caller is cancelled."""
        started, release = paused_derive
        vault = AsyncVaultLifecycle(store)

        task = asyncio.create_task(vault.unlock(passphrase))
        await wait_for(started)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        release.set()

        # the next call waits for the shielded worker to release the lock
        result = await vault.try_unlock(passphrase)
        assert result.ok
        assert vault.state is VaultState.UNLOCKED

    @pytest.mark.asyncio
    async def test_lock_overtakes_running_unlock(self, store, passphrase, paused_derive):
        """Test lock() during a worker unlock leaves the vault locked."""
        started, release = paused_derive
        vault = AsyncVaultLifecycle(store)

        task = asyncio.create_task(vault.unlock(passphrase))
        await wait_for(started)
        vault.lock()
        release.set()

        with pytest.raises(VaultLockedError):
            await task
        assert vault.state is VaultState.LOCKED
        with pytest.raises(VaultLockedError):
            vault.contents

    @pytest.mark.asyncio
    async def test_destroy_overtakes_running_unlock(self, store, passphrase, paused_derive):
        """Test destroy() during a worker unlock leaves the vault uninitialized."""
        started, release = paused_derive
        vault = AsyncVaultLifecycle(store)

        task = asyncio.create_task(vault.unlock(passphrase))
        await wait_for(started)
        vault.destroy()
        release.set()

        with pytest.raises(VaultLockedError):
            await task
        assert vault.state is VaultState.UNINITIALIZED
        assert store.get(STORAGE_KEY) is None

    @pytest.mark.asyncio
    async def test_wrap_existing_vault(self, store, passphrase):
        """Test a facade around an existing lifecycle shares its session."""
        sync_vault = VaultLifecycle(store)
        vault = AsyncVaultLifecycle(vault=sync_vault)
        assert AsyncVaultLifecycle.wrap(sync_vault).vault is sync_vault
        await vault.unlock(passphrase)
        assert sync_vault.state is VaultState.UNLOCKED

    def test_constructor_arguments(self, store):
        with pytest.raises(TypeError):
            AsyncVaultLifecycle()
        with pytest.raises(TypeError):
            AsyncVaultLifecycle(store, vault=VaultLifecycle(store))

    def test_helpers(self):
        vault = AsyncVaultLifecycle(MemoryStore())
        assert len(vault.new_record_id()) == 20
        assert vault.estimate_strength("Tr0ub4dor&3xtra-long!").label == "Strong"
        vault.destroy()
        assert vault.vault.state is VaultState.UNINITIALIZED
