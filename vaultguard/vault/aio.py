"""
AsyncVaultLifecycle — VaultLifecycle for callers on an asyncio event loop.

Key derivation is CPU-bound and deliberately slow. Operations run in a
worker thread behind ``asyncio.shield``: cancelling the awaiting task does
not abort a derivation or a store write midway, and the internal lock stays
held until the worker finishes, so state-changing calls never overlap.

``lock()`` and ``destroy()`` stay synchronous and take effect at once; an
operation still running in the worker then fails with ``VaultLockedError``
instead of reopening the session.
"""
import asyncio
from typing import Any, Callable, Optional

from .config import VaultConfig
from .generator import GeneratorOptions
from .lifecycle import RotateResult, UnlockResult, VaultLifecycle, VaultState
from .models import CredentialRecord, VaultContents
from .rng import RandomSource
from .secure import SecretKey
from .store import BlobStore
from .strength import StrengthEstimate


class AsyncVaultLifecycle:
    """Coroutine facade over a :class:`VaultLifecycle`.

    Pass ``store`` (and optionally ``config``, ``rng``, ``clock``) to build a
    new lifecycle, or ``vault`` to wrap an existing one.
    """

    def __init__(
        self,
        store: Optional[BlobStore] = None,
        config: Optional[VaultConfig] = None,
        rng: Optional[RandomSource] = None,
        clock: Optional[Callable[[], int]] = None,
        *,
        vault: Optional[VaultLifecycle] = None,
    ):
        if vault is None:
            if store is None:
                raise TypeError("AsyncVaultLifecycle needs a store or a vault")
            vault = VaultLifecycle(store, config=config, rng=rng, clock=clock)
        elif store is not None or config is not None or rng is not None or clock is not None:
            raise TypeError("Pass either a vault or store settings, not both")
        self._vault = vault
        self._lock = asyncio.Lock()

    @classmethod
    def wrap(cls, vault: VaultLifecycle) -> "AsyncVaultLifecycle":
        """Build a facade around an existing lifecycle instance."""
        return cls(vault=vault)

    async def _guarded(self, func: Callable[..., Any], *args: Any) -> Any:
        async with self._lock:
            return await asyncio.to_thread(func, *args)

    async def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        return await asyncio.shield(self._guarded(func, *args))

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def vault(self) -> VaultLifecycle:
        return self._vault

    @property
    def state(self) -> VaultState:
        return self._vault.state

    @property
    def contents(self) -> VaultContents:
        return self._vault.contents

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def is_initialized(self) -> bool:
        return self._vault.is_initialized()

    async def initialize(self, passphrase: str) -> SecretKey:
        return await self._run(self._vault.initialize, passphrase)

    async def unlock(self, passphrase: str) -> tuple[SecretKey, VaultContents]:
        return await self._run(self._vault.unlock, passphrase)

    async def try_unlock(self, passphrase: str) -> UnlockResult:
        return await self._run(self._vault.try_unlock, passphrase)

    async def save(self, key: SecretKey, contents: VaultContents) -> None:
        await self._run(self._vault.save, key, contents)

    async def rotate_passphrase(self, current: str, new: str) -> SecretKey:
        return await self._run(self._vault.rotate_passphrase, current, new)

    async def try_rotate_passphrase(self, current: str, new: str) -> RotateResult:
        return await self._run(self._vault.try_rotate_passphrase, current, new)

    def destroy(self) -> None:
        self._vault.destroy()

    def lock(self) -> None:
        """Drop the session. Synchronous so an inactivity timer can call it directly."""
        self._vault.lock()

    def generate_password(self, options: Optional[GeneratorOptions] = None) -> str:
        return self._vault.generate_password(options)

    def estimate_strength(self, password: str) -> StrengthEstimate:
        return self._vault.estimate_strength(password)

    def new_record_id(self) -> str:
        return self._vault.new_record_id()

    def new_record(self, title: str, **fields: Any) -> CredentialRecord:
        return self._vault.new_record(title, **fields)
