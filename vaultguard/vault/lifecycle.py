"""
VaultLifecycle — Creation, unlock, save, passphrase rotation and deletion.

Provides the public API the surrounding application calls into:
- ``is_initialized()`` — does a stored envelope exist
- ``initialize(passphrase)`` — create an empty vault, return the session key
- ``unlock(passphrase)`` — verify, decrypt, return (key, contents)
- ``save(key, contents)`` — reseal contents under the session key
- ``rotate_passphrase(current, new)`` — re-key the whole envelope
- ``destroy()`` / ``lock()`` — drop the envelope / drop the session

States: UNINITIALIZED → UNLOCKED (initialize), LOCKED → UNLOCKED (unlock),
UNLOCKED → LOCKED (lock), any → UNINITIALIZED (destroy).

Security Note:
    Never log passphrases, key material, plaintext or ciphertext.
    Callers outside the engine should use ``try_unlock`` /
    ``try_rotate_passphrase``: every failure there carries the same generic
    message, while the typed exceptions stay available for diagnosis.
"""
import base64
import hmac
import logging
import re
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from ..exceptions import (
    AuthenticationError,
    FormatError,
    InvalidPassphraseError,
    NotFoundError,
    VaultExistsError,
    VaultLockedError,
)
from .config import VaultConfig
from .crypto import derive, deserialize_contents, open_sealed, seal, serialize_contents
from .envelope import StoredEnvelope, decode_envelope, encode_envelope
from .generator import GeneratorOptions, generate_password
from .key_rotation import build_envelope
from .models import CredentialRecord, VaultContents
from .rng import RandomSource, resolve
from .secure import SecretKey
from .store import BlobStore
from .strength import StrengthEstimate, estimate_strength

logger = logging.getLogger("vaultguard.vault")

GENERIC_FAILURE_MESSAGE = "Unable to unlock vault"
RECORD_ID_LENGTH = 20

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


class VaultState(Enum):
    UNINITIALIZED = "uninitialized"
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class UnlockOutcome(Enum):
    SUCCESS = "success"
    WRONG_PASSPHRASE = "wrong_passphrase"
    NO_VAULT = "no_vault"
    CORRUPT_VAULT = "corrupt_vault"


@dataclass(frozen=True)
class UnlockResult:
    outcome: UnlockOutcome
    key: Optional[SecretKey] = None
    contents: Optional[VaultContents] = None

    @property
    def ok(self) -> bool:
        return self.outcome is UnlockOutcome.SUCCESS

    @property
    def message(self) -> str:
        return "" if self.ok else GENERIC_FAILURE_MESSAGE


@dataclass(frozen=True)
class RotateResult:
    outcome: UnlockOutcome
    key: Optional[SecretKey] = None

    @property
    def ok(self) -> bool:
        return self.outcome is UnlockOutcome.SUCCESS

    @property
    def message(self) -> str:
        return "" if self.ok else GENERIC_FAILURE_MESSAGE


def _outcome_for(err: Exception) -> UnlockOutcome:
    if isinstance(err, NotFoundError):
        return UnlockOutcome.NO_VAULT
    if isinstance(err, InvalidPassphraseError):
        return UnlockOutcome.WRONG_PASSPHRASE
    return UnlockOutcome.CORRUPT_VAULT


def now_ms() -> int:
    """Wall-clock time in integer milliseconds."""
    return int(time.time() * 1000)


def new_record_id(rng: Optional[RandomSource] = None) -> str:
    """Return a fresh 20-character alphanumeric record id."""
    source = resolve(rng)
    ident = ""
    while len(ident) < RECORD_ID_LENGTH:
        chunk = base64.b64encode(source.token_bytes(16)).decode("ascii")
        ident += _NON_ALNUM.sub("", chunk)
    return ident[:RECORD_ID_LENGTH]


class VaultLifecycle:
    """Encrypted credential vault bound to one named blob in ``store``.

    While unlocked, the instance exclusively owns the session key and the
    decrypted contents; both are dropped (the key zeroized) on ``lock()``
    and ``destroy()``.
    """

    def __init__(
        self,
        store: BlobStore,
        config: Optional[VaultConfig] = None,
        rng: Optional[RandomSource] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self._store = store
        self._config = config or VaultConfig()
        self._rng = resolve(rng)
        self._clock = clock or now_ms
        self._key: Optional[SecretKey] = None
        self._contents: Optional[VaultContents] = None
        self._salt: Optional[bytes] = None
        self._generation = 0
        self._session_lock = threading.RLock()
        self._state = (
            VaultState.LOCKED if self.is_initialized() else VaultState.UNINITIALIZED
        )

    def __repr__(self) -> str:
        return f"<VaultLifecycle state={self._state.value} store={self._store!r}>"

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> VaultState:
        return self._state

    @property
    def config(self) -> VaultConfig:
        return self._config

    @property
    def contents(self) -> VaultContents:
        """Decrypted contents of the current session.

        Raises:
            VaultLockedError: If the vault is not unlocked.
        """
        if self._state is not VaultState.UNLOCKED or self._contents is None:
            raise VaultLockedError("Vault is locked")
        return self._contents

    # ------------------------------------------------------------------
    # Envelope helpers
    # ------------------------------------------------------------------

    def _load_envelope(self) -> StoredEnvelope:
        raw = self._store.get(self._config.storage_key)
        if raw is None:
            raise NotFoundError("No vault found")
        return decode_envelope(raw)

    def _write_envelope(self, envelope: StoredEnvelope) -> None:
        self._store.set(self._config.storage_key, encode_envelope(envelope))

    def _authenticate(
        self, passphrase: str, envelope: StoredEnvelope,
    ) -> tuple[SecretKey, VaultContents]:
        """Check ``passphrase`` against ``envelope`` and decrypt its contents.

        Raises:
            InvalidPassphraseError: If the verification value does not match.
            AuthenticationError: If the ciphertext fails tag verification.
            FormatError: If the decrypted payload is not vault contents.
        """
        material = derive(passphrase, envelope.salt, envelope.kdf_iterations)
        key = material.encryption_key
        if not hmac.compare_digest(
            material.verification_value, envelope.verification_value,
        ):
            key.zeroize()
            logger.warning("Vault unlock rejected: verification mismatch")
            raise InvalidPassphraseError("Invalid master passphrase")

        try:
            plaintext = open_sealed(envelope.ciphertext, key, envelope.cipher)
            contents = deserialize_contents(plaintext)
        except AuthenticationError:
            key.zeroize()
            logger.error(
                "Vault ciphertext failed authentication after passphrase "
                "verification succeeded; stored data is corrupt or tampered"
            )
            raise
        except FormatError:
            key.zeroize()
            logger.error("Vault payload authenticated but could not be parsed")
            raise
        return key, contents

    def _commit(
        self,
        generation: int,
        key: SecretKey,
        contents: VaultContents,
        salt: bytes,
        envelope: Optional[StoredEnvelope] = None,
    ) -> None:
        """Write ``envelope`` (if any) and open a session with ``key``.

        ``generation`` is the session generation seen when the operation
        started; if ``lock()`` or ``destroy()`` ran since, nothing is
        written, the key is zeroized and ``VaultLockedError`` is raised.
        """
        with self._session_lock:
            if generation != self._generation:
                key.zeroize()
                raise VaultLockedError("Vault was locked during the operation")
            if envelope is not None:
                try:
                    self._write_envelope(envelope)
                except Exception:
                    key.zeroize()
                    raise
            self._begin_session(key, contents, salt)

    def _begin_session(
        self, key: SecretKey, contents: VaultContents, salt: bytes,
    ) -> None:
        previous = self._key
        self._key = key
        self._contents = contents
        self._salt = salt
        self._state = VaultState.UNLOCKED
        if previous is not None and previous is not key:
            previous.zeroize()

    def _end_session(self, state: VaultState) -> None:
        with self._session_lock:
            self._generation += 1
            key = self._key
            self._key = None
            self._contents = None
            self._salt = None
            self._state = state
        if key is not None:
            key.zeroize()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def is_initialized(self) -> bool:
        """Return True if the store holds a vault envelope."""
        return self._store.get(self._config.storage_key) is not None

    def initialize(self, passphrase: str) -> SecretKey:
        """Create a new empty vault protected by ``passphrase``.

        Returns:
            The session encryption key; the vault is left unlocked.

        Raises:
            VaultExistsError: If an envelope already exists.
            DerivationError: If key derivation fails.
            VaultLockedError: If ``lock()`` or ``destroy()`` ran meanwhile.
        """
        if self.is_initialized():
            raise VaultExistsError(
                "Vault already exists. Destroy it before initializing again."
            )
        generation = self._generation
        contents = VaultContents(schema_version=self._config.schema_version)
        envelope, key = build_envelope(contents, passphrase, self._config, self._rng)
        self._commit(generation, key, contents, envelope.salt, envelope)
        logger.info(
            "Vault initialized: cipher=%s iterations=%d",
            envelope.cipher, envelope.kdf_iterations,
        )
        return key

    def unlock(self, passphrase: str) -> tuple[SecretKey, VaultContents]:
        """Verify ``passphrase`` and decrypt the vault.

        A failed attempt leaves the current state untouched.

        Returns:
            Tuple of (session key, decrypted contents).

        Raises:
            NotFoundError: If no vault exists.
            FormatError: If the stored envelope or payload is malformed.
            InvalidPassphraseError: If the passphrase is wrong.
            AuthenticationError: If the ciphertext fails tag verification.
            VaultLockedError: If ``lock()`` or ``destroy()`` ran meanwhile.
        """
        generation = self._generation
        envelope = self._load_envelope()
        key, contents = self._authenticate(passphrase, envelope)
        self._commit(generation, key, contents, envelope.salt)
        logger.info("Vault unlocked: %d entr(ies)", len(contents))
        return key, contents

    def save(self, key: SecretKey, contents: VaultContents) -> None:
        """Reseal ``contents`` under the session key with a fresh nonce.

        Only the ciphertext of the stored envelope changes.

        Raises:
            VaultLockedError: If the vault is locked, ``key`` is not the
                session key, or the stored envelope was re-keyed elsewhere.
            NotFoundError: If the envelope disappeared from the store.
        """
        with self._session_lock:
            if self._state is not VaultState.UNLOCKED or key is not self._key:
                raise VaultLockedError("Vault must be unlocked with this key to save")
            envelope = self._load_envelope()
            if not hmac.compare_digest(envelope.salt, self._salt):
                raise VaultLockedError("Stored vault no longer matches the session key")
            ciphertext = seal(
                serialize_contents(contents), key, self._rng, envelope.cipher,
            )
            self._write_envelope(envelope.with_ciphertext(ciphertext))
            self._contents = contents
        logger.debug("Vault saved: %d entr(ies)", len(contents))

    def rotate_passphrase(self, current: str, new: str) -> SecretKey:
        """Re-key the vault from ``current`` to ``new``.

        The stored contents are decrypted with ``current`` and sealed under
        a new salt and key. Salt, verification value and ciphertext are
        written together in one store operation.

        Returns:
            The new session key; the vault is left unlocked.

        Raises:
            NotFoundError: If no vault exists.
            FormatError: If the stored envelope or payload is malformed.
            InvalidPassphraseError: If ``current`` is wrong.
            AuthenticationError: If the ciphertext fails tag verification.
            VaultLockedError: If ``lock()`` or ``destroy()`` ran meanwhile;
                the stored envelope is left unchanged.
        """
        generation = self._generation
        envelope = self._load_envelope()
        old_key, contents = self._authenticate(current, envelope)
        old_key.zeroize()

        new_envelope, new_key = build_envelope(contents, new, self._config, self._rng)
        self._commit(generation, new_key, contents, new_envelope.salt, new_envelope)
        logger.info(
            "Vault passphrase rotated: cipher=%s iterations=%d",
            new_envelope.cipher, new_envelope.kdf_iterations,
        )
        return new_key

    def destroy(self) -> None:
        """Remove the envelope and end any session. Idempotent.

        The session is always dropped, even if the store fails to remove
        the blob; store errors propagate.
        """
        with self._session_lock:
            try:
                self._store.remove(self._config.storage_key)
            finally:
                self._end_session(VaultState.UNINITIALIZED)
        logger.info("Vault destroyed")

    def lock(self) -> None:
        """Zeroize the session key and drop the decrypted contents."""
        with self._session_lock:
            if self._state is VaultState.UNINITIALIZED:
                self._end_session(VaultState.UNINITIALIZED)
            else:
                self._end_session(VaultState.LOCKED)
        logger.debug("Vault locked")

    # ------------------------------------------------------------------
    # Outcome API
    # ------------------------------------------------------------------

    def try_unlock(self, passphrase: str) -> UnlockResult:
        """``unlock`` with every expected failure folded into an outcome.

        ``DerivationError`` and ``VaultLockedError`` are not folded in and
        propagate.
        """
        try:
            key, contents = self.unlock(passphrase)
        except (NotFoundError, InvalidPassphraseError, AuthenticationError, FormatError) as err:
            return UnlockResult(_outcome_for(err))
        return UnlockResult(UnlockOutcome.SUCCESS, key, contents)

    def try_rotate_passphrase(self, current: str, new: str) -> RotateResult:
        """``rotate_passphrase`` with expected failures folded into an outcome."""
        try:
            key = self.rotate_passphrase(current, new)
        except (NotFoundError, InvalidPassphraseError, AuthenticationError, FormatError) as err:
            return RotateResult(_outcome_for(err))
        return RotateResult(UnlockOutcome.SUCCESS, key)

    # ------------------------------------------------------------------
    # Helpers exposed to the application
    # ------------------------------------------------------------------

    def generate_password(self, options: Optional[GeneratorOptions] = None) -> str:
        return generate_password(options, self._rng)

    def estimate_strength(self, password: str) -> StrengthEstimate:
        return estimate_strength(password)

    def new_record_id(self) -> str:
        return new_record_id(self._rng)

    def new_record(self, title: str, **fields: Any) -> CredentialRecord:
        """Build a record with a fresh id and creation timestamps."""
        now = self._clock()
        return CredentialRecord(
            id=self.new_record_id(),
            title=title,
            created_at=now,
            updated_at=now,
            **fields,
        )

    def timestamp(self) -> int:
        """Current clock value, for callers stamping ``updated_at``."""
        return self._clock()
