"""Vault engine — Encrypted credential storage behind one master passphrase.

Security Note (Threat Model):
    Decrypted contents and the session key live in process memory while the
    vault is unlocked. A memory dump of the process during that window could
    expose them. The key buffer is zeroized on lock and destroy, but copies
    made by Python or the crypto backend cannot be scrubbed. Defense against
    a compromised host is out of scope.
"""

from .config import VaultConfig, AUTO_LOCK_OPTIONS, PBKDF2_MIN_ITERATIONS
from .crypto import DerivedKeyMaterial, derive, seal, open_sealed
from .envelope import StoredEnvelope, encode_envelope, decode_envelope
from .models import Category, CredentialRecord, VaultContents
from .rng import RandomSource, SystemRandomSource
from .secure import SecretKey
from .store import BlobStore, MemoryStore, FileStore
from .generator import GeneratorOptions, generate_password
from .strength import StrengthEstimate, StrengthSummary, estimate_strength, summarize_strength
from .lifecycle import (
    VaultLifecycle,
    VaultState,
    UnlockOutcome,
    UnlockResult,
    RotateResult,
    new_record_id,
)
from .aio import AsyncVaultLifecycle

__all__ = [
    "VaultConfig",
    "AUTO_LOCK_OPTIONS",
    "PBKDF2_MIN_ITERATIONS",
    "DerivedKeyMaterial",
    "derive",
    "seal",
    "open_sealed",
    "StoredEnvelope",
    "encode_envelope",
    "decode_envelope",
    "Category",
    "CredentialRecord",
    "VaultContents",
    "RandomSource",
    "SystemRandomSource",
    "SecretKey",
    "BlobStore",
    "MemoryStore",
    "FileStore",
    "GeneratorOptions",
    "generate_password",
    "StrengthEstimate",
    "StrengthSummary",
    "estimate_strength",
    "summarize_strength",
    "VaultLifecycle",
    "VaultState",
    "UnlockOutcome",
    "UnlockResult",
    "RotateResult",
    "new_record_id",
    "AsyncVaultLifecycle",
]
