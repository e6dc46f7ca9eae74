"""VaultGuard.

Local, single-user encrypted credential store.
"""
from .version import __version__
from .exceptions import (
    VaultError,
    NotFoundError,
    VaultExistsError,
    InvalidPassphraseError,
    AuthenticationError,
    FormatError,
    DerivationError,
    VaultLockedError,
    KeyReleasedError,
)
from .vault import (
    VaultLifecycle,
    AsyncVaultLifecycle,
    VaultState,
    UnlockOutcome,
    VaultConfig,
    CredentialRecord,
    VaultContents,
    Category,
    GeneratorOptions,
    MemoryStore,
    FileStore,
    generate_password,
    estimate_strength,
)

__all__ = [
    "__version__",
    "VaultError",
    "NotFoundError",
    "VaultExistsError",
    "InvalidPassphraseError",
    "AuthenticationError",
    "FormatError",
    "DerivationError",
    "VaultLockedError",
    "KeyReleasedError",
    "VaultLifecycle",
    "AsyncVaultLifecycle",
    "VaultState",
    "UnlockOutcome",
    "VaultConfig",
    "CredentialRecord",
    "VaultContents",
    "Category",
    "GeneratorOptions",
    "MemoryStore",
    "FileStore",
    "generate_password",
    "estimate_strength",
]
