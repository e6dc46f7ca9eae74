"""
Vault Exceptions — Error taxonomy for the vault engine.

Security Note:
    Exception messages never carry passphrases, key bytes, plaintext or
    ciphertext. Callers outside the engine should show a single generic
    rejection for any unlock or rotation failure (see
    ``VaultLifecycle.try_unlock``).
"""


class VaultError(Exception):
    """Base exception for vault operations."""


class NotFoundError(VaultError):
    """Raised when no stored envelope exists (unlock before initialize)."""


class VaultExistsError(VaultError):
    """Raised when initializing over an existing envelope."""


class InvalidPassphraseError(VaultError):
    """Raised when the verification value does not match."""


class AuthenticationError(VaultError):
    """Raised when sealed data fails tag verification (tampering or corruption)."""


class FormatError(VaultError):
    """Raised when a stored envelope or decrypted payload is malformed."""


class DerivationError(VaultError):
    """Raised when the key-stretching primitive itself fails. Fatal."""


class VaultLockedError(VaultError):
    """Raised when an operation needs an unlocked vault or the session key."""


class KeyReleasedError(VaultLockedError):
    """Raised when a zeroized key is used."""
