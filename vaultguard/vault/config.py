"""
Vault Configuration — Work factors, sizes and validated settings.

Settings are passed explicitly to ``VaultLifecycle``; nothing is read from
the environment.

Security Note:
    ``kdf_iterations`` cannot be lowered below ``PBKDF2_MIN_ITERATIONS``.
    Vaults record the iteration count and cipher they were sealed with, so
    changing these defaults only affects newly created or rotated vaults.
"""
from pydantic import BaseModel, Field, field_validator

PBKDF2_MIN_ITERATIONS = 600_000  # OWASP 2023 floor for PBKDF2-HMAC-SHA256
PBKDF2_MAX_ITERATIONS = 10_000_000  # ceiling accepted from a stored envelope
SALT_SIZE = 32  # 256-bit salt
VERIFICATION_SIZE = 32
KEY_LENGTH = 32  # AES-256
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16

DEFAULT_STORAGE_KEY = "vaultguard_vault"
DEFAULT_CIPHER = "aesgcm"
CIPHER_BACKENDS = ("aesgcm", "chacha20")
SCHEMA_VERSION = 1

# seconds; 0 means never
AUTO_LOCK_OPTIONS = (60, 300, 900, 1800, 0)


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    storage_key: str = Field(default=DEFAULT_STORAGE_KEY, min_length=1)
    kdf_iterations: int = Field(
        default=PBKDF2_MIN_ITERATIONS,
        ge=PBKDF2_MIN_ITERATIONS,
        le=PBKDF2_MAX_ITERATIONS,
    )
    cipher_backend: str = Field(default=DEFAULT_CIPHER)
    auto_lock_seconds: int = Field(default=300)
    schema_version: int = Field(default=SCHEMA_VERSION, ge=1)

    model_config = {"frozen": True}

    @field_validator("cipher_backend")
    @classmethod
    def validate_cipher(cls, v: str) -> str:
        """Validate cipher backend is supported."""
        if v not in CIPHER_BACKENDS:
            raise ValueError(f"Unsupported cipher backend: {v}")
        return v

    @field_validator("auto_lock_seconds")
    @classmethod
    def validate_auto_lock(cls, v: int) -> int:
        if v not in AUTO_LOCK_OPTIONS:
            raise ValueError(
                f"auto_lock_seconds must be one of {sorted(AUTO_LOCK_OPTIONS)}, got {v}"
            )
        return v
