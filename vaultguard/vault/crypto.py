"""
Vault Crypto Core — Key derivation, sealing/opening, and payload serialization.

Key derivation:
    PBKDF2-HMAC-SHA256(passphrase, salt, >=600k iterations) → root secret
    HKDF(root, "vaultguard/v1/encryption")   → 32-byte encryption key
    HKDF(root, "vaultguard/v1/verification") → 32-byte verification value

Sealing:
    AEAD (AES-256-GCM, or ChaCha20-Poly1305) → [nonce 12B][payload + tag 16B]

Security Note:
    Never log plaintext, ciphertext, keys or verification values.
    Nonces are random 96-bit, drawn fresh on every seal; collision
    probability is negligible under normal usage.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import orjson
from pydantic import ValidationError
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from ..exceptions import AuthenticationError, DerivationError, FormatError
from .config import (
    DEFAULT_CIPHER,
    KEY_LENGTH,
    NONCE_SIZE,
    PBKDF2_MAX_ITERATIONS,
    PBKDF2_MIN_ITERATIONS,
    SALT_SIZE,
    TAG_SIZE,
    VERIFICATION_SIZE,
)
from .models import VaultContents
from .rng import RandomSource, resolve
from .secure import SecretKey

logger = logging.getLogger("vaultguard.vault")

ENCRYPTION_CONTEXT = "vaultguard/v1/encryption"
VERIFICATION_CONTEXT = "vaultguard/v1/verification"

_CIPHERS = {
    "aesgcm": AESGCM,
    "chacha20": ChaCha20Poly1305,
}


def get_cipher_cls(backend: str = DEFAULT_CIPHER) -> type:
    """Return the AEAD cipher class for a backend name."""
    try:
        return _CIPHERS[backend]
    except KeyError:
        raise ValueError(f"Unsupported cipher backend: {backend}") from None


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class DerivedKeyMaterial:
    """Output of :func:`derive`. ``encryption_key`` must be zeroized by its owner."""

    encryption_key: SecretKey
    verification_value: bytes

    def __repr__(self) -> str:
        return f"<DerivedKeyMaterial key={self.encryption_key!r}>"


def generate_salt(rng: Optional[RandomSource] = None) -> bytes:
    """Generate a fresh 256-bit salt."""
    return resolve(rng).token_bytes(SALT_SIZE)


def expand(seed: bytes, context: str, length: int = KEY_LENGTH) -> bytes:
    """Derive a subkey from ``seed`` using HKDF-SHA256.

    Args:
        seed: Input key material (the stretched root secret).
        context: Context string for domain separation.
        length: Output size in bytes.

    Returns:
        ``length`` derived bytes.
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=length,
        salt=None,  # the root secret is already salted by PBKDF2
        info=context.encode("utf-8"),
    )
    return hkdf.derive(seed)


def derive(
    passphrase: str,
    salt: bytes,
    iterations: int = PBKDF2_MIN_ITERATIONS,
) -> DerivedKeyMaterial:
    """Stretch a passphrase into an encryption key and a verification value.

    Deterministic for a given (passphrase, salt, iterations). This is
    deliberately slow (hundreds of milliseconds) and blocks the calling
    thread.

    Args:
        passphrase: Master passphrase.
        salt: 32-byte salt stored in the envelope.
        iterations: PBKDF2 work factor within
            ``PBKDF2_MIN_ITERATIONS``..``PBKDF2_MAX_ITERATIONS``.

    Returns:
        DerivedKeyMaterial with independent key and verification value.

    Raises:
        ValueError: If salt length or iteration count is invalid.
        DerivationError: If the underlying primitive fails.
    """
    if len(salt) != SALT_SIZE:
        raise ValueError(f"Salt must be {SALT_SIZE} bytes, got {len(salt)}")
    if not PBKDF2_MIN_ITERATIONS <= iterations <= PBKDF2_MAX_ITERATIONS:
        raise ValueError(
            f"iterations must be between {PBKDF2_MIN_ITERATIONS} and "
            f"{PBKDF2_MAX_ITERATIONS}, got {iterations}"
        )
    try:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_LENGTH,
            salt=salt,
            iterations=iterations,
        )
        root = bytearray(kdf.derive(passphrase.encode("utf-8")))
        try:
            key = bytearray(expand(bytes(root), ENCRYPTION_CONTEXT))
            verification = expand(bytes(root), VERIFICATION_CONTEXT, VERIFICATION_SIZE)
        finally:
            root[:] = bytes(len(root))
    except Exception as err:
        logger.error("Key derivation failed: %s", type(err).__name__)
        raise DerivationError("Key derivation failed") from err
    return DerivedKeyMaterial(
        encryption_key=SecretKey(key),
        verification_value=verification,
    )


# ---------------------------------------------------------------------------
# Authenticated encryption
# ---------------------------------------------------------------------------

def seal(
    plaintext: bytes,
    key: SecretKey,
    rng: Optional[RandomSource] = None,
    backend: str = DEFAULT_CIPHER,
) -> bytes:
    """Encrypt and authenticate plaintext under ``key``.

    Format: [nonce 12B][encrypted_payload + tag 16B]

    Args:
        plaintext: Data to encrypt.
        key: Session encryption key.
        rng: Random source for the nonce.
        backend: AEAD backend name.

    Returns:
        Sealed blob.
    """
    cipher = get_cipher_cls(backend)(key.expose())
    nonce = resolve(rng).token_bytes(NONCE_SIZE)
    ct = cipher.encrypt(nonce, plaintext, None)
    return nonce + ct


def open_sealed(
    sealed: bytes,
    key: SecretKey,
    backend: str = DEFAULT_CIPHER,
) -> bytes:
    """Verify and decrypt a blob produced by :func:`seal`.

    Args:
        sealed: Blob in format [nonce 12B][payload+tag].
        key: Session encryption key.
        backend: AEAD backend name.

    Returns:
        Decrypted plaintext bytes.

    Raises:
        AuthenticationError: If the blob is truncated or the tag does not verify.
    """
    _min = NONCE_SIZE + TAG_SIZE
    if len(sealed) < _min:
        raise AuthenticationError(
            f"Sealed data too short: {len(sealed)} bytes (minimum {_min})"
        )
    cipher = get_cipher_cls(backend)(key.expose())
    nonce = sealed[:NONCE_SIZE]
    ct = sealed[NONCE_SIZE:]
    try:
        return cipher.decrypt(nonce, ct, None)
    except InvalidTag as err:
        raise AuthenticationError("Sealed data failed authentication") from err


# ---------------------------------------------------------------------------
# Contents serialization
# ---------------------------------------------------------------------------

def serialize_contents(contents: VaultContents) -> bytes:
    """Serialize vault contents to UTF-8 JSON bytes for sealing."""
    return orjson.dumps(contents.model_dump(mode="json", by_alias=True))


def deserialize_contents(data: bytes) -> VaultContents:
    """Parse decrypted bytes back into vault contents.

    Raises:
        FormatError: If the payload is not valid vault contents JSON.
    """
    try:
        parsed = orjson.loads(data)
        return VaultContents.model_validate(parsed)
    except (orjson.JSONDecodeError, ValidationError) as err:
        raise FormatError("Decrypted payload is not valid vault contents") from err
