"""
Vault Key Rotation — Building a complete envelope under fresh key material.

Used when a vault is created and when its master passphrase changes. A new
salt is drawn, new key material derived, and the contents sealed under it;
the caller persists the finished envelope with a single store write, so the
old salt, verification value and ciphertext are replaced together.

Security Note:
    Plaintext exists in memory only while the contents are resealed.
    Never log plaintext, ciphertext or key material.
"""
import logging
from typing import Optional

from .config import VaultConfig
from .crypto import derive, generate_salt, seal, serialize_contents
from .envelope import StoredEnvelope
from .models import VaultContents
from .rng import RandomSource
from .secure import SecretKey

logger = logging.getLogger("vaultguard.vault")


def build_envelope(
    contents: VaultContents,
    passphrase: str,
    config: VaultConfig,
    rng: Optional[RandomSource] = None,
) -> tuple[StoredEnvelope, SecretKey]:
    """Seal ``contents`` under a key derived from ``passphrase`` and a new salt.

    Args:
        contents: Decrypted vault contents to seal.
        passphrase: Passphrase the new envelope is bound to.
        config: Supplies the iteration count and cipher backend.
        rng: Random source for salt and nonce.

    Returns:
        Tuple of (envelope, encryption key). The caller owns the key.

    Raises:
        DerivationError: If key derivation fails.
    """
    salt = generate_salt(rng)
    material = derive(passphrase, salt, config.kdf_iterations)
    key = material.encryption_key
    try:
        ciphertext = seal(
            serialize_contents(contents), key, rng, config.cipher_backend,
        )
    except Exception:
        key.zeroize()
        raise

    envelope = StoredEnvelope(
        salt=salt,
        verification_value=material.verification_value,
        ciphertext=ciphertext,
        kdf_iterations=config.kdf_iterations,
        cipher=config.cipher_backend,
    )
    logger.debug(
        "Built envelope: cipher=%s iterations=%d entries=%d",
        config.cipher_backend, config.kdf_iterations, len(contents),
    )
    return envelope, key
