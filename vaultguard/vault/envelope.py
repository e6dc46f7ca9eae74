"""
Vault Envelope — the only persisted structure, and its text codec.

Transport form (one JSON string)::

    {
      "salt": "<base64, 32 bytes>",
      "verificationValue": "<base64, 32 bytes>",
      "ciphertext": "<base64, 12-byte nonce || AEAD output>",
      "kdfIterations": 600000,
      "cipher": "aesgcm"
    }

``kdfIterations`` and ``cipher`` are public parameters. When absent, the
defaults are assumed so three-field envelopes still decode.
"""
import base64
import binascii
from typing import Any

import orjson
from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import FormatError
from .config import (
    CIPHER_BACKENDS,
    DEFAULT_CIPHER,
    NONCE_SIZE,
    PBKDF2_MAX_ITERATIONS,
    PBKDF2_MIN_ITERATIONS,
    SALT_SIZE,
    TAG_SIZE,
    VERIFICATION_SIZE,
)

_REQUIRED_FIELDS = ("salt", "verificationValue", "ciphertext")


class StoredEnvelope(BaseModel):
    """Salt, verification value and sealed contents for one passphrase."""

    model_config = ConfigDict(frozen=True)

    salt: bytes
    verification_value: bytes
    ciphertext: bytes
    kdf_iterations: int = Field(default=PBKDF2_MIN_ITERATIONS)
    cipher: str = Field(default=DEFAULT_CIPHER)

    def with_ciphertext(self, ciphertext: bytes) -> "StoredEnvelope":
        """Copy of this envelope with only the ciphertext replaced."""
        return self.model_copy(update={"ciphertext": ciphertext})

    def __repr__(self) -> str:
        return (
            f"<StoredEnvelope cipher={self.cipher} iterations={self.kdf_iterations} "
            f"ciphertext={len(self.ciphertext)}B>"
        )


def encode_for_storage(data: bytes) -> str:
    """Encode binary data as standard base64 text."""
    return base64.b64encode(data).decode("ascii")


def decode_from_storage(data: str) -> bytes:
    """Decode strict base64 text.

    Raises:
        binascii.Error: If ``data`` is not valid base64.
    """
    return base64.b64decode(data.encode("ascii"), validate=True)


def encode_envelope(envelope: StoredEnvelope) -> str:
    """Serialize an envelope into its transport string."""
    payload = {
        "salt": encode_for_storage(envelope.salt),
        "verificationValue": encode_for_storage(envelope.verification_value),
        "ciphertext": encode_for_storage(envelope.ciphertext),
        "kdfIterations": envelope.kdf_iterations,
        "cipher": envelope.cipher,
    }
    return orjson.dumps(payload).decode("utf-8")


def _binary_field(raw: dict[str, Any], name: str) -> bytes:
    value = raw.get(name)
    if value is None:
        raise FormatError(f"Envelope is missing field {name!r}")
    if not isinstance(value, str):
        raise FormatError(f"Envelope field {name!r} must be a string")
    try:
        return decode_from_storage(value)
    except (binascii.Error, UnicodeEncodeError) as err:
        raise FormatError(f"Envelope field {name!r} is not valid base64") from err


def decode_envelope(blob: str | bytes) -> StoredEnvelope:
    """Parse a transport string back into an envelope.

    Raises:
        FormatError: If the blob is not a well-formed envelope.
    """
    try:
        raw = orjson.loads(blob)
    except orjson.JSONDecodeError as err:
        raise FormatError("Envelope is not valid JSON") from err
    if not isinstance(raw, dict):
        raise FormatError("Envelope must be a JSON object")

    salt, verification, ciphertext = (
        _binary_field(raw, name) for name in _REQUIRED_FIELDS
    )
    if len(salt) != SALT_SIZE:
        raise FormatError(f"Envelope salt must be {SALT_SIZE} bytes, got {len(salt)}")
    if len(verification) != VERIFICATION_SIZE:
        raise FormatError(
            f"Envelope verification value must be {VERIFICATION_SIZE} bytes, "
            f"got {len(verification)}"
        )
    if len(ciphertext) < NONCE_SIZE + TAG_SIZE:
        raise FormatError(
            f"Envelope ciphertext too short: {len(ciphertext)} bytes "
            f"(minimum {NONCE_SIZE + TAG_SIZE})"
        )

    iterations = raw.get("kdfIterations", PBKDF2_MIN_ITERATIONS)
    if (
        not isinstance(iterations, int)
        or isinstance(iterations, bool)
        or not PBKDF2_MIN_ITERATIONS <= iterations <= PBKDF2_MAX_ITERATIONS
    ):
        raise FormatError("Envelope kdfIterations is invalid")
    cipher = raw.get("cipher", DEFAULT_CIPHER)
    if cipher not in CIPHER_BACKENDS:
        raise FormatError("Envelope cipher is not supported")

    return StoredEnvelope(
        salt=salt,
        verification_value=verification,
        ciphertext=ciphertext,
        kdf_iterations=iterations,
        cipher=cipher,
    )
