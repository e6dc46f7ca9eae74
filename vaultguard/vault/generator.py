"""
Password Generator — random passwords from configurable character classes.

Each character is drawn uniformly from the union of the enabled classes.
"""
import string
from typing import Optional

from pydantic import BaseModel, Field

from .rng import RandomSource, resolve

UPPERCASE = string.ascii_uppercase
LOWERCASE = string.ascii_lowercase
DIGITS = string.digits
SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"
AMBIGUOUS = frozenset("Il1O0")

MIN_LENGTH = 4
MAX_LENGTH = 64


class GeneratorOptions(BaseModel):
    """Options for :func:`generate_password`."""

    model_config = {"frozen": True}

    length: int = Field(default=16, ge=MIN_LENGTH, le=MAX_LENGTH)
    uppercase: bool = True
    lowercase: bool = True
    numbers: bool = True
    symbols: bool = True
    exclude_ambiguous: bool = False


def build_charset(options: GeneratorOptions) -> str:
    """Combined alphabet for the enabled classes.

    Falls back to lowercase when no class is enabled.
    """
    charset = ""
    if options.uppercase:
        charset += UPPERCASE
    if options.lowercase:
        charset += LOWERCASE
    if options.numbers:
        charset += DIGITS
    if options.symbols:
        charset += SYMBOLS
    if options.exclude_ambiguous:
        charset = "".join(c for c in charset if c not in AMBIGUOUS)
    return charset or LOWERCASE


def generate_password(
    options: Optional[GeneratorOptions] = None,
    rng: Optional[RandomSource] = None,
) -> str:
    """Generate a password of exactly ``options.length`` characters."""
    options = options or GeneratorOptions()
    source = resolve(rng)
    charset = build_charset(options)
    return "".join(
        charset[source.randbelow(len(charset))] for _ in range(options.length)
    )
