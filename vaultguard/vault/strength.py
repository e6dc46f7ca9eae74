"""Password strength heuristic and aggregate vault statistics."""
import re
from collections.abc import Iterable
from typing import NamedTuple

from .models import CredentialRecord

_LENGTH_THRESHOLDS = (8, 12, 16, 20)
_CLASS_PATTERNS = (
    re.compile(r"[a-z]"),
    re.compile(r"[A-Z]"),
    re.compile(r"[0-9]"),
    re.compile(r"[^a-zA-Z0-9]"),
)
MAX_SCORE = len(_LENGTH_THRESHOLDS) + len(_CLASS_PATTERNS)

STRONG_THRESHOLD = 0.75
WEAK_THRESHOLD = 0.3


class StrengthEstimate(NamedTuple):
    score: float
    label: str
    style_hint: str


class StrengthSummary(NamedTuple):
    strong: int
    medium: int
    weak: int


def estimate_strength(password: str) -> StrengthEstimate:
    """Score ``password`` in [0, 1] with a label and a display hint."""
    points = sum(1 for n in _LENGTH_THRESHOLDS if len(password) >= n)
    points += sum(1 for pattern in _CLASS_PATTERNS if pattern.search(password))
    score = min(points / MAX_SCORE, 1.0)

    if score < WEAK_THRESHOLD:
        return StrengthEstimate(score, "Weak", "red")
    if score < 0.5:
        return StrengthEstimate(score, "Fair", "orange")
    if score < STRONG_THRESHOLD:
        return StrengthEstimate(score, "Good", "yellow")
    return StrengthEstimate(score, "Strong", "green")


def summarize_strength(records: Iterable[CredentialRecord]) -> StrengthSummary:
    """Bucket stored secrets into strong / medium / weak counts."""
    strong = medium = weak = 0
    for record in records:
        score = estimate_strength(record.secret).score
        if score >= STRONG_THRESHOLD:
            strong += 1
        elif score < WEAK_THRESHOLD:
            weak += 1
        else:
            medium += 1
    return StrengthSummary(strong, medium, weak)
