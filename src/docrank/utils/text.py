"""Text helpers: whitespace cleanup, occurrence counting, fingerprints and edit distance."""

from __future__ import annotations

import hashlib
from typing import Iterable


def normalize_whitespace(lines: Iterable[str]) -> str:
    """Collapse whitespace and join lines."""
    return "\n".join(line.strip() for line in lines if line.strip())


def count_occurrences(text: str | None, term: str | None) -> int:
    """Count non-overlapping occurrences of ``term`` in ``text``."""
    if not text or not term:
        return 0
    return text.count(term)


def word_count(text: str) -> int:
    return len(text.split())


def sha256_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def content_fingerprint(text: str) -> str:
    """Return a short, stable, non-cryptographic fingerprint of ``text``.

    32-bit polynomial hash (base 31) over UTF-16 code units, absolute value,
    zero-padded to at least 8 digits. Only used for chunk IDs and change detection.
    """
    value = 0
    encoded = text.encode("utf-16-be")
    for offset in range(0, len(encoded), 2):
        unit = (encoded[offset] << 8) | encoded[offset + 1]
        value = (31 * value + unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return "%08d" % abs(value)


def levenshtein_distance(left: str, right: str) -> int:
    """Classic edit distance with unit insert/delete/substitute costs."""
    if left == right:
        return 0
    if not left:
        return len(right)
    if not right:
        return len(left)

    previous = list(range(len(right) + 1))
    for i, left_char in enumerate(left, start=1):
        current = [i]
        for j, right_char in enumerate(right, start=1):
            if left_char == right_char:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j], current[j - 1], previous[j - 1]))
        previous = current
    return previous[-1]


def string_similarity(left: str, right: str) -> float:
    """Return ``1 - distance / max_len`` in [0, 1]; two empty strings are identical."""
    longest = max(len(left), len(right))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(left, right) / longest
