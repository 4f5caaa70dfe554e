"""
Coarse English/Japanese classification used to gate submissions.

Rules are applied in order and the first hit wins:

1. any Hiragana, Katakana or common-kanji code point -> ``ja``
2. the trimmed text is only ASCII letters, whitespace and basic punctuation -> ``en``
3. longer than ``fallback_length`` characters (and no Japanese) -> ``en``
4. otherwise -> ``unknown``

The result is compared for exact equality with a user's target language, so
the order and the threshold must not drift.
"""

from __future__ import annotations

import re

JAPANESE = "ja"
ENGLISH = "en"
UNKNOWN = "unknown"

ENGLISH_FALLBACK_MIN_LENGTH = 50

_JAPANESE_PATTERN = re.compile(r"[\u3040-\u309F\u30A0-\u30FF\u4E00-\u9FAF]")
_ENGLISH_PATTERN = re.compile(r"^[a-zA-Z\s.,!?'\"()-]+$")


def contains_japanese(text: str) -> bool:
    return bool(_JAPANESE_PATTERN.search(text or ""))


def detect_language(text: str, *, fallback_length: int = ENGLISH_FALLBACK_MIN_LENGTH) -> str:
    """Return ``"en"``, ``"ja"`` or ``"unknown"`` for ``text``."""

    text = text or ""
    if contains_japanese(text):
        return JAPANESE
    if _ENGLISH_PATTERN.match(text.strip()):
        return ENGLISH
    if len(text) > fallback_length:
        return ENGLISH
    return UNKNOWN


__all__ = [
    "JAPANESE",
    "ENGLISH",
    "UNKNOWN",
    "ENGLISH_FALLBACK_MIN_LENGTH",
    "contains_japanese",
    "detect_language",
]
