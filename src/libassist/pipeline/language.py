"""Heuristic language detection for Ukrainian, Russian and English input.

This is an approximation, not a classifier. It counts letters that exist in
only one of the two Cyrillic alphabets plus a few common words, so short or
mixed-language messages can come back wrong. Callers fall back to the
conversation's language when the result is ``None``.
"""

from __future__ import annotations

import re
from typing import Optional

from libassist.models import SUPPORTED_LANGUAGES

_CYRILLIC_RE = re.compile(r"[а-яёіїєґ]")
_UK_LETTERS_RE = re.compile(r"[іїєґ]")
_RU_LETTERS_RE = re.compile(r"[ёыэъ]")

UK_ANCHORS = ("дякую", "будь ласка")
RU_ANCHORS = ("привет", "спасибо", "пожалуйста", "здравствуйте")


def _anchor_hits(sample: str, anchors: tuple[str, ...]) -> int:
    return sum(sample.count(anchor) for anchor in anchors)


class LanguageDetector:
    """Pick ``uk``, ``ru`` or ``en`` for a piece of text.

    Policy: the language with the strictly higher distinguishing score wins.
    A tie (including no distinguishing marks at all) resolves to
    ``cyrillic_default`` when the text contains Cyrillic letters and to
    ``fallback`` otherwise. Blank text is undetermined (``None``).
    """

    def __init__(self, cyrillic_default: str = "uk", fallback: str = "en") -> None:
        for code in (cyrillic_default, fallback):
            if code not in SUPPORTED_LANGUAGES:
                raise ValueError(f"Unsupported language: {code}")
        self.cyrillic_default = cyrillic_default
        self.fallback = fallback

    def scores(self, text: str) -> tuple[int, int]:
        sample = text.lower()
        uk_score = len(_UK_LETTERS_RE.findall(sample)) + _anchor_hits(sample, UK_ANCHORS)
        ru_score = len(_RU_LETTERS_RE.findall(sample)) + _anchor_hits(sample, RU_ANCHORS)
        return uk_score, ru_score

    def detect(self, text: Optional[str]) -> Optional[str]:
        if not text or not text.strip():
            return None

        uk_score, ru_score = self.scores(text)
        if uk_score > ru_score:
            return "uk"
        if ru_score > uk_score:
            return "ru"
        if _CYRILLIC_RE.search(text.lower()):
            return self.cyrillic_default
        return self.fallback


_DEFAULT_DETECTOR = LanguageDetector()


def detect_language(text: Optional[str]) -> Optional[str]:
    """Detect with the default policy (Cyrillic ties → ``uk``, otherwise ``en``)."""
    return _DEFAULT_DETECTOR.detect(text)


def normalize_language(value: Optional[str], default: str = "uk") -> str:
    """Coerce an arbitrary stored language value to a supported code."""
    if value in SUPPORTED_LANGUAGES:
        return value  # type: ignore[return-value]
    return default
