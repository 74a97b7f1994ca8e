"""Sanitization of untrusted text before it enters the model context.

Only retrieved document text goes through here. Operator-authored prompts and
administrator-curated resources are trusted and left untouched.
"""

from __future__ import annotations

import logging
import re

from libassist.utils.text import truncate

LOGGER = logging.getLogger(__name__)

LOG_PREVIEW_CHARS = 120

_TAG_RE = re.compile(r"<[^>]*>")
_ANGLE_RE = re.compile(r"[<>]")

INJECTION_PATTERNS = [
    r"ignore\s+(previous|all|prior)\s+(instructions?|prompts?|rules?|context)",
    r"disregard\s+(previous|all|prior|everything|the\s+above)",
    r"forget\s+(everything|all|the\s+above|what\s+(i|you|we)\s+(said|discussed)|your\s+instructions)",
    r"you\s+are\s+now\s+(a\s+|an\s+)?\w+",
    r"act\s+as\s+(a\s+|an\s+)?(jailbroken|uncensored|unrestricted|different|evil|hacker|dan)\b",
    r"new\s+instructions?:",
    r"override\s+(system|instructions?)",
    r"\[SYSTEM\]",
    r"\[INST\]",
    r"###\s*(instruction|system|prompt)",
    # Ukrainian and Russian phrasings of the same attacks
    r"ігноруй(те)?\s+(усі\s+|всі\s+)?попередні\s+(інструкції|вказівки)",
    r"забудь(те)?\s+(все|усе|всі\s+інструкції)",
    r"игнорируй(те)?\s+(все\s+)?предыдущие\s+(инструкции|указания)",
    r"забудь(те)?\s+(всё|все|все\s+инструкции)",
]

COMPILED_PATTERNS = [re.compile(pattern, re.IGNORECASE) for pattern in INJECTION_PATTERNS]


def strip_tags(text: str) -> str:
    """Remove tag-like spans until none are left, then any stray angle brackets."""
    previous = None
    while previous != text:
        previous = text
        text = _TAG_RE.sub("", text)
    return _ANGLE_RE.sub("", text)


def contains_injection(line: str) -> bool:
    return any(pattern.search(line) for pattern in COMPILED_PATTERNS)


def sanitize_untrusted_content(text: str) -> str:
    """Strip markup and drop lines that look like injected instructions."""
    kept = []
    for line in strip_tags(text).split("\n"):
        if contains_injection(line):
            LOGGER.warning(
                "Removed potential injection line: %s", truncate(line, LOG_PREVIEW_CHARS)
            )
            continue
        kept.append(line)
    return "\n".join(kept).strip()
