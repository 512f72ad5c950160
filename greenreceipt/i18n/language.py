"""Language utilities for GreenReceipt.

Centralizes the languages the API can answer in so that routers,
services and the message catalog share a single source of truth.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class Language(str, Enum):
    """Supported natural-language choices for user-facing messages."""

    ENGLISH = "en"
    HINDI = "hi"

    @classmethod
    def default(cls) -> "Language":
        """Return the fallback language used across the application."""

        return cls.ENGLISH

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Language"]:
        """Map a tag like ``hi-IN`` or ``EN`` to a supported language."""

        if not value:
            return None
        primary = value.strip().lower().replace("_", "-").split("-")[0]
        for language in cls:
            if language.value == primary:
                return language
        return None


def _parse_quality(params: list[str]) -> float:
    for param in params:
        key, _, value = param.strip().partition("=")
        if key.strip() == "q":
            try:
                return float(value)
            except ValueError:
                return 0.0
    return 1.0


def negotiate_language(
    accept_language: Optional[str],
    default: Optional[Language] = None,
) -> Language:
    """Pick the best supported language from an ``Accept-Language`` header.

    Entries are ordered by their ``q`` weight (stable for equal weights);
    the first supported tag wins. Wildcards and unsupported tags are skipped.
    """
    fallback = default or Language.default()
    if not accept_language:
        return fallback

    candidates: list[tuple[float, int, str]] = []
    for position, entry in enumerate(accept_language.split(",")):
        tag, *params = entry.split(";")
        tag = tag.strip()
        if not tag or tag == "*":
            continue
        quality = _parse_quality(params)
        if quality <= 0:
            continue
        candidates.append((-quality, position, tag))

    for _, _, tag in sorted(candidates):
        language = Language.parse(tag)
        if language is not None:
            return language
    return fallback
