"""Message catalogs for API responses.

Catalogs live as JSON resources next to this module (``locales/<lang>.json``)
and are loaded lazily, once per process.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Union

from loguru import logger

from .language import Language

_LOCALES_DIR = Path(__file__).resolve().parent / "locales"


@lru_cache(maxsize=None)
def load_catalog(language: Language) -> dict[str, str]:
    """Load the flat key → template mapping for a language."""
    path = _LOCALES_DIR / f"{language.value}.json"
    try:
        with path.open(encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError:
        logger.warning(f"Message catalog missing: {path.name}")
        return {}


def translate(key: str, language: Union[Language, str, None] = None, **params: Any) -> str:
    """
    Resolve a message key in the requested language.

    Falls back to English, then to the key itself. ``{placeholders}`` in the
    template are filled from ``params``; a missing placeholder leaves the
    template unformatted rather than failing the request.
    """
    if not isinstance(language, Language):
        language = Language.parse(language) or Language.default()

    template = load_catalog(language).get(key)
    if template is None and language is not Language.default():
        template = load_catalog(Language.default()).get(key)
    if template is None:
        return key

    if not params:
        return template
    try:
        return template.format(**params)
    except (KeyError, IndexError):
        logger.warning(f"Message '{key}' ({language.value}) missing placeholder values")
        return template
