"""Internationalization of API messages."""

from .dependencies import get_language
from .language import Language, negotiate_language
from .messages import load_catalog, translate

__all__ = [
    "Language",
    "negotiate_language",
    "get_language",
    "load_catalog",
    "translate",
]
