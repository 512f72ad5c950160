from typing import Optional

from fastapi import Header

from greenreceipt.config import config
from .language import Language, negotiate_language


def get_language(accept_language: Optional[str] = Header(default=None)) -> Language:
    """Dependency resolving the response language from ``Accept-Language``."""
    default = Language.parse(config.DEFAULT_LANGUAGE) or Language.default()
    return negotiate_language(accept_language, default=default)
