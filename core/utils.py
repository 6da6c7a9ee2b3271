"""Utility functions for the grammar coach."""

import re
import unicodedata
from datetime import datetime

from .interfaces import Clock

_ANSWER_PUNCTUATION = re.compile(r'[.,!?;]')


class SystemClock(Clock):
    """Clock backed by the machine's local time."""

    def now(self) -> datetime:
        return datetime.now()


def normalize_text(text: str) -> str:
    """Lower-case and trim text for pattern matching.
    Accents are composed (NFC) so 'à' typed as 'a' + combining grave still matches."""
    return unicodedata.normalize('NFC', text or '').lower().strip()


def normalize_answer(text: str) -> str:
    """Normalize a quiz answer: lower-case, trim, strip .,!?; characters."""
    return _ANSWER_PUNCTUATION.sub('', normalize_text(text))


def tokenize(text: str) -> list[str]:
    """Split text on whitespace."""
    return text.split()
