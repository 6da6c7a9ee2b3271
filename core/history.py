"""Saved analyses per user, newest first."""

import logging
import threading
import uuid
from datetime import date

from .config import HISTORY_KEY_PREFIX, HISTORY_LIMIT
from .interfaces import Clock, Storage
from .utils import SystemClock, normalize_text

logger = logging.getLogger(__name__)

ENTRY_ERROR_FIELDS = ('index', 'issue', 'example', 'suggestion', 'rule_id', 'confidence')


def summarize(errors: list[dict]) -> str:
    rule_ids = sorted({e['rule_id'] for e in errors if e.get('rule_id')})
    plural = 's' if len(errors) != 1 else ''
    summary = f"{len(errors)} correction{plural}"
    if rule_ids:
        summary += f": {', '.join(rule_ids)}"
    return summary


class AnalysisHistory:
    """Keeps each user's analyzed corrections in one stored list.

    The list is capped at ``limit`` entries; saving past the cap drops the oldest.
    """

    def __init__(self, storage: Storage, clock: Clock = None, limit: int = HISTORY_LIMIT):
        self.storage = storage
        self.clock = clock or SystemClock()
        self.limit = limit
        self._lock = threading.Lock()

    def _key(self, user_id: str) -> str:
        return f"{HISTORY_KEY_PREFIX}{user_id}"

    def get_history(self, user_id: str) -> list[dict]:
        """All saved entries, newest first. Unreadable history reads as empty."""
        try:
            entries = self.storage.get(self._key(user_id))
        except ValueError as e:
            logger.warning(f"Corrupt history for user {user_id}, ignoring it: {e}")
            return []
        if entries is None:
            return []
        if not isinstance(entries, list):
            logger.warning(f"Corrupt history for user {user_id}: expected a list")
            return []
        return [entry for entry in entries if isinstance(entry, dict)]

    def save(self, user_id: str, errors: list[dict]) -> dict:
        """Save one analysis. ``errors`` are analyzed-error dicts; quizzes are not kept."""
        entry = {
            'id': uuid.uuid4().hex[:12],
            'timestamp': self.clock.now().isoformat(),
            'summary': summarize(errors),
            'errors': [{field: error.get(field) for field in ENTRY_ERROR_FIELDS} for error in errors]
        }
        with self._lock:
            entries = [entry] + self.get_history(user_id)
            if len(entries) > self.limit:
                logger.info(f"History for {user_id} is full, dropping the oldest entry")
            self.storage.set(self._key(user_id), entries[:self.limit])
        return entry

    def get_entry(self, user_id: str, entry_id: str) -> dict | None:
        return next((e for e in self.get_history(user_id) if e.get('id') == entry_id), None)

    def delete_entry(self, user_id: str, entry_id: str) -> bool:
        with self._lock:
            entries = self.get_history(user_id)
            remaining = [e for e in entries if e.get('id') != entry_id]
            if len(remaining) == len(entries):
                return False
            self.storage.set(self._key(user_id), remaining)
        return True

    def clear(self, user_id: str) -> bool:
        with self._lock:
            return self.storage.delete(self._key(user_id))

    def search(self, user_id: str, query: str) -> list[dict]:
        """Entries whose sentences, issues, rule ids, summary or date contain query (case-insensitive)."""
        needle = normalize_text(query)
        if not needle:
            return self.get_history(user_id)

        def haystack(entry):
            parts = [entry.get('summary'), entry.get('timestamp')]
            for error in entry.get('errors') or []:
                parts.extend(error.get(field) for field in ('example', 'suggestion', 'issue', 'rule_id'))
            return ' '.join(normalize_text(p) for p in parts if isinstance(p, str))

        return [entry for entry in self.get_history(user_id) if needle in haystack(entry)]

    def filter_by_date(self, user_id: str, start: date = None, end: date = None) -> list[dict]:
        """Entries saved between start and end, both inclusive. Either bound may be None."""
        entries = []
        for entry in self.get_history(user_id):
            # ISO dates compare correctly as strings
            day = str(entry.get('timestamp', ''))[:10]
            if start and day < start.isoformat():
                continue
            if end and day > end.isoformat():
                continue
            entries.append(entry)
        return entries

    def count(self, user_id: str) -> int:
        return len(self.get_history(user_id))
