"""File-based storage implementation."""

import json
import logging
import os
from urllib.parse import quote, unquote

from core.interfaces import Storage

logger = logging.getLogger(__name__)


class FileStorage(Storage):
    """Keeps each key as its own JSON file in a state directory."""

    def __init__(self, state_dir: str = None):
        # Project root is one level up from server/
        project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        self.state_dir = state_dir or os.path.join(project_root, 'grammaire_state')

    def _get_file(self, key: str) -> str:
        """Get file path for a key. Keys are percent-encoded so any id is a safe filename."""
        return os.path.join(self.state_dir, f"{quote(key, safe='')}.json")

    def get(self, key: str):
        path = self._get_file(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Corrupt JSON in {path}: {e}") from e

    def set(self, key: str, value) -> None:
        os.makedirs(self.state_dir, exist_ok=True)
        path = self._get_file(key)
        tmp_path = f"{path}.tmp"
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(value, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)

    def delete(self, key: str) -> bool:
        path = self._get_file(key)
        if os.path.exists(path):
            os.remove(path)
            logger.info(f"Deleted {path}")
            return True
        return False

    def keys(self, prefix: str = '') -> list[str]:
        """List all stored keys starting with prefix."""
        if not os.path.exists(self.state_dir):
            return []
        found = []
        for filename in os.listdir(self.state_dir):
            if filename.endswith('.json'):
                key = unquote(filename[:-5])
                if key.startswith(prefix):
                    found.append(key)
        return sorted(found)
