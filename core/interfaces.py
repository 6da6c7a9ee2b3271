"""Abstract base classes for dependency injection."""

from abc import ABC, abstractmethod
from datetime import datetime


class Storage(ABC):
    """Abstract base class for an opaque JSON key-value store."""

    @abstractmethod
    def get(self, key: str):
        """Load the JSON value stored under key. Returns None if not found.
        Raises ValueError if the stored payload cannot be decoded."""
        pass

    @abstractmethod
    def set(self, key: str, value) -> None:
        """Store a JSON-compatible value under key."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove key. Returns True if something was deleted."""
        pass

    @abstractmethod
    def keys(self, prefix: str = '') -> list[str]:
        """List stored keys starting with prefix."""
        pass


class Clock(ABC):
    """Abstract time source so day-boundary logic can be tested."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current local datetime."""
        pass
