"""
Key/value persistence stores.

JSON-serializable values keyed by string, the local equivalent of browser
localStorage. Failures are logged and reported as False, never raised.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


class PersistenceStore(ABC):
    """Abstract key/value store."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Get a value, or default when missing."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> bool:
        """Store a value. Returns True on success."""
        pass

    @abstractmethod
    def remove(self, key: str) -> bool:
        """Remove a key. Returns True on success (also when absent)."""
        pass

    @abstractmethod
    def clear(self) -> bool:
        """Remove all keys. Returns True on success."""
        pass


class MemoryStore(PersistenceStore):
    """In-memory store; values are JSON round-tripped like the file store."""

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.error(f"Error reading {key} from store: {e}")
            return default

    def set(self, key: str, value: Any) -> bool:
        try:
            self._data[key] = json.dumps(value)
            return True
        except (TypeError, ValueError) as e:
            logger.error(f"Error writing {key} to store: {e}")
            return False

    def set_raw(self, key: str, raw: str) -> None:
        """Store an unparsed string (used to simulate corrupt entries)."""
        self._data[key] = raw

    def remove(self, key: str) -> bool:
        self._data.pop(key, None)
        return True

    def clear(self) -> bool:
        self._data.clear()
        return True


class JsonFileStore(PersistenceStore):
    """
    Store backed by a single JSON object on disk.

    The file is read once on creation and rewritten on every mutation
    (write-through) via a temp file and atomic replace.
    """

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()
        self._data: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            logger.debug(f"State file not found: {self.path}")
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load state file {self.path}, starting empty: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"State file {self.path} is not a JSON object, starting empty")
            return {}

        logger.debug(f"Loaded {len(data)} keys from {self.path}")
        return data

    def _flush(self) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(self._data, f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                os.unlink(tmp_path)
                raise
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write state file {self.path}: {e}")
            return False

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> bool:
        try:
            # Reject values that would not survive a reload
            encoded = json.loads(json.dumps(value))
        except (TypeError, ValueError) as e:
            logger.error(f"Error writing {key} to store: {e}")
            return False

        previous = self._data.get(key)
        had_key = key in self._data
        self._data[key] = encoded
        if self._flush():
            return True

        if had_key:
            self._data[key] = previous
        else:
            self._data.pop(key, None)
        return False

    def remove(self, key: str) -> bool:
        if key not in self._data:
            return True
        value = self._data.pop(key)
        if self._flush():
            return True
        self._data[key] = value
        return False

    def clear(self) -> bool:
        previous = self._data
        self._data = {}
        if self._flush():
            return True
        self._data = previous
        return False
