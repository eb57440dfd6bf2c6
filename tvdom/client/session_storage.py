"""
Durable client storage for the logged-in session.

The user profile and the session marker live under two fixed keys so a
restarted client can rehydrate without logging in again.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

USER_STORAGE_KEY = "tvdom_user"
SESSION_STORAGE_KEY = "tvdom_session"


class SessionStorage(ABC):
    """Key/value store holding JSON-compatible values."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass

    def clear_session(self) -> None:
        """Forget the stored user and session marker."""
        self.remove(USER_STORAGE_KEY)
        self.remove(SESSION_STORAGE_KEY)


class MemorySessionStorage(SessionStorage):
    """Process-local storage; nothing survives a restart."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileSessionStorage(SessionStorage):
    """
    Storage backed by a single JSON file.

    Writes go to a temporary file that replaces the original, so a crash
    mid-write leaves the previous contents intact. An unreadable file is
    treated as empty.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        if not data:
            self.path.unlink(missing_ok=True)
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(json.dumps(data, default=str), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> Optional[Any]:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)
