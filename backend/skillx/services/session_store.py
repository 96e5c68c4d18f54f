"""Key-value storage for assessment progress.

The assessment keeps three entries in durable local storage: the session
snapshot, the personality answers map, and a transient payload written
before an authentication redirect. Values are JSON strings, so stores
behave like a browser's localStorage.

``InMemorySessionStore`` is the test double. ``JsonFileSessionStore``
persists every entry in a single JSON file.
"""

import contextlib
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

import structlog

logger = structlog.get_logger()

SESSION_KEY = "skillx-assessment-state-v1"
ANSWERS_KEY = "skillx-quiz-answers"
PENDING_KEY = "skillx-pending-assessment"


class StorageError(Exception):
    """Raised when a store cannot read or write its backing medium."""


class SessionStore(ABC):
    """Synchronous string key-value store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete ``key``. Missing keys are ignored."""

    @abstractmethod
    def clear(self) -> None:
        """Delete every key."""


class InMemorySessionStore(SessionStore):
    """Dictionary-backed store for tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def keys(self) -> list[str]:
        """Stored keys, for assertions."""
        return list(self._data)


class JsonFileSessionStore(SessionStore):
    """Store persisted as one JSON object in a file.

    The file is rewritten atomically on every change (temp file + rename).
    A missing file is an empty store; an unreadable or corrupt file is
    logged and treated as empty so the wizard can start fresh.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._data: dict[str, str] | None = None

    @property
    def path(self) -> Path:
        """Backing file location."""
        return self._path

    def _load(self) -> dict[str, str]:
        if self._data is not None:
            return self._data
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raw = {}
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning(
                "Ignoring unreadable assessment storage",
                path=str(self._path),
                error=str(exc),
            )
            raw = {}
        if not isinstance(raw, dict):
            raw = {}
        self._data = {str(k): v for k, v in raw.items() if isinstance(v, str)}
        return self._data

    def _flush(self, data: dict[str, str]) -> None:
        """Write ``data`` to disk, then make it the cached state.

        On failure the temp file is removed and the cache is left as it was.
        """
        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=".assessment-", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp_name, self._path)
        except OSError as exc:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
            raise StorageError(f"Could not write {self._path}: {exc}") from exc
        self._data = data

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        self._flush({**self._load(), key: value})

    def remove(self, key: str) -> None:
        current = self._load()
        if key in current:
            self._flush({k: v for k, v in current.items() if k != key})

    def clear(self) -> None:
        self._flush({})
