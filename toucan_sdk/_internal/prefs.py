"""Persisted client preferences (device id, notification token)."""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

PREF_FILE_NAME = "toucan_client_prefs.json"
PREF_KEY_DEVICE_UNIQUEID = "toucan_client_key_devuniqueid"
PREF_KEY_DEVICE_NOT_TOKEN = "toucan_client_key_devnottoken"


class PreferenceStore(Protocol):
    """Durable key-value store provided by the host."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryPreferenceStore:
    """Non-durable store, for tests and short-lived processes."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value


class JsonFilePreferenceStore:
    """Preferences kept in a single JSON object on disk."""

    def __init__(self, directory: Path) -> None:
        self.file_path = Path(directory) / PREF_FILE_NAME
        self._lock = threading.Lock()
        self._data = self._load()

    def get(self, key: str) -> str | None:
        with self._lock:
            value = self._data.get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value
            self._save()

    def _load(self) -> dict[str, object]:
        if not self.file_path.exists():
            return {}
        try:
            raw = json.loads(self.file_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable preferences file %s: %s", self.file_path, e)
            return {}
        return raw if isinstance(raw, dict) else {}

    def _save(self) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".tmp-", dir=self.file_path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.file_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
