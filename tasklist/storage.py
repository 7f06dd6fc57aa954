"""Origin-scoped key-value storage backends.

Values are strings keyed by name, like a browser's local storage. Backends
raise ``StorageReadFailure`` when their backing data cannot be read and
``StorageWriteFailure`` when a write is rejected.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Protocol

from loguru import logger

from tasklist.errors import StorageReadFailure, StorageWriteFailure


class KeyValueStorage(Protocol):
    """The narrow storage interface the task store depends on."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


def _usage(items: dict[str, str]) -> int:
    return sum(len(key) + len(value) for key, value in items.items())


class MemoryStorage:
    """Dict-backed storage, optionally with a size quota."""

    def __init__(self, quota_bytes: int | None = None) -> None:
        """Start empty; writes that would exceed ``quota_bytes`` are rejected."""
        self._items: dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key`` unless the quota would be exceeded."""
        updated = {**self._items, key: value}
        if self.quota_bytes is not None and _usage(updated) > self.quota_bytes:
            raise StorageWriteFailure(f"quota of {self.quota_bytes} exceeded writing {key!r}")
        self._items = updated

    def remove_item(self, key: str) -> None:
        """Delete ``key``; absent keys are ignored."""
        self._items.pop(key, None)


class FileStorage:
    """Storage kept in one JSON object file per origin.

    ``<directory>/<origin>.json`` maps keys to string values. Every write
    rewrites the file through a temporary file and an atomic replace.
    """

    def __init__(self, directory: Path, origin: str = "default", quota_bytes: int | None = None) -> None:
        """Use ``<directory>/<origin>.json``; the directory is created on first write."""
        self.directory = Path(directory)
        self.origin = origin
        self.quota_bytes = quota_bytes

    @property
    def path(self) -> Path:
        """The JSON file backing this origin."""
        return self.directory / f"{self.origin}.json"

    def _read_all(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageReadFailure(f"cannot read {self.path}: {exc}") from exc
        try:
            items = json.loads(raw)
        except (ValueError, RecursionError) as exc:
            raise StorageReadFailure(f"{self.path} is not valid JSON: {exc}") from exc
        if not isinstance(items, dict) or not all(
            isinstance(key, str) and isinstance(value, str) for key, value in items.items()
        ):
            raise StorageReadFailure(f"{self.path} does not hold a string-to-string mapping")
        return items

    def _write_all(self, items: dict[str, str]) -> None:
        if self.quota_bytes is not None and _usage(items) > self.quota_bytes:
            raise StorageWriteFailure(f"quota of {self.quota_bytes} exceeded for origin {self.origin!r}")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{self.origin}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(items, fh, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageWriteFailure(f"cannot write {self.path}: {exc}") from exc

    def _read_for_update(self) -> dict[str, str]:
        try:
            return self._read_all()
        except StorageReadFailure as exc:
            logger.warning("Replacing unreadable storage file {}: {}", self.path, exc)
            return {}

    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None if the key or file is absent."""
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        """Rewrite the origin file with ``key`` set to ``value``."""
        items = self._read_for_update()
        items[key] = value
        self._write_all(items)

    def remove_item(self, key: str) -> None:
        """Delete ``key``, rewriting the file only if it was present."""
        items = self._read_for_update()
        if items.pop(key, None) is not None:
            self._write_all(items)
