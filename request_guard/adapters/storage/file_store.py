"""Directory-backed key-value store.

Each key is one UTF-8 file inside ``root``. Writes go to a temporary file in
the same directory followed by ``os.replace``, so a concurrent reader sees
either the previous value or the new one, never a partial write.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from urllib.parse import quote

from request_guard.adapters.storage.base import AbstractKeyValueStore

logger = logging.getLogger(__name__)


class FileKeyValueStore(AbstractKeyValueStore):
    """Persist each value as ``<root>/<quoted key>.json``."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def _path_for(self, key: str) -> Path:
        if not key:
            raise ValueError("key must be a non-empty string")
        return self._root / f"{quote(key, safe='')}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set_item(self, key: str, value: str) -> None:
        path = self._path_for(key)
        fd, tmp_name = tempfile.mkstemp(dir=self._root, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp_name, path)
        except OSError:
            logger.error(
                "kv_store.write_failed",
                extra={"store_key": key, "root": str(self._root)},
            )
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def remove_item(self, key: str) -> None:
        self._path_for(key).unlink(missing_ok=True)
