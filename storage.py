import os
import json
import time
import hashlib
import tempfile
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


def ensure_dir(path: str):
    Path(path).mkdir(parents=True, exist_ok=True)


def save_raw_json(data: Any, out_path: str) -> bool:
    try:
        ensure_dir(os.path.dirname(out_path) or ".")
        with open(out_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        return True
    except OSError as e:
        logger.error(f"Error saving raw JSON: {e}")
        return False


def get_file_summary(path: str) -> Dict[str, Any]:
    try:
        return {"file": path, "size_bytes": os.path.getsize(path)}
    except OSError as e:
        return {"file": path, "error": str(e)}


class MemoryCache:
    """Process-local key/value cache with per-entry expiry."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            value, expires_at = item
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)


class FileCache:
    """
    Key/value cache persisted as one JSON document per key.

    Documents hold the value and an absolute expiry time; expired or unreadable
    documents count as a miss and are removed.
    """

    def __init__(self, cache_dir: str, clock=time.time):
        self.cache_dir = cache_dir
        self._clock = clock

    def _path_for(self, key: str) -> str:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return os.path.join(self.cache_dir, f"{digest}.json")

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
            value = document["value"]
            expires_at = float(document["expires_at"])
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding unreadable cache file {path}: {e}")
            self._remove(path)
            return None

        if self._clock() >= expires_at:
            logger.debug(f"Cache entry expired: {path}")
            self._remove(path)
            return None
        return value

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        ensure_dir(self.cache_dir)
        path = self._path_for(key)
        document = {"key": key, "value": value, "expires_at": self._clock() + ttl_seconds}
        # One temp file per writer; concurrent writers of a key race on os.replace only
        fd, tmp_path = tempfile.mkstemp(dir=self.cache_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, ensure_ascii=False)
            os.replace(tmp_path, path)
        except BaseException:
            self._remove(tmp_path)
            raise

    @staticmethod
    def _remove(path: str) -> None:
        try:
            os.remove(path)
        except OSError:
            pass


def create_cache(settings):
    if settings.cache_backend == "memory":
        return MemoryCache()
    return FileCache(settings.cache_dir)
