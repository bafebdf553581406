"""
Last-known-good (LKG) dataset cache.

Holds the most recent dataset that passed validation, plus its provenance,
under two stable string keys. Caching is best-effort: no method here raises
to the caller.
"""

import hashlib
import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from revopt.schemas.dataset import Row
from revopt.schemas.provenance import LoadResult, Provenance
from revopt.utils.logging import get_logger

log = get_logger(__name__)

DATA_KEY = "revopt:lkg:data"
META_KEY = "revopt:lkg:meta"


class KeyValueStorage(Protocol):
    """Durable string key-value storage."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        ...

    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if it existed."""
        ...


class FileStorage:
    """
    Key-value storage backed by one file per key.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so readers never see a half-written value.
    """

    def __init__(self, directory: Path) -> None:
        """
        Initialize file storage.

        Args:
            directory: Directory for cache files (created on first write).
        """
        self.directory = Path(directory)

    def get_path(self, key: str) -> Path:
        """
        Get the file path for a key.

        Args:
            key: Storage key.

        Returns:
            Path to the value file.
        """
        # Hash the key for filesystem-safe filename
        key_hash = hashlib.md5(key.encode()).hexdigest()[:12]
        return self.directory / f"{key_hash}.json"

    def get(self, key: str) -> str | None:
        path = self.get_path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.get_path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> bool:
        path = self.get_path(key)
        if path.exists():
            path.unlink()
            return True
        return False


class MemoryStorage:
    """In-process key-value storage."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete(self, key: str) -> bool:
        return self.values.pop(key, None) is not None


@dataclass(frozen=True)
class CacheWriteResult:
    """Outcome of a cache write."""

    ok: bool
    error: str | None = None


class LastKnownGoodStore:
    """
    Persist and restore the last dataset that passed validation.

    Rows and provenance live under separate keys. An entry is only usable if
    both keys hold valid, non-null JSON.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        data_key: str = DATA_KEY,
        meta_key: str = META_KEY,
    ) -> None:
        """
        Initialize the store.

        Args:
            storage: Backing key-value storage.
            data_key: Key holding the serialized rows.
            meta_key: Key holding the serialized provenance.
        """
        self.storage = storage
        self.data_key = data_key
        self.meta_key = meta_key

    def save(self, meta: Provenance, rows: list[Row]) -> CacheWriteResult:
        """
        Store rows and provenance.

        Rows are written first. If the provenance write then fails, the
        previous rows are put back so the two keys never describe different
        datasets.

        Args:
            meta: Provenance of the validated dataset.
            rows: Validated rows.

        Returns:
            CacheWriteResult; failures are logged, never raised.
        """
        try:
            rows_json = json.dumps(rows, ensure_ascii=False)
            meta_json = meta.model_dump_json()
            previous_rows = self.storage.get(self.data_key)
            self.storage.set(self.data_key, rows_json)
            try:
                self.storage.set(self.meta_key, meta_json)
            except Exception:
                self._restore_rows(previous_rows)
                raise
        except Exception as e:
            log.warning("Cache write error", key=self.data_key, error=str(e))
            return CacheWriteResult(ok=False, error=f"{type(e).__name__}: {e}")

        log.debug("Cached dataset", rows=len(rows), source=meta.source.value)
        return CacheWriteResult(ok=True)

    def _restore_rows(self, previous_rows: str | None) -> None:
        try:
            if previous_rows is None:
                self.storage.delete(self.data_key)
            else:
                self.storage.set(self.data_key, previous_rows)
        except Exception as e:
            # Rows and meta may now disagree; drop the whole entry
            log.warning("Cache rollback failed", key=self.data_key, error=str(e))
            self.clear()

    def load(self) -> LoadResult | None:
        """
        Restore the cached dataset.

        Returns:
            The cached LoadResult, or None if absent or unreadable.
        """
        try:
            rows_json = self.storage.get(self.data_key)
            meta_json = self.storage.get(self.meta_key)
        except Exception as e:
            log.warning("Cache read error", key=self.data_key, error=str(e))
            return None

        if not rows_json or not meta_json:
            log.debug("Cache miss (not found)", key=self.data_key)
            return None

        try:
            rows = json.loads(rows_json)
            meta = json.loads(meta_json)
        except ValueError as e:
            log.warning("Cache read error", key=self.data_key, error=str(e))
            return None

        if not rows or not meta:
            log.debug("Cache miss (empty entry)", key=self.data_key)
            return None

        try:
            result = LoadResult(rows=rows, meta=Provenance.model_validate(meta))
        except ValidationError as e:
            log.warning("Cache entry invalid", key=self.data_key, error=str(e))
            return None

        log.debug("Cache hit", key=self.data_key, rows=result.row_count)
        return result

    def clear(self) -> int:
        """
        Remove the cached dataset.

        Returns:
            Number of keys removed.
        """
        removed = 0
        for key in (self.data_key, self.meta_key):
            try:
                if self.storage.delete(key):
                    removed += 1
            except Exception as e:
                log.warning("Cache delete error", key=key, error=str(e))

        log.info("Cache cleared", keys_removed=removed)
        return removed
