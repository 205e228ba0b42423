"""Key-value stores backing the analysis cache and deck state."""

from pathlib import Path

import diskcache

from ...domain.interfaces import IKeyValueStore
from ...utils.logging import get_logger

logger = get_logger(__name__)


class InMemoryStore(IKeyValueStore):
    """Process-local store, used by tests and one-shot runs."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class DiskCacheStore(IKeyValueStore):
    """Persistent store on a ``diskcache.Cache`` directory."""

    def __init__(self, directory: Path, size_limit: int = 1 * 1024**3):
        """Open (or create) the store.

        Args:
            directory: Cache directory
            size_limit: Maximum on-disk size in bytes (default: 1GB)
        """
        self.directory = directory
        directory.mkdir(parents=True, exist_ok=True)
        self._cache = diskcache.Cache(
            directory=str(directory),
            size_limit=size_limit,
            eviction_policy="none",
        )
        logger.debug("disk_store_opened", directory=str(directory))

    def get(self, key: str) -> str | None:
        value = self._cache.get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self._cache.set(key, value)

    def delete(self, key: str) -> None:
        self._cache.delete(key)

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._cache.iterkeys() if isinstance(k, str) and k.startswith(prefix))

    def close(self) -> None:
        try:
            self._cache.close()
            logger.debug("disk_store_closed", directory=str(self.directory))
        except Exception as e:
            logger.warning("error_closing_disk_store", error=str(e))

    def __enter__(self) -> "DiskCacheStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
