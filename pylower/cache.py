"""File cache of translated output, keyed by a hash of the source file path."""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, Optional, TypeVar

from . import constants

logger = logging.getLogger(__name__)

T = TypeVar("T")


def compute_hash(value: str) -> str:
    """Upper-case hex MD5 of *value* (UTF-8)."""
    return hashlib.md5(value.encode("utf-8")).hexdigest().upper()


class FileCache:
    """Stores one translated output per source path.

    A cached entry is valid when its modification time is strictly newer
    than both the source file and any caller supplied minimum timestamp.
    Every filesystem failure makes the cache behave as if it were absent.
    """

    def __init__(self, cache_dir: str = ""):
        self._cache_dir = cache_dir or os.path.join(
            tempfile.gettempdir(), constants.CACHE_DIR_NAME
        )
        self._ready: Optional[bool] = None

    @property
    def cache_dir(self) -> str:
        return self._cache_dir

    def _usable_dir(self) -> Optional[Path]:
        if self._ready is None:
            try:
                os.makedirs(self._cache_dir, exist_ok=True)
                self._ready = True
            except OSError as e:
                logger.debug("Error when creating cache directory: %s", e)
                self._ready = False
        return Path(self._cache_dir) if self._ready else None

    def _with_cache_dir(self, action: Callable[[Path], Optional[T]]) -> Optional[T]:
        cache_dir = self._usable_dir()
        if cache_dir is None:
            return None
        try:
            return action(cache_dir)
        except OSError as e:
            logger.debug("Error when accessing cache: %s", e)
            return None

    def is_cached(self, file_path: str, min_timestamp: float = 0.0) -> tuple[float, bool]:
        """Returns ``(effective_min_timestamp, hit)``.

        The effective minimum is the later of *min_timestamp* and the
        source file's own modification time; callers pass it on to the
        files that depend on this one.
        """
        try:
            source_mtime = os.path.getmtime(file_path)
        except OSError as e:
            logger.debug("Error when reading source timestamp: %s", e)
            return min_timestamp, False
        effective = max(min_timestamp, source_mtime)

        def probe(cache_dir: Path) -> Optional[Path]:
            cached = cache_dir / compute_hash(file_path)
            if cached.exists() and cached.stat().st_mtime > effective:
                return cached
            return None

        hit = self._with_cache_dir(probe) is not None
        if hit:
            logger.info("Cache hit for %s", file_path)
        return effective, hit

    def try_get_cache_path(self, file_path: str) -> Optional[str]:
        return self._with_cache_dir(
            lambda cache_dir: str(cache_dir / compute_hash(file_path))
        )

    def try_cache(self, file_path: str, content: str) -> Optional[str]:
        """Write *content* as the cached output of *file_path*."""

        def write(cache_dir: Path) -> str:
            cached = cache_dir / compute_hash(file_path)
            cached.write_text(content, encoding="utf-8")
            logger.debug("Cached %s as %s", file_path, cached)
            return str(cached)

        return self._with_cache_dir(write)

    def try_read(self, file_path: str) -> Optional[str]:
        return self._with_cache_dir(
            lambda cache_dir: (cache_dir / compute_hash(file_path)).read_text(
                encoding="utf-8"
            )
        )
