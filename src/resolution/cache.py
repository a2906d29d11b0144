"""Modification-time validated caches for project and package configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .models import DirCacheEntry, PackageConfig


@dataclass
class PackageCacheEntry:
    """Processed package.json of one directory, keyed by the file's mtime."""

    mtime: Optional[int]
    config: Optional[PackageConfig]


class DirectoryCache:
    """Memoization of configuration lookups, shared across resolve calls.

    Entries are never expired by time. A reader compares the recorded
    modification times with the current ones and rebuilds the entry on any
    mismatch, so concurrent writers racing on one key are harmless: the last
    write wins and a stale write is corrected on the next read.
    """

    def __init__(self) -> None:
        self._projects: Dict[str, DirCacheEntry] = {}
        self._packages: Dict[str, PackageCacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._invalidations = 0

    def get_project(self, directory: str) -> Optional[DirCacheEntry]:
        """Return the last project lookup recorded for ``directory``."""
        return self._projects.get(directory)

    def current_project(
        self,
        directory: str,
        manifest_mtime: Optional[int],
        config_mtime: Optional[int],
    ) -> Optional[DirCacheEntry]:
        """Return the entry for ``directory`` if both mtimes still match.

        A mismatching entry counts as an invalidation and is not returned.
        """
        entry = self._projects.get(directory)
        if entry is None:
            self._misses += 1
            return None
        if entry.manifest_mtime != manifest_mtime or entry.config_mtime != config_mtime:
            self._invalidations += 1
            return None
        self._hits += 1
        return entry

    def set_project(self, directory: str, entry: DirCacheEntry) -> None:
        self._projects[directory] = entry

    def current_package(self, directory: str, mtime: Optional[int]) -> Optional[PackageCacheEntry]:
        """Return the package entry for ``directory`` if its mtime still matches."""
        entry = self._packages.get(directory)
        if entry is None or entry.mtime != mtime:
            return None
        return entry

    def set_package(self, directory: str, mtime: Optional[int], config: Optional[PackageConfig]) -> None:
        self._packages[directory] = PackageCacheEntry(mtime=mtime, config=config)

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        return {
            "project_entries": len(self._projects),
            "negative_entries": sum(1 for e in self._projects.values() if e.config is None),
            "package_entries": len(self._packages),
            "hits": self._hits,
            "misses": self._misses,
            "invalidations": self._invalidations,
        }
