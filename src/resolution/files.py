"""Extension and index probing for concrete file paths."""

from __future__ import annotations

import logging
from typing import List, Optional

from constants import Constants

from . import fs
from .errors import module_not_found

logger = logging.getLogger(__name__)


def probe_candidates(path: str) -> List[str]:
    """Return the probe order for ``path``: exact, extensions, then index files."""
    candidates = [path]
    candidates.extend(path + ext for ext in Constants.FILE_EXTENSIONS)
    candidates.extend(path + index for index in Constants.INDEX_FILES)
    return candidates


def resolve_file(path: str, parent: Optional[str] = None) -> fs.Steps[str]:
    """Turn ``path`` into an existing file path.

    A path ending in ``/`` is an explicit directory import: it is returned as
    is when the directory exists and is never extension-probed.

    Raises:
        ResolveError: MODULE_NOT_FOUND when nothing matches.
    """
    if path.endswith("/"):
        if (yield from fs.is_dir(path[:-1] or "/")):
            return path
        raise module_not_found(path, parent)

    for candidate in probe_candidates(path):
        if (yield from fs.is_file(candidate)):
            return candidate
    logger.debug("No file matched %s", path)
    raise module_not_found(path, parent)
