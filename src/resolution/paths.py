"""String-level path helpers.

All paths handled by the resolver are ``/``-separated strings. Backslash
separators are translated once at the edges and never seen by the engine.
"""

import os
import re
import urllib.parse
from typing import List

from .errors import invalid_module_name

IS_WINDOWS = os.name == "nt"

_ENCODED_SEPARATOR = re.compile(r"%(5C|2F)", re.IGNORECASE)
_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def to_posix(path: str) -> str:
    """Translate Windows separators to ``/``."""
    if "\\" in path:
        return path.replace("\\", "/")
    return path


def has_win_drive_prefix(name: str) -> bool:
    """True for ``C:``-style prefixes."""
    return len(name) > 1 and name[1] == ":" and name[0].isascii() and name[0].isalpha()


def normalize_path(path: str) -> str:
    """Collapse ``.`` and ``..`` segments of a ``/``-separated path.

    Every other segment is copied verbatim together with its trailing
    separator, so percent-encoded text is never touched. A ``..`` cancels the
    previously emitted segment; the root segment is never removed.
    """
    out: List[str] = []
    start = 0
    length = len(path)
    while start < length:
        end = path.find("/", start)
        if end == -1:
            segment = path[start:]
            start = length
        else:
            segment = path[start:end + 1]
            start = end + 1
        if segment in ("./", "."):
            continue
        if segment in ("../", ".."):
            if out and not (len(out) == 1 and out[0] == "/"):
                out.pop()
            continue
        out.append(segment)
    return "".join(out)


def percent_decode(path: str) -> str:
    """Decode percent escapes, rejecting encoded separators.

    Raises:
        ResolveError: INVALID_MODULE_NAME when ``%2F`` or ``%5C`` is present,
            or when an escape is malformed or does not decode as UTF-8.
    """
    if _ENCODED_SEPARATOR.search(path):
        raise invalid_module_name(
            f"{path} cannot be URI decoded as it contains a percent-encoded separator."
        )
    if "%" not in path:
        return path
    if _MALFORMED_ESCAPE.search(path):
        raise invalid_module_name(f"{path} contains a malformed percent escape.")
    try:
        return urllib.parse.unquote(path, errors="strict")
    except UnicodeDecodeError as e:
        raise invalid_module_name(f"{path} cannot be URI decoded: {e.reason}.") from e


def has_encoded_separator(name: str) -> bool:
    return _ENCODED_SEPARATOR.search(name) is not None


def file_url_to_path(url: str) -> str:
    """Convert a ``file:`` URL to a plain path (percent-decoded)."""
    pathname = urllib.parse.urlsplit(url).path
    if IS_WINDOWS and pathname.startswith("/") and has_win_drive_prefix(pathname[1:]):
        pathname = pathname[1:]
    return percent_decode(pathname)


def parent_dir(path: str) -> str:
    """Directory part of ``path`` including its trailing ``/``."""
    return path[:path.rfind("/") + 1]


def is_within(path: str, root: str) -> bool:
    """True when ``path`` is ``root`` itself or lies underneath it."""
    root = root.rstrip("/")
    return path == root or path.startswith(root + "/")
