"""Specifier classification.

Decides whether an import string is an absolute path, a relative path, an
exact package reference, a ``file:`` URL or a plain (bare) name, and turns the
path-like kinds into normalized absolute paths.
"""

import re
from dataclasses import dataclass
from typing import Optional

from .errors import invalid_module_name
from .models import PackageReference, SpecifierKind
from .package_path import parse_package_name
from .paths import (
    IS_WINDOWS,
    file_url_to_path,
    has_encoded_separator,
    has_win_drive_prefix,
    normalize_path,
    parent_dir,
    percent_decode,
    to_posix,
)

_URL_SCHEME = re.compile(r"^([a-zA-Z][a-zA-Z\d+.\-]*):")
_DOT_SEGMENT = re.compile(r"(^|/)\.\.?(/|$)")


@dataclass(frozen=True)
class Specifier:
    """A classified specifier.

    ``path`` is set for ABSOLUTE, RELATIVE and URL kinds, ``package`` for
    PACKAGE, and ``name`` always holds the original text.
    """
    kind: SpecifierKind
    name: str
    path: Optional[str] = None
    package: Optional[PackageReference] = None

    @property
    def is_path(self) -> bool:
        return self.path is not None


def _is_relative(name: str) -> bool:
    if name in (".", ".."):
        return True
    return name.startswith("./") or name.startswith("../")


def _is_url_like(name: str) -> bool:
    colon = name.find(":")
    if colon == -1:
        return False
    sep = name.find("/")
    return sep == -1 or sep > colon


def _absolute_path(name: str) -> str:
    name = to_posix(name)
    if name.startswith("//"):
        # "///x" is an over-slashed root path; "//x" would be a network path
        if not name.startswith("///") or name.startswith("////"):
            raise invalid_module_name(f"{name} is not a valid module name.")
        name = name[2:]
    if IS_WINDOWS and has_win_drive_prefix(name[1:]):
        name = name[1:]
    return normalize_path(percent_decode(name))


def _relative_path(name: str, parent: str) -> str:
    name = to_posix(name)
    resolved = normalize_path(parent_dir(parent) + percent_decode(name))
    if not name.endswith("/") and len(resolved) > 1 and resolved.endswith("/"):
        resolved = resolved[:-1]
    return resolved


def validate_plain(name: str) -> None:
    """Reject strings that cannot be plain specifiers.

    Raises:
        ResolveError: INVALID_MODULE_NAME.
    """
    if not name:
        raise invalid_module_name("An empty string is not a valid module name.")
    if "\\" in name:
        raise invalid_module_name(f'Package request {name} must use "/" as a separator not "\\".')
    if _is_url_like(name) or _is_relative(name) or name.startswith("/") or _DOT_SEGMENT.search(name):
        raise invalid_module_name(f"Package request {name} is not a valid plain specifier name.")


def classify_specifier(name: str, parent: str) -> Specifier:
    """Classify ``name`` as imported from the absolute path ``parent``.

    Args:
        name: Raw specifier.
        parent: ``/``-separated absolute path of the importing module (or a
            directory path ending in ``/``).

    Returns:
        Specifier

    Raises:
        ResolveError: INVALID_MODULE_NAME for malformed specifiers.
    """
    if has_encoded_separator(name):
        raise invalid_module_name(
            f"{name} cannot be URI decoded as it contains a percent-encoded separator."
        )

    if name.startswith("/") or (IS_WINDOWS and name.startswith("\\")):
        return Specifier(SpecifierKind.ABSOLUTE, name, path=_absolute_path(name))

    if _is_relative(name) or (IS_WINDOWS and (name.startswith(".\\") or name.startswith("..\\"))):
        return Specifier(SpecifierKind.RELATIVE, name, path=_relative_path(name, parent))

    package = parse_package_name(name)
    if package is not None:
        return Specifier(SpecifierKind.PACKAGE, name, package=package)

    if IS_WINDOWS and has_win_drive_prefix(name):
        return Specifier(SpecifierKind.ABSOLUTE, name, path=normalize_path(to_posix(percent_decode(name))))

    if _is_url_like(name):
        scheme = _URL_SCHEME.match(name)
        if scheme is not None and scheme.group(1).lower() == "file":
            return Specifier(SpecifierKind.URL, name, path=normalize_path(file_url_to_path(name)))
        raise invalid_module_name(f"URL {name} is not a valid file:/// URL to resolve.")

    validate_plain(name)
    return Specifier(SpecifierKind.PLAIN, name)
