"""Conversion between canonical package references and the on-disk layout.

On disk a package lives at ``<packages-root>/<registry>/<name>@<version>``;
canonically it is named ``<registry>:<name>@<version>``.
"""

import re
from typing import Optional

from .models import PackageReference

# name[/nested]*@version; versions never contain separators or percent signs
_NAME_AT_VERSION = (
    r"[@\-_.a-zA-Z\d][-_.a-zA-Z\d]*(?:/[-_.a-zA-Z\d]+)*"
    r"@[^@<>:\"/\\|?*^%\x00-\x1f]+"
)
_PACKAGE_NAME_PATTERN = re.compile(r"^([a-z]+:" + _NAME_AT_VERSION + r")(/.*|\Z)", re.DOTALL)
_PACKAGE_PATH_PATTERN = re.compile(r"^([a-z]+/" + _NAME_AT_VERSION + r")(/.*|\Z)", re.DOTALL)


def parse_package_name(name: str) -> Optional[PackageReference]:
    """Parse ``registry:name@version[/subpath]``.

    Returns:
        PackageReference, or None when ``name`` is not an exact package reference.
    """
    match = _PACKAGE_NAME_PATTERN.match(name)
    if match is None:
        return None
    return PackageReference(match.group(1), match.group(2))


def path_to_package(path: str, packages_root: str) -> Optional[PackageReference]:
    """Canonicalize an on-disk path under ``packages_root``.

    The root must be followed by a separator (or end the path) for the path
    to count as inside it.
    """
    if not path.startswith(packages_root):
        return None
    root_len = len(packages_root)
    if len(path) != root_len and path[root_len] != "/":
        return None
    match = _PACKAGE_PATH_PATTERN.match(path[root_len + 1:])
    if match is None:
        return None
    return PackageReference(match.group(1).replace("/", ":", 1), match.group(2))


def package_to_path(ref: PackageReference, packages_root: str) -> str:
    """Inverse of :func:`path_to_package`."""
    registry, _, rest = ref.name.partition(":")
    return f"{packages_root}/{registry}/{rest}{ref.subpath}"


def package_dir(ref: PackageReference, packages_root: str) -> str:
    """Directory holding the package, without trailing separator."""
    return package_to_path(ref.with_subpath(""), packages_root)


def is_package_boundary(directory: str, packages_root: str) -> bool:
    """True when ``directory`` is exactly a package root under ``packages_root``."""
    ref = path_to_package(directory, packages_root)
    return ref is not None and ref.subpath == ""
