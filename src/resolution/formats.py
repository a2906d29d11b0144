"""Module format derivation.

The format of a ``.js`` file depends on the module type declared by the
package.json scope that owns it, so the policy is handed that declaration
rather than guessing from the extension alone.
"""

from __future__ import annotations

import posixpath
from typing import Dict, Optional

from constants import Constants

from . import fs
from .cache import DirectoryCache
from .errors import invalid_module_name
from .models import ModuleFormat
from .package_config import read_package_config

# json and addon labels only exist for CommonJS loading
_MODULE_FORMATS: Dict[str, ModuleFormat] = {
    ".js": ModuleFormat.MODULE,
    ".mjs": ModuleFormat.MODULE,
    ".cjs": ModuleFormat.COMMONJS,
}

_LEGACY_FORMATS: Dict[str, ModuleFormat] = {
    ".js": ModuleFormat.COMMONJS,
    ".mjs": ModuleFormat.MODULE,
    ".cjs": ModuleFormat.COMMONJS,
    ".json": ModuleFormat.JSON,
    ".node": ModuleFormat.ADDON,
}


class FormatPolicy:
    """Default extension and declared-type table.

    Subclass and pass as ``format_policy=`` to change how formats are chosen.
    """

    def needs_declared_mode(self, resolved: str) -> bool:
        """True when the owning scope's declared module type matters."""
        return posixpath.splitext(resolved)[1] in (".js", ".json", ".node")

    def format_for(self, resolved: str, declared_mode: Optional[str], legacy_scope: bool) -> ModuleFormat:
        """Derive the format of a resolved file.

        A scope declared ``cjs``, or an undeclared node_modules scope, is
        loaded as CommonJS and gets the CommonJS labels (``json``/``addon``
        included). Everything else gets ``module``, ``commonjs`` or ``unknown``.

        Args:
            resolved: Resolved absolute path.
            declared_mode: ``esm``, ``cjs`` or None, from the owning package.json.
            legacy_scope: True for files found by node_modules lookup.

        Returns:
            ModuleFormat
        """
        if resolved.endswith("/"):
            return ModuleFormat.UNKNOWN
        ext = posixpath.splitext(resolved)[1]
        if declared_mode == "cjs" or (legacy_scope and declared_mode != "esm"):
            return _LEGACY_FORMATS.get(ext, ModuleFormat.UNKNOWN)
        return _MODULE_FORMATS.get(ext, ModuleFormat.UNKNOWN)

    def cjs_format(self, resolved: str, parent: str) -> ModuleFormat:
        """Format under CommonJS resolution.

        Raises:
            ResolveError: INVALID_MODULE_NAME for ``.mjs`` targets.
        """
        ext = posixpath.splitext(resolved)[1]
        if ext == ".mjs":
            raise invalid_module_name(f'Cannot load ".mjs" module {resolved} from CommonJS module {parent}.')
        return _LEGACY_FORMATS.get(ext, ModuleFormat.UNKNOWN)


def nearest_declared_mode(path: str, cache: Optional[DirectoryCache]) -> fs.Steps[Optional[str]]:
    """Declared module type of the nearest package.json above ``path``.

    The search stops at the first package.json found, and at a node_modules
    directory itself.
    """
    directory = path[:path.rfind("/")]
    while directory and not directory.endswith("/" + Constants.NODE_MODULES_DIR):
        config = yield from read_package_config(directory, cache)
        if config is not None:
            return config.mode
        if "/" not in directory:
            break
        directory = directory[:directory.rfind("/")]
    return None
